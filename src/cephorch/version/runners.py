# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/version/runners.py

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from kubernetes.client.rest import ApiException

from ..utils.execution import CommandRunner
from ..utils.retry import wait_until
from .probe import ProcessResult

log = logging.getLogger("cephorch")

DETECT_VERSION_NAME = "rook-ceph-detect-version"
CMD_REPORTER_SERVICE_ACCOUNT = "rook-ceph-cmd-reporter"


class LocalProcessRunner:
    """
    Runs the image locally through a container engine (docker/podman).
    """

    def __init__(self, engine: str = "docker"):
        self.engine = engine
        self.commands = CommandRunner(label="version-probe")

    def run(self, image: str, args: Sequence[str], timeout: float) -> ProcessResult:
        if not args:
            raise ValueError("no command given")
        cmd = [self.engine, "run", "--rm", "--entrypoint", args[0], image, *args[1:]]
        # TimeoutExpired propagates to the caller
        cp = self.commands.run(cmd, timeout=timeout)
        return ProcessResult(stdout=cp.stdout or "", stderr=cp.stderr or "", exit_code=cp.returncode)


class KubernetesJobRunner:
    """
    Runs the image as a one-shot Job in the cluster namespace and collects the
    pod's output and exit code. The Job is removed once the result is read.
    """

    def __init__(
        self,
        *,
        batch_api,
        core_api,
        namespace: str,
        owner_ref: Optional[Dict[str, Any]] = None,
        name: str = DETECT_VERSION_NAME,
        service_account: str = CMD_REPORTER_SERVICE_ACCOUNT,
        poll_interval: float = 2.0,
    ):
        self.batch = batch_api
        self.core = core_api
        self.namespace = namespace
        self.owner_ref = owner_ref
        self.name = name
        self.service_account = service_account
        self.poll_interval = poll_interval

    def _make_job(self, image: str, args: Sequence[str]) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "name": self.name,
            "namespace": self.namespace,
            "labels": {"app": self.name},
        }
        if self.owner_ref:
            metadata["ownerReferences"] = [self.owner_ref]

        return {
            "apiVersion": "batch/v1",
            "kind": "Job",
            "metadata": metadata,
            "spec": {
                "backoffLimit": 0,
                "template": {
                    "metadata": {"labels": {"app": self.name}},
                    "spec": {
                        "serviceAccountName": self.service_account,
                        "restartPolicy": "Never",
                        "containers": [
                            {
                                "name": "cmd-reporter",
                                "image": image,
                                "command": [args[0]],
                                "args": list(args[1:]),
                            }
                        ],
                    },
                },
            },
        }

    def _delete_job(self) -> bool:
        """Request deletion; returns False when there was no job to delete."""
        try:
            self.batch.delete_namespaced_job(
                self.name, self.namespace, propagation_policy="Background"
            )
        except ApiException as e:
            if e.status != 404:
                raise
            return False
        return True

    def _job_gone(self):
        try:
            self.batch.read_namespaced_job(self.name, self.namespace)
        except ApiException as e:
            if e.status == 404:
                return True
            raise
        return None

    def _replace_stale_job(self, timeout: float) -> None:
        # a previous pass or operator run may have left the job behind
        if not self._delete_job():
            return
        log.debug("[version] waiting for stale job %s/%s to be removed", self.namespace, self.name)
        wait_until(
            self._job_gone,
            timeout=timeout,
            interval=self.poll_interval,
            what=f"deletion of job {self.namespace}/{self.name}",
        )

    def _finished(self):
        job = self.batch.read_namespaced_job_status(self.name, self.namespace)
        status = job.status
        if (status.succeeded or 0) > 0 or (status.failed or 0) > 0:
            return status
        return None

    def _job_pod(self, job_uid: str):
        # pods of a deleted job linger until garbage collected; only this job's uid counts
        pods = self.core.list_namespaced_pod(
            self.namespace, label_selector=f"controller-uid={job_uid}"
        ).items
        if not pods:
            raise RuntimeError(f"no pod found for job {self.name} (uid {job_uid})")
        return pods[0]

    @staticmethod
    def _exit_code(pod) -> int:
        for cs in pod.status.container_statuses or []:
            terminated = cs.state.terminated if cs.state else None
            if terminated is not None:
                return terminated.exit_code
        raise RuntimeError(f"container of pod {pod.metadata.name} has not terminated")

    def run(self, image: str, args: Sequence[str], timeout: float) -> ProcessResult:
        if not args:
            raise ValueError("no command given")

        self._replace_stale_job(timeout)

        log.debug("[version] creating job %s/%s for image %s", self.namespace, self.name, image)
        job = self.batch.create_namespaced_job(self.namespace, self._make_job(image, args))
        job_uid = job.metadata.uid
        try:
            wait_until(
                self._finished,
                timeout=timeout,
                interval=self.poll_interval,
                what=f"job {self.namespace}/{self.name}",
            )
            pod = self._job_pod(job_uid)
            output = self.core.read_namespaced_pod_log(pod.metadata.name, self.namespace)
            return ProcessResult(stdout=output or "", stderr="", exit_code=self._exit_code(pod))
        finally:
            self._delete_job()
