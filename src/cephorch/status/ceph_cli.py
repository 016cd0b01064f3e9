# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/status/ceph_cli.py

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, List, Optional

from ..cluster.models import CephDaemonsVersions
from ..utils.execution import CommandRunner
from ..utils.retry import retry

log = logging.getLogger("cephorch")

HEALTHY_STATES = ("HEALTH_OK", "HEALTH_WARN")


class CephCommandError(RuntimeError):
    pass


class CephCliStatusReader:
    """
    Reads cluster health and daemon versions through the ceph CLI.

    Also toggles mgr modules, which is the only write the orchestrator makes
    through the CLI.
    """

    def __init__(
        self,
        *,
        cluster: str,
        config_file: Optional[str] = None,
        keyring: Optional[str] = None,
        runner: Optional[CommandRunner] = None,
        timeout: float = 60,
        retries: int = 3,
        retry_delay: float = 2,
    ):
        self.cluster = cluster
        self.config_file = config_file
        self.keyring = keyring
        self.runner = runner or CommandRunner(label="ceph")
        self.timeout = timeout
        self._ceph_json = retry(
            retries=retries,
            delay=retry_delay,
            retry_on=(CephCommandError, subprocess.TimeoutExpired),
            on_retry=lambda attempt, e: log.debug("[ceph] attempt %d failed: %s", attempt, e),
        )(self._ceph_json_once)

    def _base_cmd(self) -> List[str]:
        cmd = ["ceph", "--cluster", self.cluster]
        if self.config_file:
            cmd += ["--conf", self.config_file]
        if self.keyring:
            cmd += ["--keyring", self.keyring]
        return cmd

    def _ceph(self, *args: str) -> str:
        cp = self.runner.run([*self._base_cmd(), *args], timeout=self.timeout)
        if cp.returncode != 0:
            raise CephCommandError(
                f"ceph {' '.join(args)} failed (rc={cp.returncode}): {(cp.stderr or cp.stdout).strip()}"
            )
        return cp.stdout

    def _ceph_json_once(self, *args: str) -> Any:
        out = self._ceph(*args, "--format", "json")
        try:
            return json.loads(out)
        except json.JSONDecodeError as e:
            raise CephCommandError(f"unexpected output from ceph {' '.join(args)}: {e}") from e

    def running_versions(self) -> CephDaemonsVersions:
        return CephDaemonsVersions.model_validate(self._ceph_json("versions"))

    def status(self) -> dict:
        return self._ceph_json("status")

    def is_healthy(self) -> bool:
        try:
            status = self.status()
        except Exception as e:
            log.warning("[ceph] failed to get ceph status. %s", e)
            return False

        health = status.get("health", {}).get("status", "")
        if health not in HEALTHY_STATES:
            log.warning("[ceph] ceph cluster %s is %s", self.cluster, health or "in an unknown state")
            return False
        return True

    def mgr_enable_module(self, module: str, force: bool = False) -> None:
        args = ["mgr", "module", "enable", module]
        if force:
            args.append("--force")
        self._ceph(*args)
