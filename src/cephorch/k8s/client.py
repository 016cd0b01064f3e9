# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/k8s/client.py
from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from ..cluster.models import ClusterIdentity, RoleSpec
from ..utils.retry import wait_until
from ..version.ceph_version import parse_version_string

log = logging.getLogger("cephorch")


def load_kube_config(kube_context: Optional[str] = None) -> None:
    """In-cluster config when running as a pod, kubeconfig otherwise."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config(context=kube_context)


def _already_exists(e: ApiException) -> bool:
    return e.status == 409


def _metadata(name: str, namespace: str, labels: Dict[str, str], owner_ref) -> Dict[str, Any]:
    meta: Dict[str, Any] = {"name": name, "namespace": namespace, "labels": dict(labels)}
    if owner_ref:
        meta["ownerReferences"] = [owner_ref]
    return meta


def deployment_ready(d) -> bool:
    """All replicas of the latest generation are updated and available."""
    desired = d.spec.replicas or 0
    status = d.status
    if (status.observed_generation or 0) < (d.metadata.generation or 0):
        return False
    return (status.updated_replicas or 0) >= desired and (status.available_replicas or 0) >= desired


def make_deployment(role: RoleSpec) -> Dict[str, Any]:
    container: Dict[str, Any] = {
        "name": role.role,
        "image": role.image,
        "args": list(role.args),
        "env": [{"name": k, "value": v} for k, v in sorted(role.env.items())],
        "volumeMounts": [{"name": "rook-data", "mountPath": "/var/lib/ceph"}],
    }
    if role.resources.get("limits") or role.resources.get("requests"):
        container["resources"] = role.resources

    pod_spec: Dict[str, Any] = {
        "containers": [container],
        "hostNetwork": role.host_network,
        "volumes": [
            {
                "name": "rook-data",
                "hostPath": {"path": f"{role.data_dir_host_path}/{role.namespace}/{role.role}-{role.daemon_id}"},
            }
        ],
    }
    placement = dict(role.placement)
    if "nodeSelector" in placement:
        pod_spec["nodeSelector"] = placement.pop("nodeSelector")
    if "tolerations" in placement:
        pod_spec["tolerations"] = placement.pop("tolerations")
    if placement:
        pod_spec["affinity"] = placement

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _metadata(role.resource_name, role.namespace, role.labels, role.owner_ref),
        "spec": {
            "replicas": role.replicas,
            "selector": {"matchLabels": dict(role.labels)},
            # ceph daemons must never run twice against the same data
            "strategy": {"type": "Recreate"},
            "template": {
                "metadata": {"labels": dict(role.labels), "annotations": dict(role.annotations)},
                "spec": pod_spec,
            },
        },
    }


class KubeWorkloadManager:
    """
    Creates or converges the deployments, config maps and services of the
    ceph daemons. Create calls answered with 409 Conflict fall back to an
    update; they are never treated as failures.
    """

    def __init__(
        self,
        *,
        namespace: str,
        apps_api=None,
        core_api=None,
        ready_timeout: float = 600,
        poll_interval: float = 5,
    ):
        self.namespace = namespace
        self.apps = apps_api or client.AppsV1Api()
        self.core = core_api or client.CoreV1Api()
        self.ready_timeout = ready_timeout
        self.poll_interval = poll_interval

    def create_or_update_role(self, role: RoleSpec) -> bool:
        body = make_deployment(role)
        name, ns = role.resource_name, role.namespace
        try:
            self.apps.create_namespaced_deployment(ns, body)
            log.info("[k8s] created deployment %s/%s", ns, name)
        except ApiException as e:
            if not _already_exists(e):
                raise
            log.info("[k8s] deployment %s/%s already exists. updating if needed", ns, name)
            self.apps.patch_namespaced_deployment(name, ns, body)

        return self.wait_for_deployment(ns, name)

    def wait_for_deployment(self, namespace: str, name: str) -> bool:
        def _ready():
            d = self.apps.read_namespaced_deployment(name, namespace)
            return True if deployment_ready(d) else None

        try:
            return wait_until(
                _ready,
                timeout=self.ready_timeout,
                interval=self.poll_interval,
                what=f"deployment {namespace}/{name}",
            )
        except TimeoutError as e:
            log.warning("[k8s] %s", e)
            return False

    def ensure_config_map(
        self, name: str, data: Dict[str, str], owner_ref: Optional[Dict[str, Any]] = None
    ) -> None:
        namespace = self.namespace
        body = {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": _metadata(name, namespace, {}, owner_ref),
            "data": dict(data),
        }
        try:
            self.core.create_namespaced_config_map(namespace, body)
        except ApiException as e:
            if not _already_exists(e):
                raise
            log.debug("[k8s] configmap %s/%s already exists", namespace, name)

    def ensure_service(
        self,
        name: str,
        labels: Dict[str, str],
        port: int,
        owner_ref: Optional[Dict[str, Any]] = None,
    ) -> None:
        namespace = self.namespace
        body = {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": _metadata(name, namespace, labels, owner_ref),
            "spec": {
                "selector": dict(labels),
                "ports": [{"name": "http-metrics", "port": port, "protocol": "TCP"}],
            },
        }
        try:
            self.core.create_namespaced_service(namespace, body)
            log.info("[k8s] service %s/%s started", namespace, name)
        except ApiException as e:
            if not _already_exists(e):
                raise
            log.info("[k8s] service %s/%s already exists", namespace, name)

    def list_nodes(self) -> List[str]:
        nodes = self.core.list_node().items
        return [
            n.metadata.name
            for n in nodes
            if not (n.spec and n.spec.unschedulable)
        ]


# -------------------------------------------------
# Cluster identity persistence
# -------------------------------------------------
def _b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


def _unb64(value: Optional[str]) -> str:
    return base64.b64decode(value).decode() if value else ""


class KubeIdentityStore:
    """
    Keeps the cluster identity in a Secret of the cluster namespace so it
    survives operator restarts.
    """

    def __init__(self, *, namespace: str, core_api=None, secret_name: str = "rook-ceph-mon", owner_ref=None):
        self.namespace = namespace
        self.core = core_api or client.CoreV1Api()
        self.secret_name = secret_name
        self.owner_ref = owner_ref

    def load(self) -> Optional[ClusterIdentity]:
        try:
            secret = self.core.read_namespaced_secret(self.secret_name, self.namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise

        data = secret.data or {}
        version = parse_version_string(f"ceph version {_unb64(data.get('ceph-version'))}")
        return ClusterIdentity(
            name=_unb64(data.get("cluster-name")),
            fsid=_unb64(data.get("fsid")),
            admin_secret=_unb64(data.get("admin-secret")),
            ceph_version=version,
        )

    def save(self, identity: ClusterIdentity) -> None:
        data = {
            "cluster-name": _b64(identity.name),
            "fsid": _b64(identity.fsid),
            "admin-secret": _b64(identity.admin_secret),
        }
        if identity.ceph_version is not None:
            v = identity.ceph_version
            raw = f"{v.major}.{v.minor}.{v.extra}"
            if v.build:
                raw = f"{raw}-{v.build}"
            data["ceph-version"] = _b64(raw)

        body = {
            "apiVersion": "v1",
            "kind": "Secret",
            "type": "kubernetes.io/rook",
            "metadata": _metadata(self.secret_name, self.namespace, {}, self.owner_ref),
            "data": data,
        }
        try:
            self.core.create_namespaced_secret(self.namespace, body)
        except ApiException as e:
            if not _already_exists(e):
                raise
            self.core.replace_namespaced_secret(self.secret_name, self.namespace, body)
