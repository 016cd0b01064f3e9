# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/roles/base.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

from ...config.models import ClusterSpec
from ...version.ceph_version import CephVersion
from ..errors import IdentityMissing, RoleStartError
from ..interfaces import CephAdmin, ClusterStatusReader, IdentityStore, WorkloadManager
from ..models import ClusterIdentity, RoleSpec

log = logging.getLogger("cephorch")


@dataclass
class RoleContext:
    """Everything a role needs for one pass. Built fresh for every pass."""

    namespace: str
    cluster_name: str
    spec: ClusterSpec
    version: CephVersion
    workloads: WorkloadManager
    identity_store: IdentityStore
    identity: Optional[ClusterIdentity] = None
    is_upgrade: bool = False
    owner_ref: Optional[Dict[str, Any]] = None
    status: Optional[ClusterStatusReader] = None
    admin: Optional[CephAdmin] = None

    @property
    def image(self) -> str:
        return self.spec.ceph_version.image


def index_to_name(index: int) -> str:
    """0 -> a, 25 -> z, 26 -> aa"""
    name = ""
    index += 1
    while index > 0:
        index, rem = divmod(index - 1, 26)
        name = chr(ord("a") + rem) + name
    return name


class RoleStarter:
    """
    Starts (or converges) every daemon of one role.

    Subclasses set ``role`` and ``error`` and implement ``start``. Only the
    monitor role returns an identity; the rest return None.
    """

    role: str = ""
    error: Type[RoleStartError] = RoleStartError

    def start(self, ctx: RoleContext) -> Optional[ClusterIdentity]:
        raise NotImplementedError

    def require_identity(self, ctx: RoleContext) -> ClusterIdentity:
        if ctx.identity is None or not ctx.identity.is_initialized():
            raise IdentityMissing(f"cannot start {self.role} without an established cluster identity")
        return ctx.identity

    def role_spec(self, ctx: RoleContext, daemon_id: str, **overrides: Any) -> RoleSpec:
        resources = ctx.spec.resources_for(self.role.replace("-", ""))
        labels = {
            "app": f"rook-ceph-{self.role}",
            "ceph_daemon_id": daemon_id,
            "rook_cluster": ctx.namespace,
        }
        fields: Dict[str, Any] = dict(
            role=self.role,
            daemon_id=daemon_id,
            image=ctx.image,
            namespace=ctx.namespace,
            labels=labels,
            annotations=ctx.spec.annotations_for(self.role.replace("-", "")),
            placement=ctx.spec.placement_for(self.role.replace("-", "")),
            resources={"limits": dict(resources.limits), "requests": dict(resources.requests)},
            host_network=ctx.spec.network.host_network,
            data_dir_host_path=ctx.spec.data_dir_host_path,
            owner_ref=ctx.owner_ref,
        )
        fields.update(overrides)
        return RoleSpec(**fields)

    def run_daemon(self, ctx: RoleContext, spec: RoleSpec) -> None:
        log.debug("[%s] starting deployment %s", self.role, spec.resource_name)
        ready = ctx.workloads.create_or_update_role(spec)
        if not ready:
            raise self.error(f"deployment {spec.resource_name} did not become ready")
        log.debug("[%s] deployment %s is ready", self.role, spec.resource_name)
