# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/roles/mgr.py

from __future__ import annotations

import logging
from typing import List, Optional

from kubernetes.utils import parse_quantity

from ...config.models import ResourceRequirements
from ...version.ceph_version import CephVersion, parse_version_string
from ..errors import MgrStartFailed
from .base import RoleContext, RoleStarter, index_to_name

log = logging.getLogger("cephorch")

APP_NAME = "rook-ceph-mgr"
METRICS_PORT = 9283
PROMETHEUS_MODULE = "prometheus"
DASHBOARD_MODULE = "dashboard"
MAX_MGRS = 2
# minimum amount of memory in MiB to run the pod
MGR_POD_MINIMUM_MEMORY_MIB = 512

def quantity_to_mib(quantity: str) -> float:
    """Convert a kubernetes memory quantity ("512Mi", "1G", "1e9") to MiB."""
    return float(parse_quantity(quantity)) / 2**20


def check_pod_memory(resources: ResourceRequirements, minimum_mib: int) -> None:
    for kind, values in (("limit", resources.limits), ("request", resources.requests)):
        raw = values.get("memory")
        if raw is None:
            continue
        try:
            mib = quantity_to_mib(raw)
        except ValueError as e:
            raise MgrStartFailed(f"invalid memory {kind} {raw!r}. {e}") from e
        if mib < minimum_mib:
            raise MgrStartFailed(
                f"memory {kind} {raw} is below the minimum of {minimum_mib}Mi needed to run a mgr"
            )


def least_uptodate_version(versions: dict) -> Optional[CephVersion]:
    parsed = [v for v in (parse_version_string(k) for k in versions) if v is not None]
    return min(parsed) if parsed else None


class MgrStarter(RoleStarter):
    role = "mgr"
    error = MgrStartFailed

    def dashboard_port(self, ctx: RoleContext) -> int:
        dashboard = ctx.spec.dashboard
        if dashboard.port:
            return dashboard.port
        return 8443 if dashboard.ssl else 7000

    def modules(self, ctx: RoleContext) -> List[str]:
        modules = [PROMETHEUS_MODULE, *ctx.spec.mgr.modules]
        if ctx.spec.dashboard.enabled:
            modules.append(DASHBOARD_MODULE)
        # keep first occurrence order
        return list(dict.fromkeys(modules))

    def _version_to_use(self, ctx: RoleContext) -> CephVersion:
        """On an upgrade, converge from the oldest mgr still running."""
        if not ctx.is_upgrade or ctx.status is None:
            return ctx.version
        try:
            current = least_uptodate_version(ctx.status.running_versions().mgr)
        except Exception as e:
            log.warning("[mgr] failed to retrieve current ceph mgr version. %s", e)
            current = None
        if current is None:
            log.debug("[mgr] could not detect ceph version during update, proceeding with %s", ctx.version)
            return ctx.version
        log.debug("[mgr] current cluster version for mgrs before upgrading is: %s", current)
        return current

    def _enable_modules(self, ctx: RoleContext) -> None:
        if ctx.admin is None:
            log.debug("[mgr] no ceph admin client configured, skipping mgr modules")
            return
        for module in self.modules(ctx):
            try:
                ctx.admin.mgr_enable_module(module, force=module == PROMETHEUS_MODULE)
            except Exception as e:
                log.error("[mgr] failed to enable mgr %s module. %s", module, e)

    def start(self, ctx: RoleContext) -> None:
        identity = self.require_identity(ctx)
        check_pod_memory(ctx.spec.resources_for("mgr"), MGR_POD_MINIMUM_MEMORY_MIB)

        log.info("[mgr] start running mgr")
        version = self._version_to_use(ctx)
        for i in range(ctx.spec.mgr.count):
            if i >= MAX_MGRS:
                log.error("[mgr] cannot have more than %d mgrs", MAX_MGRS)
                break
            daemon_id = index_to_name(i)
            spec = self.role_spec(
                ctx,
                daemon_id,
                args=["--foreground", f"--id={daemon_id}", f"--fsid={identity.fsid}"],
                env={
                    "ROOK_CEPH_VERSION": str(version),
                    "ROOK_DASHBOARD_PORT": str(self.dashboard_port(ctx)),
                },
            )
            self.run_daemon(ctx, spec)

        self._enable_modules(ctx)

        try:
            ctx.workloads.ensure_service(
                APP_NAME,
                {"app": APP_NAME, "rook_cluster": ctx.namespace},
                METRICS_PORT,
                ctx.owner_ref,
            )
        except Exception as e:
            raise MgrStartFailed(f"failed to create mgr service. {e}") from e

        if ctx.spec.monitoring.enabled:
            if version.is_at_least_nautilus():
                namespace = ctx.spec.monitoring.rules_namespace or ctx.namespace
                log.info("[mgr] monitoring enabled, prometheus rules go to namespace %s", namespace)
            else:
                log.debug("[mgr] monitoring not supported for ceph versions <v%d", version.major)
