# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/roles/mon.py

from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import Optional

from ..errors import MonStartFailed
from ..models import ClusterIdentity
from .base import RoleContext, RoleStarter, index_to_name

log = logging.getLogger("cephorch")

ADMIN_SECRET_NAME = "rook-ceph-mon"

class MonStarter(RoleStarter):
    """
    Starts the monitors. The first successful start establishes the cluster
    identity; later passes re-use it.
    """

    role = "mon"
    error = MonStartFailed

    def _establish_identity(self, ctx: RoleContext) -> ClusterIdentity:
        identity: Optional[ClusterIdentity] = ctx.identity
        if identity is None or not identity.is_initialized():
            identity = ctx.identity_store.load()

        if identity is None or not identity.is_initialized():
            identity = ClusterIdentity(
                name=ctx.namespace,
                fsid=str(uuid.uuid4()),
                admin_secret=ADMIN_SECRET_NAME,
                ceph_version=ctx.version,
            )
            log.info("[mon] creating new cluster identity fsid=%s", identity.fsid)
            ctx.identity_store.save(identity)
        return identity

    def _placement(self, ctx: RoleContext) -> dict:
        placement = ctx.spec.placement_for("mon")
        if not ctx.spec.mon.allow_multiple_per_node and "podAntiAffinity" not in placement:
            placement["podAntiAffinity"] = {
                "requiredDuringSchedulingIgnoredDuringExecution": [
                    {
                        "labelSelector": {"matchLabels": {"app": "rook-ceph-mon"}},
                        "topologyKey": "kubernetes.io/hostname",
                    }
                ]
            }
        return placement

    def start(self, ctx: RoleContext) -> ClusterIdentity:
        identity = self._establish_identity(ctx)
        count = ctx.spec.mon.count
        if count % 2 == 0:
            log.warning("[mon] an even number of mons (%d) is not recommended", count)

        log.info("[mon] start running %d mons", count)
        for i in range(count):
            daemon_id = index_to_name(i)
            spec = self.role_spec(
                ctx,
                daemon_id,
                placement=self._placement(ctx),
                args=[
                    "--foreground",
                    f"--id={daemon_id}",
                    f"--fsid={identity.fsid}",
                    "--keyring=/etc/ceph/keyring-store/keyring",
                ],
                env={"ROOK_CEPH_MON_SECRET": identity.admin_secret},
            )
            self.run_daemon(ctx, spec)

        # the stored version moves only once every mon runs the new image
        if identity.ceph_version != ctx.version:
            log.info("[mon] recording ceph version %s (was %s)", ctx.version, identity.ceph_version)
            identity = dataclasses.replace(identity, ceph_version=ctx.version)
            ctx.identity_store.save(identity)
        return identity
