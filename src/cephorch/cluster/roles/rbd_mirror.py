# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/roles/rbd_mirror.py

from __future__ import annotations

import logging

from ..errors import MirrorStartFailed
from .base import RoleContext, RoleStarter, index_to_name

log = logging.getLogger("cephorch")


class RbdMirrorStarter(RoleStarter):
    role = "rbd-mirror"
    error = MirrorStartFailed

    def start(self, ctx: RoleContext) -> None:
        identity = self.require_identity(ctx)
        workers = ctx.spec.rbd_mirroring.workers
        if workers == 0:
            log.debug("[rbd-mirror] no rbd mirror workers requested")
            return

        log.info("[rbd-mirror] configuring %d rbd mirroring workers", workers)
        for i in range(workers):
            daemon_id = index_to_name(i)
            spec = self.role_spec(
                ctx,
                daemon_id,
                args=["--foreground", f"--id=rbd-mirror.{daemon_id}", f"--fsid={identity.fsid}"],
            )
            self.run_daemon(ctx, spec)
