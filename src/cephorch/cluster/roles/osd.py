# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/roles/osd.py

from __future__ import annotations

import logging
import re
from typing import Dict, List

from ...config.models import StorageNode
from ..errors import OsdStartFailed
from .base import RoleContext, RoleStarter

log = logging.getLogger("cephorch")


def _daemon_id(node_name: str) -> str:
    # deployment names must be DNS-1123 labels
    return re.sub(r"[^a-z0-9-]", "-", node_name.lower()).strip("-")


class OsdStarter(RoleStarter):
    role = "osd"
    error = OsdStartFailed

    def select_nodes(self, ctx: RoleContext) -> List[StorageNode]:
        storage = ctx.spec.storage
        if not storage.use_all_nodes:
            return sorted(storage.nodes, key=lambda n: n.name)

        nodes = [StorageNode(name=n) for n in ctx.workloads.list_nodes()]
        return sorted(nodes, key=lambda n: n.name)

    def start(self, ctx: RoleContext) -> None:
        self.require_identity(ctx)
        storage = ctx.spec.storage

        nodes = self.select_nodes(ctx)
        if not nodes:
            log.warning("[osd] no nodes are available or selected for osds")
            return

        ids: Dict[str, str] = {}
        for node in nodes:
            daemon_id = _daemon_id(node.name)
            if daemon_id in ids:
                raise OsdStartFailed(
                    f"nodes {ids[daemon_id]!r} and {node.name!r} both map to osd deployment id {daemon_id!r}"
                )
            ids[daemon_id] = node.name

        log.info("[osd] start running osds on %d node(s)", len(nodes))
        for node in nodes:
            env = {
                "ROOK_NODE_NAME": node.name,
                "ROOK_USE_ALL_DEVICES": str(storage.use_all_devices).lower(),
            }
            if node.devices:
                env["ROOK_DATA_DEVICES"] = ",".join(node.devices)
            device_filter = node.device_filter or storage.device_filter
            if device_filter:
                env["ROOK_DATA_DEVICE_FILTER"] = device_filter
            for key, value in node.config.items():
                env[f"ROOK_{key.upper()}"] = value

            placement = ctx.spec.placement_for("osd")
            placement["nodeSelector"] = {"kubernetes.io/hostname": node.name}
            spec = self.role_spec(ctx, _daemon_id(node.name), env=env, placement=placement)
            self.run_daemon(ctx, spec)
