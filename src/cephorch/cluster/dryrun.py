# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/dryrun.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..version.probe import ProcessResult
from .models import CephDaemonsVersions, RoleSpec

log = logging.getLogger("cephorch")


class DryRunWorkloadManager:
    """Logs what would be created and reports every role ready."""

    def __init__(self, nodes: Optional[List[str]] = None):
        self.nodes = list(nodes or [])
        self.roles: List[RoleSpec] = []

    def create_or_update_role(self, role: RoleSpec) -> bool:
        log.info("[dry-run] would create or update deployment %s/%s (%s)",
                 role.namespace, role.resource_name, role.image)
        self.roles.append(role)
        return True

    def ensure_config_map(self, name: str, data: Dict[str, str], owner_ref: Optional[Dict[str, Any]] = None) -> None:
        log.info("[dry-run] would ensure configmap %s", name)

    def ensure_service(self, name: str, labels: Dict[str, str], port: int,
                       owner_ref: Optional[Dict[str, Any]] = None) -> None:
        log.info("[dry-run] would ensure service %s:%d", name, port)

    def list_nodes(self) -> List[str]:
        return list(self.nodes)


class DryRunStatusReader:
    """There is no live cluster to ask; the gate falls back to best effort."""

    def is_healthy(self) -> bool:
        return True

    def running_versions(self) -> CephDaemonsVersions:
        raise RuntimeError("dry run: no live cluster to query")


class StaticVersionRunner:
    """Answers ``ceph --version`` with a fixed version instead of running the image."""

    def __init__(self, version: str):
        self.version = version

    def run(self, image: str, args: Sequence[str], timeout: float) -> ProcessResult:
        log.info("[dry-run] assuming image %s reports ceph %s", image, self.version)
        return ProcessResult(stdout=f"ceph version {self.version} (dry-run)\n", stderr="", exit_code=0)
