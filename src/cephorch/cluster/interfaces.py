# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/interfaces.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from ..config.models import ClusterSpec
from .models import CephDaemonsVersions, ClusterIdentity, RoleSpec


class WorkloadManager(Protocol):
    def create_or_update_role(self, role: RoleSpec) -> bool:
        """Create or converge the role's workload; returns True once ready.

        An "already exists" answer from the platform is never an error.
        """
        ...

    def ensure_config_map(
        self, name: str, data: Dict[str, str], owner_ref: Optional[Dict[str, Any]] = None
    ) -> None: ...

    def ensure_service(
        self,
        name: str,
        labels: Dict[str, str],
        port: int,
        owner_ref: Optional[Dict[str, Any]] = None,
    ) -> None: ...

    def list_nodes(self) -> List[str]:
        """Names of the nodes that may host storage daemons."""
        ...


class ClusterStatusReader(Protocol):
    def is_healthy(self) -> bool: ...

    def running_versions(self) -> CephDaemonsVersions: ...


class CephAdmin(Protocol):
    """Mgr module toggles, used best-effort by the mgr role."""

    def mgr_enable_module(self, module: str, force: bool = False) -> None: ...


class IdentityStore(Protocol):
    def load(self) -> Optional[ClusterIdentity]: ...

    def save(self, identity: ClusterIdentity) -> None: ...


class ChildController(Protocol):
    def parent_cluster_changed(
        self, spec: ClusterSpec, identity: ClusterIdentity, is_upgrade: bool
    ) -> None: ...


class InMemoryIdentityStore:
    """Identity store kept in process memory (tests and dry runs)."""

    def __init__(self, identity: Optional[ClusterIdentity] = None):
        self._identity = identity
        self.saves = 0

    def load(self) -> Optional[ClusterIdentity]:
        return self._identity

    def save(self, identity: ClusterIdentity) -> None:
        self._identity = identity
        self.saves += 1
