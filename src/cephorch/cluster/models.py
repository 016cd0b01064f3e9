# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..version.ceph_version import CephVersion


@dataclass
class ClusterIdentity:
    """
    Facts that only exist once the monitors have started for the first time.
    """

    name: str = ""
    fsid: str = ""
    admin_secret: str = ""  # reference to the secret holding the admin keyring
    ceph_version: Optional[CephVersion] = None

    def is_initialized(self) -> bool:
        return bool(self.name and self.fsid and self.admin_secret)


class CephDaemonsVersions(BaseModel):
    """
    Output of ``ceph versions``: version string -> daemon count, per role.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    mon: Dict[str, int] = Field(default_factory=dict)
    mgr: Dict[str, int] = Field(default_factory=dict)
    osd: Dict[str, int] = Field(default_factory=dict)
    rbd_mirror: Dict[str, int] = Field(default_factory=dict, alias="rbd-mirror")
    overall: Dict[str, int] = Field(default_factory=dict)


@dataclass
class RoleSpec:
    """
    What the workload manager needs to run one daemon of a role.
    """

    role: str                      # mon | mgr | osd | rbd-mirror
    daemon_id: str                 # a, b, c ... or node name for osds
    image: str
    namespace: str
    replicas: int = 1
    args: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    placement: Dict[str, Any] = field(default_factory=dict)
    resources: Dict[str, Dict[str, str]] = field(default_factory=dict)
    host_network: bool = False
    data_dir_host_path: str = "/var/lib/rook"
    owner_ref: Optional[Dict[str, Any]] = None

    @property
    def resource_name(self) -> str:
        return f"rook-ceph-{self.role}-{self.daemon_id}"
