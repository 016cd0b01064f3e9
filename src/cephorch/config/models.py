# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/config/models.py

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _SpecModel(BaseModel):
    # CephCluster manifests use camelCase keys
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class CephVersionSpec(_SpecModel):
    image: str = "ceph/ceph:v14.2.1-20190430"
    allow_unsupported: bool = False


class MonSpec(_SpecModel):
    count: int = Field(default=3, ge=1)
    allow_multiple_per_node: bool = False


class MgrSpec(_SpecModel):
    count: int = Field(default=1, ge=1)
    modules: List[str] = Field(default_factory=list)


class DashboardSpec(_SpecModel):
    enabled: bool = False
    url_prefix: Optional[str] = None
    port: Optional[int] = None
    ssl: bool = True


class MonitoringSpec(_SpecModel):
    enabled: bool = False
    rules_namespace: Optional[str] = None


class NetworkSpec(_SpecModel):
    host_network: bool = False


class RBDMirroringSpec(_SpecModel):
    workers: int = Field(default=0, ge=0)


class StorageNode(_SpecModel):
    name: str
    devices: List[str] = Field(default_factory=list)
    device_filter: Optional[str] = None
    config: Dict[str, str] = Field(default_factory=dict)


class StorageSpec(_SpecModel):
    use_all_nodes: bool = False
    use_all_devices: bool = False
    device_filter: Optional[str] = None
    nodes: List[StorageNode] = Field(default_factory=list)


class ResourceRequirements(_SpecModel):
    limits: Dict[str, str] = Field(default_factory=dict)
    requests: Dict[str, str] = Field(default_factory=dict)


class ClusterSpec(_SpecModel):
    """Desired state of one ceph cluster."""

    ceph_version: CephVersionSpec = Field(default_factory=CephVersionSpec)
    data_dir_host_path: str = "/var/lib/rook"
    mon: MonSpec = Field(default_factory=MonSpec)
    mgr: MgrSpec = Field(default_factory=MgrSpec)
    dashboard: DashboardSpec = Field(default_factory=DashboardSpec)
    monitoring: MonitoringSpec = Field(default_factory=MonitoringSpec)
    network: NetworkSpec = Field(default_factory=NetworkSpec)
    rbd_mirroring: RBDMirroringSpec = Field(default_factory=RBDMirroringSpec)
    storage: StorageSpec = Field(default_factory=StorageSpec)

    # keyed by role ("all", "mon", "mgr", "osd", "rbdmirror")
    placement: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    annotations: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    resources: Dict[str, ResourceRequirements] = Field(default_factory=dict)

    def placement_for(self, role: str) -> Dict[str, Any]:
        """Role placement merged over the "all" placement."""
        merged = dict(self.placement.get("all", {}))
        merged.update(self.placement.get(role, {}))
        return merged

    def annotations_for(self, role: str) -> Dict[str, str]:
        merged = dict(self.annotations.get("all", {}))
        merged.update(self.annotations.get(role, {}))
        return merged

    def resources_for(self, role: str) -> ResourceRequirements:
        return self.resources.get(role) or ResourceRequirements()


class ClusterMetadata(BaseModel):
    name: str
    namespace: str = "rook-ceph"
    uid: str = ""


class CephClusterManifest(_SpecModel):
    api_version: str = "ceph.rook.io/v1"
    kind: str = "CephCluster"
    metadata: ClusterMetadata
    spec: ClusterSpec = Field(default_factory=ClusterSpec)
