import threading

import pytest

from cephorch.cluster.cluster import Cluster
from cephorch.cluster.errors import DowngradeRejected, ProbeFailed, UpgradeBlockedUnhealthy
from cephorch.cluster.interfaces import InMemoryIdentityStore
from cephorch.cluster.models import CephDaemonsVersions
from cephorch.config.models import ClusterSpec
from cephorch.config.settings import OperatorSettings
from cephorch.observers.dispatcher import EventBus
from cephorch.observers.events import (
    OrchestrationFailed,
    OrchestrationStarted,
    OrchestrationSucceeded,
    SpecChanged,
    UpgradeDecided,
)
from cephorch.version.ceph_version import CephVersion
from cephorch.version.probe import ProcessResult, VersionProbe

SETTINGS = OperatorSettings(
    namespace="rook-ceph",
    probe_timeout=5,
    role_ready_timeout=5,
    role_poll_interval=0,
    strict_version_check=False,
)


class ImageRunner:
    """Maps image tag to the version its ``ceph --version`` prints."""

    def __init__(self):
        self.calls = 0

    def run(self, image, args, timeout):
        self.calls += 1
        if image.endswith(":broken"):
            return ProcessResult("", "exec format error", 1)
        tag = image.rsplit(":v", 1)[1]
        return ProcessResult(f"ceph version {tag} (abc) nautilus (stable)\n", "", 0)


class FakeStatus:
    def __init__(self):
        self.running = None
        self.healthy = True

    def running_versions(self):
        if self.running is None:
            raise RuntimeError("no mons yet")
        return CephDaemonsVersions(overall={f"ceph version {self.running} (abc) nautilus (stable)": 5})

    def is_healthy(self):
        return self.healthy


class FakeWorkloads:
    def __init__(self, nodes=()):
        self.nodes = list(nodes)
        self.created = []
        self.images = []
        self.services = []
        self.on_create = None

    def create_or_update_role(self, role):
        self.created.append(role.resource_name)
        self.images.append((role.resource_name, role.image))
        if self.on_create is not None:
            self.on_create(role)
        return True

    def ensure_config_map(self, name, data, owner_ref=None):
        pass

    def ensure_service(self, name, labels, port, owner_ref=None):
        self.services.append((name, port))

    def list_nodes(self):
        return list(self.nodes)


class Collector:
    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)

    def of(self, cls):
        return [e for e in self.events if isinstance(e, cls)]


class Child:
    def __init__(self):
        self.calls = []

    def parent_cluster_changed(self, spec, identity, is_upgrade):
        self.calls.append(is_upgrade)


def _cluster(image="ceph/ceph:v14.2.1", **spec):
    spec.setdefault("cephVersion", {"image": image})
    collector = Collector()
    status = FakeStatus()
    workloads = FakeWorkloads()
    cluster = Cluster(
        name="rook-ceph",
        namespace="rook-ceph",
        spec=ClusterSpec.model_validate(spec),
        probe=VersionProbe(ImageRunner()),
        status=status,
        workloads=workloads,
        identity_store=InMemoryIdentityStore(),
        settings=SETTINGS,
        bus=EventBus([collector]),
    )
    return cluster, status, workloads, collector


def test_first_pass_creates_cluster():
    cluster, _, workloads, collector = _cluster(storage={"nodes": [{"name": "node1"}]})
    child = Child()
    cluster.add_child_controller(child)

    cluster.create_instance()

    assert cluster.initialized()
    assert cluster.info.is_initialized()
    assert cluster.info.ceph_version == CephVersion(14, 2, 1)
    assert cluster.is_upgrade is False
    assert workloads.created == [
        "rook-ceph-mon-a",
        "rook-ceph-mon-b",
        "rook-ceph-mon-c",
        "rook-ceph-mgr-a",
        "rook-ceph-osd-node1",
    ]
    assert ("rook-ceph-mgr", 9283) in workloads.services
    assert child.calls == [False]
    assert collector.of(OrchestrationSucceeded)[0].fsid == cluster.info.fsid


def test_image_bump_is_an_upgrade():
    cluster, status, _, collector = _cluster()
    cluster.create_instance()
    status.running = "14.2.1"
    fsid = cluster.info.fsid

    assert cluster.update_spec(ClusterSpec.model_validate({"cephVersion": {"image": "ceph/ceph:v14.2.2"}}))
    cluster.create_instance()

    assert cluster.is_upgrade is True
    assert cluster.info.fsid == fsid
    assert cluster.info.ceph_version == CephVersion(14, 2, 2)
    assert collector.of(UpgradeDecided)[-1].is_upgrade is True
    assert len(collector.of(SpecChanged)) == 1


def test_identical_image_is_not_an_upgrade():
    cluster, status, _, _ = _cluster()
    cluster.create_instance()
    status.running = "14.2.1"
    cluster.create_instance()
    assert cluster.is_upgrade is False


def test_downgrade_fails_and_reports_phase():
    cluster, status, workloads, collector = _cluster(image="ceph/ceph:v14.2.2")
    cluster.create_instance()
    status.running = "14.2.2"
    created = list(workloads.created)

    cluster.update_spec(ClusterSpec.model_validate({"cephVersion": {"image": "ceph/ceph:v14.2.1"}}))
    with pytest.raises(DowngradeRejected):
        cluster.create_instance()

    assert workloads.created == created
    failed = collector.of(OrchestrationFailed)[-1]
    assert failed.phase == "upgrade-gate"
    assert failed.retriable is True


def test_upgrade_of_unhealthy_cluster_starts_nothing():
    cluster, status, workloads, collector = _cluster()
    child = Child()
    cluster.add_child_controller(child)
    cluster.create_instance()
    status.running = "14.2.1"
    status.healthy = False
    workloads.created.clear()
    child.calls.clear()

    cluster.update_spec(ClusterSpec.model_validate({"cephVersion": {"image": "ceph/ceph:v14.2.2"}}))
    with pytest.raises(UpgradeBlockedUnhealthy):
        cluster.create_instance()

    assert workloads.created == []
    assert child.calls == []
    assert cluster.info.ceph_version == CephVersion(14, 2, 1)
    assert collector.of(OrchestrationFailed)[-1].phase == "upgrade-gate"


def test_probe_failure_aborts_pass():
    cluster, _, workloads, _ = _cluster(image="ceph/ceph:broken")
    with pytest.raises(ProbeFailed):
        cluster.create_instance()
    assert workloads.created == []
    assert cluster.info is None
    assert not cluster.initialized()


def test_update_spec_without_change():
    cluster, _, _, collector = _cluster()
    assert cluster.update_spec(cluster.spec) is False
    assert collector.of(SpecChanged) == []


def test_spec_snapshot_is_a_copy():
    cluster, _, _, _ = _cluster()
    snapshot = cluster.spec
    snapshot.mon.count = 5
    assert cluster.spec.mon.count == 3


def test_concurrent_create_instance_is_serialized():
    cluster, _, _, collector = _cluster()
    threads = [threading.Thread(target=cluster.create_instance) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cluster.initialized()
    assert collector.of(OrchestrationFailed) == []


def test_updates_during_a_pass_coalesce_into_one_pass_with_latest_spec():
    cluster, _, workloads, collector = _cluster()

    def edit_spec_once(role):
        workloads.on_create = None
        for tag in ("v14.2.2", "v14.2.3", "v14.2.4"):
            cluster.update_spec(ClusterSpec.model_validate({"cephVersion": {"image": f"ceph/ceph:{tag}"}}))
            cluster.request_orchestration()

    workloads.on_create = edit_spec_once
    cluster.create_instance()

    mon_a = [image for name, image in workloads.images if name == "rook-ceph-mon-a"]
    assert mon_a == ["ceph/ceph:v14.2.1", "ceph/ceph:v14.2.4"]
    assert len(collector.of(OrchestrationStarted)) == 2
    assert len(collector.of(SpecChanged)) == 3
    assert cluster.info.ceph_version == CephVersion(14, 2, 4)
