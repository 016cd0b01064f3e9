import pytest

from cephorch.cluster.errors import (
    DowngradeRejected,
    UnsupportedVersion,
    UpgradeBlockedUnhealthy,
    VersionUnavailable,
)
from cephorch.cluster.interfaces import InMemoryIdentityStore
from cephorch.cluster.models import CephDaemonsVersions, ClusterIdentity
from cephorch.cluster.upgrade import UpgradeGate, compare_running_versions
from cephorch.version.ceph_version import CephVersion

NAUTILUS_14_2_1 = "ceph version 14.2.1 (d555a9489eb35f84f2e1ef49b77e19da9d113972) nautilus (stable)"
NAUTILUS_14_2_2 = "ceph version 14.2.2 (4f8fa0a0024755aae7d95567c63f11d6862d55be) nautilus (stable)"
NAUTILUS_14_2_3 = "ceph version 14.2.3 (0f776cf838a1ae3130b2b73dc26be9c95c6ccc39) nautilus (stable)"


class FakeStatus:
    def __init__(self, overall=None, healthy=True, versions_exc=None):
        self.overall = overall or {}
        self.healthy = healthy
        self.versions_exc = versions_exc
        self.health_calls = 0

    def running_versions(self):
        if self.versions_exc:
            raise self.versions_exc
        return CephDaemonsVersions(overall=self.overall)

    def is_healthy(self):
        self.health_calls += 1
        return self.healthy


def _identity():
    return ClusterIdentity(name="rook-ceph", fsid="f00", admin_secret="rook-ceph-mon")


def test_below_minimum_is_rejected_even_when_unsupported_allowed():
    gate = UpgradeGate(FakeStatus())
    with pytest.raises(UnsupportedVersion):
        gate.evaluate(CephVersion(12, 2, 0), None, allow_unsupported=True)


def test_unsupported_major_needs_allow_unsupported():
    gate = UpgradeGate(FakeStatus())
    with pytest.raises(UnsupportedVersion):
        gate.evaluate(CephVersion(15, 2, 0), None)
    decision = gate.evaluate(CephVersion(15, 2, 0), None, allow_unsupported=True)
    assert decision.is_upgrade is False


def test_new_cluster_skips_status():
    status = FakeStatus(versions_exc=AssertionError("must not be called"))
    decision = UpgradeGate(status).evaluate(CephVersion(14, 2, 1), None)
    assert decision.is_upgrade is False
    assert decision.reason == "new cluster"


def test_identity_is_loaded_from_store_after_restart():
    status = FakeStatus(overall={NAUTILUS_14_2_1: 3})
    store = InMemoryIdentityStore(_identity())
    decision = UpgradeGate(status, store).evaluate(CephVersion(14, 2, 2), None)
    assert decision.is_upgrade is True


def test_identical_versions_do_not_check_health():
    status = FakeStatus(overall={NAUTILUS_14_2_1: 7}, healthy=False)
    decision = UpgradeGate(status).evaluate(CephVersion(14, 2, 1), _identity())
    assert decision.is_upgrade is False
    assert decision.running_version == CephVersion(14, 2, 1)
    assert status.health_calls == 0


def test_upgrade_on_healthy_cluster():
    status = FakeStatus(overall={NAUTILUS_14_2_1: 7})
    decision = UpgradeGate(status).evaluate(CephVersion(14, 2, 2), _identity())
    assert decision.is_upgrade is True
    assert status.health_calls == 1


def test_upgrade_on_unhealthy_cluster_is_blocked():
    status = FakeStatus(overall={NAUTILUS_14_2_1: 7}, healthy=False)
    with pytest.raises(UpgradeBlockedUnhealthy) as ei:
        UpgradeGate(status).evaluate(CephVersion(14, 2, 2), _identity())
    assert ei.value.retriable


def test_downgrade_is_rejected():
    status = FakeStatus(overall={NAUTILUS_14_2_2: 7})
    with pytest.raises(DowngradeRejected):
        UpgradeGate(status).evaluate(CephVersion(14, 2, 1), _identity())


def test_mixed_versions_mean_upgrade():
    status = FakeStatus(overall={NAUTILUS_14_2_1: 3, NAUTILUS_14_2_2: 4})
    decision = UpgradeGate(status).evaluate(CephVersion(14, 2, 2), _identity())
    assert decision.is_upgrade is True
    assert decision.running_version is None


def test_mixed_versions_mean_upgrade_even_below_the_newest_running():
    status = FakeStatus(overall={NAUTILUS_14_2_1: 3, NAUTILUS_14_2_3: 4})
    decision = UpgradeGate(status).evaluate(CephVersion(14, 2, 2), _identity())
    assert decision.is_upgrade is True
    assert decision.running_version is None


def test_versions_fetch_failure_is_best_effort():
    status = FakeStatus(versions_exc=RuntimeError("mons unreachable"))
    decision = UpgradeGate(status).evaluate(CephVersion(14, 2, 2), _identity())
    assert decision.is_upgrade is False


def test_versions_fetch_failure_is_fatal_when_strict():
    status = FakeStatus(versions_exc=RuntimeError("mons unreachable"))
    with pytest.raises(VersionUnavailable):
        UpgradeGate(status, strict=True).evaluate(CephVersion(14, 2, 2), _identity())


def test_unparseable_running_version_proceeds_without_upgrade():
    status = FakeStatus(overall={"ceph version master-dev": 3})
    decision = UpgradeGate(status).evaluate(CephVersion(14, 2, 2), _identity())
    assert decision.is_upgrade is False


def test_empty_overall_is_unavailable():
    with pytest.raises(VersionUnavailable):
        compare_running_versions(CephVersion(14, 2, 1), CephDaemonsVersions())
