import json
import subprocess

import pytest

from cephorch.status.ceph_cli import CephCliStatusReader
from cephorch.utils.retry import RetryError


class DummyCP:
    def __init__(self, rc=0, out="", err=""):
        self.returncode = rc
        self.stdout = out
        self.stderr = err


class FakeCommands:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def run(self, cmd, *, check=False, timeout=None, env=None):
        self.calls.append(list(cmd))
        return self.responses.pop(0)


VERSIONS = {
    "mon": {"ceph version 14.2.1 (abc) nautilus (stable)": 3},
    "rbd-mirror": {"ceph version 14.2.1 (abc) nautilus (stable)": 1},
    "overall": {"ceph version 14.2.1 (abc) nautilus (stable)": 4},
}


def _reader(*responses):
    commands = FakeCommands(*responses)
    reader = CephCliStatusReader(
        cluster="rook-ceph", config_file="/etc/ceph/c.conf", runner=commands, retry_delay=0
    )
    return reader, commands


def test_running_versions():
    reader, commands = _reader(DummyCP(0, json.dumps(VERSIONS)))
    v = reader.running_versions()
    assert v.overall == VERSIONS["overall"]
    assert v.rbd_mirror == VERSIONS["rbd-mirror"]
    assert commands.calls[0] == [
        "ceph", "--cluster", "rook-ceph", "--conf", "/etc/ceph/c.conf", "versions", "--format", "json",
    ]


def test_transient_failure_is_retried():
    reader, commands = _reader(DummyCP(1, err="timed out"), DummyCP(0, json.dumps(VERSIONS)))
    assert reader.running_versions().overall
    assert len(commands.calls) == 2


def test_persistent_failure_raises():
    reader, _ = _reader(*[DummyCP(1, err="no mons")] * 3)
    with pytest.raises(RetryError):
        reader.running_versions()


@pytest.mark.parametrize("health,ok", [("HEALTH_OK", True), ("HEALTH_WARN", True), ("HEALTH_ERR", False)])
def test_is_healthy(health, ok):
    reader, _ = _reader(DummyCP(0, json.dumps({"health": {"status": health}})))
    assert reader.is_healthy() is ok


def test_status_failure_is_unhealthy():
    reader, _ = _reader(*[DummyCP(0, "not json")] * 3)
    assert reader.is_healthy() is False


def test_enable_module_with_force():
    reader, commands = _reader(DummyCP(0))
    reader.mgr_enable_module("prometheus", force=True)
    assert commands.calls[0][-5:] == ["mgr", "module", "enable", "prometheus", "--force"]


def test_timeout_propagates_through_retry():
    class Slow:
        def run(self, cmd, **kw):
            raise subprocess.TimeoutExpired(cmd, 1)

    reader = CephCliStatusReader(cluster="c", runner=Slow(), retries=2, retry_delay=0)
    with pytest.raises(RetryError):
        reader.status()
