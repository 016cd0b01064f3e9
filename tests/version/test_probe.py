import subprocess

import pytest

from cephorch.cluster.errors import ProbeFailed, ProbeTimeout, VersionUnparseable
from cephorch.version.ceph_version import CephVersion
from cephorch.version.probe import ProcessResult, VersionProbe
from cephorch.version.runners import LocalProcessRunner


class FakeRunner:
    def __init__(self, result=None, exc=None):
        self.result = result
        self.exc = exc
        self.calls = []

    def run(self, image, args, timeout):
        self.calls.append((image, list(args), timeout))
        if self.exc:
            raise self.exc
        return self.result


def test_detect_parses_stdout():
    runner = FakeRunner(ProcessResult("ceph version 14.2.1 (abc) nautilus (stable)\n", "", 0))
    v = VersionProbe(runner).detect("ceph/ceph:v14.2.1", 30)
    assert v == CephVersion(14, 2, 1)
    assert runner.calls == [("ceph/ceph:v14.2.1", ["ceph", "--version"], 30)]


def test_nonzero_exit_is_probe_failed():
    runner = FakeRunner(ProcessResult("", "no such file", 127))
    with pytest.raises(ProbeFailed) as ei:
        VersionProbe(runner).detect("img", 30)
    assert "127" in str(ei.value)
    assert ei.value.phase == "version-probe"


def test_timeout_is_probe_timeout():
    with pytest.raises(ProbeTimeout):
        VersionProbe(FakeRunner(exc=TimeoutError("slow"))).detect("img", 1)
    with pytest.raises(ProbeTimeout):
        VersionProbe(FakeRunner(exc=subprocess.TimeoutExpired(["docker"], 1))).detect("img", 1)


def test_runner_error_is_probe_failed():
    with pytest.raises(ProbeFailed):
        VersionProbe(FakeRunner(exc=RuntimeError("image pull backoff"))).detect("img", 1)


def test_garbage_output_is_unparseable():
    runner = FakeRunner(ProcessResult("hello world", "", 0))
    with pytest.raises(VersionUnparseable):
        VersionProbe(runner).detect("img", 1)


class DummyCP:
    def __init__(self, rc=0, out="", err=""):
        self.returncode = rc
        self.stdout = out
        self.stderr = err


def test_local_runner_builds_container_command(monkeypatch):
    calls = []

    def fake_run(argv, **kwargs):
        calls.append((argv, kwargs))
        return DummyCP(0, "ceph version 13.2.4 (x) mimic (stable)")

    monkeypatch.setattr(subprocess, "run", fake_run)

    res = LocalProcessRunner(engine="podman").run("ceph/ceph:v13", ["ceph", "--version"], 12)

    argv, kwargs = calls[0]
    assert argv == ["podman", "run", "--rm", "--entrypoint", "ceph", "ceph/ceph:v13", "--version"]
    assert kwargs["timeout"] == 12
    assert res.exit_code == 0
    assert res.stdout.startswith("ceph version 13.2.4")
