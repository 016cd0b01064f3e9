import json
import logging

from cephorch.observers.dispatcher import EventBus
from cephorch.observers.events import OrchestrationFailed, PhaseStarted, new_ctx, with_ts
from cephorch.observers.jsonfile import JsonFileObserver
from cephorch.observers.logger import LoggerObserver


class Broken:
    def notify(self, event):
        raise RuntimeError("observer bug")


class Collector:
    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)


def test_broken_observer_does_not_stop_others():
    collector = Collector()
    bus = EventBus([Broken()])
    bus.subscribe(collector)
    ev = PhaseStarted(phase="mon", **new_ctx("rook-ceph", "c"))
    bus.emit(ev)
    assert collector.events == [ev]


def test_with_ts_keeps_run_id():
    ctx = new_ctx("rook-ceph", "c", run_id="r1")
    assert with_ts(ctx)["run_id"] == "r1"


def test_jsonfile_appends_lines(tmp_path):
    path = tmp_path / "events" / "run.jsonl"
    ob = JsonFileObserver(path)
    ctx = new_ctx("rook-ceph", "c")
    ob.notify(PhaseStarted(phase="mon", **ctx))
    ob.notify(OrchestrationFailed(phase="mon", error="boom", **ctx))

    lines = [json.loads(x) for x in path.read_text().splitlines()]
    assert [x["type"] for x in lines] == ["PhaseStarted", "OrchestrationFailed"]
    assert lines[1]["retriable"] is False


def test_logger_observer_logs_failures_as_errors(caplog):
    logger = logging.getLogger("observer-test")
    ob = LoggerObserver(logger)
    with caplog.at_level(logging.INFO, logger="observer-test"):
        ob.notify(OrchestrationFailed(phase="mgr", error="oom", **new_ctx("rook-ceph", "c")))
    assert caplog.records[-1].levelno == logging.ERROR
    assert "phase=mgr" in caplog.records[-1].getMessage()
