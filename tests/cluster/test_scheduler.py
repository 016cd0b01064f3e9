import threading
import time

from cephorch.cluster.scheduler import OrchestrationScheduler, OrchestrationState


def test_single_caller_runs_one_pass():
    s = OrchestrationScheduler()
    passes = []
    err = s.drive(lambda: passes.append(1))
    assert err is None
    assert passes == [1]
    assert s.snapshot() == OrchestrationState(needed=False, running=False)


def test_claim_is_exclusive():
    s = OrchestrationScheduler()
    s.request_orchestration()
    assert s.try_claim()
    s.request_orchestration()
    assert not s.try_claim()
    assert s.snapshot() == OrchestrationState(needed=True, running=True)
    s.release()
    assert s.try_claim()


def test_request_during_pass_runs_exactly_one_more():
    s = OrchestrationScheduler()
    passes = []

    def run_pass():
        passes.append(len(passes))
        if len(passes) == 1:
            # several requests while running coalesce into one
            s.request_orchestration()
            s.request_orchestration()
            s.request_orchestration()

    s.drive(run_pass)
    assert passes == [0, 1]


def test_error_is_returned_only_for_last_pass():
    s = OrchestrationScheduler()
    calls = []

    def run_pass():
        calls.append(1)
        if len(calls) == 1:
            s.request_orchestration()
            raise RuntimeError("first pass fails")

    assert s.drive(run_pass) is None
    assert len(calls) == 2

    def failing():
        raise ValueError("boom")

    err = s.drive(failing)
    assert isinstance(err, ValueError)
    assert not s.snapshot().running


def test_concurrent_callers_never_overlap():
    s = OrchestrationScheduler()
    active = 0
    max_active = 0
    count = 0
    guard = threading.Lock()

    def run_pass():
        nonlocal active, max_active, count
        with guard:
            active += 1
            count += 1
            max_active = max(max_active, active)
        time.sleep(0.005)
        with guard:
            active -= 1

    threads = [threading.Thread(target=s.drive, args=(run_pass,)) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert max_active == 1
    assert 1 <= count <= 16
    assert s.snapshot() == OrchestrationState(needed=False, running=False)
