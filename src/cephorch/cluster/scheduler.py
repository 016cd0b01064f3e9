# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/scheduler.py

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

log = logging.getLogger("cephorch")


@dataclass(frozen=True)
class OrchestrationState:
    needed: bool = False
    running: bool = False


class OrchestrationScheduler:
    """
    Admission control for orchestration passes of one cluster.

    At most one pass runs at a time. Requests arriving while a pass runs are
    coalesced into exactly one extra pass after it. The lock is only held for
    the check-and-set of the two flags, never across a pass.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._needed = False
        self._running = False

    def request_orchestration(self) -> None:
        with self._lock:
            self._needed = True

    def try_claim(self) -> bool:
        with self._lock:
            if self._needed and not self._running:
                self._needed = False
                self._running = True
                return True
            return False

    def release(self) -> None:
        with self._lock:
            self._running = False

    def snapshot(self) -> OrchestrationState:
        with self._lock:
            return OrchestrationState(needed=self._needed, running=self._running)

    def drive(self, run_pass: Callable[[], None]) -> Optional[Exception]:
        """
        Request a pass and run passes until no request is pending.

        Returns the error of the last pass this caller ran, or None. When
        another caller already holds the claim, the request is left for it
        and this returns immediately.
        """
        self.request_orchestration()

        err: Optional[Exception] = None
        while self.try_claim():
            if err is not None:
                log.error(
                    "[orchestration] there was an orchestration error, but there is another "
                    "orchestration pending; proceeding with next orchestration run (which may "
                    "succeed). %s",
                    err,
                )
            try:
                run_pass()
                err = None
            except Exception as e:
                err = e
            finally:
                self.release()
        return err
