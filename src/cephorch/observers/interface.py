# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/observers/interface.py
from __future__ import annotations

from typing import Protocol, runtime_checkable

from .events import BaseEvent


@runtime_checkable
class Observer(Protocol):
    """
    Receives the lifecycle events of orchestration passes.

    Called synchronously from the thread running the pass; an observer that
    raises is skipped by the bus, never the pass.
    """

    def notify(self, event: BaseEvent) -> None: ...
