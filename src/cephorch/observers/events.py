# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/observers/events.py

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events of one operator process
    namespace: str    # cluster namespace
    cluster: str      # cluster name

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(namespace: str, cluster: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "namespace": namespace,
        "cluster": cluster,
    }


def with_ts(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Same run context, fresh timestamp."""
    refreshed = dict(ctx)
    refreshed["ts"] = new_ctx(ctx["namespace"], ctx["cluster"], ctx["run_id"])["ts"]
    return refreshed


# ---------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class OrchestrationRequested(BaseEvent):
    pass

@dataclass(frozen=True)
class SpecChanged(BaseEvent):
    diff: str


# ---------------------------------------------------------------------
# Pass lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class OrchestrationStarted(BaseEvent):
    image: str

@dataclass(frozen=True)
class UpgradeDecided(BaseEvent):
    is_upgrade: bool
    reason: str
    desired_version: str
    running_version: Optional[str] = None

@dataclass(frozen=True)
class PhaseStarted(BaseEvent):
    phase: str

@dataclass(frozen=True)
class PhaseSucceeded(BaseEvent):
    phase: str
    duration_ms: int

@dataclass(frozen=True)
class PhaseFailed(BaseEvent):
    phase: str
    error: str

@dataclass(frozen=True)
class OrchestrationSucceeded(BaseEvent):
    is_upgrade: bool
    fsid: str

@dataclass(frozen=True)
class OrchestrationFailed(BaseEvent):
    phase: str
    error: str
    retriable: bool = False


# ---------------------------------------------------------------------
# Children
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ChildNotified(BaseEvent):
    child: str
    ok: bool
    error: Optional[str] = None
