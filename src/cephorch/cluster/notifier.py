# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/notifier.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..config.models import ClusterSpec
from ..observers.dispatcher import EventBus
from ..observers.events import ChildNotified, with_ts
from .interfaces import ChildController
from .models import ClusterIdentity

log = logging.getLogger("cephorch")


class ChildNotifier:
    """
    Registry of controllers owning resources inside this cluster (pools,
    object stores, filesystems...). After a successful pass each of them is
    told that the parent spec or identity may have changed.
    """

    def __init__(self, bus: Optional[EventBus] = None, run_ctx: Optional[Dict[str, Any]] = None):
        self._children: List[ChildController] = []
        self.bus = bus
        self.run_ctx = run_ctx

    def register(self, child: ChildController) -> None:
        if child not in self._children:
            self._children.append(child)

    def unregister(self, child: ChildController) -> None:
        if child in self._children:
            self._children.remove(child)

    @property
    def children(self) -> List[ChildController]:
        return list(self._children)

    def _emit(self, child: ChildController, ok: bool, error: Optional[str] = None) -> None:
        if self.bus is None or self.run_ctx is None:
            return
        self.bus.emit(
            ChildNotified(child=type(child).__name__, ok=ok, error=error, **with_ts(self.run_ctx))
        )

    def notify(self, spec: ClusterSpec, identity: ClusterIdentity, is_upgrade: bool) -> int:
        """Deliver the change to every child; returns how many accepted it."""
        delivered = 0
        for child in self.children:
            try:
                child.parent_cluster_changed(spec, identity, is_upgrade)
            except Exception as e:
                # the child re-derives its state on its own next reconcile
                log.warning("[cluster] failed to notify child controller %s. %s", type(child).__name__, e)
                self._emit(child, ok=False, error=str(e))
                continue
            delivered += 1
            self._emit(child, ok=True)
        return delivered
