# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/sequencer.py

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from ..observers.dispatcher import EventBus
from ..observers.events import PhaseFailed, PhaseStarted, PhaseSucceeded, with_ts
from .errors import ConfigOverrideFailed, IdentityMissing, OrchestrationError
from .models import ClusterIdentity
from .notifier import ChildNotifier
from .roles import MgrStarter, MonStarter, OsdStarter, RbdMirrorStarter, RoleContext, RoleStarter

log = logging.getLogger("cephorch")

CONFIG_OVERRIDE_NAME = "rook-config-override"
CONFIG_OVERRIDE_KEY = "config"


def default_roles() -> List[RoleStarter]:
    return [MonStarter(), MgrStarter(), OsdStarter(), RbdMirrorStarter()]


class RoleSequencer:
    """
    Brings up the daemon roles of one cluster in order:

      1. config override placeholder
      2. mons (establish the identity)
      3. identity check
      4. mgrs
      5. osds
      6. rbd mirrors
      7. mark the pass complete
      8. notify child controllers

    The first failure aborts the pass; later phases never run.
    """

    def __init__(
        self,
        notifier: Optional[ChildNotifier] = None,
        roles: Optional[List[RoleStarter]] = None,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict[str, Any]] = None,
    ):
        self.notifier = notifier or ChildNotifier()
        self.roles = roles if roles is not None else default_roles()
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx
        self.completed_passes = 0

        if not self.roles or self.roles[0].role != "mon":
            raise ValueError("the identity-establishing mon role must come first")

    @property
    def init_completed(self) -> bool:
        """True once at least one full pass has succeeded."""
        return self.completed_passes > 0

    def _emit(self, event_cls, **fields) -> None:
        if self.run_ctx is not None:
            self.bus.emit(event_cls(**fields, **with_ts(self.run_ctx)))

    def _phase(self, name: str, fn, *args):
        self._emit(PhaseStarted, phase=name)
        t0 = time.time()
        try:
            result = fn(*args)
        except Exception as e:
            self._emit(PhaseFailed, phase=name, error=str(e))
            raise
        self._emit(PhaseSucceeded, phase=name, duration_ms=int((time.time() - t0) * 1000))
        return result

    def _ensure_config_override(self, ctx: RoleContext) -> None:
        # settings in here are only ever changed by the user once created
        try:
            ctx.workloads.ensure_config_map(
                CONFIG_OVERRIDE_NAME, {CONFIG_OVERRIDE_KEY: ""}, ctx.owner_ref
            )
        except Exception as e:
            raise ConfigOverrideFailed(
                f"failed to create override configmap {ctx.namespace}. {e}"
            ) from e

    def _start_role(self, starter: RoleStarter, ctx: RoleContext) -> Optional[ClusterIdentity]:
        try:
            return starter.start(ctx)
        except OrchestrationError:
            raise
        except Exception as e:
            raise starter.error(f"failed to start the {starter.role}s. {e}") from e

    def _check_identity(self, ctx: RoleContext) -> None:
        if ctx.identity is None or not ctx.identity.is_initialized():
            raise IdentityMissing(f"the cluster identity was not established: {ctx.identity}")

    def run(self, ctx: RoleContext) -> ClusterIdentity:
        """
        Run phases 1-8. ``ctx.identity`` is updated as soon as the mons are up
        so the caller keeps it even when a later phase fails.
        """
        self._phase("config-override", self._ensure_config_override, ctx)

        mons, *dependents = self.roles
        ctx.identity = self._phase(mons.role, self._start_role, mons, ctx)

        self._phase("identity", self._check_identity, ctx)

        for starter in dependents:
            self._phase(starter.role, self._start_role, starter, ctx)

        log.info("[cluster] done creating ceph instance in namespace %s", ctx.namespace)
        self.completed_passes += 1

        self._phase("notify", self.notifier.notify, ctx.spec, ctx.identity, ctx.is_upgrade)
        return ctx.identity
