# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/cluster.py

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from ..config.models import ClusterSpec
from ..config.settings import OperatorSettings, load_operator_settings
from ..observers.dispatcher import EventBus
from ..observers.events import (
    OrchestrationFailed,
    OrchestrationRequested,
    OrchestrationStarted,
    OrchestrationSucceeded,
    SpecChanged,
    UpgradeDecided,
    new_ctx,
    with_ts,
)
from ..version.probe import VersionProbe
from .differ import cluster_changed
from .errors import OrchestrationError
from .interfaces import CephAdmin, ChildController, ClusterStatusReader, IdentityStore, WorkloadManager
from .models import ClusterIdentity
from .notifier import ChildNotifier
from .roles import RoleContext, RoleStarter
from .scheduler import OrchestrationScheduler
from .sequencer import RoleSequencer
from .upgrade import UpgradeGate

log = logging.getLogger("cephorch")


def cluster_owner_ref(name: str, uid: str) -> Dict[str, Any]:
    return {
        "apiVersion": "ceph.rook.io/v1",
        "kind": "CephCluster",
        "name": name,
        "uid": uid,
        "blockOwnerDeletion": True,
    }


class Cluster:
    """
    One managed ceph cluster: its desired spec, its identity once known, and
    the machinery to reconcile the two.

    Passes for different Cluster instances share nothing and may run
    concurrently.
    """

    def __init__(
        self,
        *,
        name: str,
        namespace: str,
        spec: ClusterSpec,
        probe: VersionProbe,
        status: ClusterStatusReader,
        workloads: WorkloadManager,
        identity_store: IdentityStore,
        admin: Optional[CephAdmin] = None,
        uid: str = "",
        settings: Optional[OperatorSettings] = None,
        roles: Optional[List[RoleStarter]] = None,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[Dict[str, Any]] = None,
    ):
        self.name = name
        self.namespace = namespace
        self.settings = settings or load_operator_settings()
        self.probe = probe
        self.status = status
        self.workloads = workloads
        self.identity_store = identity_store
        self.admin = admin
        self.owner_ref = cluster_owner_ref(name, uid)
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or new_ctx(namespace=namespace, cluster=name)

        self.gate = UpgradeGate(status, identity_store, strict=self.settings.strict_version_check)
        self.scheduler = OrchestrationScheduler()
        self.notifier = ChildNotifier(self.bus, self.run_ctx)
        self.sequencer = RoleSequencer(self.notifier, roles, self.bus, self.run_ctx)

        # not known until the mons have started once
        self.info: Optional[ClusterIdentity] = None
        self.is_upgrade = False

        self._spec_lock = threading.Lock()
        self._spec = spec.model_copy(deep=True)

    # -------------------------------------------------
    # spec
    # -------------------------------------------------
    @property
    def spec(self) -> ClusterSpec:
        return self._snapshot_spec()

    def _snapshot_spec(self) -> ClusterSpec:
        with self._spec_lock:
            return self._spec.model_copy(deep=True)

    def update_spec(self, new_spec: ClusterSpec) -> bool:
        """Record a new desired spec; returns whether it differs from the current one."""
        changed, diff = cluster_changed(self.spec, new_spec)
        if not changed:
            log.debug("[cluster] %s/%s spec unchanged", self.namespace, self.name)
            return False
        with self._spec_lock:
            self._spec = new_spec.model_copy(deep=True)
        self.bus.emit(SpecChanged(diff=diff, **with_ts(self.run_ctx)))
        return True

    # -------------------------------------------------
    # children
    # -------------------------------------------------
    def add_child_controller(self, child: ChildController) -> None:
        self.notifier.register(child)

    def initialized(self) -> bool:
        """Has a full orchestration succeeded since the operator started."""
        return self.sequencer.init_completed

    # -------------------------------------------------
    # orchestration
    # -------------------------------------------------
    def request_orchestration(self) -> None:
        self.scheduler.request_orchestration()
        self.bus.emit(OrchestrationRequested(**with_ts(self.run_ctx)))

    def create_instance(self) -> None:
        """
        Run orchestrations until there are no more unapplied changes to the
        cluster spec and no other thread is already running one.

        Raises the error of the last pass run by this caller.
        """
        self.bus.emit(OrchestrationRequested(**with_ts(self.run_ctx)))
        err = self.scheduler.drive(self._orchestrate)
        if err is not None:
            raise err

    def _orchestrate(self) -> None:
        # a copy so concurrent spec updates cannot change this pass halfway
        spec = self._snapshot_spec()
        self.bus.emit(OrchestrationStarted(image=spec.ceph_version.image, **with_ts(self.run_ctx)))
        try:
            self._do_orchestration(spec)
        except OrchestrationError as e:
            self.bus.emit(
                OrchestrationFailed(phase=e.phase, error=str(e), retriable=e.retriable, **with_ts(self.run_ctx))
            )
            raise
        except Exception as e:
            self.bus.emit(OrchestrationFailed(phase="orchestration", error=str(e), **with_ts(self.run_ctx)))
            raise

        self.bus.emit(
            OrchestrationSucceeded(is_upgrade=self.is_upgrade, fsid=self.info.fsid, **with_ts(self.run_ctx))
        )

    def _do_orchestration(self, spec: ClusterSpec) -> None:
        version = self.probe.detect(spec.ceph_version.image, self.settings.probe_timeout)

        decision = self.gate.evaluate(version, self.info, spec.ceph_version.allow_unsupported)
        self.is_upgrade = decision.is_upgrade
        self.bus.emit(
            UpgradeDecided(
                is_upgrade=decision.is_upgrade,
                reason=decision.reason,
                desired_version=str(version),
                running_version=str(decision.running_version) if decision.running_version else None,
                **with_ts(self.run_ctx),
            )
        )

        ctx = RoleContext(
            namespace=self.namespace,
            cluster_name=self.name,
            spec=spec,
            version=version,
            workloads=self.workloads,
            identity_store=self.identity_store,
            identity=self.info,
            is_upgrade=decision.is_upgrade,
            owner_ref=self.owner_ref,
            status=self.status,
            admin=self.admin,
        )
        try:
            self.sequencer.run(ctx)
        finally:
            # mons may have established the identity even if a later phase failed
            if ctx.identity is not None:
                self.info = ctx.identity
