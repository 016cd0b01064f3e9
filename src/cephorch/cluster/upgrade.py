# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/upgrade.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..version.ceph_version import (
    MINIMUM,
    CephVersion,
    VersionParseError,
    extract_ceph_version,
    is_identical,
    is_inferior,
    is_superior,
)
from .errors import (
    DowngradeRejected,
    UnsupportedVersion,
    UpgradeBlockedUnhealthy,
    VersionUnavailable,
)
from .interfaces import ClusterStatusReader, IdentityStore
from .models import CephDaemonsVersions, ClusterIdentity

log = logging.getLogger("cephorch")


@dataclass(frozen=True)
class UpgradeDecision:
    is_upgrade: bool
    reason: str
    running_version: Optional[CephVersion] = None


def compare_running_versions(
    desired: CephVersion, running: CephDaemonsVersions
) -> tuple[bool, Optional[CephVersion]]:
    """
    Compare the image version with what the cluster reports in ``overall``.

    Returns (upgrade_needed, running_version). Raises VersionUnavailable when
    nothing is reported, DowngradeRejected when the image is older than the
    cluster and VersionParseError when the running version string is garbage.
    """
    overall = running.overall
    if len(overall) == 0:
        raise VersionUnavailable(f"no 'overall' section in the ceph versions. {overall}")

    if len(overall) > 1:
        log.warning(
            "[upgrade] more than one ceph version is running, triggering upgrade. %s",
            overall,
        )
        return True, None

    (raw,) = overall.keys()
    current = extract_ceph_version(raw)

    if is_identical(current, desired):
        log.debug("[upgrade] cluster and image spec versions are identical (%s), doing nothing", desired)
        return False, current

    if is_superior(desired, current):
        log.info(
            "[upgrade] image spec version %s is higher than the running cluster version %s, upgrading",
            desired, current,
        )
        return True, current

    if is_inferior(desired, current):
        raise DowngradeRejected(
            f"image spec version {desired} is lower than the running cluster version "
            f"{current}, downgrading is not supported"
        )

    # unreachable with a total order
    return False, current


class UpgradeGate:
    """
    Decides whether a pass is an upgrade pass and refuses unsafe transitions.

    When ``strict`` is set, failing to read the running versions is fatal
    instead of falling back to a pass without an upgrade decision.
    """

    def __init__(
        self,
        status: ClusterStatusReader,
        identity_store: Optional[IdentityStore] = None,
        *,
        minimum: CephVersion = MINIMUM,
        strict: bool = False,
    ):
        self.status = status
        self.identity_store = identity_store
        self.minimum = minimum
        self.strict = strict

    def validate_version(self, version: CephVersion, allow_unsupported: bool) -> None:
        if not version.is_at_least(self.minimum):
            raise UnsupportedVersion(
                f"the version {version} does not meet the minimum version: {self.minimum}"
            )

        if not version.supported():
            log.warning("[upgrade] unsupported ceph version detected: %s.", version)
            if not allow_unsupported:
                raise UnsupportedVersion(
                    f"allowUnsupported must be set to true to run with this version: {version}"
                )

    def _known_identity(self, identity: Optional[ClusterIdentity]) -> Optional[ClusterIdentity]:
        if identity is not None or self.identity_store is None:
            return identity
        # after an operator restart the identity is only on the platform
        try:
            return self.identity_store.load()
        except Exception as e:
            log.warning("[upgrade] failed to load cluster identity, treating cluster as new. %s", e)
            return None

    def evaluate(
        self,
        version: CephVersion,
        identity: Optional[ClusterIdentity],
        allow_unsupported: bool = False,
    ) -> UpgradeDecision:
        self.validate_version(version, allow_unsupported)

        identity = self._known_identity(identity)
        if identity is None or not identity.is_initialized():
            log.debug("[upgrade] cluster not initialized, nothing to validate")
            return UpgradeDecision(False, "new cluster")

        try:
            running = self.status.running_versions()
        except Exception as e:
            if self.strict:
                raise VersionUnavailable(f"failed to get ceph daemons versions. {e}") from e
            log.warning(
                "[upgrade] failed to get ceph daemons versions, proceeding without an upgrade decision. %s",
                e,
            )
            return UpgradeDecision(False, "running versions unavailable")

        try:
            upgrade, current = compare_running_versions(version, running)
        except VersionParseError as e:
            # e.g. images built from a development branch
            log.warning(
                "[upgrade] failed to determine if we should upgrade or not, proceeding anyway. %s", e
            )
            return UpgradeDecision(False, "running version unparseable")

        if not upgrade:
            return UpgradeDecision(False, "versions identical", current)

        if not self.status.is_healthy():
            raise UpgradeBlockedUnhealthy(
                "ceph status is not healthy, refusing to upgrade. fix the cluster and "
                "re-edit the cluster spec to trigger a new orchestration"
            )

        return UpgradeDecision(True, "upgrade", current)
