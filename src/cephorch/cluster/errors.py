# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/errors.py


class OrchestrationError(RuntimeError):
    """Base class for failures of an orchestration pass.

    Every error names the phase it originated in so that operators never
    see a bare internal error.
    """

    phase = "orchestration"
    retriable = False

    def __init__(self, message: str, *, phase: str | None = None):
        if phase is not None:
            self.phase = phase
        self.detail = message
        super().__init__(f"[{self.phase}] {message}")


# ---------------------------------------------------------------------
# Version probe
# ---------------------------------------------------------------------
class VersionProbeError(OrchestrationError):
    phase = "version-probe"


class ProbeFailed(VersionProbeError):
    """The version query could not be run or exited non-zero."""


class ProbeTimeout(VersionProbeError):
    """The version query did not complete within its timeout."""


class VersionUnparseable(VersionProbeError):
    """The version query output did not contain a ceph version."""


# ---------------------------------------------------------------------
# Upgrade gate
# ---------------------------------------------------------------------
class UpgradeGateError(OrchestrationError):
    phase = "upgrade-gate"


class UnsupportedVersion(UpgradeGateError):
    pass


class VersionUnavailable(UpgradeGateError):
    pass


class DowngradeRejected(UpgradeGateError):
    retriable = True


class UpgradeBlockedUnhealthy(UpgradeGateError):
    retriable = True


# ---------------------------------------------------------------------
# Role sequencing
# ---------------------------------------------------------------------
class ConfigOverrideFailed(OrchestrationError):
    phase = "config-override"


class IdentityMissing(OrchestrationError):
    phase = "identity"


class RoleStartError(OrchestrationError):
    pass


class MonStartFailed(RoleStartError):
    phase = "mon"


class MgrStartFailed(RoleStartError):
    phase = "mgr"


class OsdStartFailed(RoleStartError):
    phase = "osd"


class MirrorStartFailed(RoleStartError):
    phase = "rbd-mirror"
