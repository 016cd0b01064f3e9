# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/version/ceph_version.py

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

_VERSION_PATTERN = re.compile(r"ceph version (\d+)\.(\d+)\.(\d+)(?:-(\d+))?")
_COMMIT_PATTERN = re.compile(r"ceph version \S+ \(([0-9a-f]+)\)")

_RELEASE_NAMES = {
    12: "luminous",
    13: "mimic",
    14: "nautilus",
    15: "octopus",
    16: "pacific",
    17: "quincy",
    18: "reef",
    19: "squid",
}


class VersionParseError(ValueError):
    """Raised when a string does not contain a ceph version."""


@dataclass(frozen=True, order=True)
class CephVersion:
    """
    A parsed ceph version.

    Ordering is a total order over (major, minor, extra, build). The commit
    hash is informational and never takes part in comparisons.
    """

    major: int
    minor: int
    extra: int
    build: int = 0
    commit: str = field(default="", compare=False)

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.extra}"
        if self.build:
            base = f"{base}-{self.build}"
        return f"{base} {self.release_name()}"

    def release_name(self) -> str:
        return _RELEASE_NAMES.get(self.major, "unknown")

    def is_at_least(self, other: CephVersion) -> bool:
        return self >= other

    def is_at_least_nautilus(self) -> bool:
        return self.is_at_least(NAUTILUS)

    def supported(self) -> bool:
        return any(self.major == v.major for v in SUPPORTED_VERSIONS)


def extract_ceph_version(src: str) -> CephVersion:
    """
    Parse the output of ``ceph --version`` (or a key of ``ceph versions``).

    Example input::

        ceph version 14.2.1 (d555a9489eb35f84f2e1ef49b77e19da9d113972) nautilus (stable)
    """
    m = _VERSION_PATTERN.search(src or "")
    if m is None:
        raise VersionParseError(f"failed to parse version from: {src!r}")

    major, minor, extra, build = m.groups()
    commit_match = _COMMIT_PATTERN.search(src)
    return CephVersion(
        major=int(major),
        minor=int(minor),
        extra=int(extra),
        build=int(build) if build else 0,
        commit=commit_match.group(1) if commit_match else "",
    )


def parse_version_string(src: str) -> Optional[CephVersion]:
    try:
        return extract_ceph_version(src)
    except VersionParseError:
        return None


def is_identical(a: CephVersion, b: CephVersion) -> bool:
    return a == b


def is_superior(a: CephVersion, b: CephVersion) -> bool:
    """True when *a* is strictly newer than *b*."""
    return a > b


def is_inferior(a: CephVersion, b: CephVersion) -> bool:
    """True when *a* is strictly older than *b*."""
    return a < b


MIMIC = CephVersion(13, 0, 0)
NAUTILUS = CephVersion(14, 0, 0)

# Oldest release the operator will run.
MINIMUM = CephVersion(13, 2, 4)

SUPPORTED_VERSIONS = (MIMIC, NAUTILUS)
