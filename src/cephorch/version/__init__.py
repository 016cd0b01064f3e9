# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from cephorch.version.ceph_version import (
    MINIMUM,
    SUPPORTED_VERSIONS,
    CephVersion,
    extract_ceph_version,
    is_identical,
    is_inferior,
    is_superior,
)

__all__ = [
    "MINIMUM",
    "SUPPORTED_VERSIONS",
    "CephVersion",
    "extract_ceph_version",
    "is_identical",
    "is_inferior",
    "is_superior",
]
