# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/config/settings.py


from __future__ import annotations
from dataclasses import dataclass
import os

@dataclass(frozen=True)
class OperatorSettings:
    namespace: str
    probe_timeout: float
    role_ready_timeout: float
    role_poll_interval: float
    strict_version_check: bool

def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")

def load_operator_settings() -> OperatorSettings:
    # sensible defaults for dev; override via env
    return OperatorSettings(
        namespace=os.getenv("ROOK_OPERATOR_NAMESPACE", "rook-ceph"),
        probe_timeout=float(os.getenv("ROOK_CEPH_IMAGE_PROBE_TIMEOUT", "900")),
        role_ready_timeout=float(os.getenv("ROOK_ROLE_READY_TIMEOUT", "600")),
        role_poll_interval=float(os.getenv("ROOK_ROLE_POLL_INTERVAL", "5")),
        strict_version_check=_flag("ROOK_STRICT_VERSION_CHECK", "false"),
    )
