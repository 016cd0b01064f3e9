# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/config/loader.py

import logging
import os
from pathlib import Path

import yaml

from .models import CephClusterManifest

log = logging.getLogger("cephorch")


class ManifestError(ValueError):
    pass


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _load_documents(path: Path) -> list:
    """Load every YAML document of a file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return [d for d in yaml.safe_load_all(expanded) if d]


def _find_overrides_file() -> Path | None:
    env = os.environ.get("CEPHORCH_CLUSTER_OVERRIDES")
    if not env:
        return None
    p = Path(env)
    if p.is_file():
        return p
    log.warning("CEPHORCH_CLUSTER_OVERRIDES=%s does not exist, skipping", env)
    return None


def load_cluster(path: str | Path) -> CephClusterManifest:
    """
    Load and validate a CephCluster manifest.

    The file may hold several YAML documents (namespace, RBAC, ...); the
    first one of kind ``CephCluster`` is used. When
    ``CEPHORCH_CLUSTER_OVERRIDES`` points at a YAML file, it is deep-merged
    into the manifest before validation.
    """
    path = Path(path)
    docs = [d for d in _load_documents(path) if isinstance(d, dict) and d.get("kind") == "CephCluster"]
    if not docs:
        raise ManifestError(f"no CephCluster document found in {path}")
    data = docs[0]

    overrides_path = _find_overrides_file()
    if overrides_path:
        log.debug("Merging cluster overrides from %s", overrides_path)
        overrides = yaml.safe_load(os.path.expandvars(overrides_path.read_text())) or {}
        _deep_merge(data, overrides)

    return CephClusterManifest.model_validate(data)
