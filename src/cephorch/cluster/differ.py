# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/cluster/differ.py

from __future__ import annotations

import difflib
import logging
from typing import Any, Dict

import yaml

from ..config.models import ClusterSpec

log = logging.getLogger("cephorch")


def _normalized(spec: ClusterSpec) -> Dict[str, Any]:
    """Plain dict of the spec with order-insensitive lists sorted."""
    data = spec.model_dump()
    data["storage"]["nodes"] = sorted(data["storage"]["nodes"], key=lambda n: n["name"])
    return data


def _yaml_diff(old: Dict[str, Any], new: Dict[str, Any]) -> str:
    a = yaml.safe_dump(old, sort_keys=True).splitlines(keepends=True)
    b = yaml.safe_dump(new, sort_keys=True).splitlines(keepends=True)
    return "".join(difflib.unified_diff(a, b, fromfile="old", tofile="new"))


def cluster_changed(old: ClusterSpec, new: ClusterSpec) -> tuple[bool, str]:
    """
    Any change in the spec triggers an orchestration.

    Returns (changed, diff). The diff is only an observability aid; failing
    to render it never hides a change.
    """
    old_data = _normalized(old)
    new_data = _normalized(new)

    if old_data == new_data:
        return False, ""

    diff = ""
    try:
        diff = _yaml_diff(old_data, new_data)
        log.info("[cluster] the cluster spec has changed. diff=%s", diff)
    except Exception as e:
        log.warning("[cluster] encountered an issue getting cluster change differences: %s", e)
    return True, diff
