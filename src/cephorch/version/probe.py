# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/version/probe.py

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol, Sequence

from ..cluster.errors import ProbeFailed, ProbeTimeout, VersionUnparseable
from .ceph_version import CephVersion, VersionParseError, extract_ceph_version

log = logging.getLogger("cephorch")

VERSION_COMMAND = ("ceph", "--version")


@dataclass(frozen=True)
class ProcessResult:
    stdout: str
    stderr: str
    exit_code: int


class ProcessRunner(Protocol):
    """Runs a short-lived, isolated process from a container image."""

    def run(self, image: str, args: Sequence[str], timeout: float) -> ProcessResult: ...


class VersionProbe:
    """
    Detects the ceph version shipped in an image by running ``ceph --version``.
    """

    def __init__(self, runner: ProcessRunner):
        self.runner = runner

    def detect(self, image: str, timeout: float) -> CephVersion:
        log.info("[version] detecting the ceph image version for image %s...", image)

        try:
            result = self.runner.run(image, list(VERSION_COMMAND), timeout)
        except (TimeoutError, subprocess.TimeoutExpired) as e:
            raise ProbeTimeout(
                f"ceph version job for image {image} did not finish within {timeout}s"
            ) from e
        except Exception as e:
            raise ProbeFailed(f"failed to complete ceph version job for image {image}. {e}") from e

        if result.exit_code != 0:
            raise ProbeFailed(
                f"ceph version job returned failure with retcode {result.exit_code}.\n"
                f"  stdout: {result.stdout}\n"
                f"  stderr: {result.stderr}"
            )

        try:
            version = extract_ceph_version(result.stdout)
        except VersionParseError as e:
            raise VersionUnparseable(f"failed to extract ceph version. {e}") from e

        log.info("[version] detected ceph image version: %s", version)
        return version
