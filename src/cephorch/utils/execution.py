# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/utils/execution.py

from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import Optional, Sequence, Union

log = logging.getLogger("cephorch")

Cmd = Sequence[Union[str, "os.PathLike[str]"]]


@dataclass
class CommandRunner:
    label: Optional[str] = None

    def run(
        self,
        cmd: Cmd,
        *,
        check: bool = False,
        timeout: Optional[float] = None,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        """
        Run a local command and capture its output.

        Raises subprocess.TimeoutExpired when *timeout* elapses.
        """
        label = self.label or "cmd"
        cmd_str = " ".join(map(str, cmd))
        log.debug("[%s] $ %s", label, cmd_str)

        start = time.time()
        try:
            result = subprocess.run(
                [str(c) for c in cmd],
                capture_output=True,
                check=check,
                text=True,
                env=env,
                timeout=timeout,
            )
        except subprocess.CalledProcessError as e:
            log.debug("[%s][exit %s]", label, e.returncode)
            if e.stderr:
                log.debug("[%s][stderr]\n%s", label, e.stderr.rstrip())
            raise

        duration = time.time() - start
        if result.stdout:
            log.debug("[%s][stdout]\n%s", label, result.stdout.rstrip())
        if result.stderr:
            log.debug("[%s][stderr]\n%s", label, result.stderr.rstrip())
        log.debug("[%s][exit %s] (%.2fs)", label, result.returncode, duration)

        return result
