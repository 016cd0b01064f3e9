# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cephorch/observers/logger.py
from __future__ import annotations

import logging

from .events import BaseEvent, OrchestrationFailed, PhaseFailed


class LoggerObserver:
    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        etype = event.__class__.__name__
        msg = ", ".join(f"{k}={v}" for k, v in d.items() if k not in ("ts",))

        if isinstance(event, (PhaseFailed, OrchestrationFailed)):
            self.logger.error("[EVENT] %s: %s", etype, msg)
        else:
            self.logger.info("[EVENT] %s: %s", etype, msg)
