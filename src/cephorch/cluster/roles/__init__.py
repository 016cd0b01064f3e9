# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from .base import RoleContext, RoleStarter, index_to_name
from .mgr import MgrStarter
from .mon import MonStarter
from .osd import OsdStarter
from .rbd_mirror import RbdMirrorStarter

__all__ = [
    "RoleContext",
    "RoleStarter",
    "index_to_name",
    "MonStarter",
    "MgrStarter",
    "OsdStarter",
    "RbdMirrorStarter",
]
