# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQLBR Operations - single backup and restore units.
"""

import asyncio
from pathlib import Path
from typing import Protocol

from sqlbr.engine import EngineHandle
from sqlbr.events import EventChannel
from sqlbr.models import BackupArtifactType, Device, OperationStatus
from sqlbr.operations.backup import (
    BackupOperation,
    differential_backup,
    full_backup,
    transaction_log_backup,
)
from sqlbr.operations.devices import DeviceRegistry
from sqlbr.operations.restore import (
    RestoreOperation,
    differential_restore,
    full_restore,
    transaction_log_restore,
)
from sqlbr.operations.runner import OperationRunner


class Operation(Protocol):
    """What every backup and restore variant offers."""

    id: str
    database_name: str
    artifact_type: BackupArtifactType
    status: OperationStatus
    is_restore: bool
    file_path: Path | None
    events: EventChannel
    devices: DeviceRegistry

    def initialize(self, file_path: str | Path) -> None: ...

    def set_device(self) -> Device | None: ...

    def add_device(self, device: Device) -> bool: ...

    async def execute(
        self,
        engine: EngineHandle,
        cancel: asyncio.Event | None = None,
    ) -> None: ...


__all__ = [
    "Operation",
    "OperationRunner",
    "DeviceRegistry",
    "BackupOperation",
    "full_backup",
    "differential_backup",
    "transaction_log_backup",
    "RestoreOperation",
    "full_restore",
    "differential_restore",
    "transaction_log_restore",
]
