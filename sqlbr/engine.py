# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Engine Capability - The narrow interface sqlbr needs from a database engine.

The engine streams bytes to and from devices, computes checksums and
reports progress. sqlbr only orchestrates: it never talks to the server
directly, so any object satisfying these protocols can be plugged in.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol, Tuple

from sqlbr.exceptions import PreconditionError
from sqlbr.models import (
    AccessMode,
    BackupOptions,
    DatabaseStatus,
    Device,
    EngineNotice,
    RestoreOptions,
)

# Callback the engine uses to report progress, messages and completion
EventSink = Callable[[EngineNotice], None]


@dataclass(frozen=True)
class BackupRequest:
    """Everything the engine needs to run one backup."""

    operation_id: str
    database_name: str
    devices: Tuple[Device, ...]
    options: BackupOptions


@dataclass(frozen=True)
class RestoreRequest:
    """Everything the engine needs to run one restore."""

    operation_id: str
    database_name: str
    devices: Tuple[Device, ...]
    options: RestoreOptions


class DatabaseHandle(Protocol):
    """A database on the engine."""

    @property
    def name(self) -> str: ...

    @property
    def status(self) -> DatabaseStatus: ...

    @property
    def access_mode(self) -> AccessMode: ...

    async def set_access_mode(self, mode: AccessMode) -> None:
        """
        Change user access, rolling back in-flight transactions immediately.
        """
        ...


class EngineHandle(Protocol):
    """Protocol for the external backup/restore engine."""

    async def has_database(self, name: str) -> bool: ...

    async def get_database(self, name: str) -> DatabaseHandle | None: ...

    async def create_database(self, name: str) -> DatabaseHandle: ...

    async def read_backup_header_type(self, path: Path) -> int | None:
        """
        Read the type code embedded in a backup artifact's header.

        Returns:
            1 (full), 2 (differential), 3 (log), another code, or None
            when the header cannot be found
        """
        ...

    async def run_backup(self, request: BackupRequest, notify: EventSink) -> None:
        """Run a backup; returning normally signals completion, raising signals failure."""
        ...

    async def run_restore(self, request: RestoreRequest, notify: EventSink) -> None:
        """Run a restore; returning normally signals completion, raising signals failure."""
        ...


def _check_lookup_args(engine: EngineHandle | None, database_name: str | None) -> None:
    if engine is None:
        raise PreconditionError("An engine handle is required")
    if not database_name or not database_name.strip():
        raise PreconditionError("Database name cannot be null or empty")


async def database_exists(engine: EngineHandle | None, database_name: str) -> bool:
    """
    Check if a database exists on the engine.

    Raises:
        PreconditionError: If the engine is missing or the name is blank
    """
    _check_lookup_args(engine, database_name)
    return await engine.has_database(database_name)


async def try_get_database(
    engine: EngineHandle | None,
    database_name: str,
) -> DatabaseHandle | None:
    """
    Look up a database, returning None when it does not exist.

    Raises:
        PreconditionError: If the engine is missing or the name is blank
    """
    _check_lookup_args(engine, database_name)
    return await engine.get_database(database_name)
