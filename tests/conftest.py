# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for SQLBR tests.

Provides an in-memory engine, backup artifact helpers and test
configuration.
"""

import asyncio
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, List

import pytest

from sqlbr.config import RecoveryConfig
from sqlbr.engine import BackupRequest, RestoreRequest
from sqlbr.models import (
    AccessMode,
    DatabaseStatus,
    EngineNotice,
    EventKind,
)


class FakeDatabase:
    """In-memory database handle."""

    def __init__(
        self,
        name: str,
        status: DatabaseStatus = DatabaseStatus.NORMAL,
        access_mode: AccessMode = AccessMode.MULTIPLE,
    ):
        self.name = name
        self.status = status
        self.access_mode = access_mode
        self.mode_changes: List[AccessMode] = []
        self.refuse_access_mode = False

    async def set_access_mode(self, mode: AccessMode) -> None:
        if self.refuse_access_mode:
            raise RuntimeError("access mode change refused")
        self.access_mode = mode
        self.mode_changes.append(mode)


class FakeEngine:
    """
    Engine double that records every call.

    Backups write a small artifact file; restores leave the database
    restoring or recovered according to the request's options.
    """

    def __init__(self, databases=("sales",)):
        self.databases: Dict[str, FakeDatabase] = {name: FakeDatabase(name) for name in databases}
        self.headers: Dict[str, int] = {}  # artifact file name -> header type code
        self.header_error: Exception | None = None
        self.failing_files: set = set()  # artifact file names whose call fails
        self.progress = (10, 50, 100)
        self.block: asyncio.Event | None = None
        self.started = asyncio.Event()
        self.calls: List[tuple] = []

    @property
    def restored_files(self) -> List[str]:
        return [
            Path(request.devices[0].name).name
            for kind, request in self.calls
            if kind == "run_restore"
        ]

    @property
    def engine_runs(self) -> List[tuple]:
        return [call for call in self.calls if call[0] in ("run_backup", "run_restore")]

    async def has_database(self, name: str) -> bool:
        self.calls.append(("has_database", name))
        return name in self.databases

    async def get_database(self, name: str) -> FakeDatabase | None:
        self.calls.append(("get_database", name))
        return self.databases.get(name)

    async def create_database(self, name: str) -> FakeDatabase:
        self.calls.append(("create_database", name))
        database = FakeDatabase(name)
        self.databases[name] = database
        return database

    async def read_backup_header_type(self, path: Path) -> int | None:
        self.calls.append(("read_backup_header_type", str(path)))
        if self.header_error is not None:
            raise self.header_error
        return self.headers.get(Path(path).name)

    async def run_backup(self, request: BackupRequest, notify) -> None:
        self.calls.append(("run_backup", request))
        await self._run(request, notify)
        Path(request.devices[0].name).write_bytes(b"backup set")

    async def run_restore(self, request: RestoreRequest, notify) -> None:
        self.calls.append(("run_restore", request))
        await self._run(request, notify)
        database = self.databases[request.database_name]
        database.status = (
            DatabaseStatus.RESTORING if request.options.no_recovery else DatabaseStatus.NORMAL
        )

    async def _run(self, request, notify) -> None:
        self.started.set()
        if self.block is not None:
            await self.block.wait()

        name = Path(request.devices[0].name).name
        if name in self.failing_files:
            raise RuntimeError(f"media failure reading {name}")

        for percent in self.progress:
            notify(EngineNotice(EventKind.PERCENT_COMPLETE, percent=percent))
        notify(EngineNotice(EventKind.INFORMATION, message=f"processed {name}"))
        notify(EngineNotice(EventKind.COMPLETE))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def engine() -> FakeEngine:
    """Engine holding one database named 'sales'."""
    return FakeEngine()


@pytest.fixture
def make_artifact(temp_dir: Path) -> Callable[[str], Path]:
    """Create backup artifact files in the temp directory."""

    def _make(name: str) -> Path:
        path = temp_dir / name
        path.write_bytes(b"backup set")
        return path

    return _make


@pytest.fixture
def test_config(temp_dir: Path) -> RecoveryConfig:
    """Create a test configuration with the journal enabled."""
    return RecoveryConfig(journal_path=temp_dir / "journal.db")
