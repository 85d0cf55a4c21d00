# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup operations - full, differential and transaction log backups.

A backup writes one artifact to one file device. When it completes, a
provenance record is written next to the artifact so the artifact can
be classified later even if it is renamed.
"""

import asyncio
from pathlib import Path

from sqlbr.config import DEFAULT_CONFIG, RecoveryConfig
from sqlbr.engine import BackupRequest, EngineHandle
from sqlbr.events import EventChannel
from sqlbr.exceptions import BackupError, OperationCancelledError, OperationFailedError
from sqlbr.files import require_file_path
from sqlbr.metadata import MetadataStore, SidecarMetadataStore, write_backup_metadata
from sqlbr.models import (
    BackupAction,
    BackupArtifactType,
    BackupOptions,
    Device,
    OperationStatus,
)
from sqlbr.operations.devices import DeviceRegistry
from sqlbr.operations.runner import OperationRunner


class BackupOperation:
    """
    One backup of one database to one artifact.

    Use the factories below rather than constructing directly.
    """

    is_restore = False

    def __init__(
        self,
        database_name: str,
        artifact_type: BackupArtifactType,
        options: BackupOptions,
        *,
        file_path: str | Path | None = None,
        config: RecoveryConfig | None = None,
        metadata_store: MetadataStore | None = None,
    ):
        self._runner = OperationRunner(database_name, artifact_type, is_restore=False)
        self.options = options
        self.config = config or DEFAULT_CONFIG
        self.metadata_store = metadata_store
        self.metadata_path: Path | None = None
        self.file_path: Path | None = None

        if file_path is not None:
            self.initialize(file_path)

    @property
    def id(self) -> str:
        return self._runner.id

    @property
    def database_name(self) -> str:
        return self._runner.database_name

    @property
    def artifact_type(self) -> BackupArtifactType:
        return self._runner.artifact_type

    @property
    def status(self) -> OperationStatus:
        return self._runner.status

    @property
    def started(self) -> bool:
        return self._runner.started

    @property
    def events(self) -> EventChannel:
        return self._runner.events

    @property
    def devices(self) -> DeviceRegistry:
        return self._runner.devices

    def initialize(self, file_path: str | Path) -> None:
        """Set the artifact path the backup is written to."""
        self.file_path = require_file_path(file_path)

    def set_device(self) -> Device | None:
        """The canonical file device for this backup's artifact."""
        if self.file_path is None:
            return None
        return Device(str(self.file_path))

    def add_device(self, device: Device) -> bool:
        return self._runner.devices.add_device(device)

    async def execute(
        self,
        engine: EngineHandle,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """
        Run the backup and record its provenance.

        Raises:
            PreconditionError: If the engine, database or path is missing
            DeviceConfigurationError: If no device could be configured
            OperationCancelledError: If cancellation was requested
            BackupError: If the engine reported a failure
            MetadataWriteError: If the backup completed but its record was not written
        """
        async def start(notify):
            request = BackupRequest(
                operation_id=self.id,
                database_name=self.database_name,
                devices=self._runner.devices.as_tuple(),
                options=self.options,
            )
            await engine.run_backup(request, notify)

        try:
            await self._runner.run(
                engine,
                set_device=self.set_device,
                start=start,
                failure=BackupError,
                cancel=cancel,
            )
        except (OperationFailedError, OperationCancelledError) as e:
            await self._journal(error=e.message)
            raise

        await self._journal()

        # Without an artifact path there is nothing to place a sidecar next to
        if self.config.write_backup_metadata and self.file_path is not None:
            store = self.metadata_store or SidecarMetadataStore(self.config.metadata_extension)
            self.metadata_path = await write_backup_metadata(self, store)

    async def _journal(self, error: str | None = None) -> None:
        if self.config.journal_path is None:
            return
        from sqlbr.journal import journal_operation

        await journal_operation(self.config.journal_path, self, error=error)

    def __repr__(self) -> str:
        return (
            f"BackupOperation({self.artifact_type.value}, database={self.database_name!r}, "
            f"file_path={str(self.file_path)!r}, status={self.status.value})"
        )


def _backup_options(
    database_name: str,
    artifact_type: BackupArtifactType,
    config: RecoveryConfig,
) -> BackupOptions:
    return BackupOptions(
        action=(
            BackupAction.LOG
            if artifact_type == BackupArtifactType.TRANSACTION_LOG
            else BackupAction.DATABASE
        ),
        incremental=artifact_type == BackupArtifactType.DIFFERENTIAL,
        initialize=artifact_type == BackupArtifactType.FULL,
        checksum=config.checksum,
        backup_set_name=f"{database_name} {artifact_type.label} Backup",
        backup_set_description=f"{artifact_type.label} backup of {database_name}",
        percent_complete_notification=config.percent_complete_notification,
        continue_after_error=config.continue_after_error,
    )


def full_backup(
    database_name: str,
    file_path: str | Path | None = None,
    *,
    options: BackupOptions | None = None,
    config: RecoveryConfig | None = None,
    metadata_store: MetadataStore | None = None,
) -> BackupOperation:
    """Create a full backup that overwrites existing backup sets on the device."""
    config = config or DEFAULT_CONFIG
    return BackupOperation(
        database_name,
        BackupArtifactType.FULL,
        options or _backup_options(database_name, BackupArtifactType.FULL, config),
        file_path=file_path,
        config=config,
        metadata_store=metadata_store,
    )


def differential_backup(
    database_name: str,
    file_path: str | Path | None = None,
    *,
    options: BackupOptions | None = None,
    config: RecoveryConfig | None = None,
    metadata_store: MetadataStore | None = None,
) -> BackupOperation:
    """Create a differential backup (changes since the last full backup)."""
    config = config or DEFAULT_CONFIG
    return BackupOperation(
        database_name,
        BackupArtifactType.DIFFERENTIAL,
        options or _backup_options(database_name, BackupArtifactType.DIFFERENTIAL, config),
        file_path=file_path,
        config=config,
        metadata_store=metadata_store,
    )


def transaction_log_backup(
    database_name: str,
    file_path: str | Path | None = None,
    *,
    options: BackupOptions | None = None,
    config: RecoveryConfig | None = None,
    metadata_store: MetadataStore | None = None,
) -> BackupOperation:
    """Create a transaction log backup, truncating the log afterwards."""
    config = config or DEFAULT_CONFIG
    return BackupOperation(
        database_name,
        BackupArtifactType.TRANSACTION_LOG,
        options or _backup_options(database_name, BackupArtifactType.TRANSACTION_LOG, config),
        file_path=file_path,
        config=config,
        metadata_store=metadata_store,
    )
