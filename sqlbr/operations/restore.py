# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Restore operations - full, differential and transaction log restores.

A restore applies one artifact to the target database. Restores are
normally run as steps of a RecoveryJob, which sorts them by priority
and owns the database's access mode around the whole sequence.
"""

import asyncio
from dataclasses import replace
from pathlib import Path

from sqlbr.config import DEFAULT_CONFIG, RecoveryConfig
from sqlbr.engine import EngineHandle, RestoreRequest
from sqlbr.events import EventChannel
from sqlbr.exceptions import (
    OperationCancelledError,
    OperationFailedError,
    PreconditionError,
    RestoreError,
)
from sqlbr.files import require_file_path, validate_backup_file
from sqlbr.models import (
    BackupArtifactType,
    Device,
    OperationStatus,
    RestoreAction,
    RestoreOptions,
)
from sqlbr.operations.devices import DeviceRegistry
from sqlbr.operations.runner import OperationRunner


class RestoreOperation:
    """
    One restore step against one database.

    ``keep_restoring`` leaves the database in the restoring state after
    this step so that further differential or log restores can follow.
    """

    is_restore = True

    def __init__(
        self,
        database_name: str,
        artifact_type: BackupArtifactType,
        options: RestoreOptions,
        *,
        file_path: str | Path | None = None,
        config: RecoveryConfig | None = None,
    ):
        self._runner = OperationRunner(database_name, artifact_type, is_restore=True)
        self.options = options
        self.config = config or DEFAULT_CONFIG
        self.file_path: Path | None = None
        # Set by the owning RecoveryJob
        self.job_id: str | None = None

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

    @property
    def priority(self) -> int:
        """Sort key within a recovery job: full, then differential, then logs."""
        return self.artifact_type.restore_priority

    @property
    def keep_restoring(self) -> bool:
        return self.options.no_recovery

    @keep_restoring.setter
    def keep_restoring(self, value: bool) -> None:
        if self._runner.started:
            raise PreconditionError(
                "keep_restoring cannot change once the restore has started",
                details=self._runner.details(),
            )
        self.options = replace(self.options, no_recovery=bool(value))

    def initialize(self, file_path: str | Path) -> None:
        """
        Set the artifact to restore from.

        Raises:
            ArtifactPathError: If the path is blank, or (with path
                validation on) missing or without a backup extension
        """
        if self.config.validate_file_paths:
            self.file_path = validate_backup_file(file_path, self.config.backup_extensions)
        else:
            self.file_path = require_file_path(file_path)

    def set_device(self) -> Device | None:
        """The canonical file device for this restore's artifact."""
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
        Apply this restore step.

        The target database must already exist; a RecoveryJob creates it
        before its first step when needed.

        Raises:
            PreconditionError: If the engine or database is missing
            DeviceConfigurationError: If no device could be configured
            OperationCancelledError: If cancellation was requested
            RestoreError: If the engine reported a failure
        """
        async def start(notify):
            request = RestoreRequest(
                operation_id=self.id,
                database_name=self.database_name,
                devices=self._runner.devices.as_tuple(),
                options=self.options,
            )
            await engine.run_restore(request, notify)

        try:
            await self._runner.run(
                engine,
                set_device=self.set_device,
                start=start,
                failure=RestoreError,
                cancel=cancel,
            )
        except (OperationFailedError, OperationCancelledError) as e:
            await self._journal(error=e.message)
            raise

        await self._journal()

    async def _journal(self, error: str | None = None) -> None:
        if self.config.journal_path is None:
            return
        from sqlbr.journal import journal_operation

        await journal_operation(self.config.journal_path, self, job_id=self.job_id, error=error)

    def __repr__(self) -> str:
        return (
            f"RestoreOperation({self.artifact_type.value}, database={self.database_name!r}, "
            f"file_path={str(self.file_path)!r}, keep_restoring={self.keep_restoring}, "
            f"status={self.status.value})"
        )


def _restore_options(
    artifact_type: BackupArtifactType,
    keep_restoring: bool,
    config: RecoveryConfig,
) -> RestoreOptions:
    return RestoreOptions(
        action=(
            RestoreAction.LOG
            if artifact_type == BackupArtifactType.TRANSACTION_LOG
            else RestoreAction.DATABASE
        ),
        # A full restore overwrites whatever the target currently holds
        replace_database=artifact_type == BackupArtifactType.FULL,
        no_recovery=keep_restoring,
        percent_complete_notification=config.percent_complete_notification,
        continue_after_error=config.continue_after_error,
    )


def full_restore(
    database_name: str,
    file_path: str | Path | None = None,
    *,
    keep_restoring: bool = True,
    options: RestoreOptions | None = None,
    config: RecoveryConfig | None = None,
) -> RestoreOperation:
    """Create a full restore that replaces the target database."""
    config = config or DEFAULT_CONFIG
    return RestoreOperation(
        database_name,
        BackupArtifactType.FULL,
        options or _restore_options(BackupArtifactType.FULL, keep_restoring, config),
        file_path=file_path,
        config=config,
    )


def differential_restore(
    database_name: str,
    file_path: str | Path | None = None,
    *,
    keep_restoring: bool = True,
    options: RestoreOptions | None = None,
    config: RecoveryConfig | None = None,
) -> RestoreOperation:
    """Create a differential restore applied on top of a full restore."""
    config = config or DEFAULT_CONFIG
    return RestoreOperation(
        database_name,
        BackupArtifactType.DIFFERENTIAL,
        options or _restore_options(BackupArtifactType.DIFFERENTIAL, keep_restoring, config),
        file_path=file_path,
        config=config,
    )


def transaction_log_restore(
    database_name: str,
    file_path: str | Path | None = None,
    *,
    keep_restoring: bool = True,
    options: RestoreOptions | None = None,
    config: RecoveryConfig | None = None,
) -> RestoreOperation:
    """Create a transaction log restore."""
    config = config or DEFAULT_CONFIG
    return RestoreOperation(
        database_name,
        BackupArtifactType.TRANSACTION_LOG,
        options or _restore_options(BackupArtifactType.TRANSACTION_LOG, keep_restoring, config),
        file_path=file_path,
        config=config,
    )
