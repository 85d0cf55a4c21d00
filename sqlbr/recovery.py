# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQLBR Recovery - Multi-step restore sequences for one database.

A RecoveryJob collects restore steps for a single target database and
runs them in the only order that makes sense for SQL recovery:

    1. At most one full restore
    2. At most one differential restore
    3. Any number of transaction log restores, in the order added

While the job runs, the database is held in single-user mode so no
client session can interfere between steps. Access is handed back only
after every step has succeeded; a failed job leaves the database in
single-user mode for an operator to inspect.
"""

import asyncio
from pathlib import Path
from typing import List, Tuple

import structlog
from ulid import ULID

from sqlbr.classifier import classify_backup_type
from sqlbr.config import DEFAULT_CONFIG, RecoveryConfig, RecoveryPolicy
from sqlbr.engine import DatabaseHandle, EngineHandle, try_get_database
from sqlbr.errors import explain_unclassifiable_artifact
from sqlbr.events import EventChannel, Subscription
from sqlbr.exceptions import (
    ClassificationError,
    DatabaseMismatchError,
    DuplicateOperationError,
    NoOperationsError,
    OperationCancelledError,
    PreconditionError,
    RecoveryJobError,
    SqlBrError,
)
from sqlbr.metadata import MetadataStore, SidecarMetadataStore
from sqlbr.models import AccessMode, BackupArtifactType, DatabaseStatus
from sqlbr.operations.restore import (
    RestoreOperation,
    differential_restore,
    full_restore,
    transaction_log_restore,
)

logger = structlog.get_logger()

# Types of which a job may hold at most one
_SINGLETON_TYPES = (BackupArtifactType.FULL, BackupArtifactType.DIFFERENTIAL)

_RESTORABLE_TYPES = _SINGLETON_TYPES + (BackupArtifactType.TRANSACTION_LOG,)


class RecoveryJob:
    """
    An ordered restore sequence for one target database.

    Example:
        job = RecoveryJob("sales")
        job.transaction_log_restore("/backups/sales_log_0100.trn", keep_restoring=False)
        job.full_restore("/backups/sales_full.bak")
        await job.execute(engine)  # runs the full restore first

    A job runs once. Build a new job to retry a failed recovery.
    """

    def __init__(
        self,
        database_name: str,
        *,
        config: RecoveryConfig | None = None,
        metadata_store: MetadataStore | None = None,
    ):
        if not database_name or not database_name.strip():
            raise PreconditionError("Database name cannot be null or empty")

        self.id = str(ULID())
        self.database_name = database_name
        self.config = config or DEFAULT_CONFIG
        self.metadata_store = metadata_store or SidecarMetadataStore(
            self.config.metadata_extension
        )
        self.events = EventChannel()
        self._operations: List[RestoreOperation] = []
        self._running = False
        self._executed = False

    @property
    def operations(self) -> List[RestoreOperation]:
        """Registered steps in the order they were added."""
        return list(self._operations)

    def ordered_operations(self) -> List[RestoreOperation]:
        """Registered steps in execution order (stable sort by priority)."""
        return sorted(self._operations, key=lambda op: op.priority)

    def add_operation(self, operation: RestoreOperation) -> RestoreOperation:
        """
        Register a restore step.

        Raises:
            PreconditionError: If the operation is not a restore of a known type,
                has started, or the job has already run
            DatabaseMismatchError: If it targets another database
            DuplicateOperationError: If it is a second full or differential restore
        """
        if not isinstance(operation, RestoreOperation):
            raise PreconditionError(
                "Only restore operations can be added to a recovery job",
                details={"database_name": self.database_name, "job_id": self.id},
            )

        details = {
            "database_name": self.database_name,
            "job_id": self.id,
            "operation_id": operation.id,
            "artifact_type": operation.artifact_type.value,
        }

        if operation.artifact_type not in _RESTORABLE_TYPES:
            raise PreconditionError(
                f"{operation.artifact_type.label} restores cannot be part of a recovery job",
                details=details,
            )

        if operation.database_name != self.database_name:
            raise DatabaseMismatchError(
                f"The operation targets database {operation.database_name} "
                f"but the job restores {self.database_name}",
                details=details,
            )

        if self._running or self._executed or operation.started:
            raise PreconditionError(
                "Operations cannot be added once they or the job have started",
                details=details,
            )

        if operation in self._operations:
            raise DuplicateOperationError(
                "The operation is already part of this job",
                details=details,
            )

        if operation.artifact_type in _SINGLETON_TYPES and any(
            op.artifact_type == operation.artifact_type for op in self._operations
        ):
            raise DuplicateOperationError(
                f"The job already contains a {operation.artifact_type.label} restore",
                details=details,
            )

        operation.job_id = self.id
        self._operations.append(operation)

        logger.debug(
            "restore_step_added",
            job_id=self.id,
            database=self.database_name,
            operation_id=operation.id,
            artifact_type=operation.artifact_type.value,
        )
        return operation

    def full_restore(self, file_path: str | Path, keep_restoring: bool = True) -> RestoreOperation:
        return self.add_operation(
            full_restore(
                self.database_name,
                file_path,
                keep_restoring=keep_restoring,
                config=self.config,
            )
        )

    def differential_restore(
        self,
        file_path: str | Path,
        keep_restoring: bool = True,
    ) -> RestoreOperation:
        return self.add_operation(
            differential_restore(
                self.database_name,
                file_path,
                keep_restoring=keep_restoring,
                config=self.config,
            )
        )

    def transaction_log_restore(
        self,
        file_path: str | Path,
        keep_restoring: bool = True,
    ) -> RestoreOperation:
        return self.add_operation(
            transaction_log_restore(
                self.database_name,
                file_path,
                keep_restoring=keep_restoring,
                config=self.config,
            )
        )

    async def add_restore_by_file_name(
        self,
        file_path: str | Path,
        engine: EngineHandle | None,
        keep_restoring: bool = True,
    ) -> RestoreOperation:
        """
        Classify an artifact and register the matching restore step.

        Raises:
            ClassificationError: If the artifact's type cannot be determined
        """
        backup_type = await classify_backup_type(file_path, engine, store=self.metadata_store)

        if backup_type == BackupArtifactType.FULL:
            return self.full_restore(file_path, keep_restoring)
        if backup_type == BackupArtifactType.DIFFERENTIAL:
            return self.differential_restore(file_path, keep_restoring)
        if backup_type == BackupArtifactType.TRANSACTION_LOG:
            return self.transaction_log_restore(file_path, keep_restoring)

        raise ClassificationError(
            explain_unclassifiable_artifact(str(file_path)),
            details={"database_name": self.database_name, "file_path": str(file_path)},
        )

    async def execute(
        self,
        engine: EngineHandle | None,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """
        Run every registered step in order.

        Args:
            engine: Engine handle
            cancel: Optional cancellation request, checked before each step
                and passed to the running step

        Raises:
            PreconditionError: If the engine is missing or the job is running
                or has already run
            NoOperationsError: If no steps are registered (no engine calls are made)
            OperationCancelledError: If cancellation was requested
            RecoveryJobError: If a step failed; later steps are not attempted
        """
        if engine is None:
            raise PreconditionError(
                "The engine parameter does not allow a None value",
                details={"database_name": self.database_name, "job_id": self.id},
            )
        if self._running:
            raise PreconditionError(
                "The recovery job is already running",
                details={"database_name": self.database_name, "job_id": self.id},
            )
        if self._executed:
            raise PreconditionError(
                "The recovery job has already run; create a new job to retry",
                details={"database_name": self.database_name, "job_id": self.id},
            )

        ordered = self.ordered_operations()
        if not ordered:
            raise NoOperationsError(
                "No restore operations have been added to the job",
                details={"database_name": self.database_name, "job_id": self.id},
            )

        outcome, error = "failed", None

        try:
            self._running = True
            self._executed = True
            await self._journal_started(len(ordered))

            self._check_cancel(cancel, step=1)
            self._apply_recovery_policy(ordered)

            logger.info(
                "recovery_started",
                job_id=self.id,
                database=self.database_name,
                steps=len(ordered),
                policy=self.config.recovery_policy.value,
            )

            database, created = await self._resolve_database(engine)

            # A database we just created has no sessions to shut out
            exclusive = not created and database.status == DatabaseStatus.NORMAL
            if exclusive:
                await self._set_access_mode(database, AccessMode.SINGLE)

            for step, operation in enumerate(ordered, start=1):
                self._check_cancel(cancel, step)
                await self._run_step(step, len(ordered), operation, engine, cancel)

            if exclusive:
                database = await try_get_database(engine, self.database_name)
                if database is None:
                    raise RecoveryJobError(
                        f"The database {self.database_name} disappeared during recovery",
                        details={"database_name": self.database_name, "job_id": self.id},
                    )
                await self._set_access_mode(database, AccessMode.MULTIPLE)

            outcome = "completed"
            logger.info(
                "recovery_completed",
                job_id=self.id,
                database=self.database_name,
                steps=len(ordered),
            )

        except (OperationCancelledError, asyncio.CancelledError) as e:
            outcome, error = "cancelled", str(e) or "cancelled"
            logger.warning("recovery_cancelled", job_id=self.id, database=self.database_name)
            raise

        except Exception as e:
            error = str(e)
            logger.error(
                "recovery_failed",
                job_id=self.id,
                database=self.database_name,
                error=error,
            )
            raise

        finally:
            self._running = False
            self.events.close()
            await self._journal_finished(outcome, error)

    def _check_cancel(self, cancel: asyncio.Event | None, step: int) -> None:
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(
                f"Recovery of {self.database_name} was cancelled before step {step}",
                details={"database_name": self.database_name, "job_id": self.id, "step": step},
            )

    def _apply_recovery_policy(self, ordered: List[RestoreOperation]) -> None:
        if self.config.recovery_policy != RecoveryPolicy.LAST_STEP_RECOVERS:
            return
        for operation in ordered[:-1]:
            operation.keep_restoring = True
        ordered[-1].keep_restoring = False

    async def _resolve_database(self, engine: EngineHandle) -> Tuple[DatabaseHandle, bool]:
        """Find the target database, creating an empty one when missing."""
        try:
            database = await try_get_database(engine, self.database_name)
            if database is not None:
                return database, False

            logger.info("recovery_database_created", job_id=self.id, database=self.database_name)
            return await engine.create_database(self.database_name), True

        except SqlBrError:
            raise
        except Exception as e:
            raise RecoveryJobError(
                f"Could not resolve database {self.database_name}: {e}",
                details={"database_name": self.database_name, "job_id": self.id},
            ) from e

    async def _set_access_mode(self, database: DatabaseHandle, mode: AccessMode) -> None:
        try:
            await database.set_access_mode(mode)
        except Exception as e:
            raise RecoveryJobError(
                f"Could not switch database {self.database_name} to {mode.value}-user access: {e}",
                details={
                    "database_name": self.database_name,
                    "job_id": self.id,
                    "access_mode": mode.value,
                },
            ) from e

        logger.info(
            "database_access_mode_changed",
            job_id=self.id,
            database=self.database_name,
            access_mode=mode.value,
        )

    async def _run_step(
        self,
        step: int,
        total: int,
        operation: RestoreOperation,
        engine: EngineHandle,
        cancel: asyncio.Event | None,
    ) -> None:
        logger.info(
            "recovery_step_started",
            job_id=self.id,
            database=self.database_name,
            step=step,
            total=total,
            artifact_type=operation.artifact_type.value,
            keep_restoring=operation.keep_restoring,
        )

        subscription = operation.events.subscribe()
        forwarder = asyncio.ensure_future(self._forward(subscription))

        try:
            await operation.execute(engine, cancel)

        except (OperationCancelledError, asyncio.CancelledError):
            raise

        except Exception as e:
            reason = e.message if isinstance(e, SqlBrError) else str(e)
            raise RecoveryJobError(
                f"Step {step} of {total} ({operation.artifact_type.label} restore) "
                f"failed for database {self.database_name}: {reason}",
                details={
                    "step": step,
                    "artifact_type": operation.artifact_type.value,
                    "database_name": self.database_name,
                    "operation_id": operation.id,
                    "job_id": self.id,
                },
            ) from e

        finally:
            subscription.close()
            await forwarder

    async def _forward(self, subscription: Subscription) -> None:
        async for event in subscription:
            self.events.publish(event)

    async def _journal_started(self, steps: int) -> None:
        if self.config.journal_path is None:
            return
        from sqlbr.journal import journal_job_started

        await journal_job_started(self.config.journal_path, self.id, self.database_name, steps)

    async def _journal_finished(self, status: str, error: str | None) -> None:
        if self.config.journal_path is None:
            return
        from sqlbr.journal import journal_job_finished

        await journal_job_finished(self.config.journal_path, self.id, status, error)

    def __len__(self) -> int:
        return len(self._operations)

    def __repr__(self) -> str:
        return f"RecoveryJob(database={self.database_name!r}, steps={len(self._operations)})"
