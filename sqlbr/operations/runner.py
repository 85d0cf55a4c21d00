# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Operation runner - the state machine shared by every backup and restore.

    NOT_STARTED -> IN_PROGRESS -> COMPLETED | FAILED

Preconditions are checked before any state change. An operation runs
at most once: there is no way back to NOT_STARTED.
"""

import asyncio
from datetime import datetime, UTC
from typing import Awaitable, Callable, Dict, Type

import structlog
from ulid import ULID

from sqlbr.engine import EngineHandle, EventSink, database_exists
from sqlbr.events import EventChannel
from sqlbr.exceptions import (
    DeviceConfigurationError,
    OperationCancelledError,
    OperationFailedError,
    PreconditionError,
    SqlBrError,
)
from sqlbr.models import (
    BackupArtifactType,
    Device,
    EngineNotice,
    EventKind,
    OperationEvent,
    OperationStatus,
)
from sqlbr.operations.devices import DeviceRegistry

logger = structlog.get_logger()

EngineCall = Callable[[EventSink], Awaitable[None]]


class OperationRunner:
    """
    Shared state for one engine invocation.

    Backup and restore variants compose a runner rather than inherit
    from a common base; the runner owns status, devices and events.
    """

    def __init__(
        self,
        database_name: str,
        artifact_type: BackupArtifactType,
        is_restore: bool,
    ):
        if not database_name or not database_name.strip():
            raise PreconditionError("Database name cannot be null or empty")

        self.id = str(ULID())
        self.database_name = database_name
        self.artifact_type = artifact_type
        self.is_restore = is_restore
        self.status = OperationStatus.NOT_STARTED
        self.devices = DeviceRegistry(database_name)
        self.events = EventChannel()
        self.started_at: datetime | None = None
        self.finished_at: datetime | None = None
        self.error: str | None = None
        self._claimed = False
        self._last_percent = -1

    @property
    def noun(self) -> str:
        return "restore" if self.is_restore else "backup"

    @property
    def label(self) -> str:
        return f"{self.artifact_type.label} {self.noun}"

    @property
    def started(self) -> bool:
        return self._claimed or self.status != OperationStatus.NOT_STARTED

    def details(self) -> Dict[str, str]:
        return {
            "database_name": self.database_name,
            "operation_id": self.id,
            "artifact_type": self.artifact_type.value,
            "operation": self.noun,
        }

    def notify(self, notice: EngineNotice) -> None:
        """Forward an engine notice to subscribers of this operation."""
        percent = notice.percent

        if notice.kind == EventKind.PERCENT_COMPLETE:
            if percent is None:
                return
            percent = max(0, min(100, int(percent)))
            # Progress is monotonic within one call
            if percent < self._last_percent:
                logger.debug(
                    "progress_regression_dropped",
                    operation_id=self.id,
                    percent=percent,
                    last_percent=self._last_percent,
                )
                return
            self._last_percent = percent

        self.events.publish(
            OperationEvent(
                kind=notice.kind,
                operation_id=self.id,
                database_name=self.database_name,
                artifact_type=self.artifact_type,
                is_restore=self.is_restore,
                percent=percent,
                message=notice.message,
            )
        )

    async def run(
        self,
        engine: EngineHandle | None,
        *,
        set_device: Callable[[], Device | None],
        start: EngineCall,
        failure: Type[OperationFailedError],
        cancel: asyncio.Event | None = None,
    ) -> None:
        """
        Validate, configure the device, run the engine call and await it.

        Args:
            engine: Engine handle
            set_device: Produces the canonical device for the operation
            start: Starts the engine call given the event sink
            failure: Domain error raised when the engine call fails
            cancel: Optional cancellation request

        Raises:
            PreconditionError: Before any state change
            DeviceConfigurationError: If no device ends up configured
            OperationCancelledError: If cancellation was requested
            OperationFailedError: If the engine call failed (as `failure`)
        """
        self._check_preconditions(engine, cancel)

        self._claimed = True
        try:
            if not await database_exists(engine, self.database_name):
                raise PreconditionError(
                    f"The database {self.database_name} does not exist",
                    details=self.details(),
                )
        except BaseException:
            self._claimed = False
            raise

        try:
            self._configure_device(set_device)

            self.status = OperationStatus.IN_PROGRESS
            self.started_at = datetime.now(UTC)
            logger.info(
                f"{self.noun}_started",
                database=self.database_name,
                operation_id=self.id,
                artifact_type=self.artifact_type.value,
            )

            await self._await_completion(start, failure, cancel)

            self.status = OperationStatus.COMPLETED
            self.finished_at = datetime.now(UTC)
            logger.info(
                f"{self.noun}_completed",
                database=self.database_name,
                operation_id=self.id,
                artifact_type=self.artifact_type.value,
                duration=(self.finished_at - self.started_at).total_seconds(),
            )
        finally:
            self.events.close()
            self._claimed = False

    def _check_preconditions(
        self,
        engine: EngineHandle | None,
        cancel: asyncio.Event | None,
    ) -> None:
        if engine is None:
            raise PreconditionError(
                "The engine parameter does not allow a None value",
                details=self.details(),
            )
        if not self.database_name:
            raise PreconditionError("The database name is not set", details=self.details())
        if self._claimed or self.status == OperationStatus.IN_PROGRESS:
            raise PreconditionError(
                f"The {self.noun} operation is already in progress",
                details=self.details(),
            )
        if self.status != OperationStatus.NOT_STARTED:
            raise PreconditionError(
                f"The {self.noun} operation has already run ({self.status.value})",
                details=self.details(),
            )
        if cancel is not None and cancel.is_set():
            raise OperationCancelledError(
                f"The {self.label} was cancelled before it started",
                details=self.details(),
            )

    def _configure_device(self, set_device: Callable[[], Device | None]) -> None:
        try:
            device = set_device()
            if device is not None:
                self.devices.add_device(device)
        except SqlBrError as e:
            self._fail(str(e))
            raise
        except Exception as e:
            self._fail(str(e))
            raise DeviceConfigurationError(
                f"Failed to configure the {self.noun} device: {e}",
                details=self.details(),
            ) from e

        if len(self.devices) == 0:
            self._fail("no device configured")
            raise DeviceConfigurationError(
                f"The {self.noun} proceeded without completing the device configuration",
                details=self.details(),
            )

    async def _await_completion(
        self,
        start: EngineCall,
        failure: Type[OperationFailedError],
        cancel: asyncio.Event | None,
    ) -> None:
        try:
            call = asyncio.ensure_future(start(self.notify))
        except Exception as e:
            self._fail(str(e))
            raise failure(
                f"{self.label} failed for database {self.database_name}: {e}",
                details=self.details(),
            ) from e

        waiters = {call}
        cancel_wait = None
        if cancel is not None:
            cancel_wait = asyncio.ensure_future(cancel.wait())
            waiters.add(cancel_wait)

        try:
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # The caller's task was cancelled; ask the engine to stop too
            self._fail("cancelled")
            call.cancel()
            call.add_done_callback(self._log_abandoned_call)
            logger.warning(
                f"{self.noun}_cancelled",
                database=self.database_name,
                operation_id=self.id,
            )
            raise
        finally:
            if cancel_wait is not None:
                cancel_wait.cancel()

        if call not in done or call.cancelled():
            self._fail("cancelled")
            if call not in done:
                call.cancel()
                call.add_done_callback(self._log_abandoned_call)
            logger.warning(
                f"{self.noun}_cancelled",
                database=self.database_name,
                operation_id=self.id,
            )
            raise OperationCancelledError(
                f"The {self.label} for database {self.database_name} was cancelled",
                details=self.details(),
            )

        error = call.exception()
        if error is not None:
            self._fail(str(error))
            logger.error(
                f"{self.noun}_failed",
                database=self.database_name,
                operation_id=self.id,
                artifact_type=self.artifact_type.value,
                error=str(error),
            )
            raise failure(
                f"{self.label} failed for database {self.database_name}: {error}",
                details=self.details(),
            ) from error

    def _fail(self, reason: str) -> None:
        self.status = OperationStatus.FAILED
        self.finished_at = datetime.now(UTC)
        self.error = reason

    def _log_abandoned_call(self, task: asyncio.Future) -> None:
        if task.cancelled():
            logger.debug("engine_call_cancelled", operation_id=self.id)
            return
        error = task.exception()
        if error is not None:
            logger.warning(
                "engine_call_failed_after_cancel",
                operation_id=self.id,
                error=str(error),
            )
