# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQLBR Journal - Append-only audit trail of backups and recovery jobs.

Each recovery job gets one row in ``jobs`` and each finished backup or
restore one row in ``operations``. Rows are written once a step has an
outcome and never modified afterwards, except that a job is marked
completed when its last step finishes.

The journal is an observer: a failure to write it is logged and never
changes the outcome of the backup or restore being recorded.
"""

from datetime import datetime, UTC
from pathlib import Path
from typing import TYPE_CHECKING, List, TypedDict

import aiosqlite
import structlog

from sqlbr.exceptions import JournalError

if TYPE_CHECKING:
    from sqlbr.operations import Operation

logger = structlog.get_logger()


class JobRecord(TypedDict):
    """Record of a recovery job."""

    id: str  # ULID
    database_name: str
    steps: int
    started_at: str  # ISO 8601
    completed_at: str | None  # ISO 8601 or None
    status: str  # running, completed, failed, cancelled
    error: str | None


class OperationRecord(TypedDict):
    """Record of one finished backup or restore."""

    id: str  # ULID
    job_id: str | None  # None for standalone backups
    database_name: str
    artifact_type: str
    is_restore: bool
    file_path: str
    status: str
    finished_at: str  # ISO 8601
    error: str | None


async def init_journal_db(db_path: Path) -> None:
    """
    Initialize the journal database schema.

    Creates tables if they don't exist. This is idempotent.

    Args:
        db_path: Path to the SQLite database file
    """
    try:
        async with aiosqlite.connect(db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS jobs (
                    id TEXT PRIMARY KEY,
                    database_name TEXT NOT NULL,
                    steps INTEGER NOT NULL,
                    started_at TEXT NOT NULL,
                    completed_at TEXT,
                    status TEXT NOT NULL,
                    error TEXT
                )
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS operations (
                    id TEXT PRIMARY KEY,
                    job_id TEXT,
                    database_name TEXT NOT NULL,
                    artifact_type TEXT NOT NULL,
                    is_restore INTEGER NOT NULL,
                    file_path TEXT NOT NULL,
                    status TEXT NOT NULL,
                    finished_at TEXT NOT NULL,
                    error TEXT,
                    FOREIGN KEY (job_id) REFERENCES jobs(id)
                )
            """)

            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_operations_job_id
                ON operations(job_id)
            """)

            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_jobs_database_name
                ON jobs(database_name)
            """)

            await db.commit()

        logger.debug("journal_db_initialized", db_path=str(db_path))

    except Exception as e:
        raise JournalError(
            f"Failed to initialize journal database: {e}",
            details={"db_path": str(db_path)},
        ) from e


async def record_job(
    db: aiosqlite.Connection,
    job_id: str,
    database_name: str,
    steps: int,
) -> None:
    """
    Record the start of a recovery job.

    Args:
        db: SQLite database connection
        job_id: Unique job ID (ULID)
        database_name: Target database
        steps: Number of restore steps in the job
    """
    now = datetime.now(UTC).isoformat()

    await db.execute(
        """
        INSERT INTO jobs (id, database_name, steps, started_at, status)
        VALUES (?, ?, ?, ?, 'running')
        """,
        (job_id, database_name, steps, now),
    )
    await db.commit()

    logger.debug("job_recorded", job_id=job_id, database=database_name)


async def complete_job(
    db: aiosqlite.Connection,
    job_id: str,
    status: str,
    error: str | None = None,
) -> None:
    """
    Mark a job as finished.

    Args:
        db: SQLite database connection
        job_id: Job ID
        status: Final status (completed, failed, cancelled)
        error: Error message if the job did not complete
    """
    now = datetime.now(UTC).isoformat()

    await db.execute(
        """
        UPDATE jobs
        SET completed_at = ?, status = ?, error = ?
        WHERE id = ?
        """,
        (now, status, error, job_id),
    )
    await db.commit()


async def record_operation(
    db: aiosqlite.Connection,
    operation: "Operation",
    job_id: str | None = None,
    error: str | None = None,
) -> None:
    """
    Record a finished operation.

    Args:
        db: SQLite database connection
        operation: The backup or restore that finished
        job_id: Owning recovery job, if any
        error: Error message if the operation did not complete
    """
    now = datetime.now(UTC).isoformat()

    await db.execute(
        """
        INSERT INTO operations
        (id, job_id, database_name, artifact_type, is_restore, file_path, status, finished_at, error)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            operation.id,
            job_id,
            operation.database_name,
            operation.artifact_type.value,
            1 if operation.is_restore else 0,
            str(operation.file_path or ""),
            operation.status.value,
            now,
            error,
        ),
    )
    await db.commit()

    logger.debug(
        "operation_journaled",
        operation_id=operation.id,
        job_id=job_id,
        status=operation.status.value,
    )


def _job_from_row(row) -> JobRecord:
    return JobRecord(
        id=row[0],
        database_name=row[1],
        steps=row[2],
        started_at=row[3],
        completed_at=row[4],
        status=row[5],
        error=row[6],
    )


def _operation_from_row(row) -> OperationRecord:
    return OperationRecord(
        id=row[0],
        job_id=row[1],
        database_name=row[2],
        artifact_type=row[3],
        is_restore=bool(row[4]),
        file_path=row[5],
        status=row[6],
        finished_at=row[7],
        error=row[8],
    )


async def get_job(db: aiosqlite.Connection, job_id: str) -> JobRecord | None:
    """
    Get a job record.

    Returns:
        Job record or None if not found
    """
    async with db.execute(
        """
        SELECT id, database_name, steps, started_at, completed_at, status, error
        FROM jobs WHERE id = ?
        """,
        (job_id,),
    ) as cursor:
        row = await cursor.fetchone()
        if row:
            return _job_from_row(row)
        return None


async def list_jobs(
    db: aiosqlite.Connection,
    limit: int = 50,
    offset: int = 0,
    database_name: str | None = None,
) -> List[JobRecord]:
    """
    List jobs with pagination, newest first.

    Args:
        db: SQLite database connection
        limit: Maximum number of records to return
        offset: Number of records to skip
        database_name: Optional filter by target database
    """
    query = """
        SELECT id, database_name, steps, started_at, completed_at, status, error
        FROM jobs
    """
    params: List = []

    if database_name:
        query += " WHERE database_name = ?"
        params.append(database_name)

    # ULIDs sort by creation time
    query += " ORDER BY id DESC LIMIT ? OFFSET ?"
    params.extend([limit, offset])

    records: List[JobRecord] = []

    async with db.execute(query, params) as cursor:
        async for row in cursor:
            records.append(_job_from_row(row))

    return records


async def get_job_operations(
    db: aiosqlite.Connection,
    job_id: str,
) -> List[OperationRecord]:
    """Get the recorded steps of a job in the order they finished."""
    records: List[OperationRecord] = []

    async with db.execute(
        """
        SELECT id, job_id, database_name, artifact_type, is_restore,
               file_path, status, finished_at, error
        FROM operations
        WHERE job_id = ?
        ORDER BY rowid
        """,
        (job_id,),
    ) as cursor:
        async for row in cursor:
            records.append(_operation_from_row(row))

    return records


async def journal_operation(
    db_path: Path,
    operation: "Operation",
    job_id: str | None = None,
    error: str | None = None,
) -> None:
    """
    Record an operation outcome, logging instead of raising on failure.
    """
    try:
        await init_journal_db(db_path)
        async with aiosqlite.connect(db_path) as db:
            await record_operation(db, operation, job_id=job_id, error=error)
    except Exception as e:
        logger.warning(
            "journal_write_failed",
            db_path=str(db_path),
            operation_id=operation.id,
            error=str(e),
        )


async def journal_job_started(
    db_path: Path,
    job_id: str,
    database_name: str,
    steps: int,
) -> None:
    """Record the start of a job, logging instead of raising on failure."""
    try:
        await init_journal_db(db_path)
        async with aiosqlite.connect(db_path) as db:
            await record_job(db, job_id, database_name, steps)
    except Exception as e:
        logger.warning(
            "journal_write_failed",
            db_path=str(db_path),
            job_id=job_id,
            error=str(e),
        )


async def journal_job_finished(
    db_path: Path,
    job_id: str,
    status: str,
    error: str | None = None,
) -> None:
    """Mark a job finished, logging instead of raising on failure."""
    try:
        async with aiosqlite.connect(db_path) as db:
            await complete_job(db, job_id, status, error)
    except Exception as e:
        logger.warning(
            "journal_write_failed",
            db_path=str(db_path),
            job_id=job_id,
            error=str(e),
        )
