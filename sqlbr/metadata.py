# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQLBR Metadata - Sidecar provenance records for backup artifacts.

After a successful backup a small JSON document is written next to the
artifact (``nightly_full.bak`` -> ``nightly_full.meta.json``) recording
which database and which kind of backup produced it. The classifier
reads it back only when neither the engine nor the file name can tell
what the artifact is.
"""

import json
from datetime import datetime, UTC
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import aiofiles
import structlog

from sqlbr.exceptions import MetadataError, MetadataWriteError
from sqlbr.models import ArtifactMetadata, BackupAction, BackupArtifactType, BackupOptions

if TYPE_CHECKING:
    from sqlbr.operations.backup import BackupOperation

logger = structlog.get_logger()

DEFAULT_METADATA_EXTENSION = ".meta.json"


def sidecar_path(artifact_path: str | Path, extension: str = DEFAULT_METADATA_EXTENSION) -> Path:
    """
    Replace an artifact's extension with the metadata extension.

    Args:
        artifact_path: Path to the backup artifact
        extension: Metadata suffix (e.g. '.meta.json')

    Returns:
        Path of the sidecar file in the artifact's directory
    """
    path = Path(artifact_path)
    return path.with_name(f"{path.stem}{extension}")


def backup_type_from_options(options: BackupOptions) -> BackupArtifactType:
    """
    Derive the artifact type from the options a backup ran with.

    Database backups are full unless incremental (differential); log
    backups are transaction logs. This is independent of the header
    type codes the engine reports.
    """
    if options.action == BackupAction.LOG:
        return BackupArtifactType.TRANSACTION_LOG
    if options.action == BackupAction.DATABASE and options.incremental:
        return BackupArtifactType.DIFFERENTIAL
    if options.action == BackupAction.DATABASE:
        return BackupArtifactType.FULL
    return BackupArtifactType.UNKNOWN


def build_backup_metadata(operation: "BackupOperation") -> ArtifactMetadata:
    """
    Build the provenance record for a completed backup operation.
    """
    now = datetime.now(UTC).isoformat()
    backup_type = backup_type_from_options(operation.options)
    summary = operation.options.backup_set_description or (
        f"{operation.database_name} {backup_type.label} Backup"
    )

    return ArtifactMetadata(
        database_name=operation.database_name,
        backup_type=backup_type.value,
        backup_file_path=str(operation.file_path),
        created_at=now,
        description=f"{summary} ({operation.file_path.name}) created {now}",
    )


class MetadataStore(Protocol):
    """Where provenance records are kept."""

    async def write(self, metadata: ArtifactMetadata) -> Path: ...

    async def read(self, artifact_path: str | Path) -> ArtifactMetadata | None: ...


class SidecarMetadataStore:
    """Stores provenance as a JSON file next to each artifact."""

    def __init__(self, extension: str = DEFAULT_METADATA_EXTENSION):
        self.extension = extension

    def path_for(self, artifact_path: str | Path) -> Path:
        return sidecar_path(artifact_path, self.extension)

    async def write(self, metadata: ArtifactMetadata) -> Path:
        """
        Write a sidecar file atomically (write to temp, then rename).

        Args:
            metadata: Record to persist

        Returns:
            Path to the written sidecar file
        """
        target = self.path_for(metadata.backup_file_path)
        temp_path = target.with_name(f"{target.name}.tmp")
        document = json.dumps(metadata.to_dict(), indent=2, sort_keys=True) + "\n"

        try:
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(document)

            # Rename to final path (atomic on most filesystems)
            temp_path.replace(target)

        except Exception as e:
            raise MetadataError(
                f"Failed to write metadata file: {e}",
                details={"metadata_path": str(target)},
            ) from e

        logger.debug(
            "metadata_file_written",
            metadata_path=str(target),
            backup_type=metadata.backup_type,
        )

        return target

    async def read(self, artifact_path: str | Path) -> ArtifactMetadata | None:
        """
        Read the sidecar file for an artifact.

        Returns:
            The record, or None when no sidecar file exists

        Raises:
            MetadataError: If the file exists but cannot be parsed
        """
        path = self.path_for(artifact_path)
        if not path.is_file():
            return None

        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
            return ArtifactMetadata.from_dict(json.loads(content))
        except Exception as e:
            raise MetadataError(
                f"Failed to read metadata file: {e}",
                details={"metadata_path": str(path)},
            ) from e


async def write_backup_metadata(
    operation: "BackupOperation",
    store: MetadataStore,
) -> Path:
    """
    Record provenance for a completed backup.

    The backup itself stays completed whatever happens here; a failure
    is reported as MetadataWriteError so callers can decide what to do.

    Args:
        operation: The completed backup operation
        store: Store to write through

    Returns:
        Location of the written record

    Raises:
        MetadataWriteError: If the record could not be written
    """
    metadata = build_backup_metadata(operation)

    try:
        path = await store.write(metadata)
    except Exception as e:
        logger.error(
            "backup_metadata_write_failed",
            database=operation.database_name,
            operation_id=operation.id,
            file_path=str(operation.file_path),
            error=str(e),
        )
        raise MetadataWriteError(
            f"Backup completed but its metadata could not be written: {e}",
            details={
                "database_name": operation.database_name,
                "operation_id": operation.id,
                "file_path": str(operation.file_path),
            },
        ) from e

    logger.info(
        "backup_metadata_written",
        database=operation.database_name,
        operation_id=operation.id,
        metadata_path=str(path),
        backup_type=metadata.backup_type,
    )
    return path
