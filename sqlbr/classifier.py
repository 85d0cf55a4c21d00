# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQLBR Classifier - Determine what kind of backup an artifact holds.

Three strategies are tried in order and the first answer other than
UNKNOWN wins:

1. The engine reads the artifact header (authoritative when available)
2. The file name contains 'full', 'diff' or 'log'
3. A sidecar metadata file written when the backup was taken

A strategy that fails counts as UNKNOWN; it never aborts classification.
An overall UNKNOWN must be treated as a failure by callers.
"""

from pathlib import Path

import structlog

from sqlbr.engine import EngineHandle
from sqlbr.metadata import MetadataStore, SidecarMetadataStore
from sqlbr.models import BackupArtifactType

logger = structlog.get_logger()

# Checked in this order
FILE_NAME_MARKERS = (
    ("full", BackupArtifactType.FULL),
    ("diff", BackupArtifactType.DIFFERENTIAL),
    ("log", BackupArtifactType.TRANSACTION_LOG),
)


async def type_from_engine_header(
    path: str | Path,
    engine: EngineHandle | None,
) -> BackupArtifactType:
    """Ask the engine for the type code stored in the artifact header."""
    if engine is None:
        return BackupArtifactType.UNKNOWN

    try:
        code = await engine.read_backup_header_type(Path(path))
    except Exception as e:
        logger.warning(
            "header_classification_failed",
            file_path=str(path),
            error=str(e),
        )
        return BackupArtifactType.UNKNOWN

    return BackupArtifactType.from_code(code)


def type_from_file_name(path: str | Path) -> BackupArtifactType:
    """Guess the type from naming conventions (e.g. 'sales_diff_0300.bak')."""
    name = Path(path).stem.lower()
    for marker, backup_type in FILE_NAME_MARKERS:
        if marker in name:
            return backup_type
    return BackupArtifactType.UNKNOWN


async def type_from_sidecar(
    path: str | Path,
    store: MetadataStore | None = None,
) -> BackupArtifactType:
    """Read the type declared in the artifact's sidecar metadata."""
    store = store or SidecarMetadataStore()

    try:
        metadata = await store.read(path)
    except Exception as e:
        logger.warning(
            "sidecar_classification_failed",
            file_path=str(path),
            error=str(e),
        )
        return BackupArtifactType.UNKNOWN

    if metadata is None:
        return BackupArtifactType.UNKNOWN
    return metadata.artifact_type


async def classify_backup_type(
    path: str | Path,
    engine: EngineHandle | None,
    *,
    store: MetadataStore | None = None,
) -> BackupArtifactType:
    """
    Classify a backup artifact.

    Args:
        path: Path to the backup artifact
        engine: Engine used for header inspection (None skips that strategy)
        store: Metadata store for the sidecar strategy (default: sidecar files)

    Returns:
        The detected type, or UNKNOWN when every strategy came up empty
    """
    backup_type = await type_from_engine_header(path, engine)
    source = "engine_header"

    if backup_type == BackupArtifactType.UNKNOWN:
        backup_type = type_from_file_name(path)
        source = "file_name"

    if backup_type == BackupArtifactType.UNKNOWN:
        backup_type = await type_from_sidecar(path, store)
        source = "sidecar"

    if backup_type == BackupArtifactType.UNKNOWN:
        logger.warning("backup_type_unknown", file_path=str(path))
    else:
        logger.debug(
            "backup_type_classified",
            file_path=str(path),
            backup_type=backup_type.value,
            source=source,
        )

    return backup_type
