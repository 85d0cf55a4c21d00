# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Artifact path checks shared by backup and restore operations.
"""

from pathlib import Path
from typing import List

from sqlbr.errors import explain_invalid_artifact_extension
from sqlbr.exceptions import ArtifactPathError


def require_file_path(file_path: str | Path | None) -> Path:
    """
    Reject a missing or blank artifact path.

    Returns:
        The path as a Path object
    """
    if file_path is None or not str(file_path).strip():
        raise ArtifactPathError("File path cannot be null or empty")
    return Path(file_path)


def is_backup_file(file_path: Path, extensions: List[str]) -> bool:
    """Check the extension case-insensitively."""
    suffix = file_path.suffix.lower()
    return any(suffix == ext.lower() for ext in extensions)


def validate_backup_file(file_path: str | Path | None, extensions: List[str]) -> Path:
    """
    Validate that a restore artifact can be used.

    Args:
        file_path: Path to the backup artifact
        extensions: Accepted extensions (e.g. ['.bak', '.trn'])

    Returns:
        The validated path

    Raises:
        ArtifactPathError: If the path is blank, missing, or not a backup file
    """
    path = require_file_path(file_path)

    if not path.is_file():
        raise ArtifactPathError(
            "The backup file does not exist",
            details={"file_path": str(path)},
        )

    if not is_backup_file(path, extensions):
        raise ArtifactPathError(
            explain_invalid_artifact_extension(str(path), extensions),
            details={"file_path": str(path)},
        )

    return path
