# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQLBR Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation so a recovery job
cannot change behaviour halfway through a restore sequence.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List


class RecoveryPolicy(str, Enum):
    """How a recovery job decides which restore step finalizes recovery."""

    # Each restore keeps the keep_restoring flag it was constructed with
    AS_CONSTRUCTED = "as_constructed"
    # Every step but the last keeps restoring; the last step recovers
    LAST_STEP_RECOVERS = "last_step_recovers"


def _validate_extension(extension: str) -> bool:
    """Validate a file extension such as '.bak' or '.meta.json'."""
    if not extension or not extension.startswith("."):
        return False
    if len(extension) < 2 or extension.endswith("."):
        return False
    # Path separators would escape the artifact's directory
    return "/" not in extension and "\\" not in extension


@dataclass(frozen=True)
class RecoveryConfig:
    """
    Immutable configuration for backup and restore orchestration.

    The defaults keep the classic restore behaviour: every restore
    keeps the database restoring unless told otherwise, checksums are on
    and provenance metadata is written after each backup.
    """

    # Suffix that replaces an artifact's extension to form its sidecar path
    metadata_extension: str = ".meta.json"

    # Extensions accepted for restore artifacts
    backup_extensions: List[str] = field(default_factory=lambda: [".bak", ".trn"])

    # Check that restore artifacts exist and carry a backup extension
    validate_file_paths: bool = True

    # Write a sidecar provenance record after each successful backup
    write_backup_metadata: bool = True

    # Which step of a recovery job finalizes recovery
    recovery_policy: RecoveryPolicy = RecoveryPolicy.AS_CONSTRUCTED

    # SQLite journal of finished jobs and operations (disabled when None)
    journal_path: Path | None = None

    # Progress notification granularity requested from the engine (percent)
    percent_complete_notification: int = 1

    # Ask the engine to verify page checksums during backups
    checksum: bool = True

    # Ask the engine to keep going past recoverable media errors
    continue_after_error: bool = True

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        if not _validate_extension(self.metadata_extension):
            errors.append(f"Invalid metadata_extension: {self.metadata_extension!r}")

        if not self.backup_extensions:
            errors.append("backup_extensions must not be empty")
        for extension in self.backup_extensions:
            if not _validate_extension(extension):
                errors.append(f"Invalid backup extension: {extension!r}")

        if self.metadata_extension.lower() in (e.lower() for e in self.backup_extensions):
            errors.append("metadata_extension must differ from every backup extension")

        if not 1 <= self.percent_complete_notification <= 100:
            errors.append(
                "percent_complete_notification must be 1-100, "
                f"got {self.percent_complete_notification}"
            )

        if not isinstance(self.recovery_policy, RecoveryPolicy):
            errors.append(f"Invalid recovery_policy: {self.recovery_policy!r}")

        # Raise all errors at once
        if errors:
            from sqlbr.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    def with_updates(self, **kwargs) -> "RecoveryConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return RecoveryConfig(**current)


DEFAULT_CONFIG = RecoveryConfig()
