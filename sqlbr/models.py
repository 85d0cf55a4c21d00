# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQLBR Models - Shared data structures for backup and restore operations.

Enumerations, device descriptors, engine options and the provenance
record written next to every backup artifact.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict


class BackupArtifactType(str, Enum):
    """Category of a backup artifact."""

    UNKNOWN = "Unknown"
    FULL = "Full"
    DIFFERENTIAL = "Differential"
    TRANSACTION_LOG = "TransactionLog"

    @property
    def code(self) -> int:
        """Numeric type code as reported in backup headers."""
        return _TYPE_CODES[self]

    @property
    def label(self) -> str:
        """Human-readable name (e.g. 'Transaction Log')."""
        return _TYPE_LABELS[self]

    @property
    def restore_priority(self) -> int:
        """
        Position of this type in the restore sequence.

        Full restores run first, then the differential, then logs.

        Raises:
            ValueError: For UNKNOWN, which never takes part in a restore
        """
        try:
            return _RESTORE_PRIORITY[self]
        except KeyError:
            raise ValueError(f"{self.value} backups have no restore priority")

    @classmethod
    def from_code(cls, code: int | None) -> "BackupArtifactType":
        """Map a header type code (1, 2, 3) to a type; anything else is UNKNOWN."""
        for member, member_code in _TYPE_CODES.items():
            if member_code == code and member is not cls.UNKNOWN:
                return member
        return cls.UNKNOWN

    @classmethod
    def parse(cls, text: str | None) -> "BackupArtifactType":
        """
        Parse a declared type string.

        Accepts enum values and labels case-insensitively, with or
        without the space in 'Transaction Log'. Unrecognized strings
        yield UNKNOWN rather than raising.
        """
        if not text:
            return cls.UNKNOWN
        normalized = text.strip().lower().replace(" ", "").replace("_", "")
        for member in cls:
            if normalized in (member.value.lower(), member.label.lower().replace(" ", "")):
                return member
        return cls.UNKNOWN


_TYPE_CODES = {
    BackupArtifactType.UNKNOWN: 0,
    BackupArtifactType.FULL: 1,
    BackupArtifactType.DIFFERENTIAL: 2,
    BackupArtifactType.TRANSACTION_LOG: 3,
}

_TYPE_LABELS = {
    BackupArtifactType.UNKNOWN: "Unknown",
    BackupArtifactType.FULL: "Full",
    BackupArtifactType.DIFFERENTIAL: "Differential",
    BackupArtifactType.TRANSACTION_LOG: "Transaction Log",
}

_RESTORE_PRIORITY = {
    BackupArtifactType.FULL: 0,
    BackupArtifactType.DIFFERENTIAL: 1,
    BackupArtifactType.TRANSACTION_LOG: 2,
}


class OperationStatus(str, Enum):
    """Lifecycle of a single backup or restore operation."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class DatabaseStatus(str, Enum):
    """Serving state of a database as reported by the engine."""

    NORMAL = "normal"
    RESTORING = "restoring"  # Waiting for further restore steps
    OFFLINE = "offline"


class AccessMode(str, Enum):
    """Database user access mode."""

    SINGLE = "single"  # One administrative session
    MULTIPLE = "multiple"  # Normal concurrent client access


class DeviceKind(str, Enum):
    """Kind of storage device a backup is streamed to or from."""

    FILE = "file"


@dataclass(frozen=True)
class Device:
    """A named storage location used by one operation."""

    name: str
    kind: DeviceKind = DeviceKind.FILE


class BackupAction(str, Enum):
    """What a backup call captures."""

    DATABASE = "database"
    LOG = "log"


class RestoreAction(str, Enum):
    """What a restore call applies."""

    DATABASE = "database"
    LOG = "log"


@dataclass(frozen=True)
class BackupOptions:
    """Engine options for one backup call."""

    action: BackupAction = BackupAction.DATABASE
    incremental: bool = False
    initialize: bool = False  # Overwrite existing backup sets on the device
    checksum: bool = True
    truncate_log: bool = True
    backup_set_name: str = ""
    backup_set_description: str = ""
    percent_complete_notification: int = 1
    continue_after_error: bool = True


@dataclass(frozen=True)
class RestoreOptions:
    """Engine options for one restore call."""

    action: RestoreAction = RestoreAction.DATABASE
    replace_database: bool = False
    # Leave the database in the restoring state for further steps
    no_recovery: bool = True
    percent_complete_notification: int = 1
    continue_after_error: bool = True


class EventKind(str, Enum):
    """Kind of notification raised while an engine call runs."""

    PERCENT_COMPLETE = "percent_complete"
    INFORMATION = "information"
    COMPLETE = "complete"


@dataclass(frozen=True)
class EngineNotice:
    """A notification as reported by the engine."""

    kind: EventKind
    percent: int | None = None
    message: str | None = None


@dataclass(frozen=True)
class OperationEvent:
    """An engine notice stamped with the operation that produced it."""

    kind: EventKind
    operation_id: str
    database_name: str
    artifact_type: BackupArtifactType
    is_restore: bool
    percent: int | None = None
    message: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class ArtifactMetadata:
    """Provenance record for a backup artifact."""

    database_name: str
    backup_type: str
    backup_file_path: str
    created_at: str  # ISO 8601
    description: str = ""

    @property
    def artifact_type(self) -> BackupArtifactType:
        return BackupArtifactType.parse(self.backup_type)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArtifactMetadata":
        """
        Build a record from a parsed sidecar document.

        Raises:
            ValueError: If a required field is missing
        """
        missing = [
            name
            for name in ("database_name", "backup_type", "backup_file_path", "created_at")
            if name not in data
        ]
        if missing:
            raise ValueError(f"metadata is missing fields: {', '.join(missing)}")

        return cls(
            database_name=str(data["database_name"]),
            backup_type=str(data["backup_type"]),
            backup_file_path=str(data["backup_file_path"]),
            created_at=str(data["created_at"]),
            description=str(data.get("description", "")),
        )
