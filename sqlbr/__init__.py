# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQL Backup/Restore - Orchestration of database backups and multi-step restores.

Runs full, differential and transaction log backups through an external
engine, records provenance next to each artifact, classifies artifacts
of unknown type and restores them in the one legal order while holding
the target database in single-user mode. Package name: sqlbr.
"""

__version__ = "0.1.0"

# Configuration creation (user-facing API)
from sqlbr.builder import create_config

# Environment-based configuration and profiles
from sqlbr.env import (
    create_config_from_env,
    reference_behavior,
    strict_recovery,
)

from sqlbr.classifier import classify_backup_type
from sqlbr.config import RecoveryConfig, RecoveryPolicy
from sqlbr.models import (
    AccessMode,
    ArtifactMetadata,
    BackupArtifactType,
    DatabaseStatus,
    Device,
    EventKind,
    OperationEvent,
    OperationStatus,
)
from sqlbr.operations import (
    BackupOperation,
    RestoreOperation,
    differential_backup,
    differential_restore,
    full_backup,
    full_restore,
    transaction_log_backup,
    transaction_log_restore,
)
from sqlbr.recovery import RecoveryJob

__all__ = [
    # Version
    "__version__",
    # Configuration
    "create_config",
    "create_config_from_env",
    "reference_behavior",
    "strict_recovery",
    "RecoveryConfig",
    "RecoveryPolicy",
    # Data model
    "AccessMode",
    "ArtifactMetadata",
    "BackupArtifactType",
    "DatabaseStatus",
    "Device",
    "EventKind",
    "OperationEvent",
    "OperationStatus",
    # Operations
    "BackupOperation",
    "RestoreOperation",
    "full_backup",
    "differential_backup",
    "transaction_log_backup",
    "full_restore",
    "differential_restore",
    "transaction_log_restore",
    # Orchestration
    "RecoveryJob",
    "classify_backup_type",
]
