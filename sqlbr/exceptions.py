# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQL Backup/Restore Exceptions - Custom exceptions for the sqlbr package.

Every error carries a ``details`` dict (database name, operation id, step)
so callers can log or surface a precise diagnosis.
"""


class SqlBrError(Exception):
    """Base exception for all sqlbr errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# ============================================================================
# Precondition errors - raised before any engine call, never retried
# ============================================================================


class PreconditionError(SqlBrError):
    """Raised when a required argument or state precondition does not hold."""

    pass


class NoOperationsError(PreconditionError):
    """Raised when a recovery job is executed with no registered operations."""

    pass


class DuplicateOperationError(PreconditionError):
    """Raised when a second full or differential restore is registered."""

    pass


class DatabaseMismatchError(PreconditionError):
    """Raised when an operation targets a different database than its job."""

    pass


class ArtifactPathError(PreconditionError):
    """Raised when a backup artifact path is blank, missing or of the wrong type."""

    pass


class ClassificationError(PreconditionError):
    """Raised when a backup artifact's type cannot be determined."""

    pass


# ============================================================================
# Configuration errors
# ============================================================================


class ConfigurationError(SqlBrError):
    """Raised when configuration is invalid."""

    pass


class DeviceConfigurationError(ConfigurationError):
    """Raised when an operation ends up with no backup device configured."""

    pass


# ============================================================================
# Execution outcomes
# ============================================================================


class OperationFailedError(SqlBrError):
    """Raised when the engine reports a failed backup or restore call."""

    pass


class BackupError(OperationFailedError):
    """Raised when backup operations fail."""

    pass


class RestoreError(OperationFailedError):
    """Raised when restore operations fail."""

    pass


class OperationCancelledError(SqlBrError):
    """Raised when a cancellation request stops an operation or job."""

    pass


class RecoveryJobError(SqlBrError):
    """Raised when a step of a recovery job fails; the step error is the cause."""

    pass


# ============================================================================
# Side-channel errors
# ============================================================================


class MetadataError(SqlBrError):
    """Raised when sidecar metadata cannot be read or written."""

    pass


class MetadataWriteError(MetadataError):
    """Raised when provenance metadata could not be written after a backup."""

    pass


class JournalError(SqlBrError):
    """Raised when journal operations fail."""

    pass
