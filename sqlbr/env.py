# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers and recovery profiles.

These helpers are small, convenient wrappers around create_config() and
RecoveryConfig.with_updates(). They make it easy to:

- Build a configuration from environment variables
- Apply ready-made recovery profiles
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from sqlbr.builder import create_config
from sqlbr.config import RecoveryConfig, RecoveryPolicy
from sqlbr.errors import (
    explain_invalid_bool_env,
    explain_invalid_percent_notification_env,
    explain_invalid_recovery_policy_env,
)
from sqlbr.exceptions import ConfigurationError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(explain_invalid_bool_env(name, value))


def _parse_recovery_policy(value: str | None) -> RecoveryPolicy:
    if not value:
        return RecoveryPolicy.AS_CONSTRUCTED
    try:
        return RecoveryPolicy(value.strip().lower())
    except ValueError as exc:
        raise ConfigurationError(explain_invalid_recovery_policy_env(value)) from exc


def _parse_percent_notification(value: str | None) -> int:
    if not value:
        return 1
    try:
        percent = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_percent_notification_env(value)) from exc
    if not 1 <= percent <= 100:
        raise ConfigurationError(explain_invalid_percent_notification_env(value))
    return percent


def _parse_extensions(value: str | None) -> List[str]:
    if not value:
        return []
    extensions = []
    for raw in value.split(","):
        ext = raw.strip()
        if not ext:
            continue
        extensions.append(ext if ext.startswith(".") else f".{ext}")
    return extensions


def create_config_from_env() -> RecoveryConfig:
    """
    Create a RecoveryConfig from environment variables.

    Optional environment variables:
        - SQLBR_METADATA_EXTENSION: Sidecar suffix (default: .meta.json)
        - SQLBR_BACKUP_EXTENSIONS: Extra comma-separated extensions, e.g. ".dif,.log"
        - SQLBR_RECOVERY_POLICY: 'as_constructed' | 'last_step_recovers'
        - SQLBR_JOURNAL_PATH: Path to the SQLite journal (disabled when unset)
        - SQLBR_VALIDATE_PATHS: Boolean (default: true)
        - SQLBR_WRITE_METADATA: Boolean (default: true)
        - SQLBR_PERCENT_NOTIFICATION: Integer 1-100 (default: 1)
    """

    journal_env = os.getenv("SQLBR_JOURNAL_PATH")

    return create_config(
        metadata_extension=os.getenv("SQLBR_METADATA_EXTENSION") or None,
        backup_extensions=_parse_extensions(os.getenv("SQLBR_BACKUP_EXTENSIONS")),
        recovery_policy=_parse_recovery_policy(os.getenv("SQLBR_RECOVERY_POLICY")),
        journal_path=Path(journal_env) if journal_env else None,
        validate_file_paths=_parse_bool(
            "SQLBR_VALIDATE_PATHS", os.getenv("SQLBR_VALIDATE_PATHS"), True
        ),
        write_backup_metadata=_parse_bool(
            "SQLBR_WRITE_METADATA", os.getenv("SQLBR_WRITE_METADATA"), True
        ),
        percent_complete_notification=_parse_percent_notification(
            os.getenv("SQLBR_PERCENT_NOTIFICATION")
        ),
    )


# ============================================================================
# Profiles
# ============================================================================

def strict_recovery(config: RecoveryConfig) -> RecoveryConfig:
    """
    Apply a strict, position-aware recovery profile.

    - Only the last restore step recovers the database
    - Restore artifacts are always validated
    - Backups always write provenance metadata
    """

    return config.with_updates(
        recovery_policy=RecoveryPolicy.LAST_STEP_RECOVERS,
        validate_file_paths=True,
        write_backup_metadata=True,
    )


def reference_behavior(config: RecoveryConfig) -> RecoveryConfig:
    """
    Restore the classic, per-step finalization behaviour.

    - Each restore keeps the keep_restoring flag it was built with
    - Engine progress is reported every percent
    """

    return config.with_updates(
        recovery_policy=RecoveryPolicy.AS_CONSTRUCTED,
        percent_complete_notification=1,
    )
