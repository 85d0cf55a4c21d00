# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for sqlbr.

These helpers centralize wording for common configuration errors so that
all modules present consistent, actionable messages.
"""

from typing import List


def explain_invalid_recovery_policy_env(value: str | None) -> str:
    """
    Explain that SQLBR_RECOVERY_POLICY is invalid.
    """

    return (
        f"Invalid SQLBR_RECOVERY_POLICY value: {value!r}. "
        "Expected 'as_constructed' or 'last_step_recovers'."
    )


def explain_invalid_bool_env(name: str, value: str | None) -> str:
    """
    Explain that a boolean environment variable is invalid.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "Expected one of: 'true', 'false', '1', '0', 'yes', 'no'."
    )


def explain_invalid_percent_notification_env(value: str | None) -> str:
    """
    Explain that SQLBR_PERCENT_NOTIFICATION is invalid.
    """

    return (
        f"Invalid SQLBR_PERCENT_NOTIFICATION value: {value!r}. "
        "It must be an integer percentage between 1 and 100."
    )


def explain_unclassifiable_artifact(path: str) -> str:
    """
    Explain that no classification strategy recognized an artifact.
    """

    return (
        f"Unable to determine the backup type of {path!r}. "
        "The engine could not read its header, the file name contains none of "
        "'full', 'diff' or 'log', and no sidecar metadata file was found. "
        "Register the restore explicitly with full_restore(), differential_restore() "
        "or transaction_log_restore()."
    )


def explain_invalid_artifact_extension(path: str, allowed: List[str]) -> str:
    """
    Explain that an artifact does not carry a recognized backup extension.
    """

    return (
        f"Invalid file type for {path!r}. Only backup files are supported "
        f"(extensions: {', '.join(allowed)}). "
        "Adjust backup_extensions in the configuration to accept other names."
    )
