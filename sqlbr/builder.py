# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQLBR Builder - Functional builder pattern for configuration.

This module provides pure functions for building RecoveryConfig objects.
Each function takes a config dict and returns a new dict with the
modification applied (immutable updates).
"""

from pathlib import Path
from typing import Any, Callable, Dict, List

from sqlbr.config import RecoveryConfig, RecoveryPolicy


# Type alias for builder functions
ConfigDict = Dict[str, Any]
BuilderFunc = Callable[[ConfigDict], ConfigDict]


def create_empty_config() -> ConfigDict:
    """
    Create an initial configuration dictionary.

    Returns:
        Dict with default values for all configuration fields
    """
    return {
        "metadata_extension": ".meta.json",
        "backup_extensions": [".bak", ".trn"],
        "validate_file_paths": True,
        "write_backup_metadata": True,
        "recovery_policy": RecoveryPolicy.AS_CONSTRUCTED,
        "journal_path": None,
        "percent_complete_notification": 1,
        "checksum": True,
        "continue_after_error": True,
    }


def with_metadata_extension(config: ConfigDict, extension: str) -> ConfigDict:
    """
    Set the suffix used for sidecar metadata files.

    Args:
        config: Current configuration dictionary
        extension: Suffix replacing the artifact extension (e.g. '.meta.json')

    Returns:
        New configuration dictionary with the metadata extension set
    """
    return {**config, "metadata_extension": extension}


def accept_backup_extensions(config: ConfigDict, extensions: List[str]) -> ConfigDict:
    """
    Add file extensions accepted for restore artifacts.

    Args:
        config: Current configuration dictionary
        extensions: Extensions to accept (e.g. ['.dif'])

    Returns:
        New configuration dictionary with the extensions added
    """
    new_extensions = list(config["backup_extensions"])
    for extension in extensions:
        if extension not in new_extensions:
            new_extensions.append(extension)
    return {**config, "backup_extensions": new_extensions}


def last_step_recovers(config: ConfigDict) -> ConfigDict:
    """
    Let the recovery job derive finalization from sequence position.

    Every restore except the last is forced to keep the database in the
    restoring state; the last one brings it online.

    Args:
        config: Current configuration dictionary

    Returns:
        New configuration dictionary with the LAST_STEP_RECOVERS policy
    """
    return {**config, "recovery_policy": RecoveryPolicy.LAST_STEP_RECOVERS}


def as_constructed(config: ConfigDict) -> ConfigDict:
    """
    Keep each restore's keep_restoring flag exactly as constructed.

    This is the default.

    Args:
        config: Current configuration dictionary

    Returns:
        New configuration dictionary with the AS_CONSTRUCTED policy
    """
    return {**config, "recovery_policy": RecoveryPolicy.AS_CONSTRUCTED}


def enable_journal(config: ConfigDict, journal_path: Path | str) -> ConfigDict:
    """
    Record finished jobs and operations in a SQLite journal.

    Args:
        config: Current configuration dictionary
        journal_path: Path to the journal database file

    Returns:
        New configuration dictionary with the journal enabled
    """
    path = Path(journal_path) if isinstance(journal_path, str) else journal_path
    return {**config, "journal_path": path}


def with_percent_notification(config: ConfigDict, percent: int) -> ConfigDict:
    """
    Set how often (in percent) the engine should report progress.

    Args:
        config: Current configuration dictionary
        percent: Notification step, 1-100

    Returns:
        New configuration dictionary with the notification step set
    """
    if not 1 <= percent <= 100:
        raise ValueError(f"percent_complete_notification must be 1-100, got {percent}")
    return {**config, "percent_complete_notification": percent}


def disable_path_validation(config: ConfigDict) -> ConfigDict:
    """
    Skip existence and extension checks on restore artifacts.

    Useful when the artifact lives on a path only the engine can see.

    Args:
        config: Current configuration dictionary

    Returns:
        New configuration dictionary with path validation disabled
    """
    return {**config, "validate_file_paths": False}


def disable_metadata(config: ConfigDict) -> ConfigDict:
    """
    Do not write sidecar metadata after backups.

    WARNING: artifacts whose names and headers do not reveal their type
    can then no longer be classified.

    Args:
        config: Current configuration dictionary

    Returns:
        New configuration dictionary with metadata writing disabled
    """
    import sys

    print(
        "⚠️  WARNING: Backup metadata is disabled. Classification may fail.",
        file=sys.stderr,
    )
    return {**config, "write_backup_metadata": False}


def build_config(config_dict: ConfigDict) -> RecoveryConfig:
    """
    Validate and build an immutable RecoveryConfig from a configuration dictionary.

    Args:
        config_dict: Configuration dictionary built using builder functions

    Returns:
        Validated, immutable RecoveryConfig instance

    Raises:
        ConfigurationError: If validation fails
    """
    return RecoveryConfig(**config_dict)


def pipe(*funcs: BuilderFunc) -> BuilderFunc:
    """
    Compose multiple builder functions into a single function.

    This allows a more readable pipeline style:

        config = pipe(
            last_step_recovers,
            lambda c: enable_journal(c, "/var/lib/sqlbr/journal.db"),
        )(create_empty_config())

    Args:
        *funcs: Builder functions to compose

    Returns:
        A single function that applies all functions in sequence
    """

    def composed(config: ConfigDict) -> ConfigDict:
        result = config
        for func in funcs:
            result = func(result)
        return result

    return composed


def build_from_steps(*steps: BuilderFunc) -> RecoveryConfig:
    """
    Build config by applying a sequence of builder functions.

    This is a convenience function that combines pipe() and build_config().

    Example:
        config = build_from_steps(
            last_step_recovers,
            lambda c: accept_backup_extensions(c, [".dif"]),
        )

    Args:
        *steps: Builder functions to apply in sequence

    Returns:
        Validated, immutable RecoveryConfig instance
    """
    return build_config(pipe(*steps)(create_empty_config()))


def create_config(
    *,
    metadata_extension: str | None = None,
    backup_extensions: List[str] | None = None,
    recovery_policy: str | RecoveryPolicy = RecoveryPolicy.AS_CONSTRUCTED,
    journal_path: str | Path | None = None,
    validate_file_paths: bool = True,
    write_backup_metadata: bool = True,
    **kwargs: Any,
) -> RecoveryConfig:
    """
    Create sqlbr configuration from simple parameters.

    This is the recommended user-facing API for creating configurations.

    Args:
        metadata_extension: Sidecar suffix (default: ".meta.json")
        backup_extensions: Extra extensions accepted for restore artifacts
        recovery_policy: "as_constructed" (default) or "last_step_recovers"
        journal_path: Path to the SQLite journal (optional)
        validate_file_paths: Check restore artifacts before use (default: True)
        write_backup_metadata: Write sidecar metadata after backups (default: True)
        **kwargs: Additional configuration options

    Returns:
        Validated, immutable RecoveryConfig instance

    Example:
        config = create_config(
            recovery_policy="last_step_recovers",
            journal_path="/var/lib/sqlbr/journal.db",
        )
    """
    config_dict = create_empty_config()

    if metadata_extension:
        config_dict = with_metadata_extension(config_dict, metadata_extension)

    if backup_extensions:
        config_dict = accept_backup_extensions(config_dict, backup_extensions)

    if isinstance(recovery_policy, str):
        recovery_policy = RecoveryPolicy(recovery_policy.lower())
    if recovery_policy == RecoveryPolicy.LAST_STEP_RECOVERS:
        config_dict = last_step_recovers(config_dict)
    else:
        config_dict = as_constructed(config_dict)

    if journal_path:
        config_dict = enable_journal(config_dict, journal_path)

    if not validate_file_paths:
        config_dict = disable_path_validation(config_dict)

    if not write_backup_metadata:
        config_dict = disable_metadata(config_dict)

    # Apply any additional kwargs
    for key, value in kwargs.items():
        if key in config_dict:
            config_dict[key] = value

    return build_config(config_dict)
