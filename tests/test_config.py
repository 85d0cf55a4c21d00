# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tests for configuration, the functional builder and environment loading.
"""

from pathlib import Path

import pytest

from sqlbr.builder import (
    accept_backup_extensions,
    build_from_steps,
    create_config,
    create_empty_config,
    enable_journal,
    last_step_recovers,
    pipe,
    with_percent_notification,
)
from sqlbr.config import DEFAULT_CONFIG, RecoveryConfig, RecoveryPolicy
from sqlbr.env import create_config_from_env, reference_behavior, strict_recovery
from sqlbr.exceptions import ConfigurationError


# ============================================================================
# RecoveryConfig
# ============================================================================

def test_defaults_keep_each_restore_flag():
    assert DEFAULT_CONFIG.recovery_policy == RecoveryPolicy.AS_CONSTRUCTED
    assert DEFAULT_CONFIG.metadata_extension == ".meta.json"
    assert DEFAULT_CONFIG.backup_extensions == [".bak", ".trn"]
    assert DEFAULT_CONFIG.journal_path is None
    assert DEFAULT_CONFIG.write_backup_metadata is True


def test_invalid_values_are_reported_together():
    with pytest.raises(ConfigurationError) as exc_info:
        RecoveryConfig(
            metadata_extension="meta",
            backup_extensions=["bak"],
            percent_complete_notification=0,
        )

    errors = exc_info.value.details["errors"]
    assert len(errors) == 3


def test_metadata_extension_must_differ_from_backup_extensions():
    with pytest.raises(ConfigurationError):
        RecoveryConfig(metadata_extension=".BAK")


def test_empty_backup_extensions_are_rejected():
    with pytest.raises(ConfigurationError):
        RecoveryConfig(backup_extensions=[])


def test_config_is_frozen():
    with pytest.raises(AttributeError):
        DEFAULT_CONFIG.checksum = False


def test_with_updates_returns_validated_copy():
    updated = DEFAULT_CONFIG.with_updates(recovery_policy=RecoveryPolicy.LAST_STEP_RECOVERS)

    assert updated.recovery_policy == RecoveryPolicy.LAST_STEP_RECOVERS
    assert DEFAULT_CONFIG.recovery_policy == RecoveryPolicy.AS_CONSTRUCTED

    with pytest.raises(ConfigurationError):
        DEFAULT_CONFIG.with_updates(percent_complete_notification=101)


# ============================================================================
# Builder
# ============================================================================

def test_builder_steps_do_not_mutate_input():
    base = create_empty_config()
    extended = accept_backup_extensions(base, [".dif", ".bak"])

    assert base["backup_extensions"] == [".bak", ".trn"]
    assert extended["backup_extensions"] == [".bak", ".trn", ".dif"]


def test_build_from_steps(temp_dir: Path):
    config = build_from_steps(
        last_step_recovers,
        lambda c: enable_journal(c, str(temp_dir / "journal.db")),
        lambda c: with_percent_notification(c, 5),
    )

    assert config.recovery_policy == RecoveryPolicy.LAST_STEP_RECOVERS
    assert config.journal_path == temp_dir / "journal.db"
    assert config.percent_complete_notification == 5


def test_pipe_applies_in_order():
    step = pipe(
        lambda c: with_percent_notification(c, 5),
        lambda c: with_percent_notification(c, 25),
    )

    assert step(create_empty_config())["percent_complete_notification"] == 25


def test_percent_notification_is_range_checked():
    with pytest.raises(ValueError):
        with_percent_notification(create_empty_config(), 0)


def test_create_config_accepts_policy_names(temp_dir: Path):
    config = create_config(
        recovery_policy="LAST_STEP_RECOVERS",
        journal_path=temp_dir / "journal.db",
        backup_extensions=[".dif"],
        checksum=False,
    )

    assert config.recovery_policy == RecoveryPolicy.LAST_STEP_RECOVERS
    assert config.journal_path == temp_dir / "journal.db"
    assert ".dif" in config.backup_extensions
    assert config.checksum is False


def test_disabling_metadata_warns(capsys):
    config = create_config(write_backup_metadata=False)

    assert config.write_backup_metadata is False
    assert "metadata is disabled" in capsys.readouterr().err


# ============================================================================
# Environment and profiles
# ============================================================================

def test_config_from_env(monkeypatch, temp_dir: Path):
    monkeypatch.setenv("SQLBR_RECOVERY_POLICY", "last_step_recovers")
    monkeypatch.setenv("SQLBR_BACKUP_EXTENSIONS", "dif, .log")
    monkeypatch.setenv("SQLBR_JOURNAL_PATH", str(temp_dir / "journal.db"))
    monkeypatch.setenv("SQLBR_VALIDATE_PATHS", "no")
    monkeypatch.setenv("SQLBR_PERCENT_NOTIFICATION", "10")

    config = create_config_from_env()

    assert config.recovery_policy == RecoveryPolicy.LAST_STEP_RECOVERS
    assert config.backup_extensions == [".bak", ".trn", ".dif", ".log"]
    assert config.journal_path == temp_dir / "journal.db"
    assert config.validate_file_paths is False
    assert config.percent_complete_notification == 10


def test_config_from_empty_env(monkeypatch):
    for name in (
        "SQLBR_METADATA_EXTENSION",
        "SQLBR_BACKUP_EXTENSIONS",
        "SQLBR_RECOVERY_POLICY",
        "SQLBR_JOURNAL_PATH",
        "SQLBR_VALIDATE_PATHS",
        "SQLBR_WRITE_METADATA",
        "SQLBR_PERCENT_NOTIFICATION",
    ):
        monkeypatch.delenv(name, raising=False)

    assert create_config_from_env() == RecoveryConfig()


@pytest.mark.parametrize(
    "name, value",
    [
        ("SQLBR_RECOVERY_POLICY", "whenever"),
        ("SQLBR_VALIDATE_PATHS", "maybe"),
        ("SQLBR_PERCENT_NOTIFICATION", "ten"),
        ("SQLBR_PERCENT_NOTIFICATION", "250"),
    ],
)
def test_invalid_env_values_are_rejected(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError) as exc_info:
        create_config_from_env()

    assert name in str(exc_info.value)


def test_profiles():
    strict = strict_recovery(RecoveryConfig(validate_file_paths=False))
    assert strict.recovery_policy == RecoveryPolicy.LAST_STEP_RECOVERS
    assert strict.validate_file_paths is True

    reference = reference_behavior(strict)
    assert reference.recovery_policy == RecoveryPolicy.AS_CONSTRUCTED
