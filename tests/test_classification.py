# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tests for backup artifact classification.

Strategies are tried in order: engine header, file name, sidecar file.
"""

from datetime import datetime, UTC
from pathlib import Path

import pytest

from sqlbr.classifier import (
    classify_backup_type,
    type_from_engine_header,
    type_from_file_name,
    type_from_sidecar,
)
from sqlbr.metadata import SidecarMetadataStore
from sqlbr.models import ArtifactMetadata, BackupArtifactType


async def _write_sidecar(artifact: Path, backup_type: str) -> None:
    await SidecarMetadataStore().write(
        ArtifactMetadata(
            database_name="sales",
            backup_type=backup_type,
            backup_file_path=str(artifact),
            created_at=datetime.now(UTC).isoformat(),
        )
    )


# ============================================================================
# Strategy precedence
# ============================================================================

@pytest.mark.asyncio
async def test_engine_header_beats_file_name(engine, make_artifact):
    artifact = make_artifact("nightly-diff-2024.bak")
    engine.headers[artifact.name] = 1

    assert await classify_backup_type(artifact, engine) == BackupArtifactType.FULL


@pytest.mark.asyncio
async def test_file_name_used_when_header_not_found(engine, make_artifact):
    artifact = make_artifact("nightly-diff-2024.bak")

    assert await classify_backup_type(artifact, engine) == BackupArtifactType.DIFFERENTIAL


@pytest.mark.asyncio
async def test_unknown_when_every_strategy_comes_up_empty(engine, make_artifact):
    artifact = make_artifact("archive_0001.bak")

    assert await classify_backup_type(artifact, engine) == BackupArtifactType.UNKNOWN


@pytest.mark.asyncio
async def test_unrecognized_header_code_falls_through(engine, make_artifact):
    artifact = make_artifact("sales_log_0100.trn")
    engine.headers[artifact.name] = 7

    assert await classify_backup_type(artifact, engine) == BackupArtifactType.TRANSACTION_LOG


@pytest.mark.asyncio
async def test_header_failure_is_treated_as_unknown(engine, make_artifact):
    artifact = make_artifact("sales_full.bak")
    engine.header_error = RuntimeError("cannot open backup device")

    assert await type_from_engine_header(artifact, engine) == BackupArtifactType.UNKNOWN
    assert await classify_backup_type(artifact, engine) == BackupArtifactType.FULL


@pytest.mark.asyncio
async def test_sidecar_used_as_last_resort(engine, make_artifact):
    artifact = make_artifact("archive_0001.bak")
    await _write_sidecar(artifact, "Differential")

    assert await classify_backup_type(artifact, engine) == BackupArtifactType.DIFFERENTIAL


@pytest.mark.asyncio
async def test_sidecar_ignored_when_file_name_decides(engine, make_artifact):
    artifact = make_artifact("sales_full.bak")
    await _write_sidecar(artifact, "TransactionLog")

    assert await classify_backup_type(artifact, engine) == BackupArtifactType.FULL


@pytest.mark.asyncio
async def test_no_engine_skips_header_lookup(make_artifact):
    artifact = make_artifact("sales_log_0100.trn")

    assert await classify_backup_type(artifact, None) == BackupArtifactType.TRANSACTION_LOG


# ============================================================================
# Individual strategies
# ============================================================================

@pytest.mark.parametrize(
    "name, expected",
    [
        ("SALES_FULL.BAK", BackupArtifactType.FULL),
        ("sales-Diff-0300.bak", BackupArtifactType.DIFFERENTIAL),
        ("sales_log_0100.trn", BackupArtifactType.TRANSACTION_LOG),
        # 'full' is checked before 'log'
        ("full_after_login.bak", BackupArtifactType.FULL),
        ("archive.bak", BackupArtifactType.UNKNOWN),
    ],
)
def test_type_from_file_name(name, expected):
    assert type_from_file_name(Path("/backups") / name) == expected


def test_file_name_ignores_directories():
    assert type_from_file_name("/full/archive.bak") == BackupArtifactType.UNKNOWN


@pytest.mark.asyncio
async def test_sidecar_with_unparseable_type_is_unknown(make_artifact):
    artifact = make_artifact("archive_0001.bak")
    await _write_sidecar(artifact, "Incremental")

    assert await type_from_sidecar(artifact) == BackupArtifactType.UNKNOWN


@pytest.mark.asyncio
async def test_corrupt_sidecar_is_unknown(make_artifact, temp_dir: Path):
    artifact = make_artifact("archive_0001.bak")
    (temp_dir / "archive_0001.meta.json").write_text("{not json")

    assert await type_from_sidecar(artifact) == BackupArtifactType.UNKNOWN


@pytest.mark.asyncio
async def test_missing_sidecar_is_unknown(make_artifact):
    assert await type_from_sidecar(make_artifact("archive_0001.bak")) == BackupArtifactType.UNKNOWN


# ============================================================================
# Type codes and parsing
# ============================================================================

@pytest.mark.parametrize(
    "code, expected",
    [
        (1, BackupArtifactType.FULL),
        (2, BackupArtifactType.DIFFERENTIAL),
        (3, BackupArtifactType.TRANSACTION_LOG),
        (0, BackupArtifactType.UNKNOWN),
        (5, BackupArtifactType.UNKNOWN),
        (None, BackupArtifactType.UNKNOWN),
    ],
)
def test_from_code(code, expected):
    assert BackupArtifactType.from_code(code) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Full", BackupArtifactType.FULL),
        ("differential", BackupArtifactType.DIFFERENTIAL),
        ("Transaction Log", BackupArtifactType.TRANSACTION_LOG),
        ("transaction_log", BackupArtifactType.TRANSACTION_LOG),
        ("", BackupArtifactType.UNKNOWN),
        ("Snapshot", BackupArtifactType.UNKNOWN),
    ],
)
def test_parse(text, expected):
    assert BackupArtifactType.parse(text) == expected


def test_restore_priority_orders_types():
    ordered = sorted(
        [
            BackupArtifactType.TRANSACTION_LOG,
            BackupArtifactType.FULL,
            BackupArtifactType.DIFFERENTIAL,
        ],
        key=lambda t: t.restore_priority,
    )
    assert ordered == [
        BackupArtifactType.FULL,
        BackupArtifactType.DIFFERENTIAL,
        BackupArtifactType.TRANSACTION_LOG,
    ]

    with pytest.raises(ValueError):
        BackupArtifactType.UNKNOWN.restore_priority
