# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tests for sidecar provenance metadata.
"""

import json
from pathlib import Path

import pytest

from sqlbr.exceptions import MetadataError
from sqlbr.metadata import (
    SidecarMetadataStore,
    backup_type_from_options,
    build_backup_metadata,
    sidecar_path,
)
from sqlbr.models import ArtifactMetadata, BackupAction, BackupArtifactType, BackupOptions
from sqlbr.operations import full_backup, transaction_log_backup


def test_sidecar_path_swaps_extension():
    assert sidecar_path("/backups/nightly_full.bak") == Path("/backups/nightly_full.meta.json")
    assert sidecar_path(Path("/backups/sales.log.trn"), ".info") == Path("/backups/sales.log.info")


@pytest.mark.parametrize(
    "options, expected",
    [
        (BackupOptions(action=BackupAction.DATABASE), BackupArtifactType.FULL),
        (BackupOptions(action=BackupAction.DATABASE, incremental=True), BackupArtifactType.DIFFERENTIAL),
        (BackupOptions(action=BackupAction.LOG), BackupArtifactType.TRANSACTION_LOG),
        # Log backups are logs regardless of the incremental flag
        (BackupOptions(action=BackupAction.LOG, incremental=True), BackupArtifactType.TRANSACTION_LOG),
    ],
)
def test_backup_type_from_options(options, expected):
    assert backup_type_from_options(options) == expected


def test_build_backup_metadata_describes_operation(temp_dir: Path):
    backup = transaction_log_backup("sales", temp_dir / "sales_0100.trn")

    metadata = build_backup_metadata(backup)

    assert metadata.database_name == "sales"
    assert metadata.backup_type == "TransactionLog"
    assert metadata.backup_file_path == str(temp_dir / "sales_0100.trn")
    assert metadata.description.startswith("Transaction Log backup of sales (sales_0100.trn) created ")
    assert metadata.description.endswith(metadata.created_at)


@pytest.mark.asyncio
async def test_store_writes_sorted_pretty_json(temp_dir: Path):
    store = SidecarMetadataStore()
    backup = full_backup("sales", temp_dir / "sales_full.bak")

    path = await store.write(build_backup_metadata(backup))

    assert path == temp_dir / "sales_full.meta.json"
    lines = path.read_text().splitlines()
    keys = [line.split(":")[0].strip().strip('"') for line in lines[1:-1]]
    assert keys == sorted(keys)
    assert len(lines) == len(keys) + 2
    assert not (temp_dir / "sales_full.meta.json.tmp").exists()


@pytest.mark.asyncio
async def test_store_reads_back_what_it_wrote(temp_dir: Path):
    store = SidecarMetadataStore(".sqlbr.json")
    metadata = ArtifactMetadata(
        database_name="sales",
        backup_type="Differential",
        backup_file_path=str(temp_dir / "sales_diff.bak"),
        created_at="2026-01-01T00:00:00+00:00",
        description="nightly",
    )

    await store.write(metadata)

    assert (temp_dir / "sales_diff.sqlbr.json").exists()
    assert await store.read(temp_dir / "sales_diff.bak") == metadata


@pytest.mark.asyncio
async def test_read_without_sidecar_returns_none(temp_dir: Path):
    assert await SidecarMetadataStore().read(temp_dir / "sales_full.bak") is None


@pytest.mark.asyncio
async def test_read_rejects_incomplete_document(temp_dir: Path):
    (temp_dir / "sales_full.meta.json").write_text(json.dumps({"database_name": "sales"}))

    with pytest.raises(MetadataError):
        await SidecarMetadataStore().read(temp_dir / "sales_full.bak")


@pytest.mark.asyncio
async def test_write_into_missing_directory_fails(temp_dir: Path):
    metadata = ArtifactMetadata(
        database_name="sales",
        backup_type="Full",
        backup_file_path=str(temp_dir / "missing" / "sales_full.bak"),
        created_at="2026-01-01T00:00:00+00:00",
    )

    with pytest.raises(MetadataError):
        await SidecarMetadataStore().write(metadata)


def test_metadata_from_dict_requires_fields():
    with pytest.raises(ValueError):
        ArtifactMetadata.from_dict({"database_name": "sales", "backup_type": "Full"})
