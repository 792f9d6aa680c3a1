# tests/test_backup.py
"""Tests for message store snapshots."""

import asyncio
import gzip
import io
import logging
import os
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from koradi_board.core.settings import Settings
from koradi_board.main import create_app
from koradi_board.models import Expiration, Lang
from koradi_board.services.backup import (
    BackupConfig,
    BackupError,
    BackupMetrics,
    BackupService,
)
from koradi_board.services.backup_storage import (
    BackupStorageError,
    LocalBackupStorage,
    S3BackupStorage,
)
from koradi_board.services.message_store import MessageStore


@pytest.fixture()
def config() -> BackupConfig:
    return BackupConfig(prefix="snapshots", retention_days=30)


@pytest.fixture()
def storage(tmp_path) -> LocalBackupStorage:
    return LocalBackupStorage(tmp_path)


@pytest.fixture()
def service(store, config, storage, clock) -> BackupService:
    return BackupService(store, config, storage, clock=clock)


def _seed(store: MessageStore) -> None:
    store.create(content="Bonjour", title="Salut", lang=Lang.FRENCH, expires=Expiration.WEEK)
    store.create(
        content="Hello",
        title="Hi",
        lang=Lang.ENGLISH,
        expires=Expiration.HOUR,
        image_url="https://example.org/x.png",
    )


def _write_snapshot(storage: LocalBackupStorage, name: str, data: bytes) -> None:
    storage.put(f"snapshots/{name}", data)


def test_config_from_settings() -> None:
    app_settings = Settings(
        BACKUP_PREFIX="nightly",
        BACKUP_RETENTION_DAYS=7,
        BACKUP_INTERVAL_HOURS=2,
        BACKUP_COMPRESSION_LEVEL=9,
        _env_file=None,
    )

    config = BackupConfig.from_settings(app_settings)

    assert config.prefix == "nightly"
    assert config.retention_days == 7
    assert config.interval_seconds == 7200
    assert config.compression_level == 9


def test_config_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        BackupConfig(interval_seconds=0)


def test_settings_reject_non_positive_backup_interval() -> None:
    with pytest.raises(ValueError):
        Settings(BACKUP_INTERVAL_HOURS=0, _env_file=None)


def test_compression_ratio() -> None:
    metrics = BackupMetrics("k", 1, 1000, 250, 0.1, 0.1)
    assert metrics.compression_ratio == 4.0
    assert BackupMetrics("k", 0, 0, 0, 0.0, 0.0).compression_ratio == 0.0


@pytest.mark.asyncio
async def test_perform_backup_writes_gzip_snapshot(service, store, storage) -> None:
    _seed(store)

    metrics = await service.perform_backup()

    assert metrics.key == "snapshots/backup_20240101_120000_000000.json.gz"
    assert metrics.message_count == 2
    assert metrics.compressed_size > 0
    assert b"Bonjour" in gzip.decompress(storage.get(metrics.key))
    assert service.list_backups() == [metrics.key]


@pytest.mark.asyncio
async def test_backups_at_same_instant_do_not_overwrite(service, store) -> None:
    """Two snapshots taken at one clock reading both survive."""
    _seed(store)
    first = await service.perform_backup()
    store.create(content="Hallo", title="Neu", lang=Lang.GERMAN, expires=Expiration.DAY)
    second = await service.perform_backup()

    assert first.key != second.key
    assert service.list_backups() == [first.key, second.key]
    assert service.latest_backup_key() == second.key
    assert len(await service.restore_from_backup(first.key)) == 2
    assert len(await service.restore_from_backup(second.key)) == 3


@pytest.mark.asyncio
async def test_snapshot_keys_resolve_microseconds(service, store, clock) -> None:
    first = await service.perform_backup()
    clock.advance(0.000001)
    second = await service.perform_backup()

    assert first.key.endswith("_000000.json.gz")
    assert second.key.endswith("_000001.json.gz")


@pytest.mark.asyncio
async def test_restore_latest_round_trip(service, store, config, storage, clock) -> None:
    _seed(store)
    original = store.export_all()
    await service.perform_backup()

    fresh = MessageStore(clock=clock)
    restored = await BackupService(fresh, config, storage, clock=clock).restore_latest()

    assert restored == 2
    assert fresh.export_all() == original


@pytest.mark.asyncio
async def test_restore_latest_picks_newest_snapshot(service, store, config, storage, clock) -> None:
    _seed(store)
    await service.perform_backup()
    clock.advance(60)
    store.create(content="Hallo", title="Neu", lang=Lang.GERMAN, expires=Expiration.DAY)
    latest = await service.perform_backup()

    fresh = MessageStore(clock=clock)
    service_for_fresh = BackupService(fresh, config, storage, clock=clock)

    assert service_for_fresh.latest_backup_key() == latest.key
    assert await service_for_fresh.restore_latest() == 3


@pytest.mark.asyncio
async def test_restore_latest_without_backups(service, store) -> None:
    _seed(store)

    assert await service.restore_latest() == 0
    assert store.count() == 2


@pytest.mark.asyncio
async def test_corrupt_snapshot_raises_backup_error(service, storage) -> None:
    _write_snapshot(storage, "backup_20240101_000000.json.gz", b"not gzip at all")

    with pytest.raises(BackupError):
        await service.restore_latest()


@pytest.mark.asyncio
async def test_invalid_snapshot_contents_raise_backup_error(service, storage) -> None:
    _write_snapshot(storage, "backup_20240101_000000.json.gz", gzip.compress(b'[{"id": 1}]'))

    with pytest.raises(BackupError, match="not a valid message snapshot"):
        await service.restore_latest()


@pytest.mark.asyncio
async def test_snapshot_with_naive_timestamps_is_rejected(service, store, storage, clock) -> None:
    """Timestamps without an offset never reach the store."""
    _seed(store)
    before = store.export_all()
    snapshot = (
        b'[{"id": "6f1c1d2e-3b4a-4c5d-8e9f-0a1b2c3d4e5f", "created": "2024-01-01T11:00:00",'
        b' "content": "c", "title": "t", "lang": "English", "expires": "Hour"}]'
    )
    _write_snapshot(storage, "backup_20240101_000000.json.gz", gzip.compress(snapshot))

    with pytest.raises(BackupError):
        await service.restore_latest()

    assert store.poisoned is False
    assert store.export_all() == before
    clock.advance(3600)
    assert store.sweep_expired() == 1


@pytest.mark.asyncio
async def test_missing_snapshot_raises_backup_error(service) -> None:
    with pytest.raises(BackupError):
        await service.restore_from_backup("snapshots/backup_19990101_000000.json.gz")


@pytest.mark.asyncio
async def test_write_failure_raises_backup_error(service, storage, mocker) -> None:
    mocker.patch.object(storage, "put", side_effect=BackupStorageError("read-only"))

    with pytest.raises(BackupError):
        await service.perform_backup()


def test_cleanup_removes_only_expired_snapshots(service, storage, tmp_path, clock) -> None:
    _write_snapshot(storage, "backup_20231001_000000.json.gz", gzip.compress(b"[]"))
    _write_snapshot(storage, "backup_20231225_000000.json.gz", gzip.compress(b"[]"))
    old = tmp_path / "snapshots" / "backup_20231001_000000.json.gz"
    recent = tmp_path / "snapshots" / "backup_20231225_000000.json.gz"
    old_mtime = (clock.now - timedelta(days=31)).timestamp()
    recent_mtime = (clock.now - timedelta(days=7)).timestamp()
    os.utime(old, (old_mtime, old_mtime))
    os.utime(recent, (recent_mtime, recent_mtime))

    assert service.cleanup_old_backups() == 1
    assert not old.exists()
    assert recent.exists()


def test_list_backups_ignores_unrelated_files(service, tmp_path) -> None:
    target = tmp_path / "snapshots"
    target.mkdir(parents=True)
    (target / "notes.txt").write_text("hello")
    (target / "backup_20240101_000000.json.gz.tmp").write_bytes(b"")
    (target / "backup_20240102_000000.json.gz").write_bytes(b"")
    (target / "backup_20240101_000000.json.gz").write_bytes(b"")

    assert service.list_backups() == [
        "snapshots/backup_20240101_000000.json.gz",
        "snapshots/backup_20240102_000000.json.gz",
    ]


@pytest.mark.asyncio
async def test_round_trip_through_s3(store, config, clock, mocker) -> None:
    """Snapshots written to a bucket can be listed and restored."""
    objects: dict[str, bytes] = {}
    client = mocker.MagicMock()
    client.put_object.side_effect = lambda **kw: objects.__setitem__(kw["Key"], kw["Body"])
    client.get_object.side_effect = lambda Bucket, Key: {"Body": io.BytesIO(objects[Key])}
    client.get_paginator.return_value.paginate.side_effect = lambda Bucket, Prefix: [
        {
            "Contents": [
                {"Key": key, "LastModified": clock.now}
                for key in objects
                if key.startswith(Prefix)
            ]
        }
    ]
    storage = S3BackupStorage(client, "board-backups")
    _seed(store)

    metrics = await BackupService(store, config, storage, clock=clock).perform_backup()

    assert set(objects) == {metrics.key}
    fresh = MessageStore(clock=clock)
    assert await BackupService(fresh, config, storage, clock=clock).restore_latest() == 2
    assert fresh.export_all() == store.export_all()


@pytest.mark.asyncio
async def test_loop_writes_snapshot_on_tick(store, storage, clock) -> None:
    _seed(store)
    service = BackupService(
        store, BackupConfig(prefix="snapshots", interval_seconds=0.01), storage, clock=clock
    )

    await service.start()
    try:
        for _ in range(200):
            if service.list_backups():
                break
            await asyncio.sleep(0.01)
    finally:
        await service.stop()

    assert service.running is False
    [first, *_] = service.list_backups()
    assert len(await service.restore_from_backup(first)) == 2


@pytest.mark.asyncio
async def test_loop_survives_failing_backup(store, storage, clock, mocker) -> None:
    """A failed write is logged and the next tick still writes a snapshot."""
    service = BackupService(
        store, BackupConfig(prefix="snapshots", interval_seconds=0.01), storage, clock=clock
    )
    attempts: list[str] = []
    real_put = storage.put

    def flaky_put(key: str, data: bytes) -> None:
        attempts.append(key)
        if len(attempts) == 1:
            raise BackupStorageError("bucket unavailable")
        real_put(key, data)

    mocker.patch.object(storage, "put", side_effect=flaky_put)

    await service.start()
    try:
        for _ in range(200):
            if service.list_backups():
                break
            await asyncio.sleep(0.01)
        assert service.running is True
    finally:
        await service.stop()

    assert len(attempts) >= 2
    assert service.list_backups()


def _backup_settings(test_settings: Settings, tmp_path) -> Settings:
    return test_settings.model_copy(
        update={
            "backup_enabled": True,
            "backup_storage": "local",
            "backup_dir": str(tmp_path),
            "backup_prefix": "snapshots",
        }
    )


def test_startup_restores_latest_snapshot(test_settings, storage, config, tmp_path) -> None:
    """Messages from the newest snapshot are served once the app is up."""
    seeded = MessageStore()
    seeded.create(content="Ciao", title="Saluti", lang=Lang.ITALIAN, expires=Expiration.YEAR)
    asyncio.run(BackupService(seeded, config, storage).perform_backup())

    app = create_app(_backup_settings(test_settings, tmp_path), store=MessageStore())
    with TestClient(app) as client:
        response = client.get("/api/messages/Italian")
        assert app.state.backup.running is True

    assert response.status_code == 200
    [message] = response.json()
    assert message["content"] == "Ciao"
    assert app.state.backup.running is False


def test_startup_with_unreadable_snapshot_starts_empty(
    test_settings, storage, tmp_path, caplog
) -> None:
    _write_snapshot(storage, "backup_20240101_000000.json.gz", b"not gzip at all")
    store = MessageStore()
    app = create_app(_backup_settings(test_settings, tmp_path), store=store)

    with caplog.at_level(logging.ERROR), TestClient(app) as client:
        response = client.get("/api/messages/English")

    assert response.status_code == 200
    assert response.json() == []
    assert store.poisoned is False
    assert "Failed to restore messages from backup" in caplog.text
