"""Periodic snapshots of the message store.

This module provides the BackupService class that serializes the message
store, compresses it and hands it to a storage target (a local directory or
an S3 bucket). It also prunes snapshots older than the retention window and
restores the latest snapshot into a store at startup.
"""

from __future__ import annotations

import asyncio
import contextlib
import gzip
import logging
import time
import zlib
from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from pydantic import TypeAdapter, ValidationError

from koradi_board.core.settings import Settings
from koradi_board.core.time import Clock, utcnow
from koradi_board.models import Message
from koradi_board.services.backup_storage import (
    BackupStorage,
    BackupStorageError,
    StoredBackup,
)
from koradi_board.services.message_store import MessageStore

logger = logging.getLogger(__name__)

BACKUP_SUFFIX: Final[str] = ".json.gz"
_MESSAGES_ADAPTER: Final[TypeAdapter[list[Message]]] = TypeAdapter(list[Message])


class BackupError(RuntimeError):
    """Raised when a snapshot cannot be written or read back."""


@dataclass(frozen=True)
class BackupConfig:
    """How snapshots are named, kept and scheduled."""

    prefix: str = "message-backups"
    retention_days: int = 30
    interval_seconds: float = 24 * 3600
    compression_level: int = 6

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

    @classmethod
    def from_settings(cls, settings: Settings) -> BackupConfig:
        """Build a config from application settings."""
        return cls(
            prefix=settings.backup_prefix,
            retention_days=settings.backup_retention_days,
            interval_seconds=settings.backup_interval_seconds,
            compression_level=settings.backup_compression_level,
        )


@dataclass
class BackupMetrics:
    """Size and timing figures for a single snapshot."""

    key: str
    message_count: int
    original_size: int
    compressed_size: int
    compression_time_ms: float
    write_time_ms: float

    @property
    def compression_ratio(self) -> float:
        if not self.compressed_size:
            return 0.0
        return self.original_size / self.compressed_size


class BackupService:
    """Writes, prunes and restores message store snapshots."""

    def __init__(
        self,
        store: MessageStore,
        config: BackupConfig,
        storage: BackupStorage,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.config = config
        self.storage = storage
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        """Return True while the periodic loop is active."""
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the periodic backup loop."""
        if self.running:
            return

        logger.info(
            "Starting backup task with prefix %s, storage %s and interval %.0fs",
            self.config.prefix,
            type(self.storage).__name__,
            self.config.interval_seconds,
        )
        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name="message-backup")

    async def stop(self) -> None:
        """Stop the periodic backup loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(
                    self._stopping.wait(), timeout=self.config.interval_seconds
                )
            if self._stopping.is_set():
                return
            try:
                metrics = await self.perform_backup()
            except Exception:
                logger.exception("Backup failed")
                continue
            logger.info(
                "Backup %s completed: %d messages, original size %d, compressed size %d, "
                "ratio %.2f, compressed in %.1f ms, written in %.1f ms",
                metrics.key,
                metrics.message_count,
                metrics.original_size,
                metrics.compressed_size,
                metrics.compression_ratio,
                metrics.compression_time_ms,
                metrics.write_time_ms,
            )

    def _next_key(self) -> str:
        stem = f"{self.config.prefix}/backup_{self._clock():%Y%m%d_%H%M%S_%f}"
        taken = set(self.list_backups())
        key = f"{stem}{BACKUP_SUFFIX}"
        counter = 0
        while key in taken:
            counter += 1
            key = f"{stem}_{counter:03d}{BACKUP_SUFFIX}"
        return key

    async def perform_backup(self) -> BackupMetrics:
        """Snapshot the store, write it and prune expired snapshots.

        Raises:
            BackupError: If the storage target rejects the snapshot.
        """
        messages = self.store.export_all()
        payload = _MESSAGES_ADAPTER.dump_json(messages)

        compression_start = time.perf_counter()
        compressed = gzip.compress(payload, compresslevel=self.config.compression_level)
        compression_time = (time.perf_counter() - compression_start) * 1000

        write_start = time.perf_counter()
        try:
            key = await asyncio.to_thread(self._next_key)
            await asyncio.to_thread(self.storage.put, key, compressed)
        except BackupStorageError as exc:
            raise BackupError("Failed to write backup") from exc
        write_time = (time.perf_counter() - write_start) * 1000

        try:
            await asyncio.to_thread(self.cleanup_old_backups)
        except BackupStorageError:
            logger.exception("Failed to prune old backups after writing %s", key)

        return BackupMetrics(
            key=key,
            message_count=len(messages),
            original_size=len(payload),
            compressed_size=len(compressed),
            compression_time_ms=compression_time,
            write_time_ms=write_time,
        )

    def _snapshots(self) -> list[StoredBackup]:
        name_prefix = f"{self.config.prefix}/backup_"
        return [
            stored
            for stored in self.storage.list_prefix(self.config.prefix)
            if stored.key.startswith(name_prefix) and stored.key.endswith(BACKUP_SUFFIX)
        ]

    def list_backups(self) -> list[str]:
        """Return the keys of every stored snapshot, oldest first."""
        return sorted(stored.key for stored in self._snapshots())

    def latest_backup_key(self) -> str | None:
        """Return the key of the newest snapshot, if any."""
        backups = self.list_backups()
        return backups[-1] if backups else None

    def cleanup_old_backups(self) -> int:
        """Delete snapshots last modified before the retention window.

        Returns:
            Number of deleted snapshots.
        """
        cutoff = self._clock() - timedelta(days=self.config.retention_days)
        removed = 0
        for stored in self._snapshots():
            if stored.last_modified < cutoff:
                self.storage.delete(stored.key)
                removed += 1
                logger.info("Deleted expired backup %s", stored.key)
        return removed

    async def restore_from_backup(self, key: str) -> list[Message]:
        """Read, decompress and decode the snapshot stored under ``key``."""
        try:
            compressed = await asyncio.to_thread(self.storage.get, key)
            return _MESSAGES_ADAPTER.validate_json(gzip.decompress(compressed))
        except (BackupStorageError, OSError, EOFError, zlib.error) as exc:
            raise BackupError(f"Failed to read backup {key}") from exc
        except ValidationError as exc:
            raise BackupError(f"Backup {key} is not a valid message snapshot") from exc

    async def restore_latest(self) -> int:
        """Load the newest snapshot into the store.

        Returns:
            Number of restored messages; 0 when no snapshot exists.
        """
        try:
            key = await asyncio.to_thread(self.latest_backup_key)
        except BackupStorageError as exc:
            raise BackupError("Failed to list backups") from exc
        if key is None:
            logger.info("No backup found under %s; starting empty", self.config.prefix)
            return 0

        messages = await self.restore_from_backup(key)
        restored = self.store.replace_all(messages)
        logger.info("Restored %d messages from backup %s", restored, key)
        return restored
