# src/koradi_board/services/__init__.py
"""Business logic services for the Koradi Board application."""

from .backup import BackupConfig, BackupError, BackupMetrics, BackupService
from .backup_storage import (
    BackupStorage,
    BackupStorageError,
    LocalBackupStorage,
    S3BackupStorage,
    StoredBackup,
    build_backup_storage,
)
from .message_store import MessageStore, StoreError, StorePoisonedError, StoreResult
from .reaper import MessageReaper, ReaperStats
from .token_registry import (
    InMemoryTokenRegistry,
    RedisTokenRegistry,
    TokenRegistry,
    build_token_registry,
)

__all__ = [
    "BackupConfig",
    "BackupError",
    "BackupMetrics",
    "BackupService",
    "BackupStorage",
    "BackupStorageError",
    "LocalBackupStorage",
    "S3BackupStorage",
    "StoredBackup",
    "build_backup_storage",
    "MessageStore",
    "StoreError",
    "StorePoisonedError",
    "StoreResult",
    "MessageReaper",
    "ReaperStats",
    "InMemoryTokenRegistry",
    "RedisTokenRegistry",
    "TokenRegistry",
    "build_token_registry",
]
