"""Storage targets for message store snapshots.

Snapshots are addressed by ``{prefix}/{name}`` keys. ``LocalBackupStorage``
maps keys onto a directory; ``S3BackupStorage`` maps them onto objects in a
bucket so snapshots survive the loss of the host.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from koradi_board.core.settings import Settings

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/gzip"


class BackupStorageError(RuntimeError):
    """Raised when a storage target cannot complete an operation."""


@dataclass(frozen=True)
class StoredBackup:
    """A snapshot present in a storage target."""

    key: str
    last_modified: datetime


class BackupStorage(Protocol):
    """Operations every storage target provides."""

    def put(self, key: str, data: bytes) -> None: ...

    def get(self, key: str) -> bytes: ...

    def delete(self, key: str) -> None: ...

    def list_prefix(self, prefix: str) -> list[StoredBackup]: ...


class LocalBackupStorage:
    """Snapshots kept under a local directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def put(self, key: str, data: bytes) -> None:
        path = self.root / key
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            tmp_path.replace(path)
        except OSError as exc:
            raise BackupStorageError(f"Failed to write {path}") from exc

    def get(self, key: str) -> bytes:
        path = self.root / key
        try:
            return path.read_bytes()
        except OSError as exc:
            raise BackupStorageError(f"Failed to read {path}") from exc

    def delete(self, key: str) -> None:
        path = self.root / key
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise BackupStorageError(f"Failed to delete {path}") from exc

    def list_prefix(self, prefix: str) -> list[StoredBackup]:
        target = self.root / prefix
        if not target.is_dir():
            return []
        return [
            StoredBackup(
                key=f"{prefix}/{path.name}",
                last_modified=datetime.fromtimestamp(path.stat().st_mtime, tz=UTC),
            )
            for path in target.iterdir()
            if path.is_file()
        ]


class S3BackupStorage:
    """Snapshots kept as objects in an S3 bucket."""

    def __init__(self, client: Any, bucket: str) -> None:
        self._s3 = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> S3BackupStorage:
        """Build a target for ``AWS_BACKUP_BUCKET`` in ``AWS_REGION``.

        Raises:
            ValueError: If no bucket is configured.
        """
        if not settings.aws_backup_bucket:
            raise ValueError("AWS_BACKUP_BUCKET must be set when BACKUP_STORAGE is s3")
        client = boto3.client("s3", region_name=settings.aws_region)
        return cls(client, settings.aws_backup_bucket)

    def put(self, key: str, data: bytes) -> None:
        try:
            self._s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=CONTENT_TYPE,
                StorageClass="STANDARD_IA",
            )
        except (BotoCoreError, ClientError) as exc:
            raise BackupStorageError(f"Failed to upload s3://{self.bucket}/{key}") from exc

    def get(self, key: str) -> bytes:
        try:
            response = self._s3.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as exc:
            raise BackupStorageError(f"Failed to download s3://{self.bucket}/{key}") from exc

    def delete(self, key: str) -> None:
        try:
            self._s3.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise BackupStorageError(f"Failed to delete s3://{self.bucket}/{key}") from exc

    def list_prefix(self, prefix: str) -> list[StoredBackup]:
        backups: list[StoredBackup] = []
        try:
            paginator = self._s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=f"{prefix}/"):
                for item in page.get("Contents", []):
                    backups.append(StoredBackup(key=item["Key"], last_modified=item["LastModified"]))
        except (BotoCoreError, ClientError) as exc:
            raise BackupStorageError(f"Failed to list s3://{self.bucket}/{prefix}/") from exc
        return backups


def build_backup_storage(settings: Settings) -> BackupStorage:
    """Return the storage target selected by ``BACKUP_STORAGE``.

    Raises:
        ValueError: If the target is not ``local`` or ``s3``.
    """
    if settings.backup_storage == "local":
        return LocalBackupStorage(Path(settings.backup_dir))
    if settings.backup_storage == "s3":
        logger.info(
            "Backups go to bucket %s in %s", settings.aws_backup_bucket, settings.aws_region
        )
        return S3BackupStorage.from_settings(settings)
    raise ValueError(f"Unknown backup storage: {settings.backup_storage}")
