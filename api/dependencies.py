from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from novel_reader import __version__
from novel_reader.backup import (
    BackupManager,
    BackupRepository,
    BackupWorker,
    LocalBackupStorage,
    RQJobQueue,
    SnapshotBuilder,
    SqlAlchemyBackupRepository,
    StoragePaths,
    WorkerConfig,
)

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./data/novel_reader.db"


def _database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def _storage_root() -> str:
    return os.getenv("BACKUP_STORAGE_ROOT", "./data")


@lru_cache(maxsize=1)
def get_repo() -> BackupRepository:
    return SqlAlchemyBackupRepository(_database_url())


@lru_cache(maxsize=1)
def get_storage() -> LocalBackupStorage:
    return LocalBackupStorage(StoragePaths(Path(_storage_root())))


def get_worker_config() -> WorkerConfig:
    return WorkerConfig(
        database_url=_database_url(),
        backup_storage_root=_storage_root(),
        producer_version=os.getenv("PRODUCER_VERSION", __version__),
        device_info=os.getenv("DEVICE_INFO", ""),
    )


@lru_cache(maxsize=1)
def get_manager() -> BackupManager:
    config = get_worker_config()
    repo = get_repo()
    builder = SnapshotBuilder(repo, repo, producer_version=config.producer_version, device_info=config.device_info)
    return BackupManager(repo, get_storage(), snapshot_builder=builder)


@lru_cache(maxsize=1)
def get_job_queue() -> Optional[RQJobQueue]:
    """Jobs run in-process unless REDIS_URL points at a queue."""
    redis_url = os.getenv("REDIS_URL")
    if not redis_url:
        return None
    return RQJobQueue(redis_url=redis_url)


def build_worker() -> BackupWorker:
    return BackupWorker(repository=get_repo(), manager=get_manager())


def clear_caches() -> None:
    for getter in (get_repo, get_storage, get_manager, get_job_queue):
        getter.cache_clear()
