from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from redis import Redis
from rq import Queue, Worker

from .. import __version__
from .manager import BackupManager
from .repository import SqlAlchemyBackupRepository
from .snapshot import SnapshotBuilder
from .storage import LocalBackupStorage, StoragePaths
from .worker import BackupWorker


@dataclass
class WorkerConfig:
    database_url: str
    backup_storage_root: str
    producer_version: str = __version__
    device_info: str = ""


def build_backup_worker(config: WorkerConfig) -> BackupWorker:
    repo = SqlAlchemyBackupRepository(config.database_url)
    storage = LocalBackupStorage(StoragePaths(Path(config.backup_storage_root)))
    builder = SnapshotBuilder(
        repo,
        repo,
        producer_version=config.producer_version,
        device_info=config.device_info,
    )
    return BackupWorker(repository=repo, manager=BackupManager(repo, storage, snapshot_builder=builder))


def run_backup_job(job_id: str, config: WorkerConfig) -> None:
    """
    RQ task entrypoint. Creates all required components and executes a backup job.
    """
    build_backup_worker(config).run_job(job_id)


class RQJobQueue:
    """
    Redis-backed job queue using RQ. All backup jobs go to one queue, so a
    single worker process applies restores one at a time.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379/0", queue_name: str = "backup-jobs"):
        self.redis = Redis.from_url(redis_url)
        self.queue = Queue(queue_name, connection=self.redis)

    def enqueue_backup_job(self, job_id: str, config: WorkerConfig):
        """
        RQ job_id is set to the backup job id so re-enqueueing is idempotent.
        """
        return self.queue.enqueue(run_backup_job, job_id, config, job_id=job_id, retry=None)

    def work(self):
        worker = Worker([self.queue], connection=self.redis)
        worker.work(with_scheduler=True)
