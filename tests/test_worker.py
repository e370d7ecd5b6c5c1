from dataclasses import asdict

import pytest

from novel_reader.backup import (
    BackupJobKind,
    BackupJobPhase,
    BackupJobRecord,
    BackupJobState,
    BackupManager,
    BackupWorker,
    Category,
    LocalBackupStorage,
    RestoreOptions,
    StoragePaths,
    WorkerConfig,
    build_backup_worker,
    encode,
)


@pytest.fixture
def worker(repo, tmp_path):
    manager = BackupManager(repo, LocalBackupStorage(StoragePaths(tmp_path)))
    return BackupWorker(repository=repo, manager=manager)


def test_export_job_writes_file(repo, worker, tmp_path):
    repo.save_job(BackupJobRecord(id="export-1", kind=BackupJobKind.EXPORT, location="backups/a.novery"))
    worker.run_job("export-1")

    job = repo.get_job("export-1")
    assert job.state == BackupJobState.COMPLETED
    assert job.phase == BackupJobPhase.WRITE
    assert (tmp_path / "backups" / "a.novery").exists()
    assert job.result["size_bytes"] > 0


def test_restore_job_applies_options(repo, worker, tmp_path, sample_document):
    (tmp_path / "uploads").mkdir()
    (tmp_path / "uploads" / "in.novery").write_bytes(encode(sample_document))
    options = RestoreOptions(restore_bookmarks=False)
    repo.save_job(
        BackupJobRecord(id="restore-1", kind=BackupJobKind.RESTORE, location="uploads/in.novery", options=asdict(options))
    )

    worker.run_job("restore-1")

    job = repo.get_job("restore-1")
    assert job.state == BackupJobState.COMPLETED
    assert job.phase == BackupJobPhase.APPLY
    assert job.result["library_restored"] == 2
    assert job.result["bookmarks_restored"] == 0
    assert repo.get_all(Category.BOOKMARKS) == []


def test_restore_job_with_unreadable_file_fails(repo, worker):
    repo.save_job(BackupJobRecord(id="restore-2", kind=BackupJobKind.RESTORE, location="uploads/missing.novery"))
    worker.run_job("restore-2")

    job = repo.get_job("restore-2")
    assert job.state == BackupJobState.FAILED
    assert job.error_message == "Could not read backup file"


def test_restore_job_with_invalid_backup_fails(repo, worker, tmp_path):
    (tmp_path / "bad.novery").write_text("{oops", encoding="utf-8")
    repo.save_job(BackupJobRecord(id="restore-3", kind=BackupJobKind.RESTORE, location="bad.novery"))
    worker.run_job("restore-3")

    job = repo.get_job("restore-3")
    assert job.state == BackupJobState.FAILED
    assert job.phase == BackupJobPhase.DECODE
    assert job.error_message.startswith("Invalid backup format")


def test_restore_job_with_newer_version_fails_with_result(repo, worker, tmp_path):
    (tmp_path / "new.novery").write_text('{"schemaVersion": 5}', encoding="utf-8")
    repo.save_job(BackupJobRecord(id="restore-4", kind=BackupJobKind.RESTORE, location="new.novery"))
    worker.run_job("restore-4")

    job = repo.get_job("restore-4")
    assert job.state == BackupJobState.FAILED
    assert job.result["success"] is False
    assert "newer than supported" in job.error_message


def test_unknown_job_raises(worker):
    with pytest.raises(ValueError):
        worker.run_job("nope")


def test_unexpected_errors_mark_job_failed_and_propagate(repo, worker):
    def boom():
        raise RuntimeError("snapshot exploded")

    worker.manager.export_bytes = boom
    repo.save_job(BackupJobRecord(id="export-2", kind=BackupJobKind.EXPORT, location="backups/b.novery"))

    with pytest.raises(RuntimeError):
        worker.run_job("export-2")
    job = repo.get_job("export-2")
    assert job.state == BackupJobState.FAILED
    assert job.error_message == "snapshot exploded"


def test_build_backup_worker_from_config(tmp_path):
    config = WorkerConfig(
        database_url=f"sqlite+pysqlite:///{tmp_path / 'jobs.db'}",
        backup_storage_root=str(tmp_path),
        producer_version="2.0.0",
        device_info="rq-host",
    )
    worker = build_backup_worker(config)
    worker.repo.save_job(BackupJobRecord(id="export-3", kind=BackupJobKind.EXPORT, location="backups/c.novery"))
    worker.run_job("export-3")

    assert worker.repo.get_job("export-3").state == BackupJobState.COMPLETED
    written = (tmp_path / "backups" / "c.novery").read_text(encoding="utf-8")
    assert '"producerVersion": "2.0.0"' in written
    assert '"deviceInfo": "rq-host"' in written
