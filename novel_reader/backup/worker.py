from __future__ import annotations

import logging

from .enums import BackupJobKind, BackupJobPhase, BackupJobState
from .errors import FormatError
from .manager import BackupManager
from .metadata import load_document
from .models import BackupJobRecord, RestoreOptions
from .repository import BackupRepository
from .serializer import record_from_dict

logger = logging.getLogger(__name__)


class BackupWorker:
    """
    Drives a backup job through its phases: export is read -> write, restore
    is read -> decode -> apply. Job state lives in the repository; the worker
    itself keeps none between runs.
    """

    def __init__(self, repository: BackupRepository, manager: BackupManager):
        self.repo = repository
        self.manager = manager

    def run_job(self, job_id: str) -> None:
        job = self.repo.get_job(job_id)
        if not job:
            raise ValueError(f"Backup job {job_id} not found")

        try:
            self.repo.update_job(job_id, state=BackupJobState.RUNNING, phase=BackupJobPhase.READ)
            if job.kind == BackupJobKind.EXPORT:
                self._run_export(job)
            else:
                self._run_restore(job)
        except Exception as exc:  # noqa: BLE001
            self.repo.update_job(job_id, state=BackupJobState.FAILED, error_message=str(exc))
            raise

    def _run_export(self, job: BackupJobRecord) -> None:
        data = self.manager.export_bytes()
        self.repo.update_job(job.id, phase=BackupJobPhase.WRITE)
        path = self.manager.storage.write(job.location, data)
        self.repo.update_job(
            job.id,
            state=BackupJobState.COMPLETED,
            result={"location": str(path), "size_bytes": len(data)},
        )

    def _run_restore(self, job: BackupJobRecord) -> None:
        data = self.manager.storage.read(job.location)
        if data is None:
            self._fail(job, "Could not read backup file")
            return

        self.repo.update_job(job.id, phase=BackupJobPhase.DECODE)
        options = record_from_dict(RestoreOptions, job.options or {})
        try:
            document = load_document(data, self.manager.converter)
        except FormatError as exc:
            self._fail(job, f"Invalid backup format: {exc}")
            return

        self.repo.update_job(job.id, phase=BackupJobPhase.APPLY)
        result = self.manager.orchestrator.restore(document, options)
        if result.success:
            self.repo.update_job(job.id, state=BackupJobState.COMPLETED, result=result.to_dict())
        else:
            self.repo.update_job(job.id, result=result.to_dict())
            self._fail(job, result.error or "Restore failed")

    def _fail(self, job: BackupJobRecord, message: str) -> None:
        logger.warning("Backup job %s failed: %s", job.id, message)
        self.repo.update_job(job.id, state=BackupJobState.FAILED, error_message=message)
