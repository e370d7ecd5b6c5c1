from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .errors import BackupIOError, FormatError
from .foreign import QuickNovelConverter
from .metadata import extract_metadata, load_document
from .models import FILE_EXTENSION, BackupMetadata, RestoreOptions, RestoreResult
from .repository import BackupRepository
from .restore import RestoreOrchestrator
from .serializer import encode
from .snapshot import SnapshotBuilder
from .storage import LocalBackupStorage, Location

logger = logging.getLogger(__name__)

FILE_NAME_PREFIX = "novery_backup"


def generate_backup_file_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{FILE_NAME_PREFIX}_{now.strftime('%Y-%m-%d_%H%M')}.{FILE_EXTENSION}"


class BackupManager:
    """
    Facade over export, preview and restore. Restores never raise for problems
    with the backup itself; they come back as a failed ``RestoreResult``.
    """

    def __init__(
        self,
        repository: BackupRepository,
        storage: LocalBackupStorage,
        snapshot_builder: Optional[SnapshotBuilder] = None,
        converter: Optional[QuickNovelConverter] = None,
    ):
        self.repo = repository
        self.storage = storage
        self.snapshot_builder = snapshot_builder or SnapshotBuilder(repository, repository)
        self.converter = converter or QuickNovelConverter()
        self.orchestrator = RestoreOrchestrator(repository, repository)

    def export_bytes(self) -> bytes:
        return encode(self.snapshot_builder.build())

    def export_to(self, location: Location) -> Path:
        path = self.storage.write(location, self.export_bytes())
        logger.info("Wrote backup to %s", path)
        return path

    def read_metadata(self, location: Location) -> Optional[BackupMetadata]:
        """None when the location is unreadable; ``FormatError`` when it is not a backup."""
        data = self.storage.read(location)
        if data is None:
            return None
        return self.read_metadata_bytes(data)

    def read_metadata_bytes(self, data: Union[bytes, str]) -> BackupMetadata:
        return extract_metadata(data, self.converter)

    def restore_from(self, location: Location, options: Optional[RestoreOptions] = None) -> RestoreResult:
        data = self.storage.read(location)
        if data is None:
            return RestoreResult.from_error(BackupIOError("Could not read backup file"))
        return self.restore_from_bytes(data, options)

    def restore_from_bytes(self, data: Union[bytes, str], options: Optional[RestoreOptions] = None) -> RestoreResult:
        try:
            document = load_document(data, self.converter)
        except FormatError as exc:
            logger.warning("Rejected backup: %s", exc)
            return RestoreResult.from_error(FormatError(f"Invalid backup format: {exc}"))
        return self.orchestrator.restore(document, options)
