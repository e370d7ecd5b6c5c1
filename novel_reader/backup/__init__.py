"""
Backup subsystem exports.
"""

from .detector import is_foreign
from .enums import BackupJobKind, BackupJobPhase, BackupJobState, ReadingStatus
from .errors import BackupError, BackupIOError, FormatError, PartialRestoreError, VersionError
from .foreign import QuickNovelConverter
from .job_queue import RQJobQueue, WorkerConfig, build_backup_worker, run_backup_job
from .manager import BackupManager, generate_backup_file_name
from .metadata import extract_metadata, load_document
from .models import (
    CURRENT_VERSION,
    FILE_EXTENSION,
    MIME_TYPE,
    BackupDocument,
    BackupJobRecord,
    BackupMetadata,
    BookmarkRecord,
    HistoryRecord,
    LibraryRecord,
    ReadChapterRecord,
    ReadingStatsRecord,
    ReadingStreakRecord,
    RestoreOptions,
    RestoreResult,
)
from .repository import BackupRepository, Category, InMemoryBackupRepository, SqlAlchemyBackupRepository
from .restore import RestoreOrchestrator
from .serializer import decode, encode
from .settings import AppSettingsRecord, ReaderSettingsRecord, SettingsBlob
from .snapshot import SnapshotBuilder
from .storage import LocalBackupStorage, StoragePaths
from .worker import BackupWorker

__all__ = [
    "AppSettingsRecord",
    "BackupDocument",
    "BackupError",
    "BackupIOError",
    "BackupJobKind",
    "BackupJobPhase",
    "BackupJobRecord",
    "BackupJobState",
    "BackupManager",
    "BackupMetadata",
    "BackupRepository",
    "BackupWorker",
    "BookmarkRecord",
    "CURRENT_VERSION",
    "Category",
    "FILE_EXTENSION",
    "FormatError",
    "HistoryRecord",
    "InMemoryBackupRepository",
    "LibraryRecord",
    "LocalBackupStorage",
    "MIME_TYPE",
    "PartialRestoreError",
    "QuickNovelConverter",
    "RQJobQueue",
    "ReadChapterRecord",
    "ReaderSettingsRecord",
    "ReadingStatsRecord",
    "ReadingStatus",
    "ReadingStreakRecord",
    "RestoreOptions",
    "RestoreOrchestrator",
    "RestoreResult",
    "SettingsBlob",
    "SnapshotBuilder",
    "SqlAlchemyBackupRepository",
    "StoragePaths",
    "VersionError",
    "WorkerConfig",
    "build_backup_worker",
    "decode",
    "encode",
    "extract_metadata",
    "generate_backup_file_name",
    "is_foreign",
    "load_document",
    "run_backup_job",
]
