from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AliasChoices, Field, with_config

from .enums import BackupJobKind, BackupJobPhase, BackupJobState, ReadingStatus
from .schema import RECORD_CONFIG
from .settings import AppSettingsRecord, ReaderSettingsRecord

CURRENT_VERSION = 1
FILE_EXTENSION = "novery"
MIME_TYPE = "application/json"

NATIVE_SOURCE_APP = "Novery"
FOREIGN_SOURCE_APP = "QuickNovel"
# Stamped on documents converted from a foreign dump; restores skip the
# version gate for these.
FOREIGN_PRODUCER_VERSION = "QuickNovel Import"
FOREIGN_DEVICE_INFO = "Imported from QuickNovel"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@with_config(RECORD_CONFIG)
@dataclass
class LibraryRecord:
    url: str
    name: str
    api_name: str
    added_at: int
    reading_status: ReadingStatus = ReadingStatus.READING
    poster_url: Optional[str] = None
    latest_chapter: Optional[str] = None
    last_chapter_url: Optional[str] = None
    last_chapter_name: Optional[str] = None
    last_read_at: Optional[int] = None
    last_scroll_index: int = 0
    last_scroll_offset: int = 0
    total_chapter_count: int = 0
    acknowledged_chapter_count: int = 0
    last_checked_at: int = 0
    last_updated_at: int = 0
    last_read_chapter_index: int = -1
    unread_chapter_count: int = 0


@with_config(RECORD_CONFIG)
@dataclass
class BookmarkRecord:
    novel_url: str
    novel_name: str
    chapter_url: str
    chapter_name: str
    created_at: int
    updated_at: int
    segment_id: Optional[str] = None
    segment_index: int = 0
    text_snippet: Optional[str] = None
    note: Optional[str] = None
    category: str = "default"
    color: Optional[str] = None


@with_config(RECORD_CONFIG)
@dataclass
class HistoryRecord:
    novel_url: str
    novel_name: str
    chapter_name: str
    chapter_url: str
    api_name: str
    timestamp: int
    poster_url: Optional[str] = None


@with_config(RECORD_CONFIG)
@dataclass
class ReadChapterRecord:
    chapter_url: str
    novel_url: str
    read_at: int


@with_config(RECORD_CONFIG)
@dataclass
class ReadingStatsRecord:
    novel_url: str
    novel_name: str
    date: int
    reading_time_seconds: int = 0
    chapters_read: int = 0
    words_read: int = 0
    sessions_count: int = 0
    longest_session_seconds: int = 0
    created_at: int = 0
    updated_at: int = 0


@with_config(RECORD_CONFIG)
@dataclass
class ReadingStreakRecord:
    current_streak: int = 0
    longest_streak: int = 0
    last_read_date: int = 0
    total_days_read: int = 0
    total_reading_time_seconds: int = 0
    updated_at: int = 0


@with_config(RECORD_CONFIG)
@dataclass
class BackupDocument:
    """
    Versioned envelope for a full snapshot of user state. Always transient:
    built for one export or parsed for one import, then dropped.
    """

    # Files written before the envelope rename used "version" and "appVersion".
    schema_version: Annotated[
        int,
        Field(
            validation_alias=AliasChoices("schemaVersion", "schema_version", "version"),
            serialization_alias="schemaVersion",
        ),
    ] = CURRENT_VERSION
    created_at: int = 0
    producer_version: Annotated[
        str,
        Field(
            validation_alias=AliasChoices("producerVersion", "producer_version", "appVersion"),
            serialization_alias="producerVersion",
        ),
    ] = ""
    device_info: str = ""

    library: List[LibraryRecord] = field(default_factory=list)
    bookmarks: List[BookmarkRecord] = field(default_factory=list)
    history: List[HistoryRecord] = field(default_factory=list)
    read_chapters: List[ReadChapterRecord] = field(default_factory=list)

    reading_stats: List[ReadingStatsRecord] = field(default_factory=list)
    reading_streak: Optional[ReadingStreakRecord] = None

    app_settings: Optional[AppSettingsRecord] = None
    reader_settings: Optional[ReaderSettingsRecord] = None

    @property
    def is_foreign(self) -> bool:
        return self.producer_version == FOREIGN_PRODUCER_VERSION


@with_config(RECORD_CONFIG)
@dataclass
class RestoreOptions:
    restore_library: bool = True
    restore_bookmarks: bool = True
    restore_history: bool = True
    restore_statistics: bool = True
    restore_settings: bool = True
    # When false, every enabled category is cleared before applying.
    merge_with_existing: bool = True


@dataclass
class RestoreResult:
    success: bool
    error: Optional[str] = None
    # Name of the BackupError subclass behind a failure.
    error_kind: Optional[str] = None
    library_restored: int = 0
    bookmarks_restored: int = 0
    history_restored: int = 0
    read_chapters_restored: int = 0
    stats_restored: int = 0
    settings_restored: bool = False

    @classmethod
    def from_error(cls, error: Exception) -> "RestoreResult":
        """Failed result for ``error``, keeping the counts of a partial restore."""
        partial = getattr(error, "partial", None)
        result = replace(partial) if partial is not None else cls(success=False)
        result.success = False
        result.error = str(error)
        result.error_kind = type(error).__name__
        return result

    @property
    def total_items_restored(self) -> int:
        return (
            self.library_restored
            + self.bookmarks_restored
            + self.history_restored
            + self.read_chapters_restored
            + self.stats_restored
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error,
            "error_kind": self.error_kind,
            "library_restored": self.library_restored,
            "bookmarks_restored": self.bookmarks_restored,
            "history_restored": self.history_restored,
            "read_chapters_restored": self.read_chapters_restored,
            "stats_restored": self.stats_restored,
            "settings_restored": self.settings_restored,
            "total_items_restored": self.total_items_restored,
        }


@dataclass
class BackupMetadata:
    version: int
    created_at: int
    producer_version: str
    device_info: str
    library_count: int
    bookmark_count: int
    history_count: int
    read_chapters_count: int
    has_settings: bool
    has_statistics: bool
    source_app: str = NATIVE_SOURCE_APP


@dataclass
class BackupJobRecord:
    id: str
    kind: BackupJobKind
    location: str
    state: BackupJobState = BackupJobState.QUEUED
    phase: BackupJobPhase = BackupJobPhase.READ
    options: Dict[str, Any] = field(default_factory=dict)
    result: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


def current_millis() -> int:
    return int(_utcnow().timestamp() * 1000)
