from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import fields
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any, Dict, Hashable, List, Optional, Type

from sqlalchemy import BigInteger, Column, DateTime, Enum, Integer, String, Text, create_engine, delete, select, update
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .enums import BackupJobKind, BackupJobPhase, BackupJobState, ReadingStatus
from .models import (
    BackupJobRecord,
    BookmarkRecord,
    HistoryRecord,
    LibraryRecord,
    ReadChapterRecord,
    ReadingStatsRecord,
    ReadingStreakRecord,
)
from .serializer import record_from_dict, record_to_dict
from .settings import AppSettingsRecord, ReaderSettingsRecord, SettingsBlob

# The streak is a singleton row; this is its key.
STREAK_KEY = 1


class Category(str, PyEnum):
    LIBRARY = "library"
    BOOKMARKS = "bookmarks"
    HISTORY = "history"
    READ_CHAPTERS = "read_chapters"
    READING_STATS = "reading_stats"
    READING_STREAK = "reading_streak"


RECORD_TYPES: Dict[Category, type] = {
    Category.LIBRARY: LibraryRecord,
    Category.BOOKMARKS: BookmarkRecord,
    Category.HISTORY: HistoryRecord,
    Category.READ_CHAPTERS: ReadChapterRecord,
    Category.READING_STATS: ReadingStatsRecord,
    Category.READING_STREAK: ReadingStreakRecord,
}


def natural_key(category: Category, row: Any) -> Optional[Hashable]:
    """Key a row is upserted by. Bookmarks have none and are always appended."""
    if category == Category.LIBRARY:
        return row.url
    if category == Category.HISTORY:
        return row.novel_url
    if category == Category.READ_CHAPTERS:
        return (row.novel_url, row.chapter_url)
    if category == Category.READING_STATS:
        return (row.novel_url, row.date)
    if category == Category.READING_STREAK:
        return STREAK_KEY
    return None


class StoreReader:
    def get_all(self, category: Category) -> List[Any]:
        raise NotImplementedError

    def get_by_key(self, category: Category, key: Hashable) -> Optional[Any]:
        raise NotImplementedError


class StoreWriter:
    def insert(self, category: Category, row: Any) -> None:
        """Upsert by natural key; bookmarks are plain inserts."""
        raise NotImplementedError

    def delete_all(self, category: Category) -> None:
        raise NotImplementedError

    def delete_by_key(self, category: Category, key: Hashable) -> None:
        raise NotImplementedError


class SettingsStore:
    def get_settings(self) -> SettingsBlob:
        raise NotImplementedError

    def set_settings(self, settings: SettingsBlob) -> None:
        raise NotImplementedError


class BackupRepository(StoreReader, StoreWriter, SettingsStore):
    """
    Persistence boundary for the reading state that gets backed up, plus the
    backup job bookkeeping. Implementations can target SQLite/Postgres or any
    other backing store. All methods are synchronous.
    """

    # Backup job operations
    def get_job(self, job_id: str) -> Optional[BackupJobRecord]:
        raise NotImplementedError

    def save_job(self, job: BackupJobRecord) -> None:
        raise NotImplementedError

    def update_job(
        self,
        job_id: str,
        state: Optional[BackupJobState] = None,
        phase: Optional[BackupJobPhase] = None,
        result: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> None:
        raise NotImplementedError


class InMemoryBackupRepository(BackupRepository):
    """
    Simple in-memory store for local runs and tests. It keeps copies of
    dataclasses to avoid cross-mutation between calls.
    """

    def __init__(self):
        self.rows: Dict[Category, Dict[Hashable, Any]] = {c: {} for c in Category if c != Category.BOOKMARKS}
        self.bookmarks: List[BookmarkRecord] = []
        self.settings = SettingsBlob()
        self.jobs: Dict[str, BackupJobRecord] = {}

    def _clone(self, obj):
        return deepcopy(obj)

    def get_all(self, category: Category) -> List[Any]:
        if category == Category.BOOKMARKS:
            return [self._clone(b) for b in self.bookmarks]
        return [self._clone(r) for r in self.rows[category].values()]

    def get_by_key(self, category: Category, key: Hashable) -> Optional[Any]:
        if category == Category.BOOKMARKS:
            return None
        row = self.rows[category].get(key)
        return self._clone(row) if row else None

    def insert(self, category: Category, row: Any) -> None:
        if category == Category.BOOKMARKS:
            self.bookmarks.append(self._clone(row))
            return
        self.rows[category][natural_key(category, row)] = self._clone(row)

    def delete_all(self, category: Category) -> None:
        if category == Category.BOOKMARKS:
            self.bookmarks.clear()
        else:
            self.rows[category].clear()

    def delete_by_key(self, category: Category, key: Hashable) -> None:
        if category != Category.BOOKMARKS:
            self.rows[category].pop(key, None)

    def get_settings(self) -> SettingsBlob:
        return self._clone(self.settings)

    def set_settings(self, settings: SettingsBlob) -> None:
        self.settings = self._clone(settings)

    def get_job(self, job_id: str) -> Optional[BackupJobRecord]:
        job = self.jobs.get(job_id)
        return self._clone(job) if job else None

    def save_job(self, job: BackupJobRecord) -> None:
        self.jobs[job.id] = self._clone(job)

    def update_job(
        self,
        job_id: str,
        state: Optional[BackupJobState] = None,
        phase: Optional[BackupJobPhase] = None,
        result: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> None:
        job = self.jobs.get(job_id)
        if not job:
            return
        if state is not None:
            job.state = state
        if phase is not None:
            job.phase = phase
        if result is not None:
            job.result = dict(result)
        if error_message is not None:
            job.error_message = error_message
        job.updated_at = datetime.now(timezone.utc)
        self.jobs[job_id] = self._clone(job)


Base = declarative_base()


class LibraryModel(Base):
    __tablename__ = "library"
    url = Column(String, primary_key=True)
    name = Column(String)
    api_name = Column(String)
    added_at = Column(BigInteger)
    reading_status = Column(Enum(ReadingStatus))
    poster_url = Column(String)
    latest_chapter = Column(String)
    last_chapter_url = Column(String)
    last_chapter_name = Column(String)
    last_read_at = Column(BigInteger)
    last_scroll_index = Column(Integer)
    last_scroll_offset = Column(Integer)
    total_chapter_count = Column(Integer)
    acknowledged_chapter_count = Column(Integer)
    last_checked_at = Column(BigInteger)
    last_updated_at = Column(BigInteger)
    last_read_chapter_index = Column(Integer)
    unread_chapter_count = Column(Integer)


class BookmarkModel(Base):
    __tablename__ = "bookmarks"
    id = Column(Integer, primary_key=True, autoincrement=True)
    novel_url = Column(String, index=True)
    novel_name = Column(String)
    chapter_url = Column(String)
    chapter_name = Column(String)
    created_at = Column(BigInteger)
    updated_at = Column(BigInteger)
    segment_id = Column(String)
    segment_index = Column(Integer)
    text_snippet = Column(Text)
    note = Column(Text)
    category = Column(String)
    color = Column(String)


class HistoryModel(Base):
    __tablename__ = "history"
    novel_url = Column(String, primary_key=True)
    novel_name = Column(String)
    chapter_name = Column(String)
    chapter_url = Column(String)
    api_name = Column(String)
    timestamp = Column(BigInteger)
    poster_url = Column(String)


class ReadChapterModel(Base):
    __tablename__ = "read_chapters"
    novel_url = Column(String, primary_key=True)
    chapter_url = Column(String, primary_key=True)
    read_at = Column(BigInteger)


class ReadingStatsModel(Base):
    __tablename__ = "reading_stats"
    novel_url = Column(String, primary_key=True)
    date = Column(BigInteger, primary_key=True)
    novel_name = Column(String)
    reading_time_seconds = Column(BigInteger)
    chapters_read = Column(Integer)
    words_read = Column(BigInteger)
    sessions_count = Column(Integer)
    longest_session_seconds = Column(BigInteger)
    created_at = Column(BigInteger)
    updated_at = Column(BigInteger)


class ReadingStreakModel(Base):
    __tablename__ = "reading_streak"
    id = Column(Integer, primary_key=True)
    current_streak = Column(Integer)
    longest_streak = Column(Integer)
    last_read_date = Column(BigInteger)
    total_days_read = Column(Integer)
    total_reading_time_seconds = Column(BigInteger)
    updated_at = Column(BigInteger)


class SettingsModel(Base):
    __tablename__ = "settings"
    key = Column(String, primary_key=True)
    payload_json = Column(Text)


class BackupJobModel(Base):
    __tablename__ = "backup_jobs"
    id = Column(String, primary_key=True)
    kind = Column(Enum(BackupJobKind))
    location = Column(String)
    state = Column(Enum(BackupJobState))
    phase = Column(Enum(BackupJobPhase))
    options_json = Column(Text)
    result_json = Column(Text)
    error_message = Column(String)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


MODEL_TYPES: Dict[Category, Type[Base]] = {
    Category.LIBRARY: LibraryModel,
    Category.BOOKMARKS: BookmarkModel,
    Category.HISTORY: HistoryModel,
    Category.READ_CHAPTERS: ReadChapterModel,
    Category.READING_STATS: ReadingStatsModel,
    Category.READING_STREAK: ReadingStreakModel,
}


class SqlAlchemyBackupRepository(BackupRepository):
    """
    SQL-backed repository using SQLAlchemy. Works with SQLite/Postgres URLs.
    Table columns mirror the record field names one to one.
    """

    def __init__(self, database_url: str):
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self.SessionLocal()

    def _to_record(self, category: Category, model) -> Any:
        record_type = RECORD_TYPES[category]
        return record_type(**{f.name: getattr(model, f.name) for f in fields(record_type)})

    def _to_model(self, category: Category, row: Any):
        values = {f.name: getattr(row, f.name) for f in fields(row)}
        if category == Category.READING_STREAK:
            values["id"] = STREAK_KEY
        return MODEL_TYPES[category](**values)

    # region Reading state
    def get_all(self, category: Category) -> List[Any]:
        model_type = MODEL_TYPES[category]
        with self._session() as session:
            stmt = select(model_type)
            if category == Category.BOOKMARKS:
                stmt = stmt.order_by(BookmarkModel.id)
            models = session.execute(stmt).scalars().all()
            return [self._to_record(category, m) for m in models]

    def get_by_key(self, category: Category, key: Hashable) -> Optional[Any]:
        if category == Category.BOOKMARKS:
            return None
        with self._session() as session:
            model = session.get(MODEL_TYPES[category], key)
            if not model:
                return None
            return self._to_record(category, model)

    def insert(self, category: Category, row: Any) -> None:
        with self._session() as session:
            model = self._to_model(category, row)
            if category == Category.BOOKMARKS:
                session.add(model)
            else:
                session.merge(model)
            session.commit()

    def delete_all(self, category: Category) -> None:
        with self._session() as session:
            session.execute(delete(MODEL_TYPES[category]))
            session.commit()

    def delete_by_key(self, category: Category, key: Hashable) -> None:
        if category == Category.BOOKMARKS:
            return
        with self._session() as session:
            model = session.get(MODEL_TYPES[category], key)
            if model:
                session.delete(model)
                session.commit()

    # endregion

    # region Settings
    def get_settings(self) -> SettingsBlob:
        with self._session() as session:
            app = session.get(SettingsModel, "app")
            reader = session.get(SettingsModel, "reader")
            return SettingsBlob(
                app=record_from_dict(AppSettingsRecord, json.loads(app.payload_json)) if app else None,
                reader=record_from_dict(ReaderSettingsRecord, json.loads(reader.payload_json)) if reader else None,
            )

    def set_settings(self, settings: SettingsBlob) -> None:
        with self._session() as session:
            for key, record in (("app", settings.app), ("reader", settings.reader)):
                if record is None:
                    continue
                session.merge(SettingsModel(key=key, payload_json=json.dumps(record_to_dict(record))))
            session.commit()

    # endregion

    # region Job operations
    def get_job(self, job_id: str) -> Optional[BackupJobRecord]:
        with self._session() as session:
            model = session.get(BackupJobModel, job_id)
            if not model:
                return None
            return BackupJobRecord(
                id=model.id,
                kind=model.kind,
                location=model.location,
                state=model.state,
                phase=model.phase,
                options=json.loads(model.options_json or "{}"),
                result=json.loads(model.result_json or "{}"),
                error_message=model.error_message,
                created_at=model.created_at,
                updated_at=model.updated_at,
            )

    def save_job(self, job: BackupJobRecord) -> None:
        with self._session() as session:
            model = BackupJobModel(
                id=job.id,
                kind=job.kind,
                location=job.location,
                state=job.state,
                phase=job.phase,
                options_json=json.dumps(job.options or {}),
                result_json=json.dumps(job.result or {}),
                error_message=job.error_message,
                created_at=job.created_at,
                updated_at=job.updated_at,
            )
            session.merge(model)
            session.commit()

    def update_job(
        self,
        job_id: str,
        state: Optional[BackupJobState] = None,
        phase: Optional[BackupJobPhase] = None,
        result: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> None:
        with self._session() as session:
            stmt = update(BackupJobModel).where(BackupJobModel.id == job_id)
            values: Dict[str, Any] = {}
            if state is not None:
                values["state"] = state
            if phase is not None:
                values["phase"] = phase
            if result is not None:
                values["result_json"] = json.dumps(result)
            if error_message is not None:
                values["error_message"] = error_message
            if values:
                values["updated_at"] = datetime.now(timezone.utc)
                session.execute(stmt.values(**values))
                session.commit()

    # endregion
