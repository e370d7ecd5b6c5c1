from __future__ import annotations

import logging
import threading
from typing import Optional, Set

from .errors import PartialRestoreError, VersionError
from .models import CURRENT_VERSION, BackupDocument, RestoreOptions, RestoreResult
from .repository import STREAK_KEY, Category, SettingsStore, StoreReader, StoreWriter
from .settings import SettingsBlob

logger = logging.getLogger(__name__)


class BackupStore(StoreReader, StoreWriter):
    """Read/write view of the reading state a restore needs."""


class RestoreOrchestrator:
    """
    Applies a decoded document to the live store, category by category.

    There is no cross-category transaction: a failure part way through leaves
    the earlier categories committed and reports what was written so far.
    """

    def __init__(self, store: BackupStore, settings_store: SettingsStore):
        self.store = store
        self.settings_store = settings_store
        self._lock = threading.Lock()

    def restore(self, document: BackupDocument, options: Optional[RestoreOptions] = None) -> RestoreResult:
        options = options or RestoreOptions()
        if not document.is_foreign and document.schema_version > CURRENT_VERSION:
            error = VersionError(document.schema_version, CURRENT_VERSION)
            logger.warning("Refusing restore: %s", error)
            return RestoreResult.from_error(error)

        with self._lock:
            result = RestoreResult(success=True)
            try:
                if not options.merge_with_existing:
                    self._clear(options)
                self._apply(document, options, result)
            except Exception as exc:  # noqa: BLE001
                logger.error("Restore stopped after %d items: %s", result.total_items_restored, exc)
                return RestoreResult.from_error(PartialRestoreError(str(exc), result))

        logger.info(
            "Restored %d items (library=%d bookmarks=%d history=%d read_chapters=%d stats=%d settings=%s)",
            result.total_items_restored,
            result.library_restored,
            result.bookmarks_restored,
            result.history_restored,
            result.read_chapters_restored,
            result.stats_restored,
            result.settings_restored,
        )
        return result

    # region Destructive phase
    def _clear(self, options: RestoreOptions) -> None:
        # Library URLs as they were before anything is cleared.
        library_urls: Set[str] = {row.url for row in self.store.get_all(Category.LIBRARY)}

        if options.restore_library:
            self.store.delete_all(Category.LIBRARY)
        if options.restore_bookmarks:
            self.store.delete_all(Category.BOOKMARKS)
        if options.restore_history:
            self.store.delete_all(Category.HISTORY)
            for row in self.store.get_all(Category.READ_CHAPTERS):
                if row.novel_url in library_urls:
                    self.store.delete_by_key(Category.READ_CHAPTERS, (row.novel_url, row.chapter_url))
        if options.restore_statistics:
            self.store.delete_all(Category.READING_STATS)
            self.store.delete_all(Category.READING_STREAK)

    # endregion

    # region Apply phase
    def _apply(self, document: BackupDocument, options: RestoreOptions, result: RestoreResult) -> None:
        merging = options.merge_with_existing

        if options.restore_library:
            for item in document.library:
                existing = self.store.get_by_key(Category.LIBRARY, item.url) if merging else None
                if existing is None or (item.last_read_at or 0) > (existing.last_read_at or 0):
                    self.store.insert(Category.LIBRARY, item)
                    result.library_restored += 1

        if options.restore_bookmarks:
            for bookmark in document.bookmarks:
                self.store.insert(Category.BOOKMARKS, bookmark)
                result.bookmarks_restored += 1

        if options.restore_history:
            for entry in document.history:
                existing = self.store.get_by_key(Category.HISTORY, entry.novel_url)
                if existing is None or entry.timestamp > existing.timestamp:
                    self.store.insert(Category.HISTORY, entry)
                    result.history_restored += 1
            for chapter in document.read_chapters:
                self.store.insert(Category.READ_CHAPTERS, chapter)
                result.read_chapters_restored += 1

        if options.restore_statistics:
            for stats in document.reading_stats:
                self.store.insert(Category.READING_STATS, stats)
                result.stats_restored += 1
            streak = document.reading_streak
            if streak is not None:
                existing = self.store.get_by_key(Category.READING_STREAK, STREAK_KEY)
                if existing is None or streak.longest_streak > existing.longest_streak:
                    self.store.insert(Category.READING_STREAK, streak)

        if options.restore_settings:
            if document.app_settings is not None or document.reader_settings is not None:
                current = self.settings_store.get_settings()
                self.settings_store.set_settings(
                    SettingsBlob(
                        app=document.app_settings or current.app,
                        reader=document.reader_settings or current.reader,
                    )
                )
            result.settings_restored = True

    # endregion
