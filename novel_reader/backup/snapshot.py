from __future__ import annotations

import platform
from typing import Callable

from .. import __version__
from .models import CURRENT_VERSION, BackupDocument, current_millis
from .repository import STREAK_KEY, Category, SettingsStore, StoreReader
from .settings import AppSettingsRecord, ReaderSettingsRecord


def default_device_info() -> str:
    return f"{platform.node() or 'unknown'} ({platform.system()} {platform.release()})".strip()


class SnapshotBuilder:
    """
    Reads every live collection once and assembles a native document. Pure
    field mapping; a store that never saved settings exports the defaults.
    """

    def __init__(
        self,
        store: StoreReader,
        settings_store: SettingsStore,
        producer_version: str = __version__,
        device_info: str = "",
        clock: Callable[[], int] = current_millis,
    ):
        self.store = store
        self.settings_store = settings_store
        self.producer_version = producer_version
        self.device_info = device_info or default_device_info()
        self.clock = clock

    def build(self) -> BackupDocument:
        settings = self.settings_store.get_settings()
        return BackupDocument(
            schema_version=CURRENT_VERSION,
            created_at=self.clock(),
            producer_version=self.producer_version,
            device_info=self.device_info,
            library=self.store.get_all(Category.LIBRARY),
            bookmarks=self.store.get_all(Category.BOOKMARKS),
            history=self.store.get_all(Category.HISTORY),
            read_chapters=self.store.get_all(Category.READ_CHAPTERS),
            reading_stats=self.store.get_all(Category.READING_STATS),
            reading_streak=self.store.get_by_key(Category.READING_STREAK, STREAK_KEY),
            app_settings=settings.app or AppSettingsRecord(),
            reader_settings=settings.reader or ReaderSettingsRecord(),
        )
