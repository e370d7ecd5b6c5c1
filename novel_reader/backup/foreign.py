"""
Converter for QuickNovel backups.

QuickNovel dumps its key-value datastore as typed buckets (``_Bool``,
``_Int``, ``_String``, ...), each a flat map from a slash-addressed key to a
value. Novels, their reading status and their read positions live in
``_String`` under separate prefixes, some addressed by numeric id and some by
display name. Conversion runs one classification pass over ``_String`` using
``CLASSIFICATION_RULES`` and then rebuilds native records per novel.

The foreign schema has no chapter URLs, so chapters are addressed with a
synthesized ``{source}#chapter-{index}`` URL. That mapping is one-way.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import with_config

from .enums import DisplayMode, ReaderTheme, ReadingStatus, ThemeMode
from .errors import FormatError
from .models import (
    CURRENT_VERSION,
    FOREIGN_DEVICE_INFO,
    FOREIGN_PRODUCER_VERSION,
    BackupDocument,
    HistoryRecord,
    LibraryRecord,
    ReadChapterRecord,
    current_millis,
)
from .schema import RECORD_CONFIG
from .serializer import load_json_object, record_from_dict
from .settings import AppSettingsRecord, ReaderSettingsRecord

logger = logging.getLogger(__name__)

POSITION_PREFIX = "reader_epub_position/"
CHAPTER_NAME_PREFIX = "reader_epub_position_chapter/"
SCROLL_PREFIX = "reader_epub_position_scroll_char/"
READ_PREFIX = "reader_epub_position_read/"
LAST_ACCESS_PREFIX = "downloads_epub_last_access/"
TTS_SPEED_KEY = "reader_epub_tts_speed"

AUTO_SCROLL_SPEED_RANGE = (0.5, 3.0)

STATUS_CODES: Dict[int, ReadingStatus] = {
    0: ReadingStatus.READING,  # bookmarked without a status
    1: ReadingStatus.PLAN_TO_READ,
    2: ReadingStatus.READING,
    3: ReadingStatus.COMPLETED,
    4: ReadingStatus.ON_HOLD,
    5: ReadingStatus.READING,  # "following" an ongoing novel
}
DEFAULT_STATUS = ReadingStatus.READING

PROVIDER_NAMES: Dict[str, str] = {
    "novelbin": "NovelBin",
    "libread": "LibRead",
    "webnovel": "WebNovel",
    "royal road": "RoyalRoad",
    "royalroad": "RoyalRoad",
    "novelsonline": "NovelsOnline",
    "freewebnovel": "FreeWebNovel",
    "mtlnovel": "MtlNovel",
    "scribblehub": "ScribbleHub",
    "wuxiaworld": "WuxiaWorld",
}


@with_config(RECORD_CONFIG)
@dataclass
class ForeignImage:
    url: Optional[str] = None


@with_config(RECORD_CONFIG)
@dataclass
class ForeignNovel:
    """Payload of ``result_bookmarked/{id}`` and ``result_history/{id}``."""

    source: str
    name: str
    api_name: str
    id: Optional[int] = None
    author: Optional[str] = None
    poster: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    rating: Optional[int] = None
    total_chapters: Optional[int] = None
    cached_time: Optional[int] = None
    synopsis: Optional[str] = None
    image: Optional[ForeignImage] = None

    @property
    def poster_url(self) -> Optional[str]:
        return self.poster or (self.image.url if self.image else None)


@with_config(RECORD_CONFIG)
@dataclass
class ForeignDownload:
    """Payload of ``downloads_data/{id}``."""

    source: str
    name: str
    api_name: str
    author: Optional[str] = None
    poster_url: Optional[str] = None
    rating: Optional[int] = None
    people_voted: Optional[int] = None
    views: Optional[int] = None
    synopsis: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    last_updated: Optional[int] = None
    last_downloaded: Optional[int] = None


@dataclass
class ForeignBuckets:
    bools: Dict[str, bool] = field(default_factory=dict)
    ints: Dict[str, int] = field(default_factory=dict)
    strings: Dict[str, str] = field(default_factory=dict)
    floats: Dict[str, float] = field(default_factory=dict)
    longs: Dict[str, int] = field(default_factory=dict)
    string_sets: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "ForeignBuckets":
        if not isinstance(payload, dict):
            return cls()

        def bucket(name: str) -> Dict[str, Any]:
            value = payload.get(name)
            return value if isinstance(value, dict) else {}

        return cls(
            bools=bucket("_Bool"),
            ints=bucket("_Int"),
            # Only string values are addressable; anything else is noise.
            strings={k: v for k, v in bucket("_String").items() if isinstance(v, str)},
            floats=bucket("_Float"),
            longs=bucket("_Long"),
            string_sets=bucket("_StringSet"),
        )


@dataclass
class Classification:
    bookmarked: Dict[int, ForeignNovel] = field(default_factory=dict)
    states: Dict[int, int] = field(default_factory=dict)
    history: Dict[int, ForeignNovel] = field(default_factory=dict)
    downloads: Dict[int, ForeignDownload] = field(default_factory=dict)


def _store_state(result: Classification, novel_id: int, value: str) -> None:
    result.states[novel_id] = _to_int(value) or 0


def _store_bookmarked(result: Classification, novel_id: int, value: str) -> None:
    result.bookmarked[novel_id] = record_from_dict(ForeignNovel, json.loads(value))


def _store_history(result: Classification, novel_id: int, value: str) -> None:
    result.history[novel_id] = record_from_dict(ForeignNovel, json.loads(value))


def _store_download(result: Classification, novel_id: int, value: str) -> None:
    result.downloads[novel_id] = record_from_dict(ForeignDownload, json.loads(value))


@dataclass(frozen=True)
class PrefixRule:
    prefix: str
    apply: Callable[[Classification, int, str], None]

    def match(self, key: str) -> Optional[int]:
        """Return the embedded numeric id when ``key`` belongs to this rule."""
        if not key.startswith(self.prefix):
            return None
        return _to_int(key[len(self.prefix):])


# First match wins, so a prefix must come before any shorter prefix it extends.
CLASSIFICATION_RULES: Tuple[PrefixRule, ...] = (
    PrefixRule("result_bookmarked_state/", _store_state),
    PrefixRule("result_bookmarked/", _store_bookmarked),
    PrefixRule("result_history/", _store_history),
    PrefixRule("downloads_data/", _store_download),
)


def classify(strings: Dict[str, str], rules: Tuple[PrefixRule, ...] = CLASSIFICATION_RULES) -> Classification:
    result = Classification()
    for key, value in strings.items():
        for rule in rules:
            if not key.startswith(rule.prefix):
                continue
            novel_id = rule.match(key)
            if novel_id is not None:
                try:
                    rule.apply(result, novel_id, value)
                except (ValueError, FormatError) as exc:
                    logger.warning("Skipping unreadable QuickNovel entry %s: %s", key, exc)
            break
    return result


def map_reading_status(code: int) -> ReadingStatus:
    return STATUS_CODES.get(code, DEFAULT_STATUS)


def normalize_provider(api_name: str) -> str:
    return PROVIDER_NAMES.get(api_name.lower(), api_name)


def chapter_url(source: str, index: int) -> str:
    return f"{source}#chapter-{index}"


class QuickNovelConverter:
    """
    Turns a QuickNovel backup into a native ``BackupDocument``. Individual
    malformed entries are skipped; only an unreadable document as a whole
    raises ``FormatError``.
    """

    def __init__(self, clock: Callable[[], int] = current_millis):
        self.clock = clock

    def convert(self, data: Union[bytes, str]) -> BackupDocument:
        payload = load_json_object(data)
        if not isinstance(payload.get("datastore"), dict):
            raise FormatError("QuickNovel backup has no datastore object")
        datastore = ForeignBuckets.from_payload(payload["datastore"])
        settings = ForeignBuckets.from_payload(payload["settings"]) if isinstance(payload.get("settings"), dict) else None
        strings = datastore.strings
        now = self.clock()

        classified = classify(strings)
        download_posters = {d.source: d.poster_url for d in classified.downloads.values() if d.poster_url}

        library = [
            self._build_library(novel_id, novel, classified.states.get(novel_id, 0), strings, download_posters, now)
            for novel_id, novel in classified.bookmarked.items()
        ]
        history = [self._build_history(novel, strings, now) for novel in classified.history.values()]
        read_chapters = self._build_read_chapters(strings, classified)

        logger.info(
            "Converted QuickNovel backup: %d library, %d history, %d read chapters",
            len(library),
            len(history),
            len(read_chapters),
        )
        return BackupDocument(
            schema_version=CURRENT_VERSION,
            created_at=now,
            producer_version=FOREIGN_PRODUCER_VERSION,
            device_info=FOREIGN_DEVICE_INFO,
            library=library,
            # QuickNovel bookmarks are whole chapters, not in-text marks, and
            # it keeps no reading statistics.
            bookmarks=[],
            history=history,
            read_chapters=read_chapters,
            reading_stats=[],
            reading_streak=None,
            app_settings=self._build_app_settings(settings),
            reader_settings=self._build_reader_settings(strings, settings),
        )

    def _build_library(
        self,
        novel_id: int,
        novel: ForeignNovel,
        state: int,
        strings: Dict[str, str],
        download_posters: Dict[str, str],
        now: int,
    ) -> LibraryRecord:
        index, chapter_name, scroll = _read_position(strings, novel.name)
        last_read_at = find_last_read_timestamp(strings, novel.name, index)
        if last_read_at is None:
            last_read_at = _to_int(strings.get(f"{LAST_ACCESS_PREFIX}{novel_id}"))
        if last_read_at is None:
            last_read_at = novel.cached_time
        total = novel.total_chapters or 0
        return LibraryRecord(
            url=novel.source,
            name=novel.name,
            api_name=normalize_provider(novel.api_name),
            added_at=novel.cached_time if novel.cached_time is not None else now,
            reading_status=map_reading_status(state),
            poster_url=novel.poster_url or download_posters.get(novel.source),
            last_chapter_name=chapter_name or None,
            last_read_at=last_read_at,
            # QuickNovel tracks a character offset, not a paragraph index.
            last_scroll_index=0,
            last_scroll_offset=scroll,
            total_chapter_count=total,
            acknowledged_chapter_count=total,
            last_checked_at=novel.cached_time or 0,
            last_updated_at=novel.cached_time or 0,
            last_read_chapter_index=index,
            unread_chapter_count=max(0, total - index - 1),
        )

    def _build_history(self, novel: ForeignNovel, strings: Dict[str, str], now: int) -> HistoryRecord:
        index, chapter_name, _ = _read_position(strings, novel.name)
        timestamp = find_last_read_timestamp(strings, novel.name, index)
        if timestamp is None:
            timestamp = novel.cached_time if novel.cached_time is not None else now
        return HistoryRecord(
            novel_url=novel.source,
            novel_name=novel.name,
            poster_url=novel.poster_url,
            chapter_name=chapter_name or f"Chapter {index + 1}",
            chapter_url=chapter_url(novel.source, index),
            api_name=normalize_provider(novel.api_name),
            timestamp=timestamp,
        )

    def _build_read_chapters(self, strings: Dict[str, str], classified: Classification) -> List[ReadChapterRecord]:
        sources: Dict[str, str] = {}
        for novel in list(classified.bookmarked.values()) + list(classified.history.values()):
            sources.setdefault(novel.name, novel.source)

        records: List[ReadChapterRecord] = []
        for key, value in strings.items():
            if not key.startswith(READ_PREFIX):
                continue
            # Names may contain "/", so only the last separator delimits the index.
            name, sep, raw_index = key[len(READ_PREFIX):].rpartition("/")
            if not sep or not name:
                continue
            index = _to_int(raw_index)
            read_at = _to_int(value)
            source = sources.get(name)
            if index is None or read_at is None or source is None:
                continue
            records.append(ReadChapterRecord(chapter_url=chapter_url(source, index), novel_url=source, read_at=read_at))
        return records

    def _build_app_settings(self, settings: Optional[ForeignBuckets]) -> Optional[AppSettingsRecord]:
        if settings is None:
            return None
        theme_key = str(settings.strings.get("theme_key") or "").lower()
        display_mode = DisplayMode.LIST if settings.strings.get("download_format") == "list" else DisplayMode.GRID
        providers = settings.string_sets.get("search_providers_list") or []
        return AppSettingsRecord(
            theme_mode=ThemeMode.LIGHT if "light" in theme_key else ThemeMode.DARK,
            amoled_black="amoled" in theme_key,
            library_display_mode=display_mode,
            browse_display_mode=display_mode,
            search_display_mode=display_mode,
            provider_order=[str(p) for p in providers],
            disabled_providers=[],
            # An external reader means the in-app screen lock setting is moot.
            keep_screen_on=settings.bools.get("external_reader") is not True,
        )

    def _build_reader_settings(self, strings: Dict[str, str], settings: Optional[ForeignBuckets]) -> ReaderSettingsRecord:
        theme_key = str(settings.strings.get("theme_key") or "").lower() if settings else ""
        if "amoled" in theme_key:
            theme = ReaderTheme.AMOLED
        elif "dark" in theme_key:
            theme = ReaderTheme.DARK
        elif "light" in theme_key:
            theme = ReaderTheme.LIGHT
        else:
            theme = ReaderTheme.DARK

        # TTS speed is the only pacing preference QuickNovel keeps.
        speed = _to_float(strings.get(TTS_SPEED_KEY))
        low, high = AUTO_SCROLL_SPEED_RANGE
        return ReaderSettingsRecord(
            theme=theme,
            auto_scroll_speed=min(max(speed if speed is not None else 1.0, low), high),
        )


def find_last_read_timestamp(strings: Dict[str, str], name: str, current_index: int) -> Optional[int]:
    """
    Read timestamp of the current chapter, else the latest read timestamp of
    any chapter of the novel.
    """
    exact = _to_int(strings.get(f"{READ_PREFIX}{name}/{current_index}"))
    if exact is not None:
        return exact
    prefix = f"{READ_PREFIX}{name}/"
    latest: Optional[int] = None
    for key, value in strings.items():
        if not key.startswith(prefix) or "/" in key[len(prefix):]:
            continue
        timestamp = _to_int(value)
        if timestamp is not None and (latest is None or timestamp > latest):
            latest = timestamp
    return latest


def _read_position(strings: Dict[str, str], name: str) -> Tuple[int, str, int]:
    index = _to_int(strings.get(f"{POSITION_PREFIX}{name}")) or 0
    chapter_name = (strings.get(f"{CHAPTER_NAME_PREFIX}{name}") or "").strip().strip('"').strip()
    scroll = _to_int(strings.get(f"{SCROLL_PREFIX}{name}")) or 0
    return index, chapter_name, scroll


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _to_float(value: Optional[str]) -> Optional[float]:
    """Parse a finite float; NaN and infinities read as absent."""
    if value is None:
        return None
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None
