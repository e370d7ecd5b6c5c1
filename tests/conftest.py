import json

import pytest

from novel_reader.backup import (
    AppSettingsRecord,
    BackupDocument,
    BookmarkRecord,
    HistoryRecord,
    InMemoryBackupRepository,
    LibraryRecord,
    ReadChapterRecord,
    ReaderSettingsRecord,
    ReadingStatsRecord,
    ReadingStatus,
    ReadingStreakRecord,
)

FIXED_NOW = 1_700_000_000_000


@pytest.fixture
def repo():
    return InMemoryBackupRepository()


@pytest.fixture
def sample_document():
    return BackupDocument(
        created_at=FIXED_NOW,
        producer_version="0.1.0",
        device_info="test-device",
        library=[
            LibraryRecord(
                url="https://novelbin.com/b/sword-god",
                name="Sword God",
                api_name="NovelBin",
                added_at=1_600_000_000_000,
                reading_status=ReadingStatus.COMPLETED,
                last_read_at=1_650_000_000_000,
                total_chapter_count=120,
                last_read_chapter_index=119,
            ),
            LibraryRecord(
                url="https://royalroad.com/fiction/1",
                name="Mother of Learning",
                api_name="RoyalRoad",
                added_at=1_600_000_000_500,
            ),
        ],
        bookmarks=[
            BookmarkRecord(
                novel_url="https://novelbin.com/b/sword-god",
                novel_name="Sword God",
                chapter_url="https://novelbin.com/b/sword-god/c1",
                chapter_name="Chapter 1",
                created_at=1,
                updated_at=2,
                text_snippet="剑光一闪, the hall fell silent.",
            )
        ],
        history=[
            HistoryRecord(
                novel_url="https://novelbin.com/b/sword-god",
                novel_name="Sword God",
                chapter_name="Chapter 119",
                chapter_url="https://novelbin.com/b/sword-god/c119",
                api_name="NovelBin",
                timestamp=1_650_000_000_000,
            )
        ],
        read_chapters=[
            ReadChapterRecord(
                chapter_url="https://novelbin.com/b/sword-god/c1",
                novel_url="https://novelbin.com/b/sword-god",
                read_at=1_640_000_000_000,
            ),
            ReadChapterRecord(
                chapter_url="https://novelbin.com/b/sword-god/c2",
                novel_url="https://novelbin.com/b/sword-god",
                read_at=1_640_000_100_000,
            ),
        ],
        reading_stats=[
            ReadingStatsRecord(
                novel_url="https://novelbin.com/b/sword-god",
                novel_name="Sword God",
                date=19_000,
                reading_time_seconds=3600,
                chapters_read=4,
            )
        ],
        reading_streak=ReadingStreakRecord(current_streak=3, longest_streak=9, total_days_read=40),
        app_settings=AppSettingsRecord(auto_download_limit=25),
        reader_settings=ReaderSettingsRecord(font_size=21),
    )


def quicknovel_payload(strings=None, settings=None):
    """Build a QuickNovel datastore dump around the given ``_String`` entries."""
    payload = {
        "datastore": {"_Bool": {}, "_Int": {}, "_String": strings or {}, "_Float": {}, "_Long": {}, "_StringSet": {}},
    }
    if settings is not None:
        payload["settings"] = settings
    return json.dumps(payload).encode("utf-8")


def quicknovel_novel(source, name, api_name="NovelBin", **extra):
    novel = {"source": source, "name": name, "apiName": api_name}
    novel.update(extra)
    return json.dumps(novel)
