from novel_reader.backup import (
    AppSettingsRecord,
    Category,
    ReaderSettingsRecord,
    RestoreOrchestrator,
    SnapshotBuilder,
    encode,
    extract_metadata,
)
from novel_reader.backup.models import FOREIGN_SOURCE_APP, NATIVE_SOURCE_APP

from conftest import FIXED_NOW, quicknovel_novel, quicknovel_payload


def test_snapshot_of_empty_store_exports_default_settings(repo):
    doc = SnapshotBuilder(repo, repo, producer_version="9.9", device_info="pixel", clock=lambda: FIXED_NOW).build()
    assert doc.created_at == FIXED_NOW
    assert doc.producer_version == "9.9" and doc.device_info == "pixel"
    assert doc.library == [] and doc.reading_streak is None
    assert doc.app_settings == AppSettingsRecord()
    assert doc.reader_settings == ReaderSettingsRecord()


def test_snapshot_reflects_restored_state(repo, sample_document):
    RestoreOrchestrator(repo, repo).restore(sample_document)
    doc = SnapshotBuilder(repo, repo, device_info="test-device", clock=lambda: FIXED_NOW).build()

    assert sorted(r.url for r in doc.library) == sorted(r.url for r in sample_document.library)
    assert doc.bookmarks == sample_document.bookmarks
    assert doc.reading_streak == sample_document.reading_streak
    assert doc.reader_settings.font_size == 21
    assert len(repo.get_all(Category.READ_CHAPTERS)) == len(doc.read_chapters)


def test_metadata_for_native_backup(sample_document):
    meta = extract_metadata(encode(sample_document))
    assert meta.version == 1
    assert meta.created_at == FIXED_NOW
    assert meta.producer_version == "0.1.0"
    assert meta.device_info == "test-device"
    assert meta.library_count == 2
    assert meta.bookmark_count == 1
    assert meta.history_count == 1
    assert meta.read_chapters_count == 2
    assert meta.has_settings and meta.has_statistics
    assert meta.source_app == NATIVE_SOURCE_APP


def test_metadata_for_foreign_backup():
    data = quicknovel_payload(
        {
            "result_bookmarked/1": quicknovel_novel("https://a", "A"),
            "result_bookmarked/2": quicknovel_novel("https://b", "B"),
            "result_history/1": quicknovel_novel("https://a", "A"),
        }
    )
    meta = extract_metadata(data)
    assert meta.source_app == FOREIGN_SOURCE_APP
    assert meta.library_count == 2
    assert meta.history_count == 1
    assert meta.bookmark_count == 0
    assert not meta.has_settings and not meta.has_statistics
