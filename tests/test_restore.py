import pytest

from novel_reader.backup import (
    CURRENT_VERSION,
    AppSettingsRecord,
    BackupDocument,
    Category,
    HistoryRecord,
    InMemoryBackupRepository,
    LibraryRecord,
    ReadChapterRecord,
    RestoreOptions,
    RestoreOrchestrator,
    ReadingStreakRecord,
    SettingsBlob,
)
from novel_reader.backup.models import FOREIGN_PRODUCER_VERSION
from novel_reader.backup.repository import STREAK_KEY


def library(url, last_read_at=None, name="Novel"):
    return LibraryRecord(url=url, name=name, api_name="NovelBin", added_at=1, last_read_at=last_read_at)


def history(url, timestamp):
    return HistoryRecord(
        novel_url=url, novel_name="Novel", chapter_name="c", chapter_url=f"{url}/c", api_name="NovelBin", timestamp=timestamp
    )


@pytest.fixture
def orchestrator(repo):
    return RestoreOrchestrator(repo, repo)


def test_full_restore_into_empty_store(repo, orchestrator, sample_document):
    result = orchestrator.restore(sample_document, RestoreOptions())

    assert result.success and result.error is None
    assert result.library_restored == 2
    assert result.bookmarks_restored == 1
    assert result.history_restored == 1
    assert result.read_chapters_restored == 2
    assert result.stats_restored == 1
    assert result.settings_restored is True
    assert result.total_items_restored == 7

    assert repo.get_by_key(Category.READING_STREAK, STREAK_KEY).longest_streak == 9
    assert repo.get_settings().app.auto_download_limit == 25
    assert repo.get_settings().reader.font_size == 21


def test_version_gate_rejects_newer_documents_without_mutation(repo, orchestrator):
    repo.insert(Category.LIBRARY, library("a"))
    doc = BackupDocument(schema_version=CURRENT_VERSION + 1, library=[library("b")])

    result = orchestrator.restore(doc, RestoreOptions(merge_with_existing=False))

    assert not result.success
    assert str(CURRENT_VERSION + 1) in result.error and str(CURRENT_VERSION) in result.error
    assert result.error_kind == "VersionError"
    assert [r.url for r in repo.get_all(Category.LIBRARY)] == ["a"]


def test_foreign_documents_skip_version_gate(repo, orchestrator):
    doc = BackupDocument(schema_version=99, producer_version=FOREIGN_PRODUCER_VERSION, library=[library("a")])
    assert orchestrator.restore(doc).success


def test_merge_keeps_newer_library_entry(repo, orchestrator):
    repo.insert(Category.LIBRARY, library("u", last_read_at=200, name="local"))
    result = orchestrator.restore(BackupDocument(library=[library("u", last_read_at=100, name="backup")]))
    assert result.library_restored == 0
    assert repo.get_by_key(Category.LIBRARY, "u").name == "local"

    result = orchestrator.restore(BackupDocument(library=[library("u", last_read_at=300, name="backup")]))
    assert result.library_restored == 1
    assert repo.get_by_key(Category.LIBRARY, "u").name == "backup"


def test_merge_treats_missing_last_read_as_zero(repo, orchestrator):
    repo.insert(Category.LIBRARY, library("u", last_read_at=None, name="local"))
    result = orchestrator.restore(BackupDocument(library=[library("u", last_read_at=None, name="backup")]))
    assert result.library_restored == 0
    assert repo.get_by_key(Category.LIBRARY, "u").name == "local"


def test_history_only_replaced_by_newer_entries(repo, orchestrator):
    repo.insert(Category.HISTORY, history("u", 500))
    doc = BackupDocument(history=[history("u", 400), history("v", 1)])
    result = orchestrator.restore(doc)
    assert result.history_restored == 1
    assert repo.get_by_key(Category.HISTORY, "u").timestamp == 500


def test_read_chapters_and_bookmarks_always_counted(repo, orchestrator, sample_document):
    orchestrator.restore(sample_document)
    result = orchestrator.restore(sample_document)
    assert result.read_chapters_restored == 2
    assert result.bookmarks_restored == 1
    assert len(repo.get_all(Category.READ_CHAPTERS)) == 2
    assert len(repo.get_all(Category.BOOKMARKS)) == 2


def test_destructive_restore_replaces_library(repo, orchestrator):
    for url in ("a", "b", "c"):
        repo.insert(Category.LIBRARY, library(url))
    doc = BackupDocument(library=[library("x"), library("y")])

    result = orchestrator.restore(doc, RestoreOptions(merge_with_existing=False))

    assert result.success and result.library_restored == 2
    assert sorted(r.url for r in repo.get_all(Category.LIBRARY)) == ["x", "y"]


def test_destructive_restore_clears_read_chapters_of_previous_library(repo, orchestrator):
    repo.insert(Category.LIBRARY, library("a"))
    repo.insert(Category.READ_CHAPTERS, ReadChapterRecord(chapter_url="a/1", novel_url="a", read_at=1))
    repo.insert(Category.READ_CHAPTERS, ReadChapterRecord(chapter_url="z/1", novel_url="z", read_at=1))
    repo.insert(Category.HISTORY, history("a", 1))

    orchestrator.restore(BackupDocument(), RestoreOptions(merge_with_existing=False))

    assert repo.get_all(Category.LIBRARY) == []
    assert repo.get_all(Category.HISTORY) == []
    assert [r.novel_url for r in repo.get_all(Category.READ_CHAPTERS)] == ["z"]


def test_destructive_restore_only_touches_enabled_categories(repo, orchestrator):
    repo.insert(Category.LIBRARY, library("a"))
    repo.insert(Category.HISTORY, history("a", 1))
    options = RestoreOptions(merge_with_existing=False, restore_history=False)

    orchestrator.restore(BackupDocument(library=[library("b")]), options)

    assert [r.url for r in repo.get_all(Category.LIBRARY)] == ["b"]
    assert [h.novel_url for h in repo.get_all(Category.HISTORY)] == ["a"]


def test_streak_replaced_only_by_longer_streak(repo, orchestrator):
    repo.insert(Category.READING_STREAK, ReadingStreakRecord(longest_streak=10, current_streak=1))

    orchestrator.restore(BackupDocument(reading_streak=ReadingStreakRecord(longest_streak=5, current_streak=5)))
    assert repo.get_by_key(Category.READING_STREAK, STREAK_KEY).longest_streak == 10

    orchestrator.restore(BackupDocument(reading_streak=ReadingStreakRecord(longest_streak=12)))
    assert repo.get_by_key(Category.READING_STREAK, STREAK_KEY).longest_streak == 12


def test_disabled_categories_are_left_alone(repo, orchestrator, sample_document):
    options = RestoreOptions(
        restore_library=False,
        restore_bookmarks=False,
        restore_history=False,
        restore_statistics=False,
        restore_settings=False,
    )
    result = orchestrator.restore(sample_document, options)
    assert result.success and result.total_items_restored == 0 and not result.settings_restored
    assert repo.get_all(Category.LIBRARY) == []
    assert repo.get_settings().app is None


def test_settings_keep_the_half_the_document_lacks(repo, orchestrator):
    repo.set_settings(SettingsBlob(app=AppSettingsRecord(auto_download_limit=3)))
    result = orchestrator.restore(BackupDocument(reader_settings=None, app_settings=None))
    assert result.settings_restored
    assert repo.get_settings().app.auto_download_limit == 3


class FailingOnHistoryRepository(InMemoryBackupRepository):
    def insert(self, category, row):
        if category == Category.HISTORY:
            raise RuntimeError("disk full")
        super().insert(category, row)


def test_failure_midway_reports_partial_counts(sample_document):
    repo = FailingOnHistoryRepository()
    result = RestoreOrchestrator(repo, repo).restore(sample_document)

    assert not result.success
    assert result.error == "disk full"
    assert result.error_kind == "PartialRestoreError"
    assert result.to_dict()["error_kind"] == "PartialRestoreError"
    assert result.library_restored == 2
    assert result.bookmarks_restored == 1
    assert result.history_restored == 0
    assert len(repo.get_all(Category.LIBRARY)) == 2
    assert repo.get_settings().app is None
