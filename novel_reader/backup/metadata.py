from __future__ import annotations

from typing import Optional, Union

from .detector import is_foreign
from .foreign import QuickNovelConverter
from .models import FOREIGN_SOURCE_APP, NATIVE_SOURCE_APP, BackupDocument, BackupMetadata
from .serializer import decode


def load_document(data: Union[bytes, str], converter: Optional[QuickNovelConverter] = None) -> BackupDocument:
    """Decode native bytes or convert a foreign dump; raises ``FormatError``."""
    if is_foreign(data):
        return (converter or QuickNovelConverter()).convert(data)
    return decode(data)


def summarize(document: BackupDocument) -> BackupMetadata:
    return BackupMetadata(
        version=document.schema_version,
        created_at=document.created_at,
        producer_version=document.producer_version,
        device_info=document.device_info,
        library_count=len(document.library),
        bookmark_count=len(document.bookmarks),
        history_count=len(document.history),
        read_chapters_count=len(document.read_chapters),
        has_settings=document.app_settings is not None,
        has_statistics=bool(document.reading_stats) or document.reading_streak is not None,
        source_app=FOREIGN_SOURCE_APP if document.is_foreign else NATIVE_SOURCE_APP,
    )


def extract_metadata(data: Union[bytes, str], converter: Optional[QuickNovelConverter] = None) -> BackupMetadata:
    """
    Preview a backup without touching the store. Foreign dumps go through a
    full conversion since the counts need the same reconstruction work.
    """
    return summarize(load_document(data, converter))
