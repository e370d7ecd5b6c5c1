"""
Exception hierarchy for backup export and import.

Everything except ``PartialRestoreError`` is raised before the store is
touched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import RestoreResult


class BackupError(Exception):
    """Base exception for backup-related errors."""


class BackupIOError(BackupError):
    """A backup location could not be read or written."""


class FormatError(BackupError):
    """Bytes parse as neither the native nor the foreign schema."""


class VersionError(BackupError):
    """Native document written by a newer schema than this build supports."""

    def __init__(self, found: int, supported: int):
        super().__init__(f"Backup version {found} is newer than supported version {supported}")
        self.found = found
        self.supported = supported


class PartialRestoreError(BackupError):
    """A restore failed after some categories were already committed."""

    def __init__(self, message: str, partial: "RestoreResult"):
        super().__init__(message)
        self.partial = partial
