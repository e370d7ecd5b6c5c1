from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .errors import BackupIOError
from .models import FILE_EXTENSION

logger = logging.getLogger(__name__)

Location = Union[str, Path]


@dataclass
class StoragePaths:
    root: Path

    def __post_init__(self):
        # Paths below are absolute so they never resolve against the root twice.
        self.root = Path(self.root).resolve()

    def backups_dir(self) -> Path:
        return self.root / "backups"

    def uploads_dir(self) -> Path:
        return self.root / "uploads"

    def backup_path(self, file_name: str) -> Path:
        return self.backups_dir() / file_name

    def upload_path(self, file_name: str) -> Path:
        return self.uploads_dir() / file_name


class LocalBackupStorage:
    """
    Byte I/O for backup files on the local filesystem. Relative locations
    resolve against the storage root; absolute ones are used as given.
    """

    def __init__(self, storage_paths: StoragePaths):
        self.paths = storage_paths

    def resolve(self, location: Location) -> Path:
        path = Path(location)
        return path if path.is_absolute() else self.paths.root / path

    def read(self, location: Location) -> Optional[bytes]:
        """Return the file contents, or None when the location is unreadable."""
        path = self.resolve(location)
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.warning("Could not read backup at %s: %s", path, exc)
            return None

    def write(self, location: Location, data: bytes) -> Path:
        path = self.resolve(location)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise BackupIOError(f"Could not write backup to {path}: {exc}") from exc
        return path

    def save_upload(self, file_name: str, data: bytes) -> Path:
        return self.write(self.paths.upload_path(Path(file_name).name), data)

    def list_backups(self) -> List[Path]:
        backups_dir = self.paths.backups_dir()
        if not backups_dir.exists():
            return []
        return sorted(backups_dir.glob(f"*.{FILE_EXTENSION}"))
