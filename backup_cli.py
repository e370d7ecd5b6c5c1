"""
Command-line access to the backup pipeline against a local SQLite store.

Usage:
    python3 backup_cli.py export --out ./data/backups/my.novery
    python3 backup_cli.py preview ./quicknovel_backup.json
    python3 backup_cli.py restore ./my.novery --replace --skip-settings
    python3 backup_cli.py worker --redis-url redis://localhost:6379/0
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from novel_reader.backup import (
    BackupIOError,
    BackupManager,
    FormatError,
    LocalBackupStorage,
    RestoreOptions,
    RQJobQueue,
    SqlAlchemyBackupRepository,
    StoragePaths,
    generate_backup_file_name,
)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def build_manager(args) -> BackupManager:
    repo = SqlAlchemyBackupRepository(f"sqlite+pysqlite:///{args.db}")
    storage = LocalBackupStorage(StoragePaths(args.storage_root))
    return BackupManager(repo, storage)


def cmd_export(args) -> int:
    manager = build_manager(args)
    out = args.out or manager.storage.paths.backup_path(generate_backup_file_name())
    try:
        path = manager.export_to(out)
    except BackupIOError as exc:
        print(exc, file=sys.stderr)
        return 1
    print(path)
    return 0


def cmd_preview(args) -> int:
    try:
        metadata = build_manager(args).read_metadata(args.file)
    except FormatError as exc:
        print(f"Invalid backup format: {exc}", file=sys.stderr)
        return 1
    if metadata is None:
        print(f"Could not read backup file: {args.file}", file=sys.stderr)
        return 1
    print(json.dumps(asdict(metadata), indent=2))
    return 0


def cmd_restore(args) -> int:
    options = RestoreOptions(
        restore_library=not args.skip_library,
        restore_bookmarks=not args.skip_bookmarks,
        restore_history=not args.skip_history,
        restore_statistics=not args.skip_statistics,
        restore_settings=not args.skip_settings,
        merge_with_existing=not args.replace,
    )
    result = build_manager(args).restore_from(args.file, options)
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


def cmd_worker(args) -> int:
    RQJobQueue(redis_url=args.redis_url, queue_name=args.queue).work()
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Export, preview and restore reading-state backups")
    parser.add_argument("--db", default=Path("./data/novel_reader.db"), type=Path, help="SQLite DB path")
    parser.add_argument("--storage-root", default=Path("./data"), type=Path, help="Storage root for backup files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Write a backup of the current store")
    export.add_argument("--out", type=Path, default=None, help="Output file (default: generated name under backups/)")
    export.set_defaults(func=cmd_export)

    preview = sub.add_parser("preview", help="Summarize a native or QuickNovel backup")
    preview.add_argument("file", type=Path)
    preview.set_defaults(func=cmd_preview)

    restore = sub.add_parser("restore", help="Apply a backup to the store")
    restore.add_argument("file", type=Path)
    restore.add_argument("--replace", action="store_true", help="Clear enabled categories before applying")
    for category in ("library", "bookmarks", "history", "statistics", "settings"):
        restore.add_argument(f"--skip-{category}", action="store_true", help=f"Leave {category} untouched")
    restore.set_defaults(func=cmd_restore)

    worker = sub.add_parser("worker", help="Run an rq worker for queued backup jobs")
    worker.add_argument("--redis-url", default="redis://localhost:6379/0")
    worker.add_argument("--queue", default="backup-jobs")
    worker.set_defaults(func=cmd_worker)

    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
