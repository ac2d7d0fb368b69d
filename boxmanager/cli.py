"""Command line interface: backup, restore and store initialisation."""
import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from boxmanager.config import settings
from boxmanager.database import store
from boxmanager.logging_setup import setup_logging
from boxmanager.models.activity_log import ActivityAction
from boxmanager.services.activity import record_system_activity
from boxmanager.services.backup import BackupError, BackupService, backup_filename
from boxmanager.services.sample_data import seed_sample_data


def cmd_init(args) -> int:
    settings.ensure_directories()
    store.open()
    store.ensure_schema()
    if not args.no_sample_data:
        db = store.session()
        try:
            if seed_sample_data(db):
                print("Sample data created.")
        finally:
            db.close()
    print(f"Database ready: {store.path}")
    return 0


def cmd_backup(args) -> int:
    service = BackupService(store, settings)
    store.open()

    output = args.output or Path.cwd() / backup_filename()
    if output.is_dir():
        output = output / backup_filename()
    partial = output.with_name(output.name + ".part")
    try:
        with open(partial, "wb") as fh:
            manifest = service.snapshots.write_snapshot(fh)
        os.replace(partial, output)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise
    print(f"Backup written to {output}")
    print(f"  boxes: {manifest.counts.get('boxes', 0)}  items: {manifest.counts.get('items', 0)}  "
          f"files: {manifest.attachments}")
    return 0


def cmd_restore(args) -> int:
    archive: Path = args.archive
    if not archive.is_file():
        print(f"Backup file not found: {archive}", file=sys.stderr)
        return 1

    settings.ensure_directories()
    store.open()
    store.ensure_schema()
    service = BackupService(store, settings)
    summary = service.restore(archive)

    record_system_activity(store, ActivityAction.RESTORE, details=f"CLI restore from {archive.name}")
    print(f"Restored {summary.boxes} boxes, {summary.items} items, "
          f"{summary.locations} locations and {summary.attachments} receipt files")
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("boxmanager.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="boxmanager", description=__doc__)
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Create the database schema")
    init.add_argument("--no-sample-data", action="store_true", help="Do not insert sample boxes")
    init.set_defaults(func=cmd_init)

    backup = subparsers.add_parser("backup", help="Write a full backup archive")
    backup.add_argument("-o", "--output", type=Path, help="Archive path or directory")
    backup.set_defaults(func=cmd_backup)

    restore = subparsers.add_parser("restore", help="Replace all data from a backup archive")
    restore.add_argument("archive", type=Path, help="Backup .zip file")
    restore.set_defaults(func=cmd_restore)

    serve = subparsers.add_parser("serve", help="Run the web server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=5000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=cmd_serve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings.LOG_LEVEL)
    try:
        return args.func(args)
    except BackupError as e:
        logger.error(str(e))
        if getattr(e, "changes_made", False):
            print("WARNING: live data was modified before the failure "
                  f"(rolled back: {e.rolled_back}). Verify your data.", file=sys.stderr)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
