"""Backup archive layout and manifest."""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Fixed layout inside every archive
ARCHIVE_DATA_DIR = "data"
ARCHIVE_UPLOADS_DIR = "uploads"
MANIFEST_NAME = "backup-metadata.json"

BACKUP_FILENAME_PREFIX = "box-management-backup"


def backup_filename(created_at: Optional[datetime] = None) -> str:
    """Download name, e.g. box-management-backup-2024-01-31T120000123Z.zip"""
    created_at = created_at or datetime.now(timezone.utc)
    stamp = created_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"{BACKUP_FILENAME_PREFIX}-{stamp.replace(':', '').replace('.', '')}.zip"


def major_version(version: str) -> str:
    """Leading component of a dotted version string ("" if missing)."""
    if not version:
        return ""
    return version.split(".", 1)[0].strip()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _field(data: Dict[str, Any], key: str, expected: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, expected):
        raise ValueError(f"Manifest field {key!r} must be of type {expected.__name__}")
    return value


@dataclass
class BackupManifest:
    """Contents of backup-metadata.json."""

    version: str
    created_at: str
    app_name: str = ""
    app_version: str = ""
    database_file: str = ""
    counts: Dict[str, int] = field(default_factory=dict)
    attachments: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "createdAt": self.created_at,
            "appName": self.app_name,
            "appVersion": self.app_version,
            "databaseFile": self.database_file,
            "counts": self.counts,
            "attachments": self.attachments,
        }

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), indent=2).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupManifest":
        """Build a manifest from parsed JSON. Raises ValueError on wrongly typed fields."""
        version = _field(data, "version", str, "")
        created_at = _field(data, "createdAt", str, None)
        if created_at is None:
            created_at = _field(data, "timestamp", str, "")
        counts = _field(data, "counts", dict, {})
        if not all(isinstance(k, str) and _is_int(v) for k, v in counts.items()):
            raise ValueError("Manifest field 'counts' must map table names to integers")
        attachments = _field(data, "attachments", int, 0)
        if not _is_int(attachments):
            raise ValueError("Manifest field 'attachments' must be an integer")
        return cls(
            version=version,
            created_at=created_at,
            app_name=_field(data, "appName", str, ""),
            app_version=_field(data, "appVersion", str, ""),
            database_file=_field(data, "databaseFile", str, ""),
            counts=counts,
            attachments=attachments,
        )


__all__ = [
    "ARCHIVE_DATA_DIR",
    "ARCHIVE_UPLOADS_DIR",
    "MANIFEST_NAME",
    "BACKUP_FILENAME_PREFIX",
    "backup_filename",
    "major_version",
    "BackupManifest",
]
