"""Archive builders used across the backup tests."""
import io
import zipfile

from boxmanager.services.backup import BackupService

RECEIPT_BYTES = b"%PDF-1.4 receipt for the drill\n"


def build_snapshot(service: BackupService) -> bytes:
    buffer = io.BytesIO()
    service.snapshots.write_snapshot(buffer)
    return buffer.getvalue()


def make_zip(entries) -> bytes:
    """ZIP bytes from a {name: bytes} mapping, names written verbatim."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in entries.items():
            zf.writestr(zipfile.ZipInfo(name), data)
    return buffer.getvalue()
