"""Receipt file storage under the upload directory."""
import random
import time
from pathlib import Path
from typing import Optional

from loguru import logger

ALLOWED_RECEIPT_EXTENSIONS = {".pdf", ".jpg", ".jpeg", ".png", ".gif"}


def receipt_extension(original_name: Optional[str]) -> Optional[str]:
    """Lower-cased extension if it is an accepted receipt type, else None."""
    if not original_name:
        return None
    ext = Path(original_name).suffix.lower()
    return ext if ext in ALLOWED_RECEIPT_EXTENSIONS else None


def generate_receipt_filename(extension: str) -> str:
    """Unique stored name, e.g. 1700000000000-123456789.pdf"""
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{extension}"


def receipt_path(receipts_dir: Path, filename: str) -> Optional[Path]:
    """Path of a stored receipt, or None if the name is not a plain file name."""
    if not filename or Path(filename).name != filename or filename in (".", ".."):
        return None
    return receipts_dir / filename


def remove_receipt_file(receipts_dir: Path, filename: Optional[str]) -> None:
    """Delete a stored receipt. A missing file is only logged."""
    if not filename:
        return
    path = receipt_path(receipts_dir, filename)
    if path is None:
        logger.warning(f"Refusing to delete receipt with unsafe name: {filename!r}")
        return
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning(f"Receipt file already missing: {path}")
    except OSError as e:
        logger.warning(f"Failed to delete receipt file {path}: {e}")
