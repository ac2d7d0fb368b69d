"""ZIP read and write primitives used by backup and restore."""
import zipfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Callable, List, Optional

CHUNK_SIZE = 1024 * 1024


class UnsafeArchiveEntry(ValueError):
    """An archive member would be written outside the extraction root."""


class ArchiveTooLarge(ValueError):
    """The archive expands to more than the allowed number of bytes."""


class ArchiveWriter:
    """Streaming ZIP writer that appends whole files and directory trees.

    Works on non-seekable outputs too; zipfile falls back to data
    descriptors in that case.
    """

    def __init__(self, fileobj: BinaryIO):
        self._zip = zipfile.ZipFile(fileobj, "w", compression=zipfile.ZIP_DEFLATED)
        self.names: List[str] = []

    def __enter__(self) -> "ArchiveWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def add_file(self, path: Path, arcname: str) -> None:
        self._zip.write(path, arcname)
        self.names.append(arcname)

    def add_bytes(self, arcname: str, data: bytes) -> None:
        self._zip.writestr(arcname, data)
        self.names.append(arcname)

    def add_tree(
        self,
        root: Path,
        prefix: str,
        skip: Optional[Callable[[PurePosixPath], bool]] = None,
    ) -> int:
        """Append every file below ``root`` as ``prefix/<relative path>``.

        ``skip`` receives each path relative to ``root``; returning True
        leaves that entry (and everything below it) out. Returns the number
        of files added.
        """
        count = 0
        for path in sorted(root.rglob("*")):
            relative = PurePosixPath(path.relative_to(root).as_posix())
            if skip and skip(relative):
                continue
            if path.is_file():
                self.add_file(path, f"{prefix}/{relative}")
                count += 1
        return count

    def close(self) -> None:
        self._zip.close()


def resolve_member_path(root: Path, name: str) -> Path:
    """Destination of archive member ``name`` below ``root``.

    Absolute names, drive letters and ``..`` segments that climb out of
    ``root`` raise UnsafeArchiveEntry.
    """
    member = PurePosixPath(name.replace("\\", "/"))
    if member.is_absolute() or (member.parts and ":" in member.parts[0]):
        raise UnsafeArchiveEntry(f"Absolute path in archive: {name!r}")

    base = root.resolve()
    target = base.joinpath(*member.parts).resolve()
    if target != base and base not in target.parents:
        raise UnsafeArchiveEntry(f"Archive entry escapes extraction root: {name!r}")
    return target


def extract_archive(source: BinaryIO, dest: Path, max_total_size: int) -> List[str]:
    """Extract a ZIP stream into ``dest`` and return the member names written.

    Every member path is checked before anything is written. The declared
    uncompressed size and the bytes actually written are both capped by
    ``max_total_size``.

    Raises zipfile.BadZipFile (and zlib errors) for undecodable input,
    UnsafeArchiveEntry and ArchiveTooLarge.
    """
    written_names: List[str] = []
    with zipfile.ZipFile(source) as zf:
        infos = zf.infolist()
        declared = sum(info.file_size for info in infos)
        if declared > max_total_size:
            raise ArchiveTooLarge(
                f"Archive expands to {declared} bytes (limit {max_total_size})"
            )

        targets = [(info, resolve_member_path(dest, info.filename)) for info in infos]

        written = 0
        for info, target in targets:
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, open(target, "wb") as out:
                while True:
                    chunk = src.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > max_total_size:
                        raise ArchiveTooLarge(
                            f"Archive expands past the {max_total_size} byte limit"
                        )
                    out.write(chunk)
            written_names.append(info.filename)
    return written_names
