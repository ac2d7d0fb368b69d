"""Database engine and session management.

All access to the SQLite store goes through a single StoreHandle. A restore
swaps the database file on disk, so nothing else may hold its own engine:
the handle is closed before the swap and reopened afterwards.
"""
import sqlite3
import threading
import uuid
from pathlib import Path
from typing import Generator, List, Optional

from fastapi import Depends, HTTPException, status
from loguru import logger
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from boxmanager.config import settings

Base = declarative_base()

SQLITE_HEADER = b"SQLite format 3\x00"
SIDE_FILE_SUFFIXES = ("-wal", "-shm")


def generate_id() -> str:
    """Opaque identifier assigned by the application on insert."""
    return str(uuid.uuid4())


class StoreUnavailable(RuntimeError):
    """Raised when the store is used while its handle is closed."""


def _configure_connection(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class StoreHandle:
    """Owner of the engine and session factory for one SQLite file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None
        self._lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        engine = self._engine
        if engine is None:
            raise StoreUnavailable(f"Store {self.path} is not open")
        return engine

    def side_file_paths(self) -> List[Path]:
        """Paths of the WAL and shared-memory files next to the database."""
        return [self.path.with_name(self.path.name + suffix) for suffix in SIDE_FILE_SUFFIXES]

    def open(self, path: Optional[Path] = None) -> Engine:
        """Open (or reopen) the store, optionally pointing it at a new file."""
        with self._lock:
            if path is not None:
                self.path = Path(path)
            if self._engine is not None:
                self._engine.dispose()
            self.path.parent.mkdir(parents=True, exist_ok=True)

            engine = create_engine(
                f"sqlite:///{self.path}",
                connect_args={"check_same_thread": False},
            )
            event.listen(engine, "connect", _configure_connection)
            self._engine = engine
            self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=engine)
            logger.info(f"Database opened: {self.path}")
            return engine

    def close(self) -> None:
        """Dispose of every pooled connection. Safe to call twice."""
        with self._lock:
            if self._engine is None:
                return
            engine = self._engine
            self._engine = None
            self._sessionmaker = None
            engine.dispose()
            logger.info(f"Database closed: {self.path}")

    def ensure_schema(self) -> None:
        """Create any missing tables. Never inserts rows."""
        import boxmanager.models  # noqa: F401  (registers the tables on Base)

        Base.metadata.create_all(bind=self.engine)

    def reconnect(self) -> None:
        """Drop every connection and reopen against the file now on disk.

        A probe query makes an unreadable file fail here rather than on
        the next request.
        """
        with self._lock:
            self.close()
            self.open()
            self.ensure_schema()
            with self.engine.connect() as conn:
                conn.execute(text("SELECT count(*) FROM boxes")).scalar()

    def session(self) -> Session:
        with self._lock:
            if self._sessionmaker is None:
                raise StoreUnavailable(f"Store {self.path} is not open")
            return self._sessionmaker()

    def force_journal_merge(self) -> None:
        """Checkpoint the write-ahead log into the main database file."""
        with self.engine.connect() as conn:
            busy, log_frames, checkpointed = conn.exec_driver_sql(
                "PRAGMA wal_checkpoint(TRUNCATE)"
            ).one()
        if busy:
            logger.warning(
                f"WAL checkpoint was blocked by a reader ({checkpointed}/{log_frames} frames merged)"
            )
        else:
            logger.debug(f"WAL checkpoint merged {checkpointed} frames")

    def snapshot_to(self, dest: Path) -> None:
        """Copy a consistent image of the live database into ``dest``.

        Uses SQLite's online backup API, so writers committing during the
        copy cannot produce a torn file.
        """
        raw = self.engine.raw_connection()
        try:
            target = sqlite3.connect(str(dest))
            try:
                raw.driver_connection.backup(target)
            finally:
                target.close()
        finally:
            raw.close()


store = StoreHandle(settings.database_path)


def get_store() -> StoreHandle:
    """Dependency returning the process-wide store handle."""
    return store


def get_db(store: StoreHandle = Depends(get_store)) -> Generator[Session, None, None]:
    """Dependency yielding a session; 503 while a restore has the store closed."""
    try:
        db = store.session()
    except StoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Data store is temporarily unavailable"
        )
    try:
        yield db
    finally:
        db.close()
