import logging
import shutil
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"

_CORRUPTION_MARKERS = ("malformed", "file is not a database", "is encrypted or is not a database")

KV_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT
)
"""


class SQLiteDatabaseHandler:
    """Owns the single SQLite connection behind the key-value store.

    Every statement runs under one re-entrant lock, so the connection can be
    shared by Flask's request threads and the chat title workers. A database
    file that SQLite reports as corrupt is moved into ``corrupt/`` next to it
    and replaced by an empty database.
    """

    def __init__(self, database_path: str) -> None:
        self.database_path = database_path
        self._lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = None
        if not self.is_memory:
            Path(database_path).parent.mkdir(parents=True, exist_ok=True)

    @property
    def is_memory(self) -> bool:
        return self.database_path == MEMORY_DATABASE

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            if not self.is_memory:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA temp_store=MEMORY")
        except sqlite3.DatabaseError:
            conn.close()
            raise
        return conn

    def _open(self) -> sqlite3.Connection:
        try:
            return self._connect()
        except sqlite3.DatabaseError as exc:
            if not any(marker in str(exc).lower() for marker in _CORRUPTION_MARKERS):
                raise
            logger.error("Storage database %s is corrupt (%s); starting from an empty one", self.database_path, exc)
            self.quarantine()
            return self._connect()

    def quarantine(self) -> Optional[Path]:
        """Move the database file and its WAL sidecars into ``corrupt/``."""
        if self.is_memory:
            return None
        source = Path(self.database_path)
        if not source.exists():
            return None

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        target_dir = source.parent / "corrupt"
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / f"{source.stem}_corrupt_{stamp}{source.suffix or '.db'}"
        try:
            shutil.move(str(source), str(target))
            for sidecar in (Path(f"{source}-wal"), Path(f"{source}-shm")):
                if sidecar.exists():
                    shutil.move(str(sidecar), str(target_dir / f"{sidecar.name}_{stamp}"))
        except OSError as exc:
            logger.error("Could not move corrupt database %s aside: %s", source, exc)
            return None
        logger.warning("Corrupt database moved to %s", target)
        return target

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the shared connection inside one transaction."""
        with self._lock:
            if self._conn is None:
                self._conn = self._open()
            try:
                yield self._conn
            except Exception:
                self._conn.rollback()
                raise
            self._conn.commit()

    def create_tables(self) -> None:
        with self.connection() as db:
            db.execute(KV_SCHEMA)
        logger.debug("Key-value table ready in %s", self.database_path)

    def close_db(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
