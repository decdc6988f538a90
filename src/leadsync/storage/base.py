"""SQLite plumbing shared by the local stores.

Each store owns one lock and one single-worker executor. Application code
calls the synchronous methods directly; the sync engine hands whole steps to
:meth:`SQLiteStore.perform`, which runs them on the store's worker thread
inside a single transaction. Both paths take the same lock, so a reader never
sees half of a step.
"""

import asyncio
import logging
import sqlite3
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Generic, Iterator, List, TypeVar


logger = logging.getLogger(__name__)

S = TypeVar("S")
T = TypeVar("T")


class SQLiteStore(Generic[S]):
    """Base class for a sqlite-backed store with a serialized execution context."""

    SCHEMA: List[str] = []

    def __init__(self, db_path: Path):
        """Initialize the store.

        Args:
            db_path: Path of the sqlite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="leadsync-store")

        self._init_database()

    def _init_database(self):
        """Create tables and indexes if they do not exist yet."""
        try:
            with self.transaction() as conn:
                for statement in self.SCHEMA:
                    conn.execute(statement)
            self.logger.debug(f"Initialized database at {self.db_path}")
        except sqlite3.Error as e:
            self.logger.error(f"Failed to initialize database: {e}")
            raise

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, roll back on error."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def make_session(self, conn: sqlite3.Connection) -> S:
        raise NotImplementedError

    @contextmanager
    def session(self) -> Iterator[S]:
        """One locked transaction exposed through the store's session type."""
        with self._lock:
            with self.transaction() as conn:
                yield self.make_session(conn)

    def run(self, fn: Callable[[S], T]) -> T:
        """Run ``fn(session)`` synchronously in one transaction."""
        with self.session() as session:
            return fn(session)

    async def perform(self, fn: Callable[[S], T]) -> T:
        """Run ``fn(session)`` on the store's worker thread in one transaction."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.run, fn)

    def close(self):
        """Stop the worker thread."""
        self._executor.shutdown(wait=True)
