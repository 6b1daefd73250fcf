"""SQLite database handle shared by every marketplace component."""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from rfq_market.errors import ConflictError, InternalError, MarketError

logger = logging.getLogger(__name__)


class Database:
    """
    Explicitly constructed store handle. Components receive one at construction
    and acquire a fresh connection per operation; nothing is cached between calls.

    Writes go through transaction(), which opens with BEGIN IMMEDIATE so the
    SQLite write lock is held from the first statement: concurrent writers queue
    on the lock (up to `timeout` seconds) instead of interleaving.
    """

    def __init__(self, db_path: str | Path = "rfq_market.db", *, timeout: float = 5.0):
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._ensure_schema()

    @property
    def path(self) -> Path:
        return self._db_path

    def _connection(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are begun and ended explicitly below
        conn = sqlite3.connect(
            self._db_path,
            timeout=self._timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _ensure_schema(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        conn = self._connection()
        try:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(schema_path.read_text())
        finally:
            conn.close()

    @contextmanager
    def read(self) -> Iterator[sqlite3.Connection]:
        """Connection for read-only queries; no locks are taken beyond statement scope."""
        conn = self._connection()
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error("Read failed on %s: %s", self._db_path, e)
            raise InternalError("Database read failed") from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        One atomic unit of work. Commits on normal exit; rolls back on any
        exception so partial writes never persist. Store errors are re-raised
        as typed marketplace errors.
        """
        conn = self._connection()
        try:
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.OperationalError as e:
                logger.error("Could not acquire write lock on %s: %s", self._db_path, e)
                raise InternalError("Database is busy, try again") from e
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
        except MarketError:
            raise
        except sqlite3.IntegrityError as e:
            logger.info("Write rejected by constraint: %s", e)
            raise ConflictError("Write conflicts with existing data") from e
        except sqlite3.Error as e:
            logger.error("Write failed on %s: %s", self._db_path, e)
            raise InternalError("Database write failed") from e
        finally:
            conn.close()
