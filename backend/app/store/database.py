"""DuckDB-backed document store for participants and messages.

This module owns the single embedded database that every chat component
reads and writes. It is opened once in the application lifespan and handed
to the registry, the message service and the reaper by reference.

Database Schema:
    participants table:
        - name_key: Case-folded name, primary key (uniqueness invariant)
        - name: Name as registered (sanitized)
        - last_status: Last liveness ping, epoch milliseconds

    messages table:
        - id: Store-assigned identifier (UUID4 hex)
        - seq: Insertion sequence; defines chronological order
        - sender / recipient / text / type: Message fields
        - time: Wall-clock HH:MM:SS stamp of the last write

Thread Safety:
    The DuckDB connection is NOT thread-safe. All access goes through
    ``lock``; compound read-modify-write sequences hold it for their whole
    duration via ``transaction()``.

Usage:
    db = ChatDatabase("batepapo.duckdb")
    with db.transaction() as conn:
        conn.execute("SELECT ...")
    db.close()
"""
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import duckdb

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS participants (
        name_key    VARCHAR PRIMARY KEY,
        name        VARCHAR NOT NULL,
        last_status BIGINT  NOT NULL
    )
    """,
    "CREATE SEQUENCE IF NOT EXISTS messages_seq START 1",
    """
    CREATE TABLE IF NOT EXISTS messages (
        id        VARCHAR PRIMARY KEY,
        seq       BIGINT  NOT NULL DEFAULT nextval('messages_seq'),
        sender    VARCHAR NOT NULL,
        recipient VARCHAR NOT NULL,
        text      VARCHAR NOT NULL,
        type      VARCHAR NOT NULL,
        time      VARCHAR NOT NULL
    )
    """,
)


class ChatDatabase:
    """Process-wide handle on the chat document store.

    Attributes:
        path: DuckDB file path, or ``:memory:``.
        lock: Re-entrant lock serialising all access to the connection.
    """

    def __init__(self, path: str = ":memory:") -> None:
        self.path = path
        self.lock = threading.RLock()
        self._connection: Optional[duckdb.DuckDBPyConnection] = duckdb.connect(path)
        for statement in _SCHEMA:
            self._connection.execute(statement)
        logger.info("[store] Opened chat database at %s", path)

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        if self._connection is None:
            raise RuntimeError("Chat database is closed")
        return self._connection

    @contextmanager
    def transaction(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """Hold the lock and run the block in a single transaction.

        Commits on success and rolls back if the block raises.
        """
        with self.lock:
            conn = self.connection
            conn.begin()
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()

    def execute(self, query: str, params=None) -> list:
        """Run a single statement under the lock and fetch all rows."""
        with self.lock:
            return self.connection.execute(query, params or []).fetchall()

    def close(self) -> None:
        """Close the database connection (idempotent)."""
        with self.lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                logger.info("[store] Closed chat database at %s", self.path)
