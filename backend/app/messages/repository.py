"""SQL access to the ``messages`` table.

These helpers take an open connection so callers can compose them inside a
``ChatDatabase.transaction()`` block.
"""
from typing import Iterable, List, Optional

import duckdb

from .schemas import Message, MessageType

_COLUMNS = "id, sender, recipient, text, type, time"

_INSERT = f"INSERT INTO messages ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)"

# Public messages and status notices are visible to everyone; anything else
# only to its sender and recipient.
_VISIBLE = f"""
    SELECT seq, {_COLUMNS}
    FROM messages
    WHERE sender = ? OR recipient = ? OR type IN ('message', 'status')
"""

# Largest limit accepted from callers (signed 64-bit).
MAX_LIMIT = 2**63 - 1

# DuckDB rejects LIMIT values from here up; any such limit covers every row.
_UNBOUNDED_LIMIT = 2**62


def insert_messages(conn: duckdb.DuckDBPyConnection, messages: Iterable[Message]) -> int:
    """Bulk-insert *messages* in order; returns how many were written."""
    rows = [
        [m.id, m.sender, m.to, m.text, m.type.value, m.time]
        for m in messages
    ]
    if not rows:
        return 0
    conn.executemany(_INSERT, rows)
    return len(rows)


def fetch_message(conn: duckdb.DuckDBPyConnection, message_id: str) -> Optional[Message]:
    row = conn.execute(
        f"SELECT {_COLUMNS} FROM messages WHERE id = ?", [message_id]
    ).fetchone()
    return _row_to_message(row) if row else None


def fetch_visible(
    conn: duckdb.DuckDBPyConnection,
    user: str,
    limit: Optional[int] = None,
) -> List[Message]:
    """Messages visible to *user*, oldest first.

    With a positive *limit*, only the newest *limit* messages are returned,
    still oldest first. A limit too large for the store returns everything.
    """
    if limit is not None and 0 < limit < _UNBOUNDED_LIMIT:
        query = (
            f"SELECT * FROM ({_VISIBLE} ORDER BY seq DESC LIMIT ?) "
            "ORDER BY seq ASC"
        )
        rows = conn.execute(query, [user, user, limit]).fetchall()
    else:
        rows = conn.execute(f"{_VISIBLE} ORDER BY seq ASC", [user, user]).fetchall()
    return [_row_to_message(row[1:]) for row in rows]


def update_message(conn: duckdb.DuckDBPyConnection, message: Message) -> None:
    conn.execute(
        "UPDATE messages SET recipient = ?, text = ?, type = ?, time = ? WHERE id = ?",
        [message.to, message.text, message.type.value, message.time, message.id],
    )


def delete_message(conn: duckdb.DuckDBPyConnection, message_id: str) -> bool:
    row = conn.execute(
        "DELETE FROM messages WHERE id = ? RETURNING id", [message_id]
    ).fetchone()
    return row is not None


def _row_to_message(row) -> Message:
    message_id, sender, recipient, text, type_, time = row
    return Message(
        id=message_id,
        sender=sender,
        to=recipient,
        text=text,
        type=MessageType(type_),
        time=time,
    )
