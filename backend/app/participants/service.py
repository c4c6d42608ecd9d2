"""ParticipantRegistry: identity and liveness of chat participants."""
import logging
import time
from typing import Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.errors import ConflictError, NotFoundError, ValidationError
from app.messages.repository import insert_messages
from app.messages.schemas import JOIN_TEXT, format_time, status_notice
from app.sanitizer import sanitize
from app.store import ChatDatabase

from .schemas import Participant, ParticipantCreate

logger = logging.getLogger(__name__)

NAME_MATCH_EXACT = "exact"
NAME_MATCH_CONTAINS = "contains"


class ParticipantRegistry:
    """Registers participants and tracks their liveness in the chat store.

    Names are unique under case-insensitive comparison. In ``contains`` mode
    the requested name also collides with any existing name that contains it
    (``"ann"`` collides with ``"Anna"``), matching older clients that relied
    on that behavior.
    """

    def __init__(
        self,
        db: ChatDatabase,
        clock: Callable[[], float] = time.time,
        name_match: str = NAME_MATCH_EXACT,
    ) -> None:
        if name_match not in (NAME_MATCH_EXACT, NAME_MATCH_CONTAINS):
            raise ValueError(f"Unknown name_match mode: {name_match!r}")
        self._db = db
        self._clock = clock
        self._name_match = name_match

    # -----------------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------------

    def register(self, name: str) -> Participant:
        """Register *name* and announce it to the room.

        Raises:
            ValidationError: The sanitized name is not 3-20 characters.
            ConflictError: A matching participant already exists.
        """
        if isinstance(name, str):
            name = sanitize(name)
        try:
            name = ParticipantCreate(name=name).name
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc

        now = self._clock()
        participant = Participant(name=name, lastStatus=int(now * 1000))
        with self._db.transaction() as conn:
            if self._find_conflict(conn, name) is not None:
                raise ConflictError(f"Participant name already in use: {name}")
            conn.execute(
                "INSERT INTO participants (name_key, name, last_status) VALUES (?, ?, ?)",
                [name.lower(), name, participant.lastStatus],
            )
            insert_messages(conn, [status_notice(name, JOIN_TEXT, format_time(now))])

        logger.info("[participants] Registered %s", name)
        return participant

    def list(self) -> List[Participant]:
        rows = self._db.execute(
            "SELECT name, last_status FROM participants ORDER BY name_key"
        )
        return [Participant(name=name, lastStatus=last) for name, last in rows]

    def ping(self, name: Optional[str]) -> None:
        """Refresh the liveness timestamp of *name*.

        Raises:
            NotFoundError: No participant is registered under exactly *name*.
        """
        rows = self._db.execute(
            "UPDATE participants SET last_status = ? WHERE name = ? RETURNING name",
            [int(self._clock() * 1000), name],
        )
        if not rows:
            raise NotFoundError(f"Participant not found: {name}")
        logger.debug("[participants] Status ping from %s", name)

    def get(self, name: Optional[str]) -> Optional[Participant]:
        if not name:
            return None
        rows = self._db.execute(
            "SELECT name, last_status FROM participants WHERE name = ?", [name]
        )
        if not rows:
            return None
        found, last = rows[0]
        return Participant(name=found, lastStatus=last)

    def exists(self, name: Optional[str]) -> bool:
        return self.get(name) is not None

    def remove_stale(self, threshold_ms: int, conn=None) -> List[str]:
        """Delete every participant last seen before *threshold_ms*.

        Pass *conn* to run the delete inside a caller's open transaction.

        Returns:
            Names of the removed participants, in name order.
        """
        query = "DELETE FROM participants WHERE last_status < ? RETURNING name"
        if conn is None:
            rows = self._db.execute(query, [threshold_ms])
        else:
            rows = conn.execute(query, [threshold_ms]).fetchall()
        return sorted((row[0] for row in rows), key=str.lower)

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    def _find_conflict(self, conn, name: str) -> Optional[str]:
        key = name.lower()
        if self._name_match == NAME_MATCH_CONTAINS:
            row = conn.execute(
                "SELECT name FROM participants WHERE contains(name_key, ?) LIMIT 1",
                [key],
            ).fetchone()
        else:
            row = conn.execute(
                "SELECT name FROM participants WHERE name_key = ?", [key]
            ).fetchone()
        return row[0] if row else None
