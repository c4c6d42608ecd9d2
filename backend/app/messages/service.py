"""MessageService: sending, listing and owner-only mutation of messages."""
import logging
import time
from typing import Callable, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.errors import (
    NotFoundError,
    UnauthorizedError,
    UnregisteredParticipantError,
    ValidationError,
)
from app.participants.service import ParticipantRegistry
from app.sanitizer import sanitize
from app.store import ChatDatabase

from . import repository
from .schemas import Message, MessageCreate, MessageType, format_time, status_notice

logger = logging.getLogger(__name__)


def _clean(value):
    return sanitize(value) if isinstance(value, str) else value


class MessageService:
    """Stores chat messages and applies per-user visibility on read.

    Only the sender of a message may edit or delete it. The ownership check
    and the write run in one store transaction.
    """

    def __init__(
        self,
        db: ChatDatabase,
        registry: ParticipantRegistry,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db = db
        self._registry = registry
        self._clock = clock

    # -----------------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------------

    def send(self, sender: Optional[str], to: str, text: str, type_: str) -> Message:
        """Store a message from *sender*.

        Raises:
            ValidationError: ``to``/``text``/``type`` fail validation.
            UnregisteredParticipantError: *sender* is not registered.
        """
        payload = self._validate(to, text, type_)
        sender = _clean(sender)
        if not self._registry.exists(sender):
            raise UnregisteredParticipantError(f"Participant not found: {sender}")

        message = Message(
            sender=sender,
            to=payload.to,
            text=payload.text,
            type=MessageType(payload.type),
            time=self._now(),
        )
        with self._db.transaction() as conn:
            repository.insert_messages(conn, [message])
        logger.info("[messages] %s sent %s %s to %s", sender, message.type.value, message.id, message.to)
        return message

    def list_for(self, user: Optional[str], limit: Optional[int] = None) -> List[Message]:
        """Messages visible to *user*, oldest first.

        A positive *limit* keeps only the newest *limit* messages.

        Raises:
            UnregisteredParticipantError: *user* is not registered.
        """
        user = _clean(user)
        if not self._registry.exists(user):
            raise UnregisteredParticipantError(f"Participant not found: {user}")
        with self._db.lock:
            return repository.fetch_visible(self._db.connection, user, limit)

    def get(self, message_id: str) -> Optional[Message]:
        with self._db.lock:
            return repository.fetch_message(self._db.connection, message_id)

    def edit(
        self,
        message_id: str,
        requester: Optional[str],
        to: str,
        text: str,
        type_: str,
    ) -> Message:
        """Replace recipient, text and type of a message owned by *requester*.

        The sender is never changed; the time stamp is renewed.

        Raises:
            NotFoundError: The message or the requester does not exist.
            UnauthorizedError: *requester* did not send the message.
            ValidationError: The new fields fail validation.
        """
        requester = _clean(requester)
        with self._db.transaction() as conn:
            message = repository.fetch_message(conn, message_id)
            if message is None:
                raise NotFoundError(f"Message not found: {message_id}")
            if not self._registry.exists(requester):
                raise NotFoundError(f"Participant not found: {requester}")
            if message.sender != requester:
                raise UnauthorizedError("Only the sender can edit this message")

            payload = self._validate(to, text, type_)
            updated = message.model_copy(update={
                "to": payload.to,
                "text": payload.text,
                "type": MessageType(payload.type),
                "time": self._now(),
            })
            repository.update_message(conn, updated)

        logger.info("[messages] %s edited %s", requester, message_id)
        return updated

    def delete(self, message_id: str, requester: Optional[str]) -> None:
        """Remove a message owned by *requester*.

        Raises:
            NotFoundError: The message does not exist.
            UnauthorizedError: *requester* did not send the message.
        """
        requester = _clean(requester)
        with self._db.transaction() as conn:
            message = repository.fetch_message(conn, message_id)
            if message is None:
                raise NotFoundError(f"Message not found: {message_id}")
            if message.sender != requester:
                raise UnauthorizedError("Only the sender can delete this message")
            repository.delete_message(conn, message_id)

        logger.info("[messages] %s deleted %s", requester, message_id)

    def post_status(self, names: Iterable[str], text: str, conn=None) -> int:
        """Broadcast one status notice per name as a single bulk insert.

        Pass *conn* to write inside a caller's open transaction.
        """
        stamp = self._now()
        notices = [status_notice(name, text, stamp) for name in names]
        if not notices:
            return 0
        if conn is not None:
            return repository.insert_messages(conn, notices)
        with self._db.transaction() as conn:
            return repository.insert_messages(conn, notices)

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    def _validate(self, to, text, type_) -> MessageCreate:
        try:
            return MessageCreate(to=_clean(to), text=_clean(text), type=_clean(type_))
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc

    def _now(self) -> str:
        return format_time(self._clock())
