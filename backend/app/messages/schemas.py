"""Pydantic schemas for chat messages."""
import uuid
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Recipient marker for messages addressed to everyone in the room.
BROADCAST = "Todos"

JOIN_TEXT = "entra na sala..."
LEAVE_TEXT = "sai da sala..."

TIME_FORMAT = "%H:%M:%S"


class MessageType(str, Enum):
    """Type of chat message.

    Attributes:
        MESSAGE: Public message, visible to everyone.
        PRIVATE_MESSAGE: Visible only to its sender and recipient.
        STATUS: System notice for joins and departures.
    """
    MESSAGE = "message"
    PRIVATE_MESSAGE = "private_message"
    STATUS = "status"


class MessageCreate(BaseModel):
    """Request body for sending or editing a message."""
    to: str = Field(..., min_length=3, max_length=20)
    text: str = Field(..., min_length=1)
    type: Literal["message", "private_message"]


class Message(BaseModel):
    """Full message record returned by the API.

    ``from`` is a keyword, so the sender lives in ``sender`` and is
    serialized under its alias.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    sender: str = Field(..., alias="from")
    to: str
    text: str
    type: MessageType
    time: str

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class MessageCreated(BaseModel):
    id: str


def format_time(timestamp: float) -> str:
    """Render an epoch timestamp as local wall-clock ``HH:MM:SS``."""
    return datetime.fromtimestamp(timestamp).strftime(TIME_FORMAT)


def status_notice(name: str, text: str, time: str) -> Message:
    """Build a broadcast status message on behalf of *name*."""
    return Message(
        sender=name,
        to=BROADCAST,
        text=text,
        type=MessageType.STATUS,
        time=time,
    )
