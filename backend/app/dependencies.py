"""FastAPI dependencies shared by the chat routers.

Services are created once in the application lifespan and stored on
``app.state``; these helpers hand them to request handlers.
"""
from typing import Optional

from fastapi import Header, Request

from app.messages.service import MessageService
from app.participants.service import ParticipantRegistry
from app.sanitizer import sanitize


def get_registry(request: Request) -> ParticipantRegistry:
    return request.app.state.registry


def get_message_service(request: Request) -> MessageService:
    return request.app.state.messages


def current_user(user: Optional[str] = Header(None)) -> Optional[str]:
    """Identity of the caller, taken from the ``User`` header.

    Returns None when the header is missing or empty after sanitizing; the
    services treat that as an unregistered participant.
    """
    if user is None:
        return None
    return sanitize(user) or None
