"""Message router: send, list, edit and delete chat messages.

All endpoints identify the caller through the ``User`` header.

Endpoints:
    POST   /messages:      Send a message (201 + id)
    GET    /messages:      Messages visible to the caller, oldest first
    PUT    /messages/{id}: Edit a message the caller sent
    DELETE /messages/{id}: Delete a message the caller sent
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.dependencies import current_user, get_message_service

from .repository import MAX_LIMIT
from .schemas import MessageCreate, MessageCreated
from .service import MessageService

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", status_code=201)
async def send_message(
    body: MessageCreate,
    user: Optional[str] = Depends(current_user),
    service: MessageService = Depends(get_message_service),
) -> JSONResponse:
    """Send a message as the caller.

    The sender is always the ``User`` header; the body cannot set it.

    Returns:
        ``{"id": ...}`` (201 Created), or 422 if the caller is not
        registered.
    """
    message = service.send(user, body.to, body.text, body.type)
    return JSONResponse(MessageCreated(id=message.id).model_dump(), status_code=201)


@router.get("")
async def list_messages(
    limit: Optional[int] = Query(
        None, le=MAX_LIMIT, description="Return only the newest N visible messages"
    ),
    user: Optional[str] = Depends(current_user),
    service: MessageService = Depends(get_message_service),
) -> JSONResponse:
    """List the messages visible to the caller.

    Public messages and status notices are visible to everyone; private
    messages only to their sender and recipient.

    Args:
        limit: Positive N keeps the newest N messages (still oldest first).
            Zero, negative or missing returns everything; values beyond a
            signed 64-bit integer are rejected with 422.

    Example:
        GET /messages?limit=100
    """
    messages = service.list_for(user, limit)
    return JSONResponse([m.to_json() for m in messages])


@router.put("/{message_id}")
async def edit_message(
    message_id: str,
    body: MessageCreate,
    user: Optional[str] = Depends(current_user),
    service: MessageService = Depends(get_message_service),
) -> JSONResponse:
    """Edit a message the caller sent.

    Returns:
        The updated message, 404 if it does not exist, 401 if the caller
        is not its sender.
    """
    updated = service.edit(message_id, user, body.to, body.text, body.type)
    return JSONResponse(updated.to_json())


@router.delete("/{message_id}")
async def delete_message(
    message_id: str,
    user: Optional[str] = Depends(current_user),
    service: MessageService = Depends(get_message_service),
) -> JSONResponse:
    """Delete a message the caller sent.

    Returns:
        200 on success, 404 if it does not exist, 401 if the caller is not
        its sender.
    """
    service.delete(message_id, user)
    return JSONResponse({"message": "Message deleted"})
