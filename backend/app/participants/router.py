"""Participant router: registration, listing and liveness pings.

Endpoints:
    POST /participants: Register a participant (201, 409 on name clash)
    GET  /participants: List current participants
    POST /status:       Refresh the caller's liveness timestamp
"""
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import current_user, get_registry

from .schemas import ParticipantCreate
from .service import ParticipantRegistry

router = APIRouter(tags=["participants"])


@router.post("/participants", status_code=201)
async def register_participant(
    body: ParticipantCreate,
    registry: ParticipantRegistry = Depends(get_registry),
) -> JSONResponse:
    """Register a new participant and announce it to the room.

    Args:
        body: Participant registration payload.

    Returns:
        The registered participant (201 Created).
    """
    participant = registry.register(body.name)
    return JSONResponse(participant.model_dump(), status_code=201)


@router.get("/participants")
async def list_participants(
    registry: ParticipantRegistry = Depends(get_registry),
) -> JSONResponse:
    return JSONResponse([p.model_dump() for p in registry.list()])


@router.post("/status")
async def ping_status(
    user: Optional[str] = Depends(current_user),
    registry: ParticipantRegistry = Depends(get_registry),
) -> JSONResponse:
    """Keep the caller online.

    Clients call this periodically; participants that stop pinging are
    evicted by the inactivity reaper.

    Returns:
        200 on success, 404 if the caller is not registered.
    """
    registry.ping(user)
    return JSONResponse({"message": "OK"})
