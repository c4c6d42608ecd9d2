"""Pydantic schemas for chat participants."""
from pydantic import BaseModel, Field


class ParticipantCreate(BaseModel):
    """Request body for registering a participant."""
    name: str = Field(..., min_length=3, max_length=20)


class Participant(BaseModel):
    """A registered participant and its last liveness ping."""
    name: str
    lastStatus: int = Field(..., description="Last status ping, epoch milliseconds")
