"""Domain errors and their HTTP mapping.

Services raise these exceptions; ``install_error_handlers`` maps them to
status codes at the FastAPI boundary. Anything not listed here is logged and
surfaced as an opaque 500.
"""
import logging
from typing import List, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

# Leading location segments FastAPI adds to request validation errors.
_REQUEST_PARTS = ("body", "query", "header", "path")


class ChatError(Exception):
    """Base class for expected, client-facing failures."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_content(self):
        return {"message": self.message}


class ValidationError(ChatError):
    """Malformed or missing input; carries one message per offending field."""

    status_code = 422

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors))

    def to_content(self):
        return self.errors

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        return cls(format_errors(exc.errors()))


class ConflictError(ChatError):
    status_code = 409


class NotFoundError(ChatError):
    status_code = 404


class UnregisteredParticipantError(NotFoundError):
    """The requesting identity is not a registered participant.

    Sending and listing messages report this as an unprocessable request
    rather than a missing resource.
    """

    status_code = 422


class UnauthorizedError(ChatError):
    status_code = 401


def format_errors(errors) -> List[str]:
    """Flatten pydantic error dicts into ``"field: message"`` strings."""
    messages = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in _REQUEST_PARTS]
        field = ".".join(loc)
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return messages


async def _chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    return JSONResponse(exc.to_content(), status_code=exc.status_code)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(format_errors(exc.errors()), status_code=422)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"message": "Internal server error"}, status_code=500)


def install_error_handlers(app: FastAPI) -> None:
    """Register the domain-error → HTTP status mapping on *app*."""
    app.add_exception_handler(ChatError, _chat_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
