"""
Webhook endpoint for pipeline events.

POST / receives a JSON event, e.g.
    {"type": "done", "payload": {"evidencePath": "/ev/1"}}
and applies it to the record carrying that evidence path.

Responses are plain text: "ok" with 200, or the error message with 400.
EvidenceHookErrors raised here are rendered as plain text by the handler
registered in main.py.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from evidence_hook.errors import (
    BackendError,
    DecodeError,
    EvidenceHookError,
    ResolveError,
    UpdateError,
)
from evidence_hook.schemas.models import Event
from evidence_hook.services.event_service import EventService

router = APIRouter(tags=["webhooks"])


def get_event_service(request: Request) -> EventService:
    """Event service bound to the backend created at startup."""
    return EventService(request.app.state.backend)


def describe_error(exc: EvidenceHookError) -> str:
    """Message sent to the caller for an error raised while handling an event."""
    if isinstance(exc, (ResolveError, BackendError)):
        return f"error finding record: {exc}"
    if isinstance(exc, UpdateError):
        return f"error updating state: {exc}"
    return str(exc)


@router.post("/", response_class=PlainTextResponse)
async def receive_event(
    request: Request,
    events: EventService = Depends(get_event_service),
) -> str:
    """
    Apply a pipeline event to its backing record.

    running/done/failed update the record's status, progress is only
    acknowledged. Every failure is raised as an EvidenceHookError and
    becomes a 400 with the message from describe_error().
    """
    body = await request.body()
    try:
        event = Event.model_validate_json(body)
    except ValidationError as e:
        raise DecodeError(f"error decoding request: {e}") from e

    await events.handle(event)
    return "ok"
