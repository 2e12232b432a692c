"""
Event routing.

running / done / failed: resolve the record by path, then set its status
to the event type. progress: acknowledged, no backend call. Anything else
is rejected.
"""

import logging

from evidence_hook.errors import InvalidEventType
from evidence_hook.schemas.models import Event, EventType
from evidence_hook.services.backend import RecordBackend
from evidence_hook.services.resolver import RecordResolver
from evidence_hook.services.updater import StatusUpdater

logger = logging.getLogger(__name__)


class EventService:
    """Applies pipeline events to backing records."""

    def __init__(self, backend: RecordBackend):
        self.resolver = RecordResolver(backend)
        self.updater = StatusUpdater(backend)

    async def handle(self, event: Event) -> None:
        """
        Apply one event.

        Raises:
            InvalidEventType: unknown event type (no backend call is made)
            ResolveError: the evidence path matches zero or several records
            UpdateError: the backend refused the status update
            BackendError: the record lookup failed
        """
        try:
            event_type = EventType(event.type)
        except ValueError:
            raise InvalidEventType(event.type) from None

        path = event.payload.evidence_path
        if event_type is EventType.PROGRESS:
            logger.debug("progress on %s: %s", path, event.payload.progress)
            return

        record = await self.resolver.resolve(path)
        await self.updater.update_status(record, event_type.value)
