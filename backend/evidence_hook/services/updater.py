"""
Status updates on resolved records.

Backends replace the whole custom field array on update, so the updater
rebuilds the complete field list with only the status value changed and
hands that to the backend.
"""

import logging

from evidence_hook.errors import BackendError, UpdateError
from evidence_hook.schemas.models import CustomField, Record
from evidence_hook.services.backend import RecordBackend

logger = logging.getLogger(__name__)


def with_status(record: Record, status: str, status_field: str = "status") -> list[CustomField]:
    """
    Build the full field list of record with the status field set to status.

    Every other field keeps its id, name and value. A record without a
    status field gets its fields back unchanged.
    """
    return [
        field.model_copy(update={"value": status}) if field.name == status_field else field.model_copy()
        for field in record.custom_fields
    ]


class StatusUpdater:
    """Writes a new status onto a record through the backend."""

    def __init__(self, backend: RecordBackend):
        self.backend = backend

    async def update_status(self, record: Record, status: str) -> None:
        """
        Set the status of record.

        Raises:
            UpdateError: the backend rejected or failed the update
        """
        fields = with_status(record, status, self.backend.status_field)
        try:
            await self.backend.update(record, fields)
        except BackendError as e:
            raise UpdateError(str(e)) from e
        logger.info("record %s: %s set to %s", record.id, self.backend.status_field, status)
