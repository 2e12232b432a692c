"""
Backend adapter interface.

Routes and services never talk to Wekan or the document store directly - they
go through a RecordBackend. To add another backing system:
1. Subclass RecordBackend and implement fetch() and update()
2. Set status_field to the name of the field that carries the state
3. Register the class in get_backend() below
"""

from abc import ABC, abstractmethod

from evidence_hook.config import Settings
from evidence_hook.schemas.models import CustomField, Listing, Record

PATH_FIELD = "path"


class RecordBackend(ABC):
    """Source of records and sink for their status updates."""

    name: str = ""
    status_field: str = "status"

    async def startup(self) -> None:
        """Prepare the backend once per process (connections, credentials)."""

    async def close(self) -> None:
        """Release resources acquired in startup()."""

    @abstractmethod
    async def fetch(self, path: str) -> Listing:
        """
        Fetch the candidate records for path.

        The listing may contain records with other paths; the resolver does
        the exact match. It must contain every record that has this path,
        or at least two of them when several do.

        Raises:
            BackendError: on transport failure or a backend-reported error
        """

    @abstractmethod
    async def update(self, record: Record, fields: list[CustomField]) -> None:
        """
        Write the complete custom field set of record.

        Raises:
            BackendError: on transport failure or a backend-reported error
        """


def get_backend(settings: Settings) -> RecordBackend:
    """Factory function for dependency injection."""
    if settings.backend == "wekan":
        from evidence_hook.services.wekan_service import WekanBackend
        return WekanBackend(settings)
    from evidence_hook.services.store_service import DocumentStoreBackend
    return DocumentStoreBackend(settings)
