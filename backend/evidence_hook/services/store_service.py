"""
Document store backend.

Documents are matched by their "path" field and carry their lifecycle state
in a "state" field. Every top-level document field becomes a custom field of
the record, named directly (no separate field definitions).
"""

import json
import logging
import sqlite3

from evidence_hook.config import Settings
from evidence_hook.database.connection import init_database
from evidence_hook.database.repositories import DocumentRepository
from evidence_hook.errors import BackendError
from evidence_hook.schemas.models import CustomField, Listing, Record
from evidence_hook.services.backend import RecordBackend

logger = logging.getLogger(__name__)

# two results are enough to tell a unique path from a duplicated one
FIND_LIMIT = 2


def document_to_record(document: dict, status_field: str) -> Record:
    """Turn a stored document into a record whose fields are named by their keys."""
    fields = []
    for key, value in document.items():
        if key == "_id":
            continue
        if value is not None and not isinstance(value, str):
            value = json.dumps(value)
        fields.append(CustomField(id=key, name=key, value=value))
    if status_field not in document:
        fields.append(CustomField(id=status_field, name=status_field))
    return Record(id=str(document["_id"]), custom_fields=fields)


class DocumentStoreBackend(RecordBackend):
    """Backend for documents of one collection."""

    name = "store"
    status_field = "state"

    def __init__(self, settings: Settings, repository: DocumentRepository | None = None):
        self.settings = settings
        self.repository = repository or DocumentRepository(settings.database_url, settings.collection)

    async def startup(self) -> None:
        init_database(self.settings.database_url, self.settings.collection)

    async def fetch(self, path: str) -> Listing:
        try:
            documents = self.repository.find_by_path(path, limit=FIND_LIMIT)
        except sqlite3.Error as e:
            raise BackendError(f"document lookup failed: {e}") from e
        return Listing(records=[document_to_record(d, self.status_field) for d in documents])

    async def update(self, record: Record, fields: list[CustomField]) -> None:
        """Write the state field of the document; other document fields are left as stored."""
        state = next((f.value for f in fields if f.name == self.status_field), None)
        try:
            updated = self.repository.set_field(record.id, self.status_field, state)
        except sqlite3.Error as e:
            raise BackendError(f"document update failed: {e}") from e
        if not updated:
            raise BackendError(f"document {record.id} no longer exists")
