"""
Record resolution: evidence path -> exactly one backing record.

The resolver fetches the candidate records from the backend, names their
custom fields through a FieldMap built from the same response, and picks the
record whose path field equals the requested path.

Design decisions:
- Zero matches is NotFound, more than one is NotUnique. Duplicate paths are
  a data-integrity problem on the backend side and are never resolved by
  picking one of them.
- The field map lives for a single resolve() call. Field definitions are
  read fresh on every request.
- Backend failures propagate unchanged; nothing is retried here.
"""

import logging

from evidence_hook.errors import NotFound, NotUnique
from evidence_hook.schemas.models import Record
from evidence_hook.services.backend import PATH_FIELD, RecordBackend
from evidence_hook.services.field_map import FieldMap

logger = logging.getLogger(__name__)


class RecordResolver:
    """Finds the unique record carrying a given path."""

    def __init__(self, backend: RecordBackend):
        self.backend = backend

    async def resolve(self, path: str) -> Record:
        """
        Resolve path to its record.

        Args:
            path: Evidence path to look up

        Returns:
            The record whose path field equals path, with named fields

        Raises:
            NotFound: no record carries this path
            NotUnique: several records carry this path
            BackendError: the backend lookup failed
        """
        listing = await self.backend.fetch(path)
        field_map = FieldMap(listing.fields)

        matches = [
            record
            for record in (field_map.name_record(r) for r in listing.records)
            if record.get(PATH_FIELD) == path
        ]
        logger.debug(
            "resolved %s: %d candidate(s), %d match(es)",
            path, len(listing.records), len(matches),
        )

        if not matches:
            raise NotFound(path)
        if len(matches) > 1:
            raise NotUnique(path, len(matches))
        return matches[0]
