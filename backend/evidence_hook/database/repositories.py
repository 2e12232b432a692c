"""
Document repository for one collection of the document store.

Documents are plain dicts with an "_id" key; the rest of the document is
stored as its JSON body.

Design decisions:
- find_by_path() takes a limit; callers that only need to know whether a
  path is unique ask for 2
- set_field() rewrites one field of the body in place, leaving the others
  untouched
- Methods return None / False for not-found cases (caller decides if that's
  an error)
"""

import json
import uuid
from typing import Any, Optional

from evidence_hook.database.connection import check_collection, get_connection


class DocumentRepository:
    """Repository for documents of a single collection."""

    def __init__(self, database_url: str, collection: str):
        self.database_url = database_url
        self.collection = check_collection(collection)

    def _to_document(self, row) -> dict[str, Any]:
        document = json.loads(row["body"])
        document["_id"] = row["id"]
        return document

    def insert(self, document: dict[str, Any]) -> str:
        """Insert a document and return its id (generated when the document has none)."""
        body = dict(document)
        doc_id = str(body.pop("_id", None) or uuid.uuid4())
        with get_connection(self.database_url) as conn:
            conn.execute(
                f'INSERT INTO "{self.collection}" (id, body) VALUES (?, ?)',
                (doc_id, json.dumps(body)),
            )
        return doc_id

    def get_by_id(self, doc_id: str) -> Optional[dict[str, Any]]:
        """Get a document by its id."""
        with get_connection(self.database_url) as conn:
            row = conn.execute(
                f'SELECT id, body FROM "{self.collection}" WHERE id = ?', (doc_id,)
            ).fetchone()
            if row:
                return self._to_document(row)
            return None

    def find_by_path(self, path: str, limit: int = 2) -> list[dict[str, Any]]:
        """Get the documents whose path field equals path, at most limit of them."""
        with get_connection(self.database_url) as conn:
            rows = conn.execute(
                f"""SELECT id, body FROM "{self.collection}"
                    WHERE json_extract(body, '$.path') = ?
                    LIMIT ?""",
                (path, limit),
            ).fetchall()
            return [self._to_document(row) for row in rows]

    def set_field(self, doc_id: str, name: str, value: Any) -> bool:
        """Set one field of a document by id. Returns True if the document exists."""
        with get_connection(self.database_url) as conn:
            cursor = conn.execute(
                f"UPDATE \"{self.collection}\" SET body = json_set(body, ?, json(?)) WHERE id = ?",
                (f'$."{name}"', json.dumps(value), doc_id),
            )
            return cursor.rowcount > 0
