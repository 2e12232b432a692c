"""
Pydantic models for events and backing records.

This module contains the inbound event model and the backend-neutral record
models shared by the resolver, the updater and both backend adapters.

Design decisions:
- Event.type is a plain string so that an unknown type decodes fine and is
  rejected by the event handler with a descriptive message
- Records keep custom fields as an ordered list; backends that need the
  complete field array on update get it back in the same order
- Field names may be empty when a backend only reports field ids
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Event types understood by the receiver."""
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    PROGRESS = "progress"


class EventPayload(BaseModel):
    """Payload of a pipeline event."""
    model_config = ConfigDict(populate_by_name=True)

    evidence_path: str = Field(default="", alias="evidencePath")
    progress: Optional[str] = None


class Event(BaseModel):
    """Pipeline/job event posted to the receiver."""
    type: str
    payload: EventPayload = Field(default_factory=EventPayload)


class FieldDefinition(BaseModel):
    """Custom field definition as reported by the backend."""
    id: str
    name: str


class CustomField(BaseModel):
    """A single custom field value on a record."""
    id: str
    name: str = ""
    value: Optional[str] = None


class Record(BaseModel):
    """Backing record: a Wekan card or a store document."""
    id: str
    custom_fields: list[CustomField] = []

    def get(self, name: str) -> Optional[str]:
        """Value of the field called name, or None when the record has no such field."""
        for field in self.custom_fields:
            if field.name == name:
                return field.value
        return None


class Listing(BaseModel):
    """Candidate records for a lookup plus the field definitions valid for them."""
    records: list[Record] = []
    fields: list[FieldDefinition] = []
