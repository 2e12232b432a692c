"""Two-way lookup between custom field ids and names, rebuilt for every resolve."""

from typing import Iterable, Optional

from evidence_hook.schemas.models import CustomField, FieldDefinition, Record


class FieldMap:
    """
    Bidirectional id <-> name table for one set of field definitions.

    The resolver only needs name_of() (through name_record()); id_of() is
    the reverse lookup for callers that address a field by name.
    """

    def __init__(self, definitions: Iterable[FieldDefinition] = ()):
        self._names: dict[str, str] = {}
        self._ids: dict[str, str] = {}
        for definition in definitions:
            self._names[definition.id] = definition.name
            self._ids[definition.name] = definition.id

    def name_of(self, field_id: str) -> Optional[str]:
        return self._names.get(field_id)

    def id_of(self, name: str) -> Optional[str]:
        return self._ids.get(name)

    def name_record(self, record: Record) -> Record:
        """
        Return a copy of record with every field name filled in from the map.

        Fields whose id is unknown keep the name they already carry, so
        backends that store names directly pass through unchanged.
        """
        fields = [
            CustomField(
                id=field.id,
                name=self._names.get(field.id, field.name),
                value=field.value,
            )
            for field in record.custom_fields
        ]
        return Record(id=record.id, custom_fields=fields)
