"""Tests for the status field rebuild and the status updater."""

import pytest

from conftest import BOARD_FIELDS, FakeBackend, card
from evidence_hook.errors import BackendError, UpdateError
from evidence_hook.schemas.models import CustomField, Record
from evidence_hook.services.field_map import FieldMap
from evidence_hook.services.updater import StatusUpdater, with_status


def named_card(**extra):
    return FieldMap(BOARD_FIELDS).name_record(card("c1", "/ev/1", "running", **extra))


class TestWithStatus:
    def test_replaces_only_status(self):
        record = named_card(**{"f-owner": "alice"})

        fields = with_status(record, "done")

        assert [(f.id, f.name, f.value) for f in fields] == [
            ("f-path", "path", "/ev/1"),
            ("f-status", "status", "done"),
            ("f-owner", "owner", "alice"),
        ]

    def test_record_left_untouched(self):
        record = named_card()

        with_status(record, "failed")

        assert record.get("status") == "running"

    def test_idempotent(self):
        record = named_card(**{"f-owner": "alice"})

        once = with_status(record, "done")
        twice = with_status(Record(id=record.id, custom_fields=once), "done")

        assert once == twice

    @pytest.mark.parametrize("fields", [
        [],
        [CustomField(id="a", name="path", value="/p")],
        [CustomField(id="a", name="x", value=None), CustomField(id="b", name="y", value="")],
    ])
    def test_without_status_field_returns_fields_unchanged(self, fields):
        record = Record(id="r", custom_fields=fields)

        assert with_status(record, "done") == fields

    def test_custom_status_field_name(self):
        record = Record(id="d1", custom_fields=[
            CustomField(id="state", name="state", value="running"),
            CustomField(id="status", name="status", value="keep"),
        ])

        fields = with_status(record, "done", status_field="state")

        assert [f.value for f in fields] == ["done", "keep"]


class TestStatusUpdater:
    @pytest.mark.asyncio
    async def test_sends_complete_field_set(self):
        backend = FakeBackend()
        record = named_card(**{"f-owner": "alice"})

        await StatusUpdater(backend).update_status(record, "done")

        assert len(backend.update_calls) == 1
        sent_record, fields = backend.update_calls[0]
        assert sent_record.id == "c1"
        assert {f.name: f.value for f in fields} == {"path": "/ev/1", "status": "done", "owner": "alice"}

    @pytest.mark.asyncio
    async def test_backend_error_becomes_update_error(self):
        backend = FakeBackend()

        async def failing_update(record, fields):
            raise BackendError("card is archived")

        backend.update = failing_update

        with pytest.raises(UpdateError, match="card is archived"):
            await StatusUpdater(backend).update_status(named_card(), "done")
