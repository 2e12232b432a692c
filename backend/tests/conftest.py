"""
Shared fixtures for the evidence hook tests.

Run:  pytest -v
"""

import json

import httpx
import pytest

from evidence_hook.config import Settings, get_settings
from evidence_hook.database.connection import init_database
from evidence_hook.database.repositories import DocumentRepository
from evidence_hook.schemas.models import CustomField, FieldDefinition, Listing, Record
from evidence_hook.services.backend import RecordBackend


class FakeBackend(RecordBackend):
    """In-memory backend recording every call."""

    name = "fake"
    status_field = "status"

    def __init__(self, listing: Listing | None = None):
        self.listing = listing or Listing()
        self.fetch_calls: list[str] = []
        self.update_calls: list[tuple[Record, list[CustomField]]] = []
        self.started = False
        self.closed = False

    async def startup(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True

    async def fetch(self, path: str) -> Listing:
        self.fetch_calls.append(path)
        return self.listing

    async def update(self, record: Record, fields: list[CustomField]) -> None:
        self.update_calls.append((record, fields))


def card(card_id: str, path: str, status: str = "running", **extra: str) -> Record:
    """Card as Wekan reports it: field ids only, names come from the board definitions."""
    fields = [
        CustomField(id="f-path", value=path),
        CustomField(id="f-status", value=status),
    ]
    for field_id, value in extra.items():
        fields.append(CustomField(id=field_id, value=value))
    return Record(id=card_id, custom_fields=fields)


BOARD_FIELDS = [
    FieldDefinition(id="f-path", name="path"),
    FieldDefinition(id="f-status", name="status"),
    FieldDefinition(id="f-owner", name="owner"),
]


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are cached per process; tests set their own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_backend():
    return FakeBackend(Listing(
        fields=BOARD_FIELDS,
        records=[
            card("c1", "/ev/1", "running", **{"f-owner": "alice"}),
            card("c2", "/ev/2", "done"),
        ],
    ))


@pytest.fixture
def wekan_settings():
    return Settings(
        _env_file=None,
        backend="wekan",
        graphql_url="http://wekan.test/graphql",
        graphql_user="bot",
        graphql_pass="secret",
        board="Pipelines",
        list="Evidence",
    )


@pytest.fixture
def store_settings(tmp_path):
    settings = Settings(
        _env_file=None,
        backend="store",
        database_url=str(tmp_path / "data" / "store.db"),
        collection="evidence",
    )
    init_database(settings.database_url, settings.collection)
    return settings


@pytest.fixture
def repository(store_settings):
    return DocumentRepository(store_settings.database_url, store_settings.collection)


class FakeWekan:
    """
    Minimal GraphQL server for the Authorize, Cards and UpdateCard operations.

    Usable as a respx side effect or as an httpx.MockTransport handler.
    """

    def __init__(self, cards: list[dict] | None = None):
        self.cards = cards if cards is not None else []
        self.fields = [{"id": f.id, "name": f.name} for f in BOARD_FIELDS]
        self.requests: list[dict] = []
        self.tokens_issued = 0
        self.valid_token: str | None = None
        self.update_errors: list[str] = []

    def operations(self, name: str) -> list[dict]:
        return [r for r in self.requests if r.get("operationName") == name]

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        variables = body.get("variables") or {}
        operation = body.get("operationName")

        if operation == "Authorize":
            if (variables.get("user"), variables.get("password")) != ("bot", "secret"):
                return httpx.Response(200, json={"errors": [{"message": "Unauthorized"}], "data": None})
            self.tokens_issued += 1
            self.valid_token = f"token-{self.tokens_issued}"
            return httpx.Response(200, json={"data": {"authorize": {"userId": "u1", "token": self.valid_token}}})

        if variables.get("token") != self.valid_token:
            return httpx.Response(200, json={"errors": [{"message": "Invalid token"}], "data": None})

        if operation == "Cards":
            return httpx.Response(200, json={"data": {"board": {
                "customFields": self.fields,
                "list": {"cards": self.cards},
            }}})

        if operation == "UpdateCard":
            if self.update_errors:
                return httpx.Response(200, json={
                    "errors": [{"message": m} for m in self.update_errors],
                    "data": {"updateCard": None},
                })
            return httpx.Response(200, json={"data": {"updateCard": "ok"}})

        return httpx.Response(400, json={"errors": [{"message": f"unknown operation {operation}"}]})


def wekan_card(card_id: str, path: str, status: str = "running") -> dict:
    return {
        "id": card_id,
        "customFields": [
            {"id": "f-path", "value": path},
            {"id": "f-status", "value": status},
        ],
    }
