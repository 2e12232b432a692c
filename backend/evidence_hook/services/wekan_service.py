"""
Wekan backend reached through its GraphQL endpoint.

This module encapsulates all GraphQL calls: the credential exchange, the card
lookup on the configured board/list and the card update. Routes and other
services never call the GraphQL endpoint directly - they use this backend.

Design decisions:
- Uses one httpx.AsyncClient for the life of the process
- Requests are JSON GraphQL requests with variables, see graphql.py
- Any GraphQL error is raised as BackendError carrying the first message
- A token the server rejects is refreshed once and the call replayed once;
  any other failure propagates immediately
"""

import logging
import re
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from evidence_hook.config import Settings
from evidence_hook.errors import AuthorizationError, BackendError
from evidence_hook.schemas.models import CustomField, FieldDefinition, Listing, Record
from evidence_hook.services.backend import RecordBackend
from evidence_hook.services.graphql import GraphQLRequest, GraphQLResponse, OperationBuilder
from evidence_hook.services.token_service import Credentials, TokenHolder

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUTH_ERROR_PATTERN = re.compile(
    r"unauthori[sz]ed|not authori[sz]ed|invalid token|token (?:has )?expired|expired token",
    re.IGNORECASE,
)

CARDS_SELECTION = """
    board(auth: {{userId: {user_id}, token: {token}}}, title: {board}) {{
        customFields {{
            id: _id
            name
        }}
        list(title: {list}) {{
            cards {{
                id: _id
                customFields {{
                    id: _id
                    value
                }}
            }}
        }}
    }}
"""

UPDATE_SELECTION = """
    updateCard(auth: {{userId: {user_id}, token: {token}}},
        boardTitle: {board},
        listTitle: {list},
        card: {{
            _id: {card_id}
            customFields: [{fields}]
        }}
    )
"""

AUTHORIZE_SELECTION = """
    authorize(user: {user}, password: {password}) {{
        userId
        token
    }}
"""


class WekanBackend(RecordBackend):
    """Backend for cards of one list on one Wekan board."""

    name = "wekan"
    status_field = "status"

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        tokens: Optional[TokenHolder] = None,
    ):
        """
        Initialize with application settings.

        Args:
            settings: Settings containing graphql_url, credentials, board and list
            client: Optional HTTP client (created in startup() otherwise)
            tokens: Optional token holder (one bound to this backend otherwise)
        """
        self.settings = settings
        self.url = settings.graphql_url
        self.board = settings.board
        self.list = settings.list
        self._client = client
        self._owns_client = client is None
        self.tokens = tokens or TokenHolder(self.authorize)

    async def startup(self) -> None:
        """Open the HTTP client and perform the credential exchange."""
        self._get_client()
        await self.tokens.get()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.backend_timeout)
            self._owns_client = True
        return self._client

    async def execute(self, request: GraphQLRequest) -> dict[str, Any]:
        """
        Send a GraphQL request and return its data.

        Raises:
            AuthorizationError: the server rejected the token or credentials
            BackendError: transport failure, undecodable body or any other GraphQL error
        """
        try:
            response = await self._get_client().post(self.url, json=request.to_json())
        except httpx.HTTPError as e:
            raise BackendError(f"GraphQL request failed: {e}") from e

        try:
            decoded = GraphQLResponse.model_validate_json(response.content)
        except ValueError as e:
            raise BackendError(
                f"undecodable GraphQL response ({response.status_code}): {response.text[:200]}"
            ) from e

        message = decoded.first_error
        if message is not None:
            if AUTH_ERROR_PATTERN.search(message):
                raise AuthorizationError(message)
            raise BackendError(message)
        if decoded.data is None:
            raise BackendError(f"GraphQL response without data ({response.status_code})")
        return decoded.data

    async def authorize(self) -> Credentials:
        """Exchange the configured user/password for a user id and token."""
        op = OperationBuilder("query", "Authorize")
        op.body(AUTHORIZE_SELECTION.format(
            user=op.var("String!", self.settings.graphql_user, "user"),
            password=op.var("String!", self.settings.graphql_pass, "password"),
        ))
        try:
            data = await self.execute(op.build())
        except AuthorizationError as e:
            raise AuthorizationError(f"credential exchange failed: {e}") from e

        authorize = data.get("authorize") or {}
        if not authorize.get("userId") or not authorize.get("token"):
            raise AuthorizationError("credential exchange returned no token")
        return Credentials(user_id=authorize["userId"], token=authorize["token"])

    async def _with_token(self, call: Callable[[Credentials], Awaitable[T]]) -> T:
        credentials = await self.tokens.get()
        try:
            return await call(credentials)
        except AuthorizationError:
            self.tokens.invalidate(credentials)
            return await call(await self.tokens.get())

    def _auth_vars(self, op: OperationBuilder, credentials: Credentials) -> dict[str, str]:
        return {
            "user_id": op.var("String!", credentials.user_id, "userId"),
            "token": op.var("String!", credentials.token, "token"),
            "board": op.var("String!", self.board, "board"),
            "list": op.var("String!", self.list, "list"),
        }

    def build_cards_query(self, credentials: Credentials) -> GraphQLRequest:
        op = OperationBuilder("query", "Cards")
        op.body(CARDS_SELECTION.format(**self._auth_vars(op, credentials)))
        return op.build()

    def build_update_mutation(
        self, credentials: Credentials, record: Record, fields: list[CustomField]
    ) -> GraphQLRequest:
        op = OperationBuilder("mutation", "UpdateCard")
        names = self._auth_vars(op, credentials)
        card_id = op.var("String!", record.id, "cardId")
        entries = [
            "{_id: %s, value: %s}" % (
                op.var("String!", field.id, f"field{i}Id"),
                op.var("String", field.value, f"field{i}Value"),
            )
            for i, field in enumerate(fields)
        ]
        op.body(UPDATE_SELECTION.format(card_id=card_id, fields=", ".join(entries), **names))
        return op.build()

    async def fetch(self, path: str) -> Listing:
        """
        Fetch every card of the configured list with the board's field definitions.

        Wekan cannot filter cards by custom field value, so the whole list is
        returned and the resolver does the matching.
        """
        async def call(credentials: Credentials) -> dict[str, Any]:
            return await self.execute(self.build_cards_query(credentials))

        data = await self._with_token(call)
        board = data.get("board")
        if board is None:
            raise BackendError(f"board not found: {self.board}")
        cards = (board.get("list") or {}).get("cards")
        if cards is None:
            raise BackendError(f"list not found: {self.list}")

        try:
            return Listing(
                fields=[FieldDefinition(**f) for f in board.get("customFields") or []],
                records=[
                    Record(
                        id=card["id"],
                        custom_fields=[CustomField(**f) for f in card.get("customFields") or []],
                    )
                    for card in cards
                ],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"unexpected board response: {e}") from e

    async def update(self, record: Record, fields: list[CustomField]) -> None:
        """Replace the custom fields of the card with fields."""
        async def call(credentials: Credentials) -> dict[str, Any]:
            return await self.execute(self.build_update_mutation(credentials, record, fields))

        await self._with_token(call)
