"""
Parameterized GraphQL requests.

Documents are fixed text that only reference variables; every value supplied
by configuration or by a record travels in the "variables" object of the
request. A quote or brace inside a board title, a token or a field value can
therefore never change the shape of the document.
"""

from typing import Any

from pydantic import BaseModel


class GraphQLRequest(BaseModel):
    """A GraphQL request as sent over HTTP."""
    query: str
    variables: dict[str, Any] = {}
    operation_name: str | None = None

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {"query": self.query, "variables": self.variables}
        if self.operation_name:
            body["operationName"] = self.operation_name
        return body


class GraphQLError(BaseModel):
    message: str = ""


class GraphQLResponse(BaseModel):
    """Decoded GraphQL response body."""
    errors: list[GraphQLError] | None = None
    data: dict[str, Any] | None = None

    @property
    def first_error(self) -> str | None:
        if self.errors:
            return self.errors[0].message
        return None


class OperationBuilder:
    """
    Builds one operation, declaring a variable for every value it uses.

    Usage:
        op = OperationBuilder("mutation", "UpdateCard")
        card_id = op.var("String!", "card-1")
        op.body(f"updateCard(card: {{_id: {card_id}}})")
        request = op.build()
    """

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        self._declarations: list[str] = []
        self._variables: dict[str, Any] = {}
        self._body = ""

    def var(self, graphql_type: str, value: Any, name: str | None = None) -> str:
        """Declare a variable holding value and return its reference ($name)."""
        name = name or f"v{len(self._declarations)}"
        if name in self._variables:
            raise ValueError(f"variable {name} declared twice")
        self._declarations.append(f"${name}: {graphql_type}")
        self._variables[name] = value
        return f"${name}"

    def body(self, selection: str) -> None:
        self._body = selection

    def build(self) -> GraphQLRequest:
        declarations = f"({', '.join(self._declarations)})" if self._declarations else ""
        query = f"{self.kind} {self.name}{declarations} {{\n{self._body}\n}}"
        return GraphQLRequest(query=query, variables=dict(self._variables), operation_name=self.name)
