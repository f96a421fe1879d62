"""
Pydantic models for queries, normalized selections and responses.

These define the structure of incoming requests, the normalized internal
representation produced by validation, and the `{data, errors}` envelope
returned to clients.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


# --- Store-level types ---

class NormalizedFilter(BaseModel):
    """
    Normalized filter representation.

    Input: recipes(tag: "soup")
    Normalized: NormalizedFilter(field="tags", op="eq", value="soup")
    """
    field: str
    op: str  # eq, ne, in, all, icontains, gte, lte, isnull
    value: Any


class NormalizedOrder(BaseModel):
    """
    Normalized order representation.

    Input: orderBy: "-name"
    Normalized: NormalizedOrder(field="name", dir="desc")
    """
    field: str
    dir: Literal["asc", "desc"]


# --- Input types (from client) ---

class SelectionNode(BaseModel):
    """
    Client-requested field with its arguments and nested selections.

    Created fresh per request from a GraphQL document or the JSON form.
    """
    name: str
    alias: Optional[str] = None
    args: dict[str, Any] = Field(default_factory=dict)
    selections: list[SelectionNode] = Field(default_factory=list)

    @property
    def response_key(self) -> str:
        return self.alias or self.name


class QueryRequest(BaseModel):
    """
    Request body accepted by the query endpoint.

    Either `query` (GraphQL document text) or `select` (JSON selection
    form) must be present.
    """
    model_config = ConfigDict(populate_by_name=True)

    query: Optional[str] = None
    variables: Optional[dict[str, Any]] = None
    operation_name: Optional[str] = Field(default=None, alias="operationName")
    select: Optional[dict[str, Any]] = None


# --- Normalized selection (after validation) ---

class NormalizedSelectionNode(BaseModel):
    """Selection with its field resolved and arguments coerced."""
    response_key: str
    field_name: str
    parent_type: str
    path: list[str]
    args: dict[str, Any] = Field(default_factory=dict)
    selections: list[NormalizedSelectionNode] = Field(default_factory=list)


# --- Response types ---

class ErrorEntry(BaseModel):
    """Error reported to the client, located by its path from the query root."""
    message: str
    path: list[str | int] = Field(default_factory=list)
    extensions: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def build(
        cls,
        message: str,
        path: Sequence[str | int] = (),
        code: Optional[str] = None,
    ) -> "ErrorEntry":
        extensions = {"code": code} if code else {}
        return cls(message=message, path=list(path), extensions=extensions)


class QueryResponse(BaseModel):
    """
    Final response envelope.

    `data` is None only when the request never reached execution
    (parse or plan failure).
    """
    data: Optional[dict[str, Any]] = None
    errors: list[ErrorEntry] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "errors": [
                e.model_dump(exclude_defaults=False) for e in self.errors
            ],
        }
