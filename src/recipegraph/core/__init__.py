"""
Core module - definitions, schema registry, request parsing and validation.
"""

from __future__ import annotations

from .defs import ArgumentDef, FieldDef, FieldKind, LookupDef, ParentRefDef, TypeDef
from .errors import (
    ExecutionError,
    GraphConfigError,
    LoaderError,
    NotFoundError,
    PlanError,
    RecipeGraphError,
    RequestTimeoutError,
    ResolverError,
    SchemaLookupError,
    StoreError,
    StoreTimeoutError,
)
from .query_types import (
    ErrorEntry,
    NormalizedFilter,
    NormalizedOrder,
    NormalizedSelectionNode,
    QueryRequest,
    QueryResponse,
    SelectionNode,
)
from .registry import SchemaRegistry
from .request_parser import DocumentParser, parse_request, parse_selection_json
from .schema import build_recipe_registry, recipe_types
from .sdl import generate_sdl
from .validator import QueryValidator

__all__ = [
    "ArgumentDef",
    "FieldDef",
    "FieldKind",
    "LookupDef",
    "ParentRefDef",
    "TypeDef",
    "ExecutionError",
    "GraphConfigError",
    "LoaderError",
    "NotFoundError",
    "PlanError",
    "RecipeGraphError",
    "RequestTimeoutError",
    "ResolverError",
    "SchemaLookupError",
    "StoreError",
    "StoreTimeoutError",
    "ErrorEntry",
    "NormalizedFilter",
    "NormalizedOrder",
    "NormalizedSelectionNode",
    "QueryRequest",
    "QueryResponse",
    "SelectionNode",
    "SchemaRegistry",
    "DocumentParser",
    "parse_request",
    "parse_selection_json",
    "build_recipe_registry",
    "recipe_types",
    "generate_sdl",
    "QueryValidator",
]
