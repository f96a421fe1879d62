"""
Recipegraph - read-only query layer over a recipe document store.

Clients send GraphQL-style selections; the runtime validates them against
a typed schema registry, plans store lookups, executes them concurrently
and answers with `{data, errors}`.

Usage:
    from recipegraph import QueryEngine, build_recipe_registry
    from recipegraph.runtime import MongoDocumentStore

    engine = QueryEngine(build_recipe_registry(), MongoDocumentStore(uri, "recipedb"))
    response = await engine.execute('{ recipes(limit: 5) { name } }')
"""

from __future__ import annotations

__version__ = "0.1.0"

from .app import create_app
from .config import Settings, load_settings
from .core import (
    ErrorEntry,
    ExecutionError,
    GraphConfigError,
    PlanError,
    QueryRequest,
    QueryResponse,
    RecipeGraphError,
    SchemaRegistry,
    SelectionNode,
    build_recipe_registry,
)
from .loader import RecipeLoader
from .runtime import QueryEngine

__all__ = [
    "__version__",
    "create_app",
    "Settings",
    "load_settings",
    "ErrorEntry",
    "ExecutionError",
    "GraphConfigError",
    "PlanError",
    "QueryRequest",
    "QueryResponse",
    "RecipeGraphError",
    "SchemaRegistry",
    "SelectionNode",
    "build_recipe_registry",
    "RecipeLoader",
    "QueryEngine",
]
