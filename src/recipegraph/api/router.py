"""
FastAPI router for the recipe query API.

Endpoints:
- POST /graphql - Executes a query (GraphQL document or JSON selection form)
- GET  /graphql - Executes a query passed as ?query=&variables=&operationName=
- GET  /__schema - Returns the registry as JSON
- GET  /__schema.graphql - Returns the schema as GraphQL SDL
- GET  /health - Liveness check

Supported request bodies:

1. GraphQL document:
   {"query": "{ recipe(id: \"r1\") { name } }", "variables": {...}, "operationName": "..."}

2. JSON selection form:
   {"select": {"recipe": {"args": {"id": "r1"}, "fields": ["name"]}}}

Query responses are always HTTP 200 with `{data, errors}`; a request that
exceeds the request timeout answers 504 and a malformed body answers 400.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from ..core.errors import RequestTimeoutError
from ..core.query_types import QueryRequest
from ..core.registry import SchemaRegistry
from ..core.sdl import generate_sdl
from ..runtime.engine import QueryEngine


# Create router
router = APIRouter()

# Global instance (set by create_app)
_engine: QueryEngine | None = None


def set_engine(engine: QueryEngine | None):
    """Set the query engine used by the API."""
    global _engine
    _engine = engine


def get_engine() -> QueryEngine:
    """Get the query engine."""
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call set_engine() first.")
    return _engine


def get_registry(engine: QueryEngine = Depends(get_engine)) -> SchemaRegistry:
    return engine.registry


@router.get("/__schema")
async def get_schema_endpoint(registry: SchemaRegistry = Depends(get_registry)) -> dict:
    """Return the schema registry as JSON (types, fields, arguments)."""
    return registry.to_dict()


@router.get("/__schema.graphql", response_class=PlainTextResponse)
async def get_schema_sdl(registry: SchemaRegistry = Depends(get_registry)) -> str:
    """
    Return the schema as GraphQL SDL.

    Usage:
        curl http://localhost:8080/__schema.graphql > schema.graphql
    """
    return generate_sdl(registry)


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/graphql")
async def graphql_post(
    request: Request,
    engine: QueryEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Execute a query sent as a JSON body (see module docstring)."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail={"error": "request body is not valid JSON"})

    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail={"error": "request body must be an object"})

    try:
        query_request = QueryRequest.model_validate(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"error": str(e)})

    return await _run(engine, query_request)


@router.get("/graphql")
async def graphql_get(
    query: str = Query(..., description="GraphQL document"),
    variables: Optional[str] = Query(None, description="JSON-encoded variables"),
    operation_name: Optional[str] = Query(None, alias="operationName"),
    engine: QueryEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Execute a query passed in the query string."""
    parsed_variables = None
    if variables:
        try:
            parsed_variables = json.loads(variables)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail={"error": "variables must be valid JSON"})
        if not isinstance(parsed_variables, dict):
            raise HTTPException(status_code=400, detail={"error": "variables must be an object"})

    query_request = QueryRequest(
        query=query, variables=parsed_variables, operation_name=operation_name
    )
    return await _run(engine, query_request)


async def _run(engine: QueryEngine, query_request: QueryRequest) -> dict[str, Any]:
    try:
        response = await engine.execute(query_request)
    except RequestTimeoutError as e:
        raise HTTPException(status_code=504, detail={"error": str(e)})
    return response.to_dict()
