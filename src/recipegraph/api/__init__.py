"""
API module - FastAPI router for the query endpoints and the GraphiQL console.
"""

from __future__ import annotations

from .graphiql import get_graphiql_html, mount_graphiql
from .router import get_engine, router, set_engine

__all__ = ["router", "set_engine", "get_engine", "get_graphiql_html", "mount_graphiql"]
