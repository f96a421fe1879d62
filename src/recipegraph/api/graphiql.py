"""
GraphiQL console for the query endpoint.

Usage:
    from recipegraph.api.graphiql import mount_graphiql

    # Mount to FastAPI app
    mount_graphiql(app, path="/graphiql", endpoint="/graphql")

    # Or get HTML directly
    from recipegraph.api.graphiql import get_graphiql_html
    html = get_graphiql_html(endpoint="/graphql")
"""

from __future__ import annotations

import json

from fastapi import FastAPI
from fastapi.responses import HTMLResponse


GRAPHIQL_VERSION = "3.7.1"
REACT_VERSION = "18.3.1"

_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>__TITLE__</title>
    <link rel="stylesheet" href="https://unpkg.com/graphiql@__GRAPHIQL__/graphiql.min.css" />
    <style>
        body { height: 100%; margin: 0; width: 100%; overflow: hidden; }
        #graphiql { height: 100vh; }
    </style>
</head>
<body>
    <div id="graphiql">Loading...</div>
    <script crossorigin src="https://unpkg.com/react@__REACT__/umd/react.production.min.js"></script>
    <script crossorigin src="https://unpkg.com/react-dom@__REACT__/umd/react-dom.production.min.js"></script>
    <script crossorigin src="https://unpkg.com/graphiql@__GRAPHIQL__/graphiql.min.js"></script>
    <script>
        const fetcher = GraphiQL.createFetcher({ url: __ENDPOINT__ });
        const root = ReactDOM.createRoot(document.getElementById("graphiql"));
        root.render(React.createElement(GraphiQL, { fetcher: fetcher }));
    </script>
</body>
</html>
"""


def get_graphiql_html(
    *,
    endpoint: str = "/graphql",
    title: str = "Recipe Graph - GraphiQL",
) -> str:
    """
    Get GraphiQL HTML pointed at a query endpoint.

    Args:
        endpoint: URL the console sends queries to
        title: Page title

    Returns:
        HTML string
    """
    return (
        _TEMPLATE.replace("__TITLE__", title)
        .replace("__GRAPHIQL__", GRAPHIQL_VERSION)
        .replace("__REACT__", REACT_VERSION)
        .replace("__ENDPOINT__", json.dumps(endpoint))
    )


def mount_graphiql(
    app: FastAPI,
    path: str = "/graphiql",
    endpoint: str = "/graphql",
) -> None:
    """
    Mount the GraphiQL console to a FastAPI application.

    Args:
        app: FastAPI application
        path: URL path for the console (default: /graphiql)
        endpoint: URL of the query endpoint

    Example:
        app = FastAPI()
        mount_graphiql(app)
        # Access at http://localhost:8080/graphiql
    """
    path = path.rstrip("/")
    html = get_graphiql_html(endpoint=endpoint)

    @app.get(path, response_class=HTMLResponse, include_in_schema=False)
    async def graphiql_html():
        """GraphiQL console for /graphql."""
        return html


__all__ = ["get_graphiql_html", "mount_graphiql"]
