#!/usr/bin/env python3
"""
Recipegraph CLI - Main entry point.

Usage:
    recipegraph load [--data-dir DIR]           # Reset the collection from JSON files
    recipegraph serve [--host H] [--port P]     # Run the query server
    recipegraph query '{ recipes { name } }'    # Run one query and print the response
    recipegraph schema                          # Print the schema as GraphQL SDL
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..config import Settings, find_config_file, load_settings
from ..core.errors import LoaderError, RecipeGraphError
from ..core.query_types import QueryRequest
from ..core.schema import build_recipe_registry
from ..core.sdl import generate_sdl
from ..loader import RecipeLoader
from ..runtime.engine import QueryEngine
from ..runtime.store import MongoDocumentStore


def _settings(args: argparse.Namespace) -> Settings:
    config_path = args.config or find_config_file()
    return load_settings(config_path)


def _store(settings: Settings) -> MongoDocumentStore:
    return MongoDocumentStore(
        settings.mongodb_uri, settings.database, server_timeout=settings.store_timeout
    )


def cmd_load(args: argparse.Namespace) -> int:
    """Reset the recipes collection from the data directory."""
    settings = _settings(args)
    data_dir = Path(args.data_dir) if args.data_dir else settings.data_dir

    async def run() -> int:
        store = _store(settings)
        try:
            report = await RecipeLoader(store, settings.collection).load(data_dir)
        finally:
            await store.close()
        return report.inserted

    try:
        inserted = asyncio.run(run())
    except LoaderError as e:
        print(f"Error: {e}")
        return 1
    except RecipeGraphError as e:
        print(f"Error loading recipes: {e}")
        return 1

    print(f"Loaded {inserted} recipes into {settings.database}.{settings.collection}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the query server."""
    import uvicorn

    from ..app import create_app

    settings = _settings(args)
    host = args.host or settings.host
    port = args.port or settings.port

    print(f"Serving on http://{host}:{port}/graphql")
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
    return 0


def cmd_query(args: argparse.Namespace) -> int:
    """Execute one query and print the JSON response."""
    settings = _settings(args)
    document = sys.stdin.read() if args.document == "-" else args.document

    try:
        variables = json.loads(args.variables) if args.variables else None
    except json.JSONDecodeError as e:
        print(f"Error: --variables is not valid JSON: {e}")
        return 1

    if args.json:
        try:
            request = QueryRequest(select=json.loads(document))
        except (json.JSONDecodeError, ValueError) as e:
            print(f"Error: selection is not a valid JSON object: {e}")
            return 1
    else:
        request = QueryRequest(
            query=document, variables=variables, operation_name=args.operation_name
        )

    async def run():
        store = _store(settings)
        registry = build_recipe_registry(
            collection=settings.collection, default_page_size=settings.default_page_size
        )
        try:
            return await QueryEngine(registry, store, settings).execute(request)
        finally:
            await store.close()

    try:
        response = asyncio.run(run())
    except RecipeGraphError as e:
        print(f"Error: {e}")
        return 1

    print(json.dumps(response.to_dict(), indent=2, default=str))
    return 0 if not response.errors else 1


def cmd_schema(args: argparse.Namespace) -> int:
    """Print the schema as GraphQL SDL (or JSON with --json)."""
    settings = _settings(args)
    registry = build_recipe_registry(
        collection=settings.collection, default_page_size=settings.default_page_size
    )
    if args.json:
        print(json.dumps(registry.to_dict(), indent=2))
    else:
        print(generate_sdl(registry), end="")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="recipegraph",
        description="Recipegraph - query layer over a recipe document store"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", "-c", help="YAML settings file (default: ./recipegraph.yaml)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # load
    load_parser = subparsers.add_parser("load", help="Reset the collection from JSON data files")
    load_parser.add_argument("--data-dir", help="Directory of *.json recipe files")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the query server")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", "-p", type=int, help="Port")

    # query
    query_parser = subparsers.add_parser("query", help="Run one query")
    query_parser.add_argument("document", help="GraphQL document, or '-' to read stdin")
    query_parser.add_argument("--variables", "-v", help="Variables as a JSON object")
    query_parser.add_argument("--operation-name", "-o", help="Operation to run")
    query_parser.add_argument(
        "--json", action="store_true", help="Treat the document as a JSON selection"
    )

    # schema
    schema_parser = subparsers.add_parser("schema", help="Print the schema")
    schema_parser.add_argument("--json", action="store_true", help="Print JSON instead of SDL")

    return parser


def app(args: Optional[List[str]] = None) -> int:
    """Main CLI application."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 0

    settings = _settings(parsed)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "load": cmd_load,
        "serve": cmd_serve,
        "query": cmd_query,
        "schema": cmd_schema,
    }

    handler = commands.get(parsed.command)
    if handler:
        return handler(parsed)

    parser.print_help()
    return 1


def main() -> None:
    """Entry point for CLI."""
    sys.exit(app())


if __name__ == "__main__":
    main()
