"""
Query engine - the single query-execution entry point.

Pipeline:
1. Parse (GraphQL document or JSON selection form)
2. Validate and plan (strict, all-or-nothing, no store access)
3. Execute (concurrent, failures localized per node)
4. Assemble `{data, errors}`
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from ..config import Settings
from ..core.errors import PlanError, RequestTimeoutError
from ..core.query_types import QueryRequest, QueryResponse, SelectionNode
from ..core.registry import SchemaRegistry
from ..core.request_parser import parse_request
from .assembler import ResponseAssembler
from .context import ExecutionContext
from .executor import PlanExecutor
from .planner import QueryPlanner
from .store import DocumentStore

logger = logging.getLogger(__name__)


class QueryEngine:
    """
    Runs client queries against the document store.

    Usage:
        engine = QueryEngine(registry, store, settings)
        response = await engine.execute('{ recipe(id: "r1") { name } }')
        response.to_dict()  # {"data": {...}, "errors": [...]}

    The engine holds only immutable state (registry, settings) and the
    shared store client; every call builds its own plan and result trees.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        store: DocumentStore,
        settings: Optional[Settings] = None,
    ):
        self.registry = registry
        self.store = store
        self.settings = settings or Settings()
        self.assembler = ResponseAssembler()

    async def execute(
        self,
        query: QueryRequest | str,
        variables: Optional[dict[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> QueryResponse:
        """
        Execute a query given as document text or a QueryRequest.

        Raises:
            RequestTimeoutError: if the whole request exceeds request_timeout
        """
        if isinstance(query, str):
            query = QueryRequest(query=query, variables=variables, operation_name=operation_name)

        try:
            selections = parse_request(query)
        except PlanError as e:
            logger.info(f"Rejected query: {e}")
            return QueryResponse(data=None, errors=e.errors)

        return await self.execute_selections(selections)

    async def execute_selections(self, selections: list[SelectionNode]) -> QueryResponse:
        """Plan, execute and assemble already-parsed selections."""
        planner = QueryPlanner(
            self.registry,
            max_depth=self.settings.max_depth,
            max_page_size=self.settings.max_page_size,
            clamp_pagination=self.settings.clamp_pagination,
        )
        try:
            plan = planner.plan(selections)
        except PlanError as e:
            logger.info(f"Rejected query: {e}")
            return QueryResponse(data=None, errors=e.errors)

        context = ExecutionContext(
            store=self.store,
            store_timeout=self.settings.store_timeout,
            max_concurrency=self.settings.max_concurrency,
        )
        executor = PlanExecutor()
        try:
            root = await asyncio.wait_for(
                executor.execute(plan, context),
                timeout=self.settings.request_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Request {context.request_id} timed out after {self.settings.request_timeout}s"
            )
            raise RequestTimeoutError(self.settings.request_timeout)

        response = self.assembler.assemble(root)
        if response.errors:
            logger.info(
                f"Request {context.request_id} completed with {len(response.errors)} errors"
            )
        return response
