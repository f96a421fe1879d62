"""
Plan executor - walks plan trees and materializes result trees.

Handles:
- Concurrent evaluation of independent siblings
- Resolving parent-dependent filters once the parent record is known
- Bounded waits on every store operation
- Localizing every failure to the node where it happened

A failing node becomes null (or an empty list for list fields) with an
error attached; siblings and ancestors are never affected.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from ..core.defs import FieldKind
from ..core.errors import (
    ExecutionError,
    NotFoundError,
    ResolverError,
    StoreError,
    StoreTimeoutError,
)
from ..core.query_types import ErrorEntry, NormalizedFilter
from ..core.utils import format_path, get_path
from .context import ExecutionContext
from .planner import PlanNode, StoreQuery

logger = logging.getLogger(__name__)


class ResultTag(str, Enum):
    VALUE = "value"
    OBJECT = "object"
    LIST = "list"
    NULL = "null"


@dataclass
class ResultNode:
    """
    Materialized value for one position of the response.

    OBJECT children are the selected fields in selection order; LIST
    children are the elements. `error` is set on the node that failed.
    """
    key: str | int
    path: list[str | int]
    tag: ResultTag
    value: Any = None
    children: list[ResultNode] = field(default_factory=list)
    error: Optional[ErrorEntry] = None


class PlanExecutor:
    """
    Executes plan trees against the document store.

    Usage:
        executor = PlanExecutor()
        root = await executor.execute(plan, context)
    """

    async def execute(self, plan: list[PlanNode], context: ExecutionContext) -> ResultNode:
        """
        Execute root plan nodes concurrently.

        Returns:
            Root OBJECT ResultNode whose children follow plan order
        """
        children = await asyncio.gather(
            *(self._execute_node(node, None, [node.response_key], context) for node in plan)
        )
        logger.debug(
            f"Request {context.request_id}: executed {len(plan)} root fields "
            f"with {context.store_calls} store calls"
        )
        return ResultNode(key="data", path=[], tag=ResultTag.OBJECT, children=list(children))

    async def _execute_node(
        self,
        node: PlanNode,
        parent: Optional[dict],
        path: list[str | int],
        context: ExecutionContext,
    ) -> ResultNode:
        """Resolve one field. Never raises except on cancellation."""
        try:
            value = await self._resolve_value(node, parent, path, context)
            return await self._complete(node, value, path, context)
        except asyncio.CancelledError:
            raise
        except ExecutionError as e:
            logger.warning(f"Request {context.request_id}: {format_path(path)}: {e.message}")
            return self._error_node(node, path, e.message, e.code)
        except Exception as e:
            logger.error(
                f"Request {context.request_id}: unexpected error at {format_path(path)}: {e}",
                exc_info=True,
            )
            return self._error_node(node, path, f"internal error: {e}", "INTERNAL_ERROR")

    def _error_node(
        self, node: PlanNode, path: list[str | int], message: str, code: str
    ) -> ResultNode:
        tag = ResultTag.LIST if node.kind == FieldKind.LIST else ResultTag.NULL
        return ResultNode(
            key=path[-1],
            path=path,
            tag=tag,
            error=ErrorEntry.build(message, path, code),
        )

    # -------------------------------------------------------------------------
    # Value sources
    # -------------------------------------------------------------------------

    async def _resolve_value(
        self,
        node: PlanNode,
        parent: Optional[dict],
        path: list[str | int],
        context: ExecutionContext,
    ) -> Any:
        if node.typename is not None:
            return node.typename
        if node.query is not None:
            return await self._fetch(node, node.query, parent, context)
        if node.resolver is not None:
            return node.resolver(parent, node.args)
        return get_path(parent, node.storage_path)

    async def _fetch(
        self,
        node: PlanNode,
        query: StoreQuery,
        parent: Optional[dict],
        context: ExecutionContext,
    ) -> Any:
        store = context.store

        if query.operation == "find_by_id":
            record = await self._store_call(
                context, "find_by_id", query.collection,
                store.find_by_id, query.collection, query.key, query.projection,
            )
            if record is None:
                raise NotFoundError()
            return record

        filters = list(query.filters)
        for ref in query.parent_refs:
            ref_filter = self._parent_filter(ref.parent_path, ref.child_path, ref.op, parent)
            if ref_filter is None:
                # Parent has nothing to match on
                return [] if node.kind == FieldKind.LIST else 0
            filters.append(ref_filter)

        if query.operation == "count":
            return await self._store_call(
                context, "count", query.collection,
                store.count, query.collection, filters,
            )

        if query.limit == 0:
            return []

        records = await self._store_call(
            context, "find", query.collection,
            store.find,
            query.collection,
            filters,
            projection=query.projection,
            order=query.order,
            skip=query.skip,
            limit=query.limit,
        )
        if node.kind == FieldKind.OBJECT:
            if not records:
                raise NotFoundError()
            return records[0]
        return records

    def _parent_filter(
        self, parent_path: str, child_path: str, op: str, parent: Optional[dict]
    ) -> Optional[NormalizedFilter]:
        """Build a filter from the parent record; None when nothing can match."""
        value = get_path(parent, parent_path)
        if op == "in":
            values = value if isinstance(value, list) else ([] if value is None else [value])
            if not values:
                return None
            return NormalizedFilter(field=child_path, op="in", value=values)
        if value is None and op == "eq":
            return None
        return NormalizedFilter(field=child_path, op=op, value=value)

    async def _store_call(
        self,
        context: ExecutionContext,
        operation: str,
        collection: str,
        operation_fn: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Run one store operation with the request's concurrency cap and timeout."""
        async with context.semaphore:
            context.store_calls += 1
            try:
                return await asyncio.wait_for(
                    operation_fn(*args, **kwargs), timeout=context.store_timeout
                )
            except asyncio.TimeoutError:
                raise StoreTimeoutError(operation, collection, context.store_timeout)
            except ExecutionError:
                raise
            except Exception as e:
                raise StoreError(operation, collection, str(e)) from e

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    async def _complete(
        self,
        node: PlanNode,
        value: Any,
        path: list[str | int],
        context: ExecutionContext,
    ) -> ResultNode:
        key = path[-1]
        if value is None:
            return ResultNode(key=key, path=path, tag=ResultTag.NULL)

        if node.kind == FieldKind.LIST:
            if not isinstance(value, list):
                raise ResolverError(f"expected a list for '{node.field_name}'")
            items = await asyncio.gather(
                *(self._complete_item(node, item, path + [i], context)
                  for i, item in enumerate(value))
            )
            return ResultNode(key=key, path=path, tag=ResultTag.LIST, children=list(items))

        if node.is_object:
            return await self._complete_object(node, value, path, context)
        return self._complete_scalar(node, value, path)

    async def _complete_item(
        self,
        node: PlanNode,
        item: Any,
        path: list[str | int],
        context: ExecutionContext,
    ) -> ResultNode:
        """Complete one list element; a bad element becomes null with its own error."""
        try:
            if node.is_object:
                return await self._complete_object(node, item, path, context)
            return self._complete_scalar(node, item, path)
        except asyncio.CancelledError:
            raise
        except ExecutionError as e:
            logger.warning(f"Request {context.request_id}: {format_path(path)}: {e.message}")
            return self._item_error(path, e.message, e.code)
        except Exception as e:
            logger.error(
                f"Request {context.request_id}: unexpected error at {format_path(path)}: {e}",
                exc_info=True,
            )
            return self._item_error(path, f"internal error: {e}", "INTERNAL_ERROR")

    def _item_error(self, path: list[str | int], message: str, code: str) -> ResultNode:
        return ResultNode(
            key=path[-1],
            path=path,
            tag=ResultTag.NULL,
            error=ErrorEntry.build(message, path, code),
        )

    async def _complete_object(
        self,
        node: PlanNode,
        record: Any,
        path: list[str | int],
        context: ExecutionContext,
    ) -> ResultNode:
        if record is None:
            return ResultNode(key=path[-1], path=path, tag=ResultTag.NULL)
        if not isinstance(record, dict):
            raise ResolverError(f"expected an object for '{node.field_name}'")
        children = await asyncio.gather(
            *(self._execute_node(child, record, path + [child.response_key], context)
              for child in node.children)
        )
        return ResultNode(key=path[-1], path=path, tag=ResultTag.OBJECT, children=list(children))

    def _complete_scalar(self, node: PlanNode, value: Any, path: list[str | int]) -> ResultNode:
        if value is None:
            return ResultNode(key=path[-1], path=path, tag=ResultTag.NULL)
        try:
            coerced = coerce_output(node.type, value)
        except ValueError as e:
            raise ResolverError(f"cannot serialize '{node.field_name}': {e}")
        return ResultNode(key=path[-1], path=path, tag=ResultTag.VALUE, value=coerced)


def coerce_output(type_name: str, value: Any) -> Any:
    """
    Coerce a stored value into the declared scalar type.

    Raises:
        ValueError: if the value cannot represent the type
    """
    if type_name == "ID":
        if isinstance(value, (bool, dict, list)):
            raise ValueError(f"expected ID, got {type(value).__name__}")
        return str(value)
    if type_name == "String":
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise ValueError(f"expected String, got {type(value).__name__}")
    if type_name == "Int":
        if isinstance(value, bool):
            raise ValueError("expected Int, got bool")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise ValueError(f"expected Int, got {type(value).__name__}")
    if type_name == "Float":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise ValueError(f"expected Float, got {type(value).__name__}")
    if type_name == "Boolean":
        if isinstance(value, bool):
            return value
        raise ValueError(f"expected Boolean, got {type(value).__name__}")
    return value
