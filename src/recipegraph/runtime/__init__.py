"""
Runtime module - query execution pipeline.
"""

from __future__ import annotations

from .assembler import ResponseAssembler
from .context import ExecutionContext
from .engine import QueryEngine
from .executor import PlanExecutor, ResultNode, ResultTag
from .planner import PlanNode, QueryPlanner, StoreQuery
from .store import DocumentStore, MongoDocumentStore

__all__ = [
    "ResponseAssembler",
    "ExecutionContext",
    "QueryEngine",
    "PlanExecutor",
    "ResultNode",
    "ResultTag",
    "PlanNode",
    "QueryPlanner",
    "StoreQuery",
    "DocumentStore",
    "MongoDocumentStore",
]
