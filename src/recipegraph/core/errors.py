"""
Custom exceptions for the recipegraph system.

Configuration errors are fatal at startup. Plan errors reject the whole
request before the store is touched. Execution errors are always localized
to one node of the result tree and reported next to partial data.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class RecipeGraphError(Exception):
    """Base exception for all recipegraph errors."""
    pass


class GraphConfigError(RecipeGraphError):
    """Raised when the schema registry is configured incorrectly."""
    pass


class PlanError(RecipeGraphError):
    """
    Raised when a query fails validation or planning.

    Carries every error collected during the validation pass so the client
    sees all problems at once.
    """

    def __init__(self, errors: list):
        self.errors = errors
        messages = "; ".join(str(e.message) for e in errors)
        super().__init__(f"Planning failed: {messages}")

    @classmethod
    def single(
        cls,
        message: str,
        path: Sequence[str | int] = (),
        code: str = "PLAN_ERROR",
    ) -> "PlanError":
        from .query_types import ErrorEntry

        return cls([ErrorEntry.build(message, path, code)])


class ExecutionError(RecipeGraphError):
    """Raised when resolving a single node fails."""

    code = "EXECUTION_ERROR"

    def __init__(self, message: str, path: Optional[Sequence[str | int]] = None):
        self.message = message
        self.path = list(path) if path is not None else None
        super().__init__(message)


class NotFoundError(ExecutionError):
    """Raised when a required lookup finds no record."""

    code = "NOT_FOUND"

    def __init__(self, message: str = "not found", path: Optional[Sequence[str | int]] = None):
        super().__init__(message, path)


class StoreError(ExecutionError):
    """Raised when a document store operation fails."""

    code = "STORE_ERROR"

    def __init__(self, operation: str, collection: str, message: str):
        self.operation = operation
        self.collection = collection
        super().__init__(f"store {operation} on '{collection}' failed: {message}")


class StoreTimeoutError(StoreError):
    """Raised when a document store operation exceeds its bounded wait."""

    code = "STORE_TIMEOUT"

    def __init__(self, operation: str, collection: str, timeout: float):
        self.timeout = timeout
        super().__init__(operation, collection, f"timed out after {timeout}s")


class ResolverError(ExecutionError):
    """Raised when a resolver produces a value that does not fit its field type."""

    code = "RESOLVER_ERROR"


class RequestTimeoutError(RecipeGraphError):
    """Raised when a whole request exceeds its time budget."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout}s")


class LoaderError(RecipeGraphError):
    """Raised when the bulk loader rejects its input."""

    def __init__(self, message: str, source: Any = None):
        self.source = source
        prefix = f"{source}: " if source else ""
        super().__init__(f"{prefix}{message}")


class SchemaLookupError(RecipeGraphError, KeyError):
    """Raised when a type or field is not present in the schema registry."""

    def __init__(self, type_name: str, field_name: Optional[str] = None):
        self.type_name = type_name
        self.field_name = field_name
        target = f"{type_name}.{field_name}" if field_name else type_name
        super().__init__(f"'{target}' not found in schema")

    def __str__(self) -> str:
        return self.args[0]
