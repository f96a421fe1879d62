"""
Response assembler - turns a result tree into the final response.

Handles:
- Rebuilding `data` in the client's exact field order and nesting
- Collecting localized errors in deterministic (selection) order
"""

from __future__ import annotations

from typing import Any

from ..core.query_types import ErrorEntry, QueryResponse
from .executor import ResultNode, ResultTag


class ResponseAssembler:
    """
    Assembles the `{data, errors}` response from a root ResultNode.

    Usage:
        assembler = ResponseAssembler()
        response = assembler.assemble(root)

    `data` is always an object once execution started, even when every
    field failed. Errors are ordered by position in the selection tree, so
    the output does not depend on which store call finished first.
    """

    def assemble(self, root: ResultNode) -> QueryResponse:
        errors: list[ErrorEntry] = []
        data = self._to_data(root, errors)
        if not isinstance(data, dict):
            data = {}
        return QueryResponse(data=data, errors=errors)

    def _to_data(self, node: ResultNode, errors: list[ErrorEntry]) -> Any:
        if node.error is not None:
            errors.append(node.error)

        if node.tag == ResultTag.VALUE:
            return node.value
        if node.tag == ResultTag.NULL:
            return None
        if node.tag == ResultTag.LIST:
            return [self._to_data(child, errors) for child in node.children]

        obj: dict[str, Any] = {}
        for child in node.children:
            obj[child.key] = self._to_data(child, errors)
        return obj
