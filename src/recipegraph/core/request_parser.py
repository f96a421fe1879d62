"""
Request parser for recipegraph queries.

Supports two request formats, both producing a list of SelectionNode:

1. GraphQL documents:
   {recipe(id: "r1") { name ingredients { name } }}

   Parsed with graphql-core's language parser. Supports named operations,
   variables with defaults, aliases, fragments (inlined) and the
   @skip / @include directives. Only query operations are accepted.

2. JSON selection form:
   {"recipe": {"args": {"id": "r1"},
               "fields": ["name", {"ingredients": {"fields": ["name"]}}]}}

   A trailing "relations" mapping is accepted for nested selections, and
   "alias" renames the response key.
"""

from __future__ import annotations

from typing import Any, Optional

from graphql import GraphQLSyntaxError, parse
from graphql.language import (
    DirectiveNode,
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    NonNullTypeNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
)
from graphql.pyutils import Undefined
from graphql.utilities import value_from_ast_untyped
from pydantic import ValidationError

from .errors import PlanError
from .query_types import QueryRequest, SelectionNode


# =============================================================================
# GraphQL documents
# =============================================================================


class DocumentParser:
    """
    Converts a GraphQL document into SelectionNode trees.

    Usage:
        parser = DocumentParser(document_text, variables={"id": "r1"})
        selections = parser.parse()
    """

    def __init__(
        self,
        source: str,
        variables: Optional[dict[str, Any]] = None,
        operation_name: Optional[str] = None,
    ):
        self.source = source
        self.raw_variables = variables or {}
        self.operation_name = operation_name
        self.fragments: dict[str, FragmentDefinitionNode] = {}
        self.variables: dict[str, Any] = {}

    def parse(self) -> list[SelectionNode]:
        try:
            document = parse(self.source, no_location=True)
        except GraphQLSyntaxError as e:
            raise PlanError.single(f"syntax error: {e.message}", code="SYNTAX_ERROR")

        operation = self._select_operation(document)
        if operation.operation != OperationType.QUERY:
            raise PlanError.single(
                f"only query operations are supported, got {operation.operation.value}",
                code="UNSUPPORTED_OPERATION",
            )

        self.fragments = {
            d.name.value: d
            for d in document.definitions
            if isinstance(d, FragmentDefinitionNode)
        }
        self.variables = self._coerce_variables(operation)
        return self._convert_selection_set(operation.selection_set, frozenset())

    def _select_operation(self, document: DocumentNode) -> OperationDefinitionNode:
        operations = [
            d for d in document.definitions if isinstance(d, OperationDefinitionNode)
        ]
        if not operations:
            raise PlanError.single("document contains no operation", code="NO_OPERATION")

        if self.operation_name:
            for op in operations:
                if op.name and op.name.value == self.operation_name:
                    return op
            raise PlanError.single(
                f"unknown operation '{self.operation_name}'", code="UNKNOWN_OPERATION"
            )

        if len(operations) > 1:
            raise PlanError.single(
                "operation name is required when the document has several operations",
                code="OPERATION_NAME_REQUIRED",
            )
        return operations[0]

    def _coerce_variables(self, operation: OperationDefinitionNode) -> dict[str, Any]:
        """Apply declared defaults and check required variables are provided."""
        values: dict[str, Any] = {}
        for definition in operation.variable_definitions or ():
            name = definition.variable.name.value
            if name in self.raw_variables:
                values[name] = self.raw_variables[name]
            elif definition.default_value is not None:
                values[name] = value_from_ast_untyped(definition.default_value)
            elif isinstance(definition.type, NonNullTypeNode):
                raise PlanError.single(
                    f"variable '${name}' is required but was not provided",
                    code="MISSING_VARIABLE",
                )
        return values

    def _convert_selection_set(
        self,
        selection_set: Optional[SelectionSetNode],
        visiting: frozenset[str],
    ) -> list[SelectionNode]:
        result: list[SelectionNode] = []
        if selection_set is None:
            return result

        for selection in selection_set.selections:
            if not self._is_included(selection.directives):
                continue

            if isinstance(selection, FieldNode):
                result.append(self._convert_field(selection, visiting))
            elif isinstance(selection, InlineFragmentNode):
                result.extend(self._convert_selection_set(selection.selection_set, visiting))
            elif isinstance(selection, FragmentSpreadNode):
                name = selection.name.value
                fragment = self.fragments.get(name)
                if fragment is None:
                    raise PlanError.single(f"unknown fragment '{name}'", code="UNKNOWN_FRAGMENT")
                if name in visiting:
                    raise PlanError.single(f"fragment '{name}' spreads itself", code="FRAGMENT_CYCLE")
                result.extend(
                    self._convert_selection_set(fragment.selection_set, visiting | {name})
                )

        return result

    def _convert_field(self, node: FieldNode, visiting: frozenset[str]) -> SelectionNode:
        args: dict[str, Any] = {}
        for argument in node.arguments or ():
            value = value_from_ast_untyped(argument.value, self.variables)
            if value is not Undefined:
                args[argument.name.value] = value

        return SelectionNode(
            name=node.name.value,
            alias=node.alias.value if node.alias else None,
            args=args,
            selections=self._convert_selection_set(node.selection_set, visiting),
        )

    def _is_included(self, directives: Optional[tuple[DirectiveNode, ...]]) -> bool:
        """Evaluate @skip(if:) and @include(if:)."""
        for directive in directives or ():
            name = directive.name.value
            if name not in ("skip", "include"):
                continue
            condition = None
            for argument in directive.arguments or ():
                if argument.name.value == "if":
                    condition = value_from_ast_untyped(argument.value, self.variables)
            if not isinstance(condition, bool):
                raise PlanError.single(
                    f"directive @{name} requires a boolean 'if' argument",
                    code="INVALID_DIRECTIVE",
                )
            if name == "skip" and condition:
                return False
            if name == "include" and not condition:
                return False
        return True


# =============================================================================
# JSON selection form
# =============================================================================


def parse_selection_json(data: dict[str, Any]) -> list[SelectionNode]:
    """
    Parse the JSON selection form into SelectionNode trees.

    Input:
        {"recipes": {"args": {"limit": 2}, "fields": ["name"]}, "apiVersion": None}
    """
    if not isinstance(data, dict):
        raise PlanError.single("selection must be an object", code="INVALID_SELECTION")
    return [_json_field(name, spec) for name, spec in data.items()]


def _json_field(name: str, spec: Any) -> SelectionNode:
    if spec is None or spec is True:
        return SelectionNode(name=name)
    if not isinstance(spec, dict):
        raise PlanError.single(
            f"selection for '{name}' must be an object, null or true",
            code="INVALID_SELECTION",
        )

    args = spec.get("args", {})
    if not isinstance(args, dict):
        raise PlanError.single(f"args of '{name}' must be an object", code="INVALID_SELECTION")

    fields = spec.get("fields", [])
    if not isinstance(fields, list):
        raise PlanError.single(f"fields of '{name}' must be a list", code="INVALID_SELECTION")

    relations = spec.get("relations", {})
    if not isinstance(relations, dict):
        raise PlanError.single(f"relations of '{name}' must be an object", code="INVALID_SELECTION")

    alias = spec.get("alias")
    if alias is not None and not isinstance(alias, str):
        raise PlanError.single(f"alias of '{name}' must be a string", code="INVALID_SELECTION")

    selections: list[SelectionNode] = []
    for item in fields:
        if isinstance(item, str):
            selections.append(SelectionNode(name=item))
        elif isinstance(item, dict):
            selections.extend(_json_field(n, s) for n, s in item.items())
        else:
            raise PlanError.single(
                f"fields of '{name}' must be names or objects", code="INVALID_SELECTION"
            )

    for relation_name, relation_spec in relations.items():
        selections.append(_json_field(relation_name, relation_spec))

    try:
        return SelectionNode(
            name=name,
            alias=alias,
            args=args,
            selections=selections,
        )
    except ValidationError as e:
        raise PlanError.single(
            f"invalid selection for '{name}': {e.errors()[0]['msg']}",
            code="INVALID_SELECTION",
        ) from e


def parse_request(request: QueryRequest) -> list[SelectionNode]:
    """Parse a request body in either supported format."""
    if request.query is not None:
        return DocumentParser(
            request.query,
            variables=request.variables,
            operation_name=request.operation_name,
        ).parse()
    if request.select is not None:
        return parse_selection_json(request.select)
    raise PlanError.single("request must contain 'query' or 'select'", code="EMPTY_REQUEST")
