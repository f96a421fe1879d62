"""
Query validator and normalizer.

Validates client selection trees against the schema registry and
normalizes arguments into their declared types. This is a pure pass: it
never touches the store, and it collects every error before the planner
runs so a rejected query costs nothing.
"""

from __future__ import annotations

from typing import Any, Optional

from .defs import ArgumentDef, FieldDef
from .query_types import ErrorEntry, NormalizedSelectionNode, SelectionNode
from .registry import SchemaRegistry

TYPENAME_FIELD = "__typename"

DEFAULT_MAX_DEPTH = 10
DEFAULT_MAX_PAGE_SIZE = 100


class QueryValidator:
    """
    Validates and normalizes selection trees against the schema.

    Usage:
        validator = QueryValidator(registry)
        errors, normalized = validator.validate_and_normalize(selections)

    Pagination policy: limit/offset outside [0, max_page_size] is rejected,
    unless clamp_pagination is set, in which case values are clamped.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
        clamp_pagination: bool = False,
    ):
        self.registry = registry
        self.max_depth = max_depth
        self.max_page_size = max_page_size
        self.clamp_pagination = clamp_pagination

    def validate_and_normalize(
        self, selections: list[SelectionNode]
    ) -> tuple[list[ErrorEntry], list[NormalizedSelectionNode]]:
        """
        Validate the root selections.

        Returns:
            Tuple of (errors, normalized_selections).
            If errors is non-empty, normalized_selections is empty.
        """
        errors: list[ErrorEntry] = []
        normalized = self._normalize_selections(
            selections, self.registry.root_type, [], 1, errors
        )
        if errors:
            return errors, []
        return errors, normalized

    def _normalize_selections(
        self,
        selections: list[SelectionNode],
        type_name: str,
        path: list[str],
        depth: int,
        errors: list[ErrorEntry],
    ) -> list[NormalizedSelectionNode]:
        normalized: list[NormalizedSelectionNode] = []
        for selection in self._merge_duplicates(selections, path, errors):
            node = self._normalize_selection(selection, type_name, path, depth, errors)
            if node is not None:
                normalized.append(node)
        return normalized

    def _merge_duplicates(
        self,
        selections: list[SelectionNode],
        path: list[str],
        errors: list[ErrorEntry],
    ) -> list[SelectionNode]:
        """
        Merge selections sharing a response key.

        Same field with same arguments: children are concatenated at the
        first occurrence's position. Anything else is a conflict.
        """
        merged: dict[str, SelectionNode] = {}
        for selection in selections:
            key = selection.response_key
            existing = merged.get(key)
            if existing is None:
                merged[key] = selection
                continue
            if existing.name != selection.name or existing.args != selection.args:
                errors.append(
                    ErrorEntry.build("conflicting selections", path + [key], "CONFLICTING_SELECTIONS")
                )
                continue
            merged[key] = existing.model_copy(
                update={"selections": existing.selections + selection.selections}
            )
        return list(merged.values())

    def _normalize_selection(
        self,
        selection: SelectionNode,
        type_name: str,
        parent_path: list[str],
        depth: int,
        errors: list[ErrorEntry],
    ) -> Optional[NormalizedSelectionNode]:
        path = parent_path + [selection.response_key]

        if depth > self.max_depth:
            errors.append(ErrorEntry.build("depth limit exceeded", path, "DEPTH_LIMIT_EXCEEDED"))
            return None

        if selection.name == TYPENAME_FIELD:
            if selection.args or selection.selections:
                errors.append(
                    ErrorEntry.build(
                        f"field '{TYPENAME_FIELD}' takes no arguments or subfields",
                        path,
                        "INVALID_SELECTION",
                    )
                )
                return None
            return NormalizedSelectionNode(
                response_key=selection.response_key,
                field_name=TYPENAME_FIELD,
                parent_type=type_name,
                path=path,
            )

        field_def = self.registry.get_field(type_name, selection.name)
        if field_def is None:
            errors.append(ErrorEntry.build("unknown field", path, "UNKNOWN_FIELD"))
            return None

        args = self._normalize_args(selection.args, field_def, path, errors)

        is_object = self.registry.is_object_type(field_def.type)
        children: list[NormalizedSelectionNode] = []
        if is_object:
            if not selection.selections:
                errors.append(
                    ErrorEntry.build(
                        f"field '{selection.name}' of type {field_def.type} "
                        f"must have a selection of subfields",
                        path,
                        "MISSING_SUBSELECTION",
                    )
                )
                return None
            children = self._normalize_selections(
                selection.selections, field_def.type, path, depth + 1, errors
            )
        elif selection.selections:
            errors.append(
                ErrorEntry.build(
                    f"field '{selection.name}' is a leaf and cannot have subfields",
                    path,
                    "LEAF_SUBSELECTION",
                )
            )
            return None

        return NormalizedSelectionNode(
            response_key=selection.response_key,
            field_name=field_def.name,
            parent_type=type_name,
            path=path,
            args=args,
            selections=children,
        )

    # -------------------------------------------------------------------------
    # Arguments
    # -------------------------------------------------------------------------

    def _normalize_args(
        self,
        raw_args: dict[str, Any],
        field_def: FieldDef,
        path: list[str],
        errors: list[ErrorEntry],
    ) -> dict[str, Any]:
        """Coerce provided arguments and apply declared defaults."""
        args: dict[str, Any] = {}

        for name in raw_args:
            if field_def.get_arg(name) is None:
                errors.append(
                    ErrorEntry.build(f"unknown argument '{name}'", path, "UNKNOWN_ARGUMENT")
                )

        for arg_def in field_def.args:
            if arg_def.name not in raw_args or raw_args[arg_def.name] is None:
                if arg_def.required:
                    errors.append(
                        ErrorEntry.build(
                            f"missing required argument '{arg_def.name}'",
                            path,
                            "MISSING_ARGUMENT",
                        )
                    )
                elif arg_def.default is not None:
                    args[arg_def.name] = arg_def.default
                continue

            try:
                value = coerce_argument(arg_def, raw_args[arg_def.name])
                value = self._check_role(arg_def, field_def, value)
            except ValueError as e:
                code = "INVALID_PAGINATION" if arg_def.role in ("limit", "offset") else "INVALID_ARGUMENT"
                message = (
                    f"invalid pagination: {e}"
                    if code == "INVALID_PAGINATION"
                    else f"invalid value for argument '{arg_def.name}': {e}"
                )
                errors.append(ErrorEntry.build(message, path, code))
                continue
            args[arg_def.name] = value

        return args

    def _check_role(self, arg_def: ArgumentDef, field_def: FieldDef, value: Any) -> Any:
        """Enforce pagination bounds and sortable keys."""
        if arg_def.role == "limit":
            if value < 0 or value > self.max_page_size:
                if not self.clamp_pagination:
                    raise ValueError(
                        f"'{arg_def.name}' must be between 0 and {self.max_page_size}, got {value}"
                    )
                value = min(max(value, 0), self.max_page_size)
        elif arg_def.role == "offset":
            if value < 0:
                if not self.clamp_pagination:
                    raise ValueError(f"'{arg_def.name}' must not be negative, got {value}")
                value = 0
        elif arg_def.role == "order":
            sortable = field_def.lookup.sortable if field_def.lookup else {}
            if value.lstrip("-") not in sortable:
                raise ValueError(
                    f"cannot order by '{value}' (allowed: {sorted(sortable)})"
                )
        return value


def coerce_argument(arg_def: ArgumentDef, value: Any) -> Any:
    """
    Coerce a client argument into its declared type.

    Raises:
        ValueError: if the value does not fit the type
    """
    type_name = arg_def.type
    if type_name.startswith("[") and type_name.endswith("]"):
        item_def = ArgumentDef(name=arg_def.name, type=type_name[1:-1])
        items = value if isinstance(value, list) else [value]
        return [coerce_argument(item_def, item) for item in items]

    if type_name == "ID":
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ValueError(f"expected ID, got {type(value).__name__}")
        return str(value)
    if type_name == "String":
        if not isinstance(value, str):
            raise ValueError(f"expected String, got {type(value).__name__}")
        return value
    if type_name == "Int":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"expected Int, got {type(value).__name__}")
        return value
    if type_name == "Float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"expected Float, got {type(value).__name__}")
        return float(value)
    if type_name == "Boolean":
        if not isinstance(value, bool):
            raise ValueError(f"expected Boolean, got {type(value).__name__}")
        return value
    return value
