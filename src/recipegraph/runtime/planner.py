"""
Query planner - builds plan trees from client selection trees.

The planner first runs the validation pass (QueryValidator), then mirrors
each validated selection with a PlanNode that knows how to obtain its value:
a store lookup, a read from the parent record, or a resolver. Lookups get
the minimal projection needed by everything selected underneath them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from ..core.defs import FieldDef, FieldKind, ParentRefDef, Resolver
from ..core.errors import PlanError
from ..core.query_types import (
    NormalizedFilter,
    NormalizedOrder,
    NormalizedSelectionNode,
    SelectionNode,
)
from ..core.registry import SchemaRegistry
from ..core.utils import collapse_paths, join_path
from ..core.validator import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGE_SIZE,
    TYPENAME_FIELD,
    QueryValidator,
)

ID_PATH = "_id"


@dataclass
class StoreQuery:
    """
    Store operation for a plan node.

    parent_refs are recorded, not resolved: the executor turns them into
    filters once the parent record has been fetched.
    """
    collection: str
    operation: Literal["find", "find_by_id", "count"]
    filters: list[NormalizedFilter] = field(default_factory=list)
    projection: list[str] = field(default_factory=list)
    order: list[NormalizedOrder] = field(default_factory=list)
    skip: int = 0
    limit: Optional[int] = None
    key: Any = None
    parent_refs: list[ParentRefDef] = field(default_factory=list)


@dataclass
class PlanNode:
    """
    Storage-resolved counterpart of one selection.

    Exactly one value source applies:
    - query: store lookup
    - storage_path: read from the parent record
    - resolver: computed from the parent record and args
    - typename: the parent type's name (for __typename)
    """
    id: str
    response_key: str
    field_name: str
    parent_type: str
    kind: FieldKind
    type: str
    is_object: bool
    path: list[str]
    args: dict[str, Any] = field(default_factory=dict)
    query: Optional[StoreQuery] = None
    storage_path: Optional[str] = None
    resolver: Optional[Resolver] = None
    typename: Optional[str] = None
    children: list[PlanNode] = field(default_factory=list)

    @property
    def depends_on_parent(self) -> bool:
        return bool(self.query and self.query.parent_refs)


class QueryPlanner:
    """
    Builds plan trees from selection trees.

    Usage:
        planner = QueryPlanner(registry)
        plan = planner.plan(selections)  # raises PlanError
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
        self.validator = QueryValidator(
            registry,
            max_depth=max_depth,
            max_page_size=max_page_size,
            clamp_pagination=clamp_pagination,
        )
        self._node_counter = 0

    def _next_node_id(self, field_name: str) -> str:
        self._node_counter += 1
        return f"node_{field_name.lower()}_{self._node_counter}"

    def plan(self, selections: list[SelectionNode]) -> list[PlanNode]:
        """
        Validate selections and build the plan tree.

        Returns:
            Root PlanNodes in client selection order

        Raises:
            PlanError: with every validation error found
        """
        errors, normalized = self.validator.validate_and_normalize(selections)
        if errors:
            raise PlanError(errors)

        self._node_counter = 0
        return [self._plan_node(selection) for selection in normalized]

    def _plan_node(self, selection: NormalizedSelectionNode) -> PlanNode:
        if selection.field_name == TYPENAME_FIELD:
            return PlanNode(
                id=self._next_node_id("typename"),
                response_key=selection.response_key,
                field_name=TYPENAME_FIELD,
                parent_type=selection.parent_type,
                kind=FieldKind.SCALAR,
                type="String",
                is_object=False,
                path=selection.path,
                typename=selection.parent_type,
            )

        field_def = self.registry.lookup(selection.parent_type, selection.field_name)
        children = [self._plan_node(child) for child in selection.selections]

        node = PlanNode(
            id=self._next_node_id(field_def.name),
            response_key=selection.response_key,
            field_name=field_def.name,
            parent_type=selection.parent_type,
            kind=field_def.kind,
            type=field_def.type,
            is_object=self.registry.is_object_type(field_def.type),
            path=selection.path,
            args=selection.args,
            storage_path=field_def.storage_path,
            resolver=field_def.resolver,
            children=children,
        )
        if field_def.lookup is not None:
            node.query = self._build_query(field_def, selection.args, children)
        return node

    def _build_query(
        self,
        field_def: FieldDef,
        args: dict[str, Any],
        children: list[PlanNode],
    ) -> StoreQuery:
        lookup = field_def.lookup
        query = StoreQuery(
            collection=lookup.collection,
            operation=lookup.operation,
            parent_refs=list(lookup.parent_refs),
        )

        for arg_def in field_def.args:
            if arg_def.name not in args:
                continue
            value = args[arg_def.name]
            if arg_def.role == "key":
                query.key = value
            elif arg_def.role == "limit":
                query.limit = value
            elif arg_def.role == "offset":
                query.skip = value
            elif arg_def.role == "order":
                query.order = self._build_order([value], lookup.sortable)
            elif arg_def.filter_path:
                query.filters.append(
                    NormalizedFilter(field=arg_def.filter_path, op=arg_def.op, value=value)
                )

        if not query.order and lookup.default_order and query.operation == "find":
            query.order = self._build_order(list(lookup.default_order), None)

        if query.operation == "find" and field_def.kind == FieldKind.OBJECT:
            query.skip = 0
            query.limit = 1

        if query.operation != "count":
            query.projection = self._projection_for(children)

        return query

    def _build_order(
        self,
        keys: list[str],
        sortable: Optional[dict[str, str]],
    ) -> list[NormalizedOrder]:
        """
        Map order keys to storage paths.

        A trailing _id tiebreak keeps skip/limit pages stable when the sort
        key is not unique.
        """
        order: list[NormalizedOrder] = []
        for key in keys:
            direction = "desc" if key.startswith("-") else "asc"
            name = key.lstrip("-")
            storage = sortable[name] if sortable is not None else name
            order.append(NormalizedOrder(field=storage, dir=direction))
        if order and all(o.field != ID_PATH for o in order):
            order.append(NormalizedOrder(field=ID_PATH, dir="asc"))
        return order

    # -------------------------------------------------------------------------
    # Projection
    # -------------------------------------------------------------------------

    def _projection_for(self, children: list[PlanNode]) -> list[str]:
        """Minimal storage paths needed to resolve these children."""
        paths = {ID_PATH}
        paths.update(self._required_paths(children, None))
        return collapse_paths(paths)

    def _required_paths(self, children: list[PlanNode], prefix: Optional[str]) -> set[str]:
        paths: set[str] = set()
        for child in children:
            if child.typename is not None:
                continue

            if child.query is not None:
                for ref in child.query.parent_refs:
                    paths.add(join_path(prefix, ref.parent_path))
                continue

            if child.resolver is not None:
                field_def = self.registry.lookup(child.parent_type, child.field_name)
                paths.update(join_path(prefix, p) for p in field_def.requires)
                continue

            path = join_path(prefix, child.storage_path)
            if child.is_object:
                nested = self._required_paths(child.children, path)
                paths.update(nested or {path})
            else:
                paths.add(path)
        return paths
