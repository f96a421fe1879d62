"""
Core dataclass definitions for the recipegraph schema.

These describe the queryable types, their fields, argument signatures and
how every field maps onto the document store. Definitions are frozen: once
registered they are shared read-only by every request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Literal, Optional


class FieldKind(str, Enum):
    """Shape of a field value as seen by the client."""
    SCALAR = "scalar"
    LIST = "list"
    OBJECT = "object"


SCALAR_TYPES = ("ID", "String", "Int", "Float", "Boolean", "JSON")

# Resolver capability: (parent record or None at the root, coerced args) -> value
Resolver = Callable[[Optional[dict], dict], Any]


@dataclass(frozen=True)
class ArgumentDef:
    """
    Declared argument of a field.

    `role` marks arguments the planner treats specially:
    - key: identifier for a find-by-id lookup
    - limit / offset: pagination bounds
    - order: sort specification ("name", "-name")
    Plain filter arguments set `filter_path` and `op` instead.
    """
    name: str
    type: str  # ID, String, Int, Boolean, [String]
    required: bool = False
    default: Any = None
    filter_path: Optional[str] = None
    op: str = "eq"  # eq, in, icontains, all, gte, lte
    role: Literal["key", "limit", "offset", "order"] | None = None


@dataclass(frozen=True)
class ParentRefDef:
    """
    Filter on a child lookup whose value comes from the parent record.

    Example: related recipes share a tag with the parent
    (parent_path="tags", child_path="tags", op="in").
    """
    parent_path: str
    child_path: str
    op: str = "eq"  # eq, ne, in


@dataclass(frozen=True)
class LookupDef:
    """Store operation backing a field."""
    collection: str
    operation: Literal["find", "find_by_id", "count"]
    parent_refs: tuple[ParentRefDef, ...] = ()
    sortable: dict[str, str] = field(default_factory=dict)  # client order key -> storage path
    default_order: tuple[str, ...] = ()  # storage paths, "-" prefix for descending


@dataclass(frozen=True)
class FieldDef:
    """
    Field descriptor: client-facing name, storage path and resolution.

    A field is either read from its parent record (storage_path), computed
    by a resolver, or fetched through a store lookup.
    """
    name: str
    kind: FieldKind
    type: str  # scalar type name, or object type name for OBJECT and object lists
    storage_path: Optional[str] = None
    args: tuple[ArgumentDef, ...] = ()
    resolver: Optional[Resolver] = None
    requires: tuple[str, ...] = ()  # storage paths a resolver reads
    lookup: Optional[LookupDef] = None
    nullable: bool = True
    description: str = ""

    def get_arg(self, name: str) -> ArgumentDef | None:
        for arg in self.args:
            if arg.name == name:
                return arg
        return None

    def arg_with_role(self, role: str) -> ArgumentDef | None:
        for arg in self.args:
            if arg.role == role:
                return arg
        return None

    @property
    def is_scalar_type(self) -> bool:
        return self.type in SCALAR_TYPES

    @property
    def is_paginated(self) -> bool:
        return self.arg_with_role("limit") is not None


@dataclass(frozen=True)
class TypeDef:
    """Queryable object type with its ordered field descriptors."""
    name: str
    fields: tuple[FieldDef, ...]
    description: str = ""
