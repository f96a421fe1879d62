"""
Schema registry - declares the queryable types and their field descriptors.

Built once at startup, then frozen and shared read-only by all requests.

Usage:
    from recipegraph.core.registry import SchemaRegistry

    registry = SchemaRegistry()
    registry.register(TypeDef(name="Query", fields=(...)))
    registry.register(TypeDef(name="Recipe", fields=(...)))
    registry.freeze()

    field_def = registry.lookup("Query", "recipe")
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .defs import SCALAR_TYPES, FieldDef, FieldKind, TypeDef
from .errors import GraphConfigError, SchemaLookupError

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """
    Registry of type descriptors.

    Two-phase lifecycle:
    1. register() types while the process starts
    2. freeze() validates cross-type references and locks the registry

    Registration errors are GraphConfigError: the process must not serve
    traffic with a malformed schema.
    """

    ROOT_TYPE = "Query"

    def __init__(self, root_type: str = ROOT_TYPE):
        self.root_type = root_type
        self._types: dict[str, TypeDef] = {}
        self._fields: dict[str, dict[str, FieldDef]] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, type_def: TypeDef) -> None:
        """Add a type with its field descriptors."""
        if self._frozen:
            raise GraphConfigError(f"Cannot register '{type_def.name}': registry is frozen")
        if type_def.name in self._types:
            raise GraphConfigError(f"Type '{type_def.name}' registered twice")
        if type_def.name in SCALAR_TYPES:
            raise GraphConfigError(f"Type '{type_def.name}' shadows a scalar type")

        fields: dict[str, FieldDef] = {}
        for field_def in type_def.fields:
            if field_def.name in fields:
                raise GraphConfigError(
                    f"Field '{field_def.name}' registered twice on type '{type_def.name}'"
                )
            if field_def.name.startswith("__"):
                raise GraphConfigError(
                    f"Field '{type_def.name}.{field_def.name}' uses a reserved name"
                )
            self._check_field(type_def.name, field_def)
            fields[field_def.name] = field_def

        self._types[type_def.name] = type_def
        self._fields[type_def.name] = fields

    def freeze(self) -> "SchemaRegistry":
        """Validate references between types and lock the registry."""
        if self.root_type not in self._types:
            raise GraphConfigError(f"Root type '{self.root_type}' is not registered")

        for type_name, fields in self._fields.items():
            for field_def in fields.values():
                if field_def.is_scalar_type:
                    if field_def.kind == FieldKind.OBJECT:
                        raise GraphConfigError(
                            f"Field '{type_name}.{field_def.name}' is an object of scalar type "
                            f"'{field_def.type}'"
                        )
                elif field_def.type not in self._types:
                    raise GraphConfigError(
                        f"Field '{type_name}.{field_def.name}' references unknown type "
                        f"'{field_def.type}'"
                    )

        self._frozen = True
        logger.info(f"Schema registry frozen: {len(self._types)} types")
        return self

    def _check_field(self, type_name: str, field_def: FieldDef) -> None:
        """Check a single descriptor is internally consistent."""
        where = f"{type_name}.{field_def.name}"
        sources = sum(
            1 for s in (field_def.storage_path, field_def.resolver, field_def.lookup) if s
        )
        if sources != 1:
            raise GraphConfigError(
                f"Field '{where}' must have exactly one of storage_path, resolver or lookup"
            )

        seen_args: set[str] = set()
        for arg in field_def.args:
            if arg.name in seen_args:
                raise GraphConfigError(f"Argument '{arg.name}' declared twice on '{where}'")
            seen_args.add(arg.name)
            if arg.role is None and arg.filter_path is None and not field_def.resolver:
                raise GraphConfigError(
                    f"Argument '{where}({arg.name})' has no role and no filter path"
                )

        lookup = field_def.lookup
        if lookup is None:
            if field_def.args and not field_def.resolver:
                raise GraphConfigError(f"Field '{where}' takes arguments but has no lookup")
            return

        if lookup.operation == "count":
            if field_def.kind != FieldKind.SCALAR or field_def.type != "Int":
                raise GraphConfigError(f"Count field '{where}' must be a scalar Int")
        elif lookup.operation == "find_by_id":
            if field_def.kind != FieldKind.OBJECT:
                raise GraphConfigError(f"find_by_id field '{where}' must be object typed")
            if field_def.arg_with_role("key") is None:
                raise GraphConfigError(f"find_by_id field '{where}' needs a key argument")
        elif field_def.kind == FieldKind.SCALAR:
            raise GraphConfigError(f"find field '{where}' must be object or list typed")

        if field_def.is_paginated and field_def.kind != FieldKind.LIST:
            raise GraphConfigError(f"Only list fields may be paginated: '{where}'")

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    def get_type(self, type_name: str) -> TypeDef:
        type_def = self._types.get(type_name)
        if type_def is None:
            raise SchemaLookupError(type_name)
        return type_def

    def get_field(self, type_name: str, field_name: str) -> Optional[FieldDef]:
        """Return the field descriptor or None."""
        return self._fields.get(type_name, {}).get(field_name)

    def lookup(self, type_name: str, field_name: str) -> FieldDef:
        """Return the field descriptor or raise SchemaLookupError."""
        field_def = self.get_field(type_name, field_name)
        if field_def is None:
            raise SchemaLookupError(type_name, field_name)
        return field_def

    def is_object_type(self, type_name: str) -> bool:
        return type_name in self._types

    @property
    def types(self) -> list[TypeDef]:
        return list(self._types.values())

    def to_dict(self) -> dict[str, Any]:
        """
        JSON description of the schema.

        Used by the /__schema endpoint for tooling.
        """
        types: dict[str, Any] = {}
        for type_def in self._types.values():
            types[type_def.name] = {
                "description": type_def.description,
                "fields": {
                    f.name: {
                        "kind": f.kind.value,
                        "type": f.type,
                        "nullable": f.nullable,
                        "description": f.description,
                        "args": {
                            a.name: {
                                "type": a.type,
                                "required": a.required,
                                "default": a.default,
                            }
                            for a in f.args
                        },
                    }
                    for f in type_def.fields
                },
            }
        return {"root": self.root_type, "types": types}
