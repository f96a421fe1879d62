"""
GraphQL SDL generator from the schema registry.

Generates:
- A `scalar JSON` declaration
- One `type` block per registered type, fields in registration order
- Argument lists with defaults and descriptions as block strings
"""

from __future__ import annotations

import json
from typing import Any

from .defs import ArgumentDef, FieldDef, FieldKind, TypeDef
from .registry import SchemaRegistry


def map_field_type(field_def: FieldDef) -> str:
    """Render a field's type reference, e.g. [Recipe!] or ID!."""
    if field_def.kind == FieldKind.LIST:
        rendered = f"[{field_def.type}!]"
    else:
        rendered = field_def.type
    return rendered if field_def.nullable else f"{rendered}!"


def map_argument(arg: ArgumentDef) -> str:
    rendered = f"{arg.name}: {arg.type}{'!' if arg.required else ''}"
    if arg.default is not None:
        rendered += f" = {_render_value(arg.default)}"
    return rendered


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value)


def _description(text: str, indent: str) -> list[str]:
    if not text:
        return []
    return [f'{indent}"""{text}"""']


def generate_type(type_def: TypeDef) -> list[str]:
    """Generate the SDL block for one type."""
    lines = _description(type_def.description, "")
    lines.append(f"type {type_def.name} {{")
    for field_def in type_def.fields:
        lines.extend(_description(field_def.description, "  "))
        args = ""
        if field_def.args:
            args = "(" + ", ".join(map_argument(a) for a in field_def.args) + ")"
        lines.append(f"  {field_def.name}{args}: {map_field_type(field_def)}")
    lines.append("}")
    return lines


def generate_sdl(registry: SchemaRegistry) -> str:
    """
    Generate SDL for the whole registry, root type first.

    Usage:
        curl http://localhost:8080/__schema.graphql > schema.graphql
    """
    lines = ["scalar JSON", "", "schema {", f"  query: {registry.root_type}", "}"]

    ordered = sorted(registry.types, key=lambda t: t.name != registry.root_type)
    for type_def in ordered:
        lines.append("")
        lines.extend(generate_type(type_def))

    return "\n".join(lines) + "\n"
