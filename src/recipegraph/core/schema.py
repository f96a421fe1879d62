"""
Built-in recipe catalog schema.

Declares the Query root and the Recipe, Ingredient and MediaRef types,
mapping every client-visible field onto the `recipes` collection.

Usage:
    from recipegraph.core.schema import build_recipe_registry

    registry = build_recipe_registry()  # frozen, ready for planning
"""

from __future__ import annotations

from typing import Any, Optional

from .defs import ArgumentDef, FieldDef, FieldKind, LookupDef, ParentRefDef, TypeDef
from .registry import SchemaRegistry
from .utils import get_path

API_VERSION = "0.1"

RECIPES_COLLECTION = "recipes"

DEFAULT_PAGE_SIZE = 20
RELATED_PAGE_SIZE = 5

# orderBy values accepted by recipes(...) and their storage paths
RECIPE_SORTABLE = {"name": "name", "id": "_id"}


def _api_version(record: Optional[dict], args: dict) -> str:
    return API_VERSION


def _ingredient_count(record: Optional[dict], args: dict) -> Optional[int]:
    ingredients = get_path(record, "ingredients")
    if isinstance(ingredients, list):
        return len(ingredients)
    return None


def _recipe_filter_args() -> tuple[ArgumentDef, ...]:
    return (
        ArgumentDef(name="tag", type="String", filter_path="tags"),
        ArgumentDef(name="ingredient", type="String", filter_path="ingredients.name"),
        ArgumentDef(name="search", type="String", filter_path="name", op="icontains"),
    )


def _pagination_args(default_limit: int) -> tuple[ArgumentDef, ...]:
    return (
        ArgumentDef(name="limit", type="Int", default=default_limit, role="limit"),
        ArgumentDef(name="offset", type="Int", default=0, role="offset"),
    )


def recipe_types(collection: str = RECIPES_COLLECTION, default_page_size: int = DEFAULT_PAGE_SIZE) -> list[TypeDef]:
    """Type descriptors of the recipe catalog, root first."""
    query = TypeDef(
        name="Query",
        description="Recipe catalog queries",
        fields=(
            FieldDef(
                name="apiVersion",
                kind=FieldKind.SCALAR,
                type="String",
                resolver=_api_version,
                nullable=False,
                description="Version of the query API",
            ),
            FieldDef(
                name="recipe",
                kind=FieldKind.OBJECT,
                type="Recipe",
                args=(ArgumentDef(name="id", type="ID", required=True, role="key"),),
                lookup=LookupDef(collection=collection, operation="find_by_id"),
                description="Single recipe by identifier",
            ),
            FieldDef(
                name="recipeByName",
                kind=FieldKind.OBJECT,
                type="Recipe",
                args=(ArgumentDef(name="name", type="String", required=True, filter_path="name"),),
                lookup=LookupDef(collection=collection, operation="find"),
                description="First recipe with exactly this name",
            ),
            FieldDef(
                name="recipes",
                kind=FieldKind.LIST,
                type="Recipe",
                args=(
                    *_pagination_args(default_page_size),
                    *_recipe_filter_args(),
                    ArgumentDef(name="orderBy", type="String", role="order"),
                ),
                lookup=LookupDef(
                    collection=collection,
                    operation="find",
                    sortable=RECIPE_SORTABLE,
                ),
                description="Recipes in storage order unless orderBy is given",
            ),
            FieldDef(
                name="recipeCount",
                kind=FieldKind.SCALAR,
                type="Int",
                args=_recipe_filter_args(),
                lookup=LookupDef(collection=collection, operation="count"),
                nullable=False,
                description="Number of recipes matching the filters",
            ),
        ),
    )

    recipe = TypeDef(
        name="Recipe",
        description="A recipe",
        fields=(
            FieldDef(name="id", kind=FieldKind.SCALAR, type="ID", storage_path="_id", nullable=False),
            FieldDef(name="name", kind=FieldKind.SCALAR, type="String", storage_path="name"),
            FieldDef(
                name="ingredients",
                kind=FieldKind.LIST,
                type="Ingredient",
                storage_path="ingredients",
            ),
            FieldDef(name="steps", kind=FieldKind.LIST, type="String", storage_path="steps"),
            FieldDef(name="tags", kind=FieldKind.LIST, type="String", storage_path="tags"),
            FieldDef(name="media", kind=FieldKind.LIST, type="MediaRef", storage_path="media"),
            FieldDef(
                name="source",
                kind=FieldKind.SCALAR,
                type="JSON",
                storage_path="source",
                description="Free-form source metadata",
            ),
            FieldDef(
                name="ingredientCount",
                kind=FieldKind.SCALAR,
                type="Int",
                resolver=_ingredient_count,
                requires=("ingredients",),
            ),
            FieldDef(
                name="related",
                kind=FieldKind.LIST,
                type="Recipe",
                args=_pagination_args(RELATED_PAGE_SIZE),
                lookup=LookupDef(
                    collection=collection,
                    operation="find",
                    parent_refs=(
                        ParentRefDef(parent_path="tags", child_path="tags", op="in"),
                        ParentRefDef(parent_path="_id", child_path="_id", op="ne"),
                    ),
                    default_order=("name",),
                ),
                description="Other recipes sharing at least one tag",
            ),
        ),
    )

    ingredient = TypeDef(
        name="Ingredient",
        description="An ingredient used in a recipe",
        fields=(
            FieldDef(name="name", kind=FieldKind.SCALAR, type="String", storage_path="name"),
            FieldDef(name="quantity", kind=FieldKind.SCALAR, type="String", storage_path="qty"),
            FieldDef(name="unit", kind=FieldKind.SCALAR, type="String", storage_path="unit"),
        ),
    )

    media_ref = TypeDef(
        name="MediaRef",
        description="A reference to some media in the recipe",
        fields=(
            FieldDef(name="anchor", kind=FieldKind.SCALAR, type="String", storage_path="anchor"),
            FieldDef(name="url", kind=FieldKind.SCALAR, type="String", storage_path="url"),
        ),
    )

    return [query, recipe, ingredient, media_ref]


def build_recipe_registry(**options: Any) -> SchemaRegistry:
    """Register the recipe catalog types and freeze the registry."""
    registry = SchemaRegistry()
    for type_def in recipe_types(**options):
        registry.register(type_def)
    return registry.freeze()
