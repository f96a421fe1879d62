# tests/conftest.py
import asyncio
import copy
from typing import Any, Callable, Optional

import pytest

from recipegraph.config import Settings
from recipegraph.core.query_types import NormalizedFilter, NormalizedOrder
from recipegraph.core.schema import build_recipe_registry
from recipegraph.runtime.engine import QueryEngine


RECIPES = [
    {
        "_id": "r1",
        "name": "Soup",
        "ingredients": [{"name": "water", "qty": "1", "unit": "l"}],
        "steps": ["Boil the water."],
        "tags": ["soup", "vegan"],
        "media": [{"anchor": "finished", "url": "https://example.org/soup.jpg"}],
        "source": {"author": "house"},
    },
    {
        "_id": "r2",
        "name": "Tomato Soup",
        "ingredients": [{"name": "tomato", "qty": "6"}, {"name": "water", "qty": "500", "unit": "ml"}],
        "steps": ["Roast.", "Blend."],
        "tags": ["soup", "vegetarian"],
    },
    {
        "_id": "r3",
        "name": "Pancakes",
        "ingredients": [{"name": "flour", "qty": "200", "unit": "g"}, {"name": "egg", "qty": "2"}],
        "steps": ["Whisk.", "Fry."],
        "tags": ["breakfast", "vegetarian"],
    },
    {
        "_id": "r4",
        "name": "Greek Salad",
        "ingredients": [{"name": "tomato", "qty": "3"}, {"name": "feta", "qty": "150", "unit": "g"}],
        "steps": ["Chop."],
        "tags": ["salad", "vegetarian"],
    },
    {
        "_id": "r5",
        "name": "Plain Rice",
        "ingredients": [{"name": "rice", "qty": "1", "unit": "cup"}],
        "steps": ["Cook."],
        "tags": [],
    },
]


# =============================================================================
# In-memory document store
# =============================================================================


def _candidates(document: Any, path: str) -> list[Any]:
    """Values at a dotted path, descending into arrays like MongoDB does."""
    values = [document]
    for part in path.split("."):
        next_values = []
        for value in values:
            if isinstance(value, list):
                value_items = value
            else:
                value_items = [value]
            for item in value_items:
                if isinstance(item, dict) and part in item:
                    next_values.append(item[part])
        values = next_values
    flat = []
    for value in values:
        if isinstance(value, list):
            flat.extend(value)
        else:
            flat.append(value)
    return flat


def _matches(document: dict, flt: NormalizedFilter) -> bool:
    values = _candidates(document, flt.field)
    if flt.op == "eq":
        return flt.value in values
    if flt.op == "ne":
        return flt.value not in values
    if flt.op == "in":
        return any(v in flt.value for v in values)
    if flt.op == "all":
        return all(v in values for v in flt.value)
    if flt.op == "icontains":
        needle = str(flt.value).lower()
        return any(isinstance(v, str) and needle in v.lower() for v in values)
    if flt.op == "gte":
        return any(v is not None and v >= flt.value for v in values)
    if flt.op == "lte":
        return any(v is not None and v <= flt.value for v in values)
    if flt.op == "isnull":
        has_value = any(v is not None for v in values)
        return not has_value if flt.value else has_value
    raise ValueError(f"Unsupported filter op: {flt.op}")


def _project(value: Any, paths: list[str]) -> Any:
    if isinstance(value, list):
        return [_project(item, paths) for item in value if isinstance(item, dict)]
    if not isinstance(value, dict):
        return value

    groups: dict[str, list[Optional[str]]] = {}
    for path in paths:
        head, _, tail = path.partition(".")
        groups.setdefault(head, []).append(tail or None)

    out = {}
    for head, tails in groups.items():
        if head not in value:
            continue
        if None in tails:
            out[head] = copy.deepcopy(value[head])
        else:
            out[head] = _project(value[head], [t for t in tails if t])
    return out


class InMemoryStore:
    """
    DocumentStore double with call recording and failure injection.

    Usage:
        store = InMemoryStore({"recipes": RECIPES})
        store.fail("find_by_id", RuntimeError("boom"))
        store.delay("find", 1.0)
    """

    def __init__(self, collections: Optional[dict[str, list[dict]]] = None):
        self.collections = {
            name: copy.deepcopy(docs) for name, docs in (collections or {}).items()
        }
        self.calls: list[tuple[str, str, dict]] = []
        self.closed = False
        self._failures: list[tuple[str, Callable[[dict], bool], Exception]] = []
        self._delays: dict[str, float] = {}

    # --- test controls ---

    def fail(
        self,
        operation: str,
        exc: Exception,
        when: Optional[Callable[[dict], bool]] = None,
    ):
        self._failures.append((operation, when or (lambda call: True), exc))

    def delay(self, operation: str, seconds: float):
        self._delays[operation] = seconds

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def calls_for(self, operation: str) -> list[dict]:
        return [params for op, _, params in self.calls if op == operation]

    async def _enter(self, operation: str, collection: str, **params):
        call = {"collection": collection, **params}
        self.calls.append((operation, collection, call))
        if operation in self._delays:
            await asyncio.sleep(self._delays[operation])
        for op, predicate, exc in self._failures:
            if op == operation and predicate(call):
                raise exc

    # --- DocumentStore protocol ---

    async def find(
        self,
        collection: str,
        filters: list[NormalizedFilter],
        projection: Optional[list[str]] = None,
        order: Optional[list[NormalizedOrder]] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[dict]:
        await self._enter(
            "find", collection,
            filters=filters, projection=projection, order=order, skip=skip, limit=limit,
        )
        docs = [d for d in self.collections.get(collection, []) if all(_matches(d, f) for f in filters)]
        for o in reversed(order or []):
            docs.sort(
                key=lambda d: (_candidates(d, o.field) or [""])[0],
                reverse=o.dir == "desc",
            )
        docs = docs[skip:]
        if limit is not None:
            docs = docs[:limit]
        if projection:
            return [_project(d, projection) for d in docs]
        return copy.deepcopy(docs)

    async def find_by_id(self, collection: str, id: Any, projection: Optional[list[str]] = None):
        await self._enter("find_by_id", collection, id=id, projection=projection)
        for doc in self.collections.get(collection, []):
            if doc.get("_id") == id:
                return _project(doc, projection) if projection else copy.deepcopy(doc)
        return None

    async def count(self, collection: str, filters: list[NormalizedFilter]) -> int:
        await self._enter("count", collection, filters=filters)
        return sum(
            1 for d in self.collections.get(collection, []) if all(_matches(d, f) for f in filters)
        )

    async def delete_many(self, collection: str) -> int:
        await self._enter("delete_many", collection)
        deleted = len(self.collections.get(collection, []))
        self.collections[collection] = []
        return deleted

    async def insert_many(self, collection: str, documents: list[dict]) -> int:
        await self._enter("insert_many", collection, count=len(documents))
        self.collections.setdefault(collection, []).extend(copy.deepcopy(documents))
        return len(documents)

    async def close(self) -> None:
        self.closed = True


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def store():
    """In-memory store seeded with the sample recipes."""
    return InMemoryStore({"recipes": RECIPES})


@pytest.fixture(scope="session")
def registry():
    return build_recipe_registry()


@pytest.fixture(scope="function")
def settings():
    return Settings(store_timeout=0.5, request_timeout=2.0, _env_file=None)


@pytest.fixture(scope="function")
def engine(registry, store, settings):
    return QueryEngine(registry, store, settings)
