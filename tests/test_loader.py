# tests/test_loader.py
import json

import pytest

from recipegraph.core.errors import LoaderError
from recipegraph.loader import RecipeLoader, RecipeRecord

from .conftest import InMemoryStore


def _write(path, recipes):
    path.write_text(json.dumps(recipes), encoding="utf-8")


@pytest.fixture
def data_dir(tmp_path):
    _write(
        tmp_path / "b_salads.json",
        [{"id": "s1", "name": "Greek Salad", "tags": ["salad"]}],
    )
    _write(
        tmp_path / "a_soups.json",
        [
            {
                "id": "r1",
                "name": "Soup",
                "ingredients": [{"name": "water", "qty": 1, "unit": "l"}],
                "steps": ["Boil."],
                "tags": ["soup", "soup"],
            },
            {"id": 2, "title": "Broth", "instructions": ["Simmer."]},
        ],
    )
    (tmp_path / "notes.txt").write_text("not a data file")
    return tmp_path


class TestRecipeRecord:
    def test_document_shape(self):
        record = RecipeRecord.model_validate(
            {"id": "r1", "name": "Soup", "ingredients": [{"name": "water", "quantity": 2}]}
        )

        assert record.to_document() == {
            "_id": "r1",
            "name": "Soup",
            "ingredients": [{"name": "water", "qty": "2"}],
            "steps": [],
            "tags": [],
            "media": [],
        }


@pytest.mark.asyncio
class TestRecipeLoader:
    async def test_load_reads_files_in_sorted_order(self, data_dir):
        store = InMemoryStore({"recipes": [{"_id": "old", "name": "Stale"}]})

        report = await RecipeLoader(store).load(data_dir)

        assert [p.name for p in report.files] == ["a_soups.json", "b_salads.json"]
        assert (report.deleted, report.inserted) == (1, 3)
        documents = store.collections["recipes"]
        assert [d["_id"] for d in documents] == ["r1", "2", "s1"]
        assert documents[0]["tags"] == ["soup"]
        assert documents[0]["ingredients"] == [{"name": "water", "qty": "1", "unit": "l"}]
        assert documents[1]["name"] == "Broth"
        assert documents[1]["steps"] == ["Simmer."]

    async def test_load_is_idempotent(self, data_dir):
        store = InMemoryStore()
        loader = RecipeLoader(store, collection="recipes")

        await loader.load(data_dir)
        first = list(store.collections["recipes"])
        await loader.load(data_dir)

        assert store.collections["recipes"] == first

    async def test_duplicate_ids_leave_store_untouched(self, data_dir):
        _write(data_dir / "c_more.json", [{"id": "r1", "name": "Another Soup"}])
        store = InMemoryStore({"recipes": [{"_id": "old", "name": "Stale"}]})

        with pytest.raises(LoaderError, match="duplicate recipe id 'r1'"):
            await RecipeLoader(store).load(data_dir)

        assert store.call_count == 0
        assert store.collections["recipes"] == [{"_id": "old", "name": "Stale"}]

    @pytest.mark.parametrize(
        "content, message",
        [
            ("{not json", "cannot read file"),
            ('{"id": "r1", "name": "Soup"}', "expected a JSON array"),
            ('[{"name": "No Id"}]', "invalid recipe at index 0"),
        ],
    )
    async def test_invalid_files(self, tmp_path, content, message):
        (tmp_path / "bad.json").write_text(content)
        store = InMemoryStore()

        with pytest.raises(LoaderError, match=message):
            await RecipeLoader(store).load(tmp_path)

        assert store.call_count == 0

    async def test_missing_directory(self, tmp_path):
        with pytest.raises(LoaderError, match="data directory not found"):
            await RecipeLoader(InMemoryStore()).load(tmp_path / "nope")

    async def test_loaded_recipes_are_queryable(self, data_dir, registry, settings):
        from recipegraph.runtime.engine import QueryEngine

        store = InMemoryStore()
        await RecipeLoader(store).load(data_dir)

        response = await QueryEngine(registry, store, settings).execute(
            '{ recipe(id: "r1") { name ingredients { quantity unit } } }'
        )

        assert response.data == {
            "recipe": {"name": "Soup", "ingredients": [{"quantity": "1", "unit": "l"}]}
        }
