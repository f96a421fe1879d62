# tests/test_cli.py
import json

import pytest

from recipegraph.cli import main as cli

from .conftest import InMemoryStore, RECIPES


@pytest.fixture
def memory_store(monkeypatch, tmp_path):
    store = InMemoryStore({"recipes": RECIPES})
    monkeypatch.setattr(cli, "MongoDocumentStore", lambda *args, **kwargs: store)
    monkeypatch.chdir(tmp_path)
    return store


def test_schema_prints_sdl(capsys, memory_store):
    assert cli.app(["schema"]) == 0

    out = capsys.readouterr().out
    assert out.startswith("scalar JSON")
    assert "type Ingredient {" in out


def test_schema_json(capsys, memory_store):
    assert cli.app(["schema", "--json"]) == 0

    assert json.loads(capsys.readouterr().out)["root"] == "Query"


def test_query(capsys, memory_store):
    code = cli.app(["query", 'query ($id: ID!) { recipe(id: $id) { name } }', "--variables", '{"id": "r3"}'])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"data": {"recipe": {"name": "Pancakes"}}, "errors": []}
    assert memory_store.closed


def test_query_with_errors_exits_nonzero(capsys, memory_store):
    code = cli.app(["query", '{ recipe(id: "missing") { name } }'])

    assert code == 1
    assert json.loads(capsys.readouterr().out)["errors"][0]["message"] == "not found"


def test_query_json_selection(capsys, memory_store):
    code = cli.app(["query", "--json", '{"recipeCount": null}'])

    assert code == 0
    assert json.loads(capsys.readouterr().out)["data"] == {"recipeCount": 5}


def test_load(capsys, memory_store, tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "one.json").write_text(json.dumps([{"id": "x1", "name": "Toast"}]))

    assert cli.app(["load", "--data-dir", str(data_dir)]) == 0

    assert [d["_id"] for d in memory_store.collections["recipes"]] == ["x1"]
    assert "Loaded 1 recipes" in capsys.readouterr().out


def test_load_rejects_bad_data(capsys, memory_store, tmp_path):
    assert cli.app(["load", "--data-dir", str(tmp_path / "missing")]) == 1

    assert "data directory not found" in capsys.readouterr().out
    assert memory_store.collections["recipes"]


def test_no_command_prints_help(capsys):
    assert cli.app([]) == 0
    assert "usage: recipegraph" in capsys.readouterr().out
