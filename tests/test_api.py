# tests/test_api.py
import json
import logging

import pytest
from fastapi.testclient import TestClient

from recipegraph.app import HealthcheckLogFilter, create_app
from recipegraph.config import Settings


@pytest.fixture
def client(store):
    app = create_app(Settings(store_timeout=0.5, request_timeout=1.0, _env_file=None), store=store)
    with TestClient(app) as client:
        yield client


def test_post_graphql(client):
    response = client.post("/graphql", json={"query": '{ recipe(id: "r1") { name } }'})

    assert response.status_code == 200
    assert response.json() == {"data": {"recipe": {"name": "Soup"}}, "errors": []}


def test_post_with_variables_and_operation_name(client):
    response = client.post(
        "/graphql",
        json={
            "query": "query A { apiVersion } query B($id: ID!) { recipe(id: $id) { id } }",
            "variables": {"id": "r2"},
            "operationName": "B",
        },
    )

    assert response.json()["data"] == {"recipe": {"id": "r2"}}


def test_post_json_selection(client):
    response = client.post("/graphql", json={"select": {"recipeCount": None}})

    assert response.json() == {"data": {"recipeCount": 5}, "errors": []}


def test_execution_errors_are_http_200(client):
    response = client.post("/graphql", json={"query": '{ recipe(id: "missing") { name } }'})

    assert response.status_code == 200
    assert response.json() == {
        "data": {"recipe": None},
        "errors": [{"message": "not found", "path": ["recipe"], "extensions": {"code": "NOT_FOUND"}}],
    }


def test_plan_errors_are_http_200_with_null_data(client):
    response = client.post("/graphql", json={"query": '{ recipe(id: "r1") { bogus } }'})

    assert response.status_code == 200
    body = response.json()
    assert body["data"] is None
    assert body["errors"][0]["path"] == ["recipe", "bogus"]


def test_get_graphql(client):
    response = client.get(
        "/graphql",
        params={"query": "query ($n: Int) { recipes(limit: $n) { id } }", "variables": json.dumps({"n": 1})},
    )

    assert response.status_code == 200
    assert response.json()["data"] == {"recipes": [{"id": "r1"}]}


@pytest.mark.parametrize(
    "content",
    [b"{not json", b"[1, 2]", b'{"query": 5}'],
)
def test_malformed_body_is_400(client, content):
    response = client.post("/graphql", content=content, headers={"content-type": "application/json"})

    assert response.status_code == 400


def test_get_with_bad_variables_is_400(client):
    response = client.get("/graphql", params={"query": "{ apiVersion }", "variables": "{oops"})

    assert response.status_code == 400


def test_request_timeout_answers_504(store):
    app = create_app(Settings(store_timeout=5.0, request_timeout=0.1, _env_file=None), store=store)
    store.delay("find", 1.0)

    with TestClient(app) as client:
        response = client.post("/graphql", json={"query": "{ recipes { id } }"})

    assert response.status_code == 504


def test_schema_endpoints(client):
    schema = client.get("/__schema").json()
    sdl = client.get("/__schema.graphql")

    assert schema["root"] == "Query"
    assert "Recipe" in schema["types"]
    assert sdl.status_code == 200
    assert sdl.headers["content-type"].startswith("text/plain")
    assert "type Recipe {" in sdl.text


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_injected_store_is_not_closed(store):
    with TestClient(create_app(Settings(_env_file=None), store=store)):
        pass

    assert not store.closed


def test_healthcheck_log_filter():
    log_filter = HealthcheckLogFilter()

    def record(message):
        return logging.LogRecord("uvicorn.access", logging.INFO, __file__, 1, message, None, None)

    assert not log_filter.filter(record('127.0.0.1 - "GET /health HTTP/1.1" 200'))
    assert log_filter.filter(record('127.0.0.1 - "POST /graphql HTTP/1.1" 200'))


def test_graphiql_console(client):
    response = client.get("/graphiql")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "graphiql.min.js" in response.text
    assert 'createFetcher({ url: "/graphql" })' in response.text
