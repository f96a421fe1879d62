# tests/test_graphiql.py
from fastapi import FastAPI
from fastapi.testclient import TestClient

from recipegraph.api.graphiql import get_graphiql_html, mount_graphiql


def test_html_points_at_endpoint():
    html = get_graphiql_html(endpoint="/api/graphql", title="Cookbook")

    assert "<title>Cookbook</title>" in html
    assert 'createFetcher({ url: "/api/graphql" })' in html
    assert "__ENDPOINT__" not in html


def test_mount_custom_path():
    app = FastAPI()
    mount_graphiql(app, path="/console/", endpoint="/q")

    with TestClient(app) as client:
        response = client.get("/console")

    assert response.status_code == 200
    assert '"/q"' in response.text
