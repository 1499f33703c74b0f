"""Tests for the search gateway and its status probe."""

import pytest
from fastapi.testclient import TestClient

from storefront_gateway.main import create_app
from storefront_gateway.search.gateway import SEARCH_FIELDS, SearchGateway
from storefront_gateway.shared.errors import ConfigurationError

HITS = [
    {
        "_id": "chunk-1",
        "_score": 0.91,
        "fields": {
            "ID": "BOOK-1",
            "document_title": "The Left Hand of Darkness",
            "author": "Ursula K. Le Guin",
            "summary": "An envoy on a winter planet.",
            "chunk_text": "Genly Ai arrives on Gethen...",
        },
    },
    {"_id": "chunk-2", "_score": 0.5, "fields": {"document_title": "Untitled"}},
    {"_score": 0.2, "fields": {}},
]


def test_text_search_preserves_ranking_and_drops_hits_without_id(client, index):
    index.hits = HITS

    response = client.post("/api/search/text", json={"query": "  winter planet  ", "limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["namespace"] == "books"
    assert [r["id"] for r in body["results"]] == ["BOOK-1", "chunk-2"]
    assert body["results"][0] == {
        "id": "BOOK-1",
        "title": "The Left Hand of Darkness",
        "author": "Ursula K. Le Guin",
        "snippet": "Genly Ai arrives on Gethen...",
        "score": 0.91,
    }
    assert body["results"][1]["title"] == "Untitled"

    (search,) = index.searches
    assert search["namespace"] == "books"
    assert search["query"] == {"inputs": {"text": "winter planet"}, "top_k": 5}
    assert search["fields"] == SEARCH_FIELDS


def test_book_search_shape(client, index):
    index.hits = HITS[:1]

    body = client.post("/api/search", json={"query": "gethen"}).json()

    (book,) = body["results"]
    assert book["id"] == "BOOK-1"
    assert book["name"] == "The Left Hand of Darkness"
    assert book["description"] == "An envoy on a winter planet."
    assert book["price"] == 0
    assert book["currency"] == "USD"
    assert book["searchScore"] == 0.91
    assert index.searches[0]["query"]["top_k"] == 10


@pytest.mark.parametrize("payload", [{}, {"query": ""}, {"query": "   "}, {"query": 42}])
def test_query_is_required(client, index, payload):
    response = client.post("/api/search/text", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Query parameter is required and must be a non-empty string"}
    assert index.searches == []


def test_get_is_not_allowed(client):
    response = client.get("/api/search")

    assert response.status_code == 405
    assert response.json() == {"message": "Use POST method for search queries"}


def test_service_failure_is_a_server_error(client, index):
    index.error = RuntimeError("index unavailable")

    response = client.post("/api/search/text", json={"query": "dune"})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to search books"


def test_status_ready(client):
    body = client.get("/api/search/status").json()

    assert body == {
        "status": "ready",
        "indexName": "books-index",
        "indexHost": "books-index.svc.pinecone.io",
        "totalVectors": 42,
        "dimension": 1024,
        "namespaces": {"books": {"vector_count": 42}},
    }


def test_status_reports_unreachable_service(client, index):
    index.error = ConnectionError("no route to host")

    body = client.get("/api/search/status").json()

    assert body["status"] == "error"
    assert body["errorType"] == "service"
    assert "no route to host" in body["message"]


def test_status_reports_missing_credential_as_configuration_error(settings, square):
    client = TestClient(create_app(settings=settings, square=square))

    body = client.get("/api/search/status").json()

    assert body["status"] == "error"
    assert body["errorType"] == "configuration"
    assert "PINECONE_API_KEY" in body["message"]


def test_search_without_credential_is_a_configuration_error(settings, square):
    client = TestClient(create_app(settings=settings, square=square))

    response = client.post("/api/search/text", json={"query": "dune"})

    assert response.status_code == 500
    assert response.json()["error"] == "Configuration error"


def test_from_settings_requires_api_key(settings):
    settings.pinecone_api_key = None

    with pytest.raises(ConfigurationError):
        SearchGateway.from_settings(settings, client_factory=lambda **kwargs: pytest.fail("client built"))


def test_from_settings_builds_index_once(settings):
    built = []

    class FakePinecone:
        def __init__(self, api_key):
            built.append(api_key)

        def Index(self, name, host=None):
            return ("index", name, host)

    gateway = SearchGateway.from_settings(settings, client_factory=FakePinecone)

    assert built == ["pc-test-key"]
    assert gateway.index == ("index", "books-index", "books-index.svc.pinecone.io")
