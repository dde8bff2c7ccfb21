"""
HTTP endpoints wired to in-memory collaborators.
"""

import pytest
from fastapi.testclient import TestClient

from src.api.main import build_services, create_app
from src.core.catalog import InMemoryCatalog
from src.vector.embeddings import DeterministicHashEmbedding
from src.vector.index import NullVectorStore, SimpleInMemoryVectorStore

from conftest import DIM, FailingTextGenerator, HashBackedTextGenerator


@pytest.fixture
def api_catalog(books):
    return InMemoryCatalog(books, libraries={"alice": ["1"]})


@pytest.fixture
def client(api_catalog):
    services = build_services(
        catalog=api_catalog,
        vector_store=SimpleInMemoryVectorStore(),
        text_generator=HashBackedTextGenerator(DIM, reply="Generated summary."),
        embedding_provider=DeterministicHashEmbedding(DIM),
    )
    return TestClient(create_app(services))


@pytest.fixture
def offline_client(api_catalog):
    """No vector store and a provider that always fails."""
    services = build_services(
        catalog=api_catalog,
        vector_store=NullVectorStore(),
        text_generator=FailingTextGenerator(),
    )
    services.codec.backoff_initial = 0
    return TestClient(create_app(services))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["vector_store"] == "memory"
    assert data["embedding_provider"] == "hash"


def test_index_then_semantic_search(client):
    index_all = client.post("/index/all")
    assert index_all.status_code == 200
    assert all(r["success"] for r in index_all.json()["results"])

    response = client.post("/semantic-search", json={"query": "surveillance state", "limit": 2})
    assert response.status_code == 200
    data = response.json()
    assert data["mode"] == "semantic"
    assert data["books"][0]["title"] == "1984"


def test_index_and_delete_single_book(client):
    response = client.post("/index", json={"id": "9", "title": "Dune", "author": "Frank Herbert"})
    assert response.json() == {"success": True, "id": "9"}

    response = client.delete("/index/9")
    assert response.json() == {"success": True, "id": "9"}


def test_semantic_search_requires_query(client):
    assert client.post("/semantic-search", json={}).status_code == 422
    assert client.post("/semantic-search", json={"query": "   "}).status_code == 422
    assert client.post("/semantic-search", json={"query": 5}).status_code == 422


def test_index_requires_title_and_author(client):
    assert client.post("/index", json={"id": "9", "title": "Dune"}).status_code == 422


def test_offline_search_uses_keywords(offline_client):
    response = offline_client.post("/semantic-search", json={"query": "Jazz Age", "limit": 5})
    assert response.status_code == 200
    data = response.json()
    assert data["mode"] == "keyword"
    assert data["books"][0]["title"] == "The Great Gatsby"


def test_offline_index_reports_failure(offline_client):
    response = offline_client.post("/index", json={"id": "1", "title": "1984", "author": "George Orwell"})
    assert response.status_code == 200
    assert response.json()["success"] is False


def test_recommendations(client):
    response = client.get("/recommendations", params={"user_id": "alice", "limit": 2})
    assert response.status_code == 200
    ids = [b["id"] for b in response.json()["books"]]
    assert len(ids) == 2
    assert "1" not in ids


def test_recommendations_require_user(client):
    assert client.get("/recommendations").status_code == 422


def test_summary(client):
    response = client.get("/books/2/summary")
    assert response.status_code == 200
    assert response.json() == {"book_id": "2", "summary": "Generated summary.", "cached": False}

    assert client.get("/books/2/summary").json()["cached"] is True


def test_summary_unknown_book(client):
    assert client.get("/books/404/summary").status_code == 404
