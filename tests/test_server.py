import numpy as np
import pytest
from fastapi.testclient import TestClient

from shard import server
from shard.store import VectorStore


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(server, "store", VectorStore(dimension=3, metric="cosine"))
    return TestClient(server.app)


@pytest.fixture
def loaded(client):
    for vid, emb, lang in (("x", [1, 0, 0], "en"), ("y", [0, 1, 0], "fr"), ("z", [0, 0, 1], "en")):
        r = client.post("/vectors", json={"id": vid, "embedding": emb, "dtype": "float64", "meta": {"lang": lang}})
        assert r.status_code == 200
    return client


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "count": 0, "dim": 3, "metric": "cosine_similarity"}


def test_metrics_endpoint(loaded):
    r = loaded.get("/metrics")
    assert r.status_code == 200
    assert "shard_requests_total" in r.text


def test_insert_and_get(loaded):
    r = loaded.get("/vectors/y")
    assert r.status_code == 200
    body = r.json()
    assert body["embedding"] == [0.0, 1.0, 0.0]
    assert body["dtype"] == "float64"
    assert body["meta"]["tags"] == {"lang": "fr"}


def test_insert_wrong_dimension(client):
    r = client.post("/vectors", json={"id": "bad", "embedding": [1.0, 2.0]})
    assert r.status_code == 400
    assert "dimension" in r.json()["detail"]


def test_insert_empty_embedding(client):
    r = client.post("/vectors", json={"id": "bad", "embedding": []})
    assert r.status_code == 400


def test_unknown_dtype_is_rejected_by_schema(client):
    r = client.post("/vectors", json={"id": "a", "embedding": [1, 2, 3], "dtype": "float16"})
    assert r.status_code == 422


def test_missing_vector_is_404(client):
    assert client.get("/vectors/nope").status_code == 404
    assert client.delete("/vectors/nope").status_code == 404
    assert client.put("/vectors/nope", json={"embedding": [1, 2, 3]}).status_code == 404


def test_update_and_delete(loaded):
    r = loaded.put("/vectors/x", json={"embedding": [0.5, 0.5, 0.0], "dtype": "float64"})
    assert r.status_code == 200
    assert loaded.get("/vectors/x").json()["embedding"] == [0.5, 0.5, 0.0]

    assert loaded.delete("/vectors/x").status_code == 200
    assert loaded.get("/health").json()["count"] == 2


def test_batch_insert(client):
    r = client.post("/vectors/batch", json={"vectors": [
        {"id": "a", "embedding": [1, 0, 0], "dtype": "float32"},
        {"id": "b", "embedding": [0, 1, 0], "dtype": "float32", "meta": {"k": "v"}},
    ]})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "count": 2}
    assert client.get("/vectors/b").json()["meta"]["tags"] == {"k": "v"}


def test_batch_insert_rejects_whole_batch(client):
    r = client.post("/vectors/batch", json={"vectors": [
        {"id": "a", "embedding": [1, 0, 0]},
        {"id": "b", "embedding": [0, 1]},
    ]})
    assert r.status_code == 400
    assert client.get("/health").json()["count"] == 0


def test_search_top1(loaded):
    r = loaded.post("/search", json={"embedding": [1, 0, 0], "k": 1, "dtype": "float64"})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 1
    assert body["results"][0]["id"] == "x"
    assert body["results"][0]["score"] == pytest.approx(1.0)
    assert body["results"][0]["meta"]["tags"] == {"lang": "en"}


def test_search_without_metadata(loaded):
    r = loaded.post("/search", json={"embedding": [1, 0, 0], "dtype": "float64", "include_metadata": False})
    assert all("meta" not in item for item in r.json()["results"])


def test_search_with_tags(loaded):
    r = loaded.post("/search", json={"embedding": [1, 0, 0], "dtype": "float64", "tags": {"lang": "en"}})
    assert [item["id"] for item in r.json()["results"]] == ["x", "z"]


def test_search_other_width_finds_nothing(loaded):
    r = loaded.post("/search", json={"embedding": [1, 0, 0], "dtype": "float32"})
    assert r.status_code == 200
    assert r.json() == {"results": [], "total": 0}


def test_search_dimension_mismatch(loaded):
    r = loaded.post("/search", json={"embedding": [1, 0], "dtype": "float64"})
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert "2" in detail and "3" in detail


def test_batch_search(loaded):
    r = loaded.post("/search/batch", json={"queries": {"qy": [0, 1, 0], "qz": [0, 0, 1]}, "k": 1, "dtype": "float64"})
    assert r.status_code == 200
    body = r.json()
    assert body["qy"]["results"][0]["id"] == "y"
    assert body["qz"]["results"][0]["id"] == "z"


def test_batch_search_error_names_query(loaded):
    r = loaded.post("/search/batch", json={"queries": {"good": [0, 1, 0], "broken": [1]}, "dtype": "float64"})
    assert r.status_code == 400
    assert "broken" in r.json()["detail"]


def test_stats(loaded):
    r = loaded.get("/stats")
    assert r.status_code == 200
    body = r.json()
    assert body["total_vectors"] == 3
    assert body["float64_count"] == 3
    assert body["distance_function"] == "cosine_similarity"


def test_get_vector_with_non_finite_values(client):
    server.store.add("n", np.array([np.nan, 1.0, np.inf]))
    r = client.get("/vectors/n")
    assert r.status_code == 200
    assert r.json()["embedding"] == [None, 1.0, None]
