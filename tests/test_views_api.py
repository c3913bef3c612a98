"""Tests for the /views endpoints."""

from fastapi.testclient import TestClient

from blogcore.main import app
from blogcore.services.views import StoreUnavailable, ViewStore, get_view_store

client = TestClient(app)


class _BrokenStore(ViewStore):
    def increment(self, page_id: str) -> int:
        raise StoreUnavailable("connection refused")

    def read(self, page_id: str) -> int:
        raise StoreUnavailable("connection refused")


class TestReadViews:
    def test_never_viewed_page_is_zero(self, view_store):
        resp = client.get("/views/unknown-page")
        assert resp.status_code == 200
        assert resp.json() == {"views": 0}

    def test_read_does_not_create_a_record(self, view_store):
        client.get("/views/unknown-page")
        assert view_store._counts == {}


class TestIncrementViews:
    def test_post_then_get(self, view_store):
        post = client.post("/views/abc")
        get = client.get("/views/abc")
        assert post.status_code == 200
        assert post.json() == {"views": 1}
        assert get.json() == {"views": 1}

    def test_each_post_counts(self, view_store):
        client.post("/views/abc")
        resp = client.post("/views/abc")
        assert resp.json() == {"views": 2}

    def test_page_ids_with_dashes(self, view_store):
        page_id = "01234567-89ab-cdef-0123-456789abcdef"
        client.post(f"/views/{page_id}")
        assert view_store.read(page_id) == 1

    def test_rate_limited(self, view_store):
        for _ in range(60):
            assert client.post("/views/abc").status_code == 200
        assert client.post("/views/abc").status_code == 429


class TestViewsErrors:
    def test_other_methods_not_allowed(self, view_store):
        for method in ("PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"):
            resp = client.request(method, "/views/abc")
            assert resp.status_code == 405
            assert resp.headers["allow"] == "GET, POST"

    def test_missing_page_id(self, view_store):
        for path in ("/views", "/views/"):
            resp = client.get(path)
            assert resp.status_code == 400
            assert resp.json() == {"error": "pageId must be a string"}
        assert client.post("/views").status_code == 400

    def test_blank_page_id(self, view_store):
        resp = client.post("/views/%20%20")
        assert resp.status_code == 400
        assert "error" in resp.json()
        assert view_store._counts == {}

    def test_store_failure_is_a_server_error(self):
        app.dependency_overrides[get_view_store] = _BrokenStore
        try:
            post = client.post("/views/abc")
            get = client.get("/views/abc")
        finally:
            app.dependency_overrides.pop(get_view_store, None)

        for resp in (post, get):
            assert resp.status_code == 500
            assert resp.json() == {"error": "connection refused"}


def test_health_check():
    resp = client.get("/")
    assert resp.status_code == 200
