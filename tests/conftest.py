"""Shared fixtures: a small Notion record map with a blog database."""

import copy

import pytest

from blogcore.main import app
from blogcore.routers.posts import limiter as posts_limiter
from blogcore.routers.views import limiter as views_limiter
from blogcore.services.views import MemoryViewStore, get_view_store

ROOT_ID = "root-page"
COLLECTION_ID = "posts-collection"

SCHEMA = {
    "title": {"name": "Name", "type": "title"},
    "pub": {"name": "Published", "type": "date"},
    "desc": {"name": "Description", "type": "text"},
    "tags": {"name": "Tags", "type": "multi_select"},
    "feat": {"name": "Featured", "type": "checkbox"},
}


def _date(start_date: str) -> list:
    return [["‣", [["d", {"type": "date", "start_date": start_date}]]]]


def _page(
    block_id: str,
    title=None,
    published=None,
    description=None,
    tags=None,
    cover=None,
    parent_table="collection",
) -> dict:
    properties = {}
    if title is not None:
        properties["title"] = [[title]]
    if published is not None:
        properties["pub"] = _date(published)
    if description is not None:
        properties["desc"] = [[description]]
    if tags is not None:
        properties["tags"] = [[tags]]
    block = {
        "id": block_id,
        "type": "page",
        "parent_table": parent_table,
        "parent_id": COLLECTION_ID,
        "properties": properties,
    }
    if cover is not None:
        block["format"] = {"page_cover": cover}
    return {"value": block}


def _text(block_id: str, rich_text=None) -> dict:
    block = {"id": block_id, "type": "text", "parent_table": "block", "parent_id": ROOT_ID}
    if rich_text is not None:
        block["properties"] = {"title": rich_text}
    return {"value": block}


@pytest.fixture
def make_page():
    """Factory for database page entries of the shared collection."""
    return _page


@pytest.fixture
def collection_entry() -> dict:
    return {"value": {"id": COLLECTION_ID, "name": [["Posts"]], "schema": copy.deepcopy(SCHEMA)}}


@pytest.fixture
def record_map(collection_entry) -> dict:
    return {
        "block": {
            ROOT_ID: {
                "value": {
                    "id": ROOT_ID,
                    "type": "page",
                    "parent_table": "space",
                    "properties": {"title": [["My Blog"]]},
                    "content": [
                        "intro",
                        "blank",
                        "missing-child",
                        "divider",
                        "more",
                        "view",
                        "after",
                    ],
                }
            },
            "intro": _text("intro", [["Welcome to "], ["my blog", [["b"]]]]),
            "blank": _text("blank"),
            "divider": {"value": {"id": "divider", "type": "divider"}},
            "more": _text("more", [["Posts below."]]),
            "view": {
                "value": {
                    "id": "view",
                    "type": "collection_view",
                    "collection_id": COLLECTION_ID,
                    "parent_table": "block",
                }
            },
            "after": _text("after", [["Footer text"]]),
            "post-guide": _page(
                "post-guide",
                title="Notion Guide",
                published="2024-03-01",
                description="How to publish with Notion",
                tags="notion,python",
                cover="/images/page-cover/woodcuts_1.jpg",
            ),
            "post-python": _page(
                "post-python",
                title="Python Tips",
                published="2023-01-15",
                description="Small tricks",
                tags="python",
                cover="https://images.unsplash.com/photo-1",
            ),
            "post-draft": _page("post-draft", title="Draft"),
            "post-untitled": _page("post-untitled", published="2022-05-05"),
            "sub-page": _page("sub-page", title="Not a post", parent_table="block"),
        },
        "collection": {COLLECTION_ID: collection_entry},
    }


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Clear the slowapi in-memory counters before every test."""
    views_limiter.reset()
    posts_limiter.reset()
    yield


@pytest.fixture
def view_store():
    """Swap the SQLite view store for an in-memory one."""
    store = MemoryViewStore()
    app.dependency_overrides[get_view_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_view_store, None)
