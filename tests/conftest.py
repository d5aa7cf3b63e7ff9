"""Shared fixtures: an in-memory article store with a small corpus."""

from datetime import datetime, timedelta, timezone

import pytest

from shared.models import NewArticle

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_article(store, title, slug, content=None, published=True, days=0, **extra):
    """Insert an article published ``days`` after BASE_TIME."""
    return store.add(NewArticle(
        title=title,
        slug=slug,
        content=content or f"{title} content body for testing.",
        is_published=published,
        published_at=BASE_TIME + timedelta(days=days) if published else None,
        **extra
    ))


@pytest.fixture
def store():
    from knowledge_base.sqlite import SQLiteArticleStore

    store = SQLiteArticleStore(":memory:")
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def add_article(store):
    def _add(title, slug, **kwargs):
        return make_article(store, title, slug, **kwargs)
    return _add


@pytest.fixture
def seeded_store(store):
    """
    Corpus:
    - intro-to-x: published, category "guides"
    - python-tips: published, category "python", newest
    - draft-y: unpublished
    - old-news: published then soft-deleted
    """
    make_article(
        store, "Intro to X", "intro-to-x",
        content="An introduction to X for new readers.",
        days=1, author="Ada", category="guides", tags="x, intro ,basics"
    )
    make_article(
        store, "Python Tips", "python-tips",
        content="Practical tips for writing Python.",
        days=5, category="python", tags="python"
    )
    make_article(
        store, "Draft Y", "draft-y",
        content="Unfinished draft about Y.",
        published=False
    )
    deleted = make_article(
        store, "Old News", "old-news",
        content="Stale news that was retracted.",
        days=3, category="guides"
    )
    store.update(deleted.id, deleted_at=BASE_TIME + timedelta(days=10))
    return store


@pytest.fixture
def gateway(seeded_store):
    from mcp_server.gateway import McpGateway

    return McpGateway(seeded_store)
