"""Shared test fixtures and configuration."""

from datetime import datetime, timedelta, timezone
import os

import pytest

from docs_search_engine.config import Settings
from docs_search_engine.domain.model import Document
from docs_search_engine.search_engine import SearchEngine


# Complete test environment that pins every engine setting
TEST_ENV = {
    "DOCS_SEARCH_ENGINE_NAME": "test-docs",
    "DOCS_SEARCH_TITLE_WEIGHT": "3.0",
    "DOCS_SEARCH_TAG_WEIGHT": "2.0",
    "DOCS_SEARCH_CONTENT_WEIGHT": "1.0",
    "DOCS_SEARCH_RECENCY_MAX_BOOST": "0.5",
    "DOCS_SEARCH_RECENCY_HALF_LIFE_DAYS": "30",
    "DOCS_SEARCH_DEFAULT_LIMIT": "20",
    "DOCS_SEARCH_MAX_LIMIT": "100",
    "DOCS_SEARCH_SNIPPET_LENGTH": "200",
    "DOCS_SEARCH_SNIPPET_CONTEXT": "60",
    "DOCS_SEARCH_SNIPPET_HIGHLIGHT": "none",
    "DOCS_SEARCH_LOG_LEVEL": "info",
    "DOCS_SEARCH_LOG_JSON": "true",
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop stray DOCS_SEARCH_* variables and pin test defaults."""
    for key in list(os.environ):
        if key.upper().startswith("DOCS_SEARCH_"):
            monkeypatch.delenv(key, raising=False)
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("DOCS_SEARCH_FUZZY_MAX_DISTANCE", raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def phoenix_docs() -> list[Document]:
    """The Phoenix/Ecto pair used throughout the index and engine tests."""
    return [
        Document(
            id="phoenix_channels",
            title="Phoenix Channels for Phoenix",
            content="Phoenix channels push messages to clients over WebSockets.",
            path="/dev/phoenix-channels",
            category="dev",
            tags=("phoenix", "realtime"),
        ),
        Document(
            id="ecto_basics",
            title="Ecto Basics",
            content="Ecto talks to the Database through repositories and changesets.",
            path="/dev/ecto-basics",
            category="dev",
            tags=("ecto",),
        ),
    ]


@pytest.fixture
def guide_docs() -> list[Document]:
    """Three documents matching "guide", one per category."""
    now = datetime.now(timezone.utc)
    return [
        Document(
            id="dev_guide",
            title="Developer Guide",
            content="A guide for contributors.",
            path="/dev/guide",
            category="dev",
            tags=("dev", "setup"),
            last_modified=now - timedelta(days=1),
        ),
        Document(
            id="user_guide",
            title="User Guide",
            content="A guide for end users.",
            path="/user/guide",
            category="user",
            tags=("user",),
            last_modified=now - timedelta(days=90),
        ),
        Document(
            id="api_guide",
            title="API Guide",
            content="A guide to the HTTP endpoints.",
            path="/api/guide",
            category="api",
            tags=("api", "setup"),
        ),
    ]


@pytest.fixture
def engine(settings, phoenix_docs) -> SearchEngine:
    engine = SearchEngine(settings)
    engine.start(phoenix_docs)
    return engine
