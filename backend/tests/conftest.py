"""
Pytest configuration and fixtures for the digest API tests.
"""

import os

# Settings are read at import time, so the environment comes first
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test_secret_key_for_testing_only"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["AUTH_BRIDGE_TOKEN"] = "test-bridge-token"
os.environ["COOKIE_SECURE"] = "false"

import pytest
from typing import Generator
from sqlalchemy.orm import Session
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.database import Base, Database, get_db
from app.core.errors import register_error_handlers
from app.core.auth import create_access_token
from app.models.article import Article
from app.models.edition import Edition, NewsItem
from app.models.user import User
from app.services.editions import resolve_edition_key
from app.services.users import UserService


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_PASSWORD = "correct-horse-battery"
ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}



@pytest.fixture(scope="function")
def database() -> Generator[Database, None, None]:
    """Store handle on a fresh in-memory database."""
    database = Database(TEST_DATABASE_URL)
    database.create_all()
    yield database
    Base.metadata.drop_all(bind=database.engine)
    database.dispose()


@pytest.fixture(scope="function")
def db_session(database) -> Generator[Session, None, None]:
    """Create a test database session."""
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def disable_rate_limits():
    """Per-router limiters keep in-process counters across tests."""
    from app.api.endpoints import articles, auth, editions, users

    limiters = [module.limiter for module in (articles, auth, editions, users)]
    for limiter in limiters:
        limiter.enabled = False
    yield
    for limiter in limiters:
        limiter.enabled = True


@pytest.fixture(scope="function")
def test_app(database, db_session):
    """Create a FastAPI test app without lifespan events."""
    from app.main import include_routers, health_check, root

    # Create app without lifespan to avoid event loop issues
    test_app = FastAPI(title="Envisage - Test", version="1.0.0")
    test_app.state.database = database
    register_error_handlers(test_app)
    include_routers(test_app)
    test_app.add_api_route("/", root, methods=["GET"])
    test_app.add_api_route("/health", health_check, methods=["GET"])

    # Override database dependency
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    test_app.dependency_overrides[get_db] = override_get_db

    return test_app


@pytest.fixture(scope="function")
def client(test_app) -> TestClient:
    """Create a test client without entering context manager."""
    return TestClient(test_app, raise_server_exceptions=False)


@pytest.fixture(scope="function")
def test_user(db_session) -> User:
    """Create an email user (with zeroed stats)."""
    return UserService(db_session).register(
        "test@example.com", "Test User", TEST_PASSWORD
    )


@pytest.fixture(scope="function")
def other_user(db_session) -> User:
    return UserService(db_session).register(
        "other@example.com", "Other User", TEST_PASSWORD
    )


@pytest.fixture(scope="function")
def auth_headers(test_user) -> dict:
    """Create authentication headers for test requests."""
    access_token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture(scope="function")
def authenticated_client(client, test_user) -> TestClient:
    """Create an authenticated test client."""
    client.cookies.set("auth_token", create_access_token(test_user.id))
    return client


def make_edition(db_session, key: str, categories=("Overview", "Technology", "Business")):
    """Store an edition with one news item per category, ids from 1."""
    edition = Edition(
        key=key,
        overall_introduction="Today's headlines.",
        news_items=[
            NewsItem(
                item_id=index,
                title=f"{category} headline",
                summary=f"What happened in {category.lower()}.",
                category=category,
                slug=f"{category.lower()}-headline",
                views=0,
            )
            for index, category in enumerate(categories, start=1)
        ],
    )
    db_session.add(edition)
    db_session.commit()
    db_session.refresh(edition)
    return edition


@pytest.fixture(scope="function")
def test_edition(db_session) -> Edition:
    """Edition for the 2025-04-06 evening window."""
    return make_edition(db_session, "2025-04-06_18:00")


@pytest.fixture(scope="function")
def current_edition(db_session) -> Edition:
    """Edition for the real wall-clock window, for HTTP tests."""
    return make_edition(db_session, resolve_edition_key())


@pytest.fixture(scope="function")
def test_article(db_session) -> Article:
    """Create a plain article."""
    article = Article(
        title="Test Article",
        content="Full article content goes here",
        summary="Test summary",
        category="Science",
        day_time_category="morning",
        tags=["space"],
    )
    db_session.add(article)
    db_session.commit()
    db_session.refresh(article)
    return article


@pytest.fixture
def sample_summary():
    """Summarization payload with two publishable categories and one too short."""
    long_text = (
        "Researchers and companies spent the week arguing over what the latest "
        "results mean, and the consensus is still forming."
    )
    return {
        "overall_introduction": "Markets steadied and chips got faster. " * 4,
        "categories": {
            "Technology": {
                "title": "**New chips** bring [AI] to laptops",
                "summary": long_text,
                "article_count": 12,
                "source_count": 5,
            },
            "Science": {
                "title": "Short one",
                "summary": "Too short.",
            },
            "Business & Finance": {
                "summary": long_text,
                "article_count": 3,
            },
        },
    }


# Environment setup for tests
@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables."""
    test_env = {
        "SECRET_KEY": "test_secret_key_for_testing_only",
        "ADMIN_TOKEN": "test-admin-token",
        "AUTH_BRIDGE_TOKEN": "test-bridge-token",
        "COOKIE_SECURE": "false",  # Disable secure cookies for tests
    }
    for key, value in test_env.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def edition_factory(db_session):
    """Store extra editions: ``edition_factory(key, categories=(...))``."""

    def factory(key, categories=("Overview", "Technology", "Business")):
        return make_edition(db_session, key, categories)

    return factory
