"""
Shared fixtures.

- SQLite in-memory with StaticPool so every session (including the ones
  FastAPI opens from a worker thread) sees the same database.
- Each test gets a fresh registry built on explicit settings, so nothing
  leaks between tests through registered configurations.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fastapi_extjs_filterable import FilterRegistry, FilterTranslator, FilterableSettings
from tests.models import Base, seed_people


# ---------------------------------------------------------------------------
# Registry / translator
# ---------------------------------------------------------------------------

@pytest.fixture
def filterable_settings() -> FilterableSettings:
    return FilterableSettings(DEFAULT_PER_PAGE=100, DEFAULT_SORT="created_at")


@pytest.fixture
def registry(filterable_settings) -> FilterRegistry:
    return FilterRegistry(filterable_settings)


@pytest.fixture
def translator(registry) -> FilterTranslator:
    return FilterTranslator(registry)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Session:
    """A session over the people from ``seed_people``."""
    with session_factory() as session:
        seed_people(session)
        yield session
