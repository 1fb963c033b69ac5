"""Shared test fixtures."""

from collections.abc import Callable, Iterator
from datetime import datetime
from pathlib import Path

import pytest

from rateit.cache import QueryCache
from rateit.config import Settings
from rateit.context import AppContext
from rateit.db import Database
from rateit.models import ContentType, Profile, Rating, utcnow
from rateit.session import SessionContext


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test_rateit.db"


@pytest.fixture
def db(tmp_db_path: Path) -> Iterator[Database]:
    """Create a temporary database for testing."""
    database = Database(db_path=tmp_db_path)
    yield database
    database.close()


@pytest.fixture
def settings(tmp_db_path: Path) -> Settings:
    return Settings(db_path=tmp_db_path)


@pytest.fixture
def make_profile(db: Database) -> Callable[[str], Profile]:
    """Factory that stores a profile with id and username both set to the name."""

    def _make(username: str) -> Profile:
        profile = Profile(id=username, username=username, display_name=username.title())
        db.upsert_profile(profile)
        return profile

    return _make


@pytest.fixture
def alice(make_profile: Callable[[str], Profile]) -> Profile:
    return make_profile("alice")


@pytest.fixture
def bob(make_profile: Callable[[str], Profile]) -> Profile:
    return make_profile("bob")


@pytest.fixture
def carol(make_profile: Callable[[str], Profile]) -> Profile:
    return make_profile("carol")


@pytest.fixture
def app(db: Database, settings: Settings, alice: Profile) -> AppContext:
    """Application context signed in as alice."""
    session = SessionContext(db, settings)
    session.start("alice")
    return AppContext(db=db, session=session, cache=QueryCache())


@pytest.fixture
def signed_out_app(db: Database, settings: Settings) -> AppContext:
    return AppContext(db=db, session=SessionContext(db, settings), cache=QueryCache())


@pytest.fixture
def store_rating(db: Database) -> Callable[..., Rating]:
    """Factory that writes a rating straight to the database with a chosen timestamp."""
    counter = iter(range(1, 10_000))

    def _store(
        user_id: str,
        content_id: str,
        score: float = 5.0,
        content_type: ContentType = ContentType.MOVIE,
        created_at: datetime | None = None,
    ) -> Rating:
        stamp = created_at or utcnow()
        rating = Rating(
            id=f"r{next(counter)}",
            user_id=user_id,
            content_type=content_type,
            content_id=content_id,
            content_title=f"Title {content_id}",
            score=score,
            created_at=stamp,
            updated_at=stamp,
        )
        db.upsert_rating(rating)
        return rating

    return _store
