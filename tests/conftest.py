# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from bellyfed.core.enums import TasteStatus
from bellyfed.core.security import create_access_token
from bellyfed.db.session import Base, build_engine
from bellyfed.db.session import get_db as app_get_session
from bellyfed.main import app as fastapi_app
from bellyfed.models import Dish, DishRanking, Restaurant, User
from bellyfed.services.ranking_service import RankingService

TEST_DB_URL = "sqlite://"
BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

_RANKING_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = build_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session whose commits and rollbacks stay inside one outer transaction."""
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users."""

    def _make(user_id: str, username: str | None = None, country_code: str | None = "my") -> User:
        user = User(
            user_id=user_id,
            username=username or user_id,
            avatar_url=f"https://avatars.example.com/{user_id}.png",
            country_code=country_code,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture()
def test_user(make_user) -> User:
    """Create and return the primary test user."""
    return make_user("user-alice", "alice", "my")


@pytest.fixture()
def other_user(make_user) -> User:
    """Create and return a second user in another country."""
    return make_user("user-bob", "bob", "sg")


@pytest.fixture()
def restaurant(db_session: Session) -> Restaurant:
    """Create a restaurant serving the test dish."""
    restaurant = Restaurant(restaurant_id="rest-1", name="Village Park", country_code="my")
    db_session.add(restaurant)
    db_session.commit()
    return restaurant


@pytest.fixture()
def dish(db_session: Session, restaurant: Restaurant) -> Dish:
    """Create the dish most tests rank."""
    dish = Dish(
        dish_id="dish-1",
        slug="nasi-lemak",
        name="Nasi Lemak",
        description="Coconut rice with sambal",
        category="Malaysian",
        image_url="https://images.example.com/nasi-lemak.jpg",
        is_vegetarian=False,
        spicy_level=2,
        price=12.5,
        country_code="my",
        restaurant_id=restaurant.restaurant_id,
    )
    db_session.add(dish)
    db_session.commit()
    return dish


@pytest.fixture()
def make_ranking(db_session: Session, restaurant: Restaurant) -> Callable[..., DishRanking]:
    """Return a factory inserting rankings directly, bypassing the service."""

    def _make(
        user: User,
        dish: Dish,
        rank: int | None = None,
        taste_status: TasteStatus | None = None,
        created_at: datetime | None = None,
        restaurant_id: str | None = None,
    ) -> DishRanking:
        sequence = next(_RANKING_COUNTER)
        timestamp = created_at or BASE_TIME + timedelta(seconds=sequence)
        ranking = DishRanking(
            ranking_id=f"ranking-{sequence:05d}",
            user_id=user.user_id,
            dish_id=dish.dish_id,
            restaurant_id=restaurant_id or restaurant.restaurant_id,
            dish_type=dish.category or "Other",
            rank=rank,
            taste_status=taste_status,
            notes="",
            photo_urls=[],
            created_at=timestamp,
            updated_at=timestamp,
        )
        db_session.add(ranking)
        db_session.commit()
        return ranking

    return _make


@pytest.fixture()
def emitted_events() -> list:
    return []


@pytest.fixture()
def ranking_service(db_session: Session, emitted_events: list) -> RankingService:
    """Ranking service whose engagement events are collected in a list."""
    return RankingService(db_session, emit=emitted_events.append)


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    token = create_access_token(test_user.user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    token = create_access_token(other_user.user_id)
    return {"Authorization": f"Bearer {token}"}
