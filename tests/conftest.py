# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime
from itertools import count

import fakeredis
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from threadline.core.security import create_access_token
from threadline.db.session import Base
from threadline.db.session import get_db as app_get_session
from threadline.main import app as fastapi_app
from threadline.models import Comment, Follow, Post, User
from threadline.models.post import VISIBILITY_PUBLIC
from threadline.services.cache import get_cache
from threadline.services.notifications import get_notifier, set_notifier

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
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

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(autouse=True)
def fake_redis() -> Iterator[fakeredis.FakeRedis]:
    """Point the shared cache at an empty in-process Redis for each test."""
    client = fakeredis.FakeRedis(decode_responses=True)
    client.flushall()
    cache = get_cache()
    previous_enabled = cache.enabled
    cache.enabled = True
    cache.set_client(client)
    try:
        yield client
    finally:
        client.flushall()
        cache.set_client(None)
        cache.enabled = previous_enabled


class RecordingNotifier:
    """Notifier that keeps every payload for assertions."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, dict]] = []

    def notify(self, user_id: int, payload: dict) -> None:
        self.sent.append((user_id, payload))


@pytest.fixture(autouse=True)
def notifier() -> Iterator[RecordingNotifier]:
    recording = RecordingNotifier()
    previous = get_notifier()
    set_notifier(recording)
    try:
        yield recording
    finally:
        set_notifier(previous)


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
    """Return a factory that persists users with unique handles."""

    def _make(username: str | None = None, **fields: object) -> User:
        n = next(_USER_COUNTER)
        name = username or f"user{n}"
        user = User(username=name, email=fields.pop("email", f"{name}.{n}@example.com"), **fields)
        db_session.add(user)
        db_session.flush()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    def _make(
        author: User,
        content: str = "Test post content",
        visibility: str = VISIBILITY_PUBLIC,
        created_at: datetime | None = None,
        **fields: object,
    ) -> Post:
        post = Post(author_id=author.id, content=content, visibility=visibility, **fields)
        if created_at is not None:
            post.created_at = created_at
        db_session.add(post)
        db_session.flush()
        db_session.refresh(post)
        return post

    return _make


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., Comment]:
    def _make(
        post: Post,
        author: User,
        content: str = "Test comment",
        parent: Comment | None = None,
        created_at: datetime | None = None,
    ) -> Comment:
        comment = Comment(
            post_id=post.id,
            author_id=author.id,
            content=content,
            parent_id=parent.id if parent is not None else None,
        )
        if created_at is not None:
            comment.created_at = created_at
        db_session.add(comment)
        db_session.flush()
        db_session.refresh(comment)
        return comment

    return _make


@pytest.fixture()
def follow(db_session: Session) -> Callable[[User, User], Follow]:
    def _follow(follower: User, following: User) -> Follow:
        edge = Follow(follower_id=follower.id, following_id=following.id)
        db_session.add(edge)
        db_session.flush()
        return edge

    return _follow


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create and return the primary test user."""
    return make_user("alice", first_name="Alice", bio="Writes about tea")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create and return a second persisted user."""
    return make_user("bob", first_name="Bob")


@pytest.fixture()
def third_user(make_user: Callable[..., User]) -> User:
    return make_user("carol", first_name="Carol")


def auth_headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers_for(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return auth_headers_for(other_user)


@pytest.fixture()
def test_post(make_post: Callable[..., Post], test_user: User) -> Post:
    """Create a baseline public post for tests."""
    return make_post(test_user)


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper building bearer headers for any user."""
    return auth_headers_for
