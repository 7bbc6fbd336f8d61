import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ["DEBUG"] = "false"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import gclub.models  # noqa: F401
from gclub.core.config import settings
from gclub.core.permissions import AuthContext, RoleName
from gclub.core.security import Identity
from gclub.db.base import Base
from gclub.db.seeds.seed_roles import seed_roles
from gclub.db.session import get_db
from gclub.main import app
from gclub.models.role import Role
from gclub.models.user import UserProfile
from gclub.services import role_service as role_service_module
from gclub.services.game_post_service import game_post_service
from gclub.services.waiting_list_service import utcnow


@pytest.fixture(autouse=True)
def fake_cache(monkeypatch):
    """In-memory stand-in for Redis so tests never touch the network."""
    store = {}
    cache = role_service_module.cache_service
    monkeypatch.setattr(cache, "get", lambda key: store.get(key))
    monkeypatch.setattr(cache, "set", lambda key, value, ttl_seconds=300: store.__setitem__(key, value))
    monkeypatch.setattr(cache, "delete", lambda *keys: [store.pop(k, None) for k in keys])
    monkeypatch.setattr(cache, "health_check", lambda: True)
    return store


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
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_roles(session)
    yield session
    session.close()


@pytest.fixture
def client(session_factory, db):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(user_id: str, name: str = None) -> str:
    claims = {"sub": user_id, "aud": "authenticated", "email": f"{user_id}@example.com"}
    if name:
        claims["user_metadata"] = {"name": name}
    return jwt.encode(claims, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def get_role(db, name) -> Role:
    return db.query(Role).filter(Role.name == RoleName(name).value).one()


def make_profile(db, user_id: str, role: str = "USER", name: str = None) -> UserProfile:
    profile = UserProfile(user_id=user_id, name=name or user_id.title(), role_id=get_role(db, role).id)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def make_ctx(db, user_id: str) -> AuthContext:
    profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    return AuthContext(
        identity=Identity(id=user_id),
        profile=profile,
        role=profile.role if profile else None,
    )


def make_post(db, author_id: str = "host", max_players: int = 3, hours_ahead: int = 24, **kwargs):
    return game_post_service.create_post(
        db,
        author_id=author_id,
        title=kwargs.get("title", "Board game night"),
        content=kwargs.get("content", "Bring snacks"),
        game_name=kwargs.get("game_name", "Catan"),
        max_players=max_players,
        start_time=utcnow() + timedelta(hours=hours_ahead),
    )


@pytest.fixture
def members(db):
    """A host and five regular members."""
    for user_id in ("host", "alice", "bob", "carol", "dave", "erin"):
        make_profile(db, user_id, "USER")
    return db
