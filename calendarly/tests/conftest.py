import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

# Settings are read when calendarly.main is imported; keep the suite off Postgres
os.environ.setdefault("ENABLE_DB", "0")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("APP_PUBLIC_URL", "https://cal.example.com")

import time

import pytest
from fastapi.testclient import TestClient
import fakeredis.aioredis as fakeredis
from jose import jwt

from calendarly import auth
from calendarly.config import clear_settings_cache

clear_settings_cache()

import calendarly.lifespan as lifespan
import calendarly.main as main

TEST_SECRET = os.environ["AUTH_JWT_SECRET"]


def make_token(sub: str = "user_123", secret: str = TEST_SECRET, **claims) -> str:
    now = int(time.time())
    payload = {"sub": sub, "iat": now, "nbf": now, "exp": now + 600, **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


class _AwaitableRedis:
    def __init__(self, client):
        self._client = client

    def __await__(self):
        async def _coro():
            return self._client

        return _coro().__await__()


@pytest.fixture(autouse=True)
def _reset_jwks_cache():
    auth.clear_jwks_cache()
    yield
    auth.clear_jwks_cache()


@pytest.fixture
def client(monkeypatch):
    def fake_redis_constructor(*_args, **_kwargs):
        fake = fakeredis.FakeRedis(decode_responses=True)
        return _AwaitableRedis(fake)

    monkeypatch.setattr(lifespan.redis, "Redis", fake_redis_constructor)

    with TestClient(main.app, follow_redirects=False) as c:
        yield c


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def token_factory():
    return make_token
