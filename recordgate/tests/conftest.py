"""Shared test fixtures for recordgate tests.

Provides:
- In-memory record store seeded with an auth and a base collection
- Recording log sink
- FastAPI test app wired to both
- httpx AsyncClient for API testing
- Superuser / record tokens
"""
import os
from unittest.mock import Mock

import pytest
import pytest_asyncio

# Set required environment variables BEFORE any app imports
os.environ.setdefault("RECORDGATE_SECRET_KEY", "test-secret-key-for-unit-tests-only")
os.environ.setdefault("RECORDGATE_DEBUG", "true")
os.environ.pop("DATABASE_URL", None)

# Clear the lru_cache so test env vars take effect
from recordgate.core.config import get_settings
get_settings.cache_clear()

from httpx import ASGITransport, AsyncClient
from recordgate.core.client_ip import ClientIPResolver
from recordgate.core.log_sink import LogSink
from recordgate.core.records import InMemoryRecordStore
from recordgate.core.security import TokenIssuer, create_superuser_token
from recordgate.main import create_app

CLIENT_IP = "192.168.1.42"


class RecordingLogSink(LogSink):
    """LogSink that keeps (level, message, pairs) tuples instead of logging."""

    def __init__(self):
        super().__init__(logger=Mock())
        self.calls = []

    def debug(self, message, *pairs):
        self.calls.append(("debug", message, pairs))

    def info(self, message, *pairs):
        self.calls.append(("info", message, pairs))

    def warn(self, message, *pairs):
        self.calls.append(("warn", message, pairs))

    def error(self, message, *pairs):
        self.calls.append(("error", message, pairs))


# ── Store fixtures ────────────────────────────────────────────

@pytest.fixture()
def store():
    """Record store with a `users` auth collection and a `posts` base collection."""
    s = InMemoryRecordStore()
    users = s.add_collection(
        "users", type="auth", fields=["email", "username", "ips", "password"], id="_pb_users_auth_",
    )
    posts = s.add_collection("posts", type="base", fields=["title", "email", "ips"], id="posts0000000001")

    s.add_record(users, {
        "email": "alice@example.com",
        "username": "alice",
        "ips": ["10.0.0.1", "192.168.1.0/24"],
        "password": "hashed-secret",
    }, id="alice0000000001")
    s.add_record(users, {
        "email": "bob@example.com",
        "username": "bob",
        "ips": ["10.0.0.5"],
    }, id="bob000000000001")
    s.add_record(users, {
        "email": "broken@example.com",
        "ips": [12345, "192.168.1.42"],
    }, id="broken00000001")
    s.add_record(users, {
        "email": "legacy@example.com",
        "ips": '["192.168.1.42"]',
    }, id="legacy00000001")
    s.add_record(users, {
        "email": "noips@example.com",
    }, id="noips000000001")
    s.add_record(posts, {"title": "hello", "email": "alice@example.com", "ips": ["192.168.1.42"]})
    return s


@pytest.fixture()
def log_sink():
    return RecordingLogSink()


@pytest.fixture()
def token_issuer():
    settings = get_settings()
    return TokenIssuer(settings.secret_key, settings.jwt_algorithm, expire_minutes=60)


# ── App and client fixtures ──────────────────────────────────

@pytest.fixture()
def app(store, log_sink, token_issuer):
    """Create a fresh FastAPI app for testing."""
    get_settings.cache_clear()
    return create_app(
        record_store=store,
        log_sink=log_sink,
        token_issuer=token_issuer,
        client_ip_resolver=ClientIPResolver(),
    )


@pytest_asyncio.fixture()
async def anon_client(app):
    """Unauthenticated HTTP client connecting from CLIENT_IP."""
    transport = ASGITransport(app=app, client=(CLIENT_IP, 51234))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def superuser_token():
    return create_superuser_token("ops@example.com")


@pytest_asyncio.fixture()
async def superuser_client(app, superuser_token):
    """HTTP client carrying a superuser bearer token."""
    transport = ASGITransport(app=app, client=(CLIENT_IP, 51234))
    headers = {"Authorization": f"Bearer {superuser_token}"}
    async with AsyncClient(transport=transport, base_url="http://test", headers=headers) as ac:
        yield ac
