import os
import sys
import asyncio
from datetime import datetime, timedelta, timezone

import jwt
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# A sufficiently long JWT secret for tests
TEST_JWT_SECRET = "x" * 32
os.environ.setdefault("JWT_SECRET", TEST_JWT_SECRET)
os.environ.setdefault("ALLOWED_ORIGINS", "http://testserver")
os.environ.setdefault("DISABLE_RATE_LIMITS", "true")
# Honour any externally provided DATABASE_URL (e.g. CI may set a file-backed DB)
# but fall back to an in-memory SQLite database so local runs remain isolated.
DEFAULT_DB_URL = os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Register every model with the declarative Base so metadata.create_all
# creates all tables when the test database is initialised.
from app import db, models  # noqa: E402,F401
from app.cache import leaderboard_cache  # noqa: E402
from app.main import app as main_app  # noqa: E402
from app.routers import auth  # noqa: E402


@pytest.fixture(scope="session")
def session_loop():
    """Single event loop for all sync fixtures that need to run async DB code."""

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    """Ensure a strong JWT secret is present for all tests."""
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.delenv("JWT_AUDIENCE", raising=False)
    yield


@pytest.fixture(autouse=True, scope="session")
def ensure_database(session_loop):
    """Ensure the test database starts clean and honours DATABASE_URL."""

    mp = pytest.MonkeyPatch()
    desired_url = os.getenv("DATABASE_URL") or DEFAULT_DB_URL
    mp.setenv("DATABASE_URL", desired_url)

    if desired_url.startswith("sqlite") and ":memory:" not in desired_url:
        path = desired_url.split("///")[-1]
        if os.path.exists(path):
            os.remove(path)

    db.engine = None
    db.AsyncSessionLocal = None
    yield
    if db.engine is not None:
        session_loop.run_until_complete(db.engine.dispose())
        db.engine = None

    if db.AsyncSessionLocal is not None:
        db.AsyncSessionLocal = None
    mp.undo()


async def _reset_schema(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(db.Base.metadata.drop_all)
        await conn.run_sync(db.Base.metadata.create_all)


@pytest.fixture(autouse=True)
def reset_schema(request, session_loop):
    """Reset the schema and cached leaderboard before each test."""

    session_loop.run_until_complete(leaderboard_cache.clear())
    auth.limiter.reset()
    if request.node.get_closest_marker("preserve_schema"):
        yield
        return

    engine = db.engine or db.get_engine()
    session_loop.run_until_complete(_reset_schema(engine))
    yield


def make_token(
    sub: str = "user-1",
    *,
    email: str | None = "organizer@example.com",
    expires_in: int = 3600,
    secret: str = TEST_JWT_SECRET,
    **claims,
) -> str:
    """Mint a token shaped like the ones the identity provider issues."""

    payload = {
        "sub": sub,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        **claims,
    }
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    with TestClient(main_app) as c:
        yield c


@pytest.fixture
def api(client, auth_headers):
    """Small helper around the v0 API used by the endpoint tests."""

    class _Api:
        prefix = "/api/v0"

        def add_player(self, name: str, email: str | None = None) -> dict:
            resp = client.post(
                f"{self.prefix}/players",
                json={"name": name, "email": email},
                headers=auth_headers,
            )
            assert resp.status_code == 200, resp.text
            return resp.json()

        def record_game(self, team1, team2, score1, score2, **extra):
            return client.post(
                f"{self.prefix}/games",
                json={
                    "team1PlayerIds": list(team1),
                    "team2PlayerIds": list(team2),
                    "team1Score": score1,
                    "team2Score": score2,
                    **extra,
                },
                headers=auth_headers,
            )

    return _Api()
