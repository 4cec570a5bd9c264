"""Shared fixtures: throwaway SQLite database, ASGI client, fake identity provider."""

import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="clawcon-tests-")
os.environ["CLAWCON_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP}/test.db"
os.environ["CLAWCON_BOT_KEY_ENC_KEY"] = "test-master-passphrase"
os.environ.setdefault("CLAWCON_LOG_LEVEL", "INFO")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.adapters.base import IdentityProvider  # noqa: E402
from app.database import Base, async_session, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.routers.bot_keys import get_identity_provider  # noqa: E402
from app.services.rate_limiter import ingest_limiter, reveal_limiter  # noqa: E402

# bearer token -> user id
TOKENS = {"token-u1": "u1", "token-u2": "u2"}


class FakeIdentityProvider(IdentityProvider):
    async def get_user_id(self, access_token: str) -> str | None:
        return TOKENS.get(access_token)

    async def close(self) -> None:
        pass


def auth(user: str = "u1") -> dict[str, str]:
    return {"Authorization": f"Bearer token-{user}"}


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_limiters():
    reveal_limiter.reset()
    ingest_limiter.reset()
    yield
    reveal_limiter.reset()
    ingest_limiter.reset()


@pytest_asyncio.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def client(db):
    app.dependency_overrides[get_identity_provider] = FakeIdentityProvider
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
