import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from factories import FakeRepository


@pytest.fixture
def fake_repo():
    return FakeRepository()


@pytest.fixture
def moderator_env(monkeypatch):
    monkeypatch.setenv("MODBOARD_MODERATOR_USERS", "mod")
    monkeypatch.setenv("MODBOARD_ADMIN_USERS", "root")


@pytest_asyncio.fixture
async def api_client():
    from modboard.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()
