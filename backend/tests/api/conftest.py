"""API test infrastructure -- async httpx client and starlette TestClient."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from app.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        environment="test",
        start_in_sim_mode=True,
        autostart=False,
        telemetry_history=5,
        tick_period_ms=500,
    )


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

@pytest.fixture
def app(test_settings):
    from app.main import create_app

    return create_app(test_settings)


@pytest.fixture
def session(app):
    return app.state.session


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await app.state.session.shutdown()


@pytest.fixture
def sync_client(app) -> Generator[TestClient, None, None]:
    """Synchronous client for WebSocket endpoints; all requests share one event loop."""
    with TestClient(app) as tc:
        yield tc
