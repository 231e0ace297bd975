"""Shared fixtures."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from recruit_chat.api.app import app
from recruit_chat.api.rate_limiter import RateLimiter


@pytest.fixture(autouse=True)
def fresh_rate_limiter():
    """Give every test its own request budget."""
    previous = app.state.rate_limiter
    app.state.rate_limiter = RateLimiter(rate_limit=1000, time_window=60)
    yield app.state.rate_limiter
    app.state.rate_limiter = previous


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
