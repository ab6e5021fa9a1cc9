"""Pytest configuration and fixtures for API tests."""

import httpx
import pytest
import pytest_asyncio

from api.main import create_app
from core.settings import AppSettings, PushSettings


@pytest.fixture
def app_settings(order_settings) -> AppSettings:
    settings = AppSettings()
    settings.orders = order_settings
    settings.push = PushSettings(PUSH_ENABLED=False)
    return settings


@pytest.fixture
def app(session_factory, push, app_settings, clock):
    """Application bound to the test database; the bus is not started so fan-out runs inline."""
    return create_app(session_factory=session_factory, push_service=push, settings=app_settings, clock=clock)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
