"""Shared fixtures: SQLite database, services wired to an inline event bus."""

from decimal import Decimal

import pytest
import pytest_asyncio

from core.application.services import DeliveryService, FanOutNotifier, OrderApplicationService
from core.infrastructure.adapters.notifications.mock_push_notification_service import MockPushNotificationService
from core.infrastructure.database.config import (
    DatabaseSettings,
    create_engine,
    get_session_factory,
    init_database,
)
from core.infrastructure.event_bus import OutboundEventBus
from core.settings import OrderSettings
from support import BUYER, SELLER, FakeClock, Seeder


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def order_settings() -> OrderSettings:
    return OrderSettings(
        ORDERS_NUMBER_PREFIX="ORD",
        ORDERS_SEQUENCE_BACKEND="sql",
        ORDERS_CURRENCY="INR",
        ORDERS_FREE_SHIPPING_THRESHOLD=Decimal("500"),
        ORDERS_FLAT_SHIPPING_CHARGE=Decimal("50"),
        ORDERS_CANCELLATION_WINDOW_HOURS=24,
        ORDERS_AUTO_CONFIRM_AFTER_HOURS=48,
        ORDERS_LOW_STOCK_THRESHOLD=3,
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions really use separate connections."""
    settings = DatabaseSettings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
        sqlite_busy_timeout=30,
        echo_sql=False,
    )
    engine = create_engine(settings)
    await init_database(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session_factory(engine)


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


@pytest.fixture
def push() -> MockPushNotificationService:
    return MockPushNotificationService()


@pytest.fixture
def event_bus() -> OutboundEventBus:
    """Not started: events are dispatched inline before publish returns."""
    return OutboundEventBus()


@pytest.fixture
def notifier(session_factory, push, clock, event_bus) -> FanOutNotifier:
    notifier = FanOutNotifier(session_factory, push, clock=clock, auto_confirm_hours=48)
    notifier.register(event_bus)
    return notifier


@pytest.fixture
def order_service(session_factory, event_bus, order_settings, clock, notifier) -> OrderApplicationService:
    return OrderApplicationService(session_factory, event_bus, order_settings, clock=clock)


@pytest.fixture
def delivery_service(session_factory, event_bus, clock, notifier) -> DeliveryService:
    return DeliveryService(session_factory, event_bus, clock=clock, auto_confirm_hours=48)


@pytest_asyncio.fixture
async def parties(seed):
    """Default buyer and seller accounts; the seller accepts COD."""
    await seed.user(BUYER.id, name="Asha", push_tokens=["ExponentPushToken[buyer]"])
    await seed.user(SELLER.id, cod=True, name="Ravi", push_tokens=["ExponentPushToken[seller]"])
    return BUYER, SELLER
