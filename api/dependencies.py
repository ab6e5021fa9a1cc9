"""
FastAPI Dependencies.

Provides dependency injection for the order services.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Load environment variables ONCE before any settings objects are created
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

from core.application.interfaces import IPushNotificationService
from core.application.services import DeliveryService, OrderApplicationService
from core.domain.event_bus import EventBus
from core.domain.value_objects import Actor
from core.infrastructure.adapters.notifications.expo_push_notification_service import ExpoPushNotificationService
from core.infrastructure.adapters.notifications.mock_push_notification_service import MockPushNotificationService
from core.infrastructure.database.unit_of_work import UnitOfWork
from core.settings import AppSettings


logger = logging.getLogger(__name__)


# =============================================================================
# AUTHENTICATION
# =============================================================================

async def get_current_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
) -> Actor:
    """
    Authenticated user, as forwarded by the auth gateway.

    The gateway verifies the session and passes the user through the
    X-User-Id / X-User-Name headers; they are trusted as-is.
    """
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return Actor(id=x_user_id, display_name=x_user_name)


# =============================================================================
# INFRASTRUCTURE
# =============================================================================

def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_factory


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.event_bus


def build_push_service(
    settings: AppSettings,
    session_factory: async_sessionmaker[AsyncSession],
) -> IPushNotificationService:
    """Expo when push is enabled, otherwise the in-memory mock."""
    if not settings.push.enabled:
        logger.info("Using MockPushNotificationService (push disabled)")
        return MockPushNotificationService()

    async def resolve_tokens(user_id: str) -> List[str]:
        async with UnitOfWork(session_factory) as uow:
            user = await uow.users.get(user_id)
        return list(user.push_tokens) if user else []

    logger.info("Created ExpoPushNotificationService instance")
    return ExpoPushNotificationService(settings.push, resolve_tokens)


# =============================================================================
# SERVICES
# =============================================================================

def get_order_service(
    request: Request,
    settings: AppSettings = Depends(get_settings),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    event_bus: EventBus = Depends(get_event_bus),
) -> OrderApplicationService:
    return OrderApplicationService(
        session_factory=session_factory,
        event_bus=event_bus,
        settings=settings.orders,
        clock=request.app.state.clock,
        sequence_counter=request.app.state.sequence_counter,
    )


def get_delivery_service(
    request: Request,
    settings: AppSettings = Depends(get_settings),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    event_bus: EventBus = Depends(get_event_bus),
) -> DeliveryService:
    return DeliveryService(
        session_factory=session_factory,
        event_bus=event_bus,
        clock=request.app.state.clock,
        auto_confirm_hours=settings.orders.auto_confirm_after_hours,
    )
