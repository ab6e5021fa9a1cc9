"""
Marketplace Orders - Main FastAPI Application.

REST API layer for the order lifecycle: checkout, fulfilment,
delivery confirmation and seller statistics.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import logging
import time

from api.dependencies import build_push_service
from api.routes import health, orders
from core.application.interfaces import IPushNotificationService
from core.application.services import FanOutNotifier
from core.domain.clock import Clock, utc_now
from core.domain.exceptions import (
    AuthorizationError,
    ConflictError,
    InfrastructureError,
    NotFoundError,
    OrderError,
    ValidationError,
)
from core.infrastructure.database.config import (
    close_database,
    configure_engine,
    get_session_factory,
    init_database,
)
from core.infrastructure.event_bus import OutboundEventBus
from core.infrastructure.logging import configure_logging
from core.infrastructure.sequence import RedisSequenceCounter
from core.settings import AppSettings, get_app_settings


# Setup logging
configure_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# WIRING
# =============================================================================

def _wire(
    app: FastAPI,
    session_factory: async_sessionmaker[AsyncSession],
    push_service: Optional[IPushNotificationService],
) -> None:
    """Attach the session factory, event bus and notifier to app.state."""
    settings: AppSettings = app.state.settings
    bus = OutboundEventBus()
    notifier = FanOutNotifier(
        session_factory=session_factory,
        push_service=push_service or build_push_service(settings, session_factory),
        clock=app.state.clock,
        auto_confirm_hours=settings.orders.auto_confirm_after_hours,
    )
    notifier.register(bus)

    app.state.session_factory = session_factory
    app.state.event_bus = bus
    app.state.notifier = notifier


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Marketplace Orders API starting up...")
    settings: AppSettings = app.state.settings

    if app.state.session_factory is None:
        configure_engine(settings.database)
        await init_database()
        _wire(app, get_session_factory(), None)

    if settings.orders.sequence_backend == "redis" and app.state.sequence_counter is None:
        counter = RedisSequenceCounter(
            redis_url=settings.redis.url,
            namespace=settings.redis.namespace,
            ttl_days=settings.redis.key_ttl_days,
        )
        await counter.connect()
        app.state.sequence_counter = counter

    await app.state.event_bus.start()
    logger.info("📚 Swagger UI available at: /docs")

    yield

    logger.info("👋 Marketplace Orders API shutting down...")
    await app.state.event_bus.stop()
    if isinstance(app.state.sequence_counter, RedisSequenceCounter):
        await app.state.sequence_counter.disconnect()
    if app.state.owns_database:
        await close_database()


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InfrastructureError, 503),
)


async def order_error_handler(request: Request, exc: OrderError):
    status_code = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    if status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc} {exc.details}", exc_info=exc)
        return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})

    logger.info(f"{request.method} {request.url.path} rejected [{status_code}]: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "code": "validation_error", "errors": errors},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable", "code": "persistence_error"},
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Handle all uncaught exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "path": request.url.path
        }
    )


# =============================================================================
# CREATE FASTAPI APP
# =============================================================================

def create_app(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    push_service: Optional[IPushNotificationService] = None,
    settings: Optional[AppSettings] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """
    Build the application.

    With no session factory the configured database is initialized on
    startup; tests pass their own factory and push service.
    """
    app = FastAPI(
        title="Marketplace Orders API",
        description="""
        Order lifecycle for a peer-to-peer marketplace.

        Features:
        - Checkout with atomic stock reservation
        - Per-day order numbers
        - Seller fulfilment status graph
        - Buyer delivery confirmation and auto-confirmation
        - Conversation, in-app and push notifications
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings or get_app_settings()
    app.state.clock = clock
    app.state.sequence_counter = None
    app.state.session_factory = None
    app.state.owns_database = session_factory is None
    if session_factory is not None:
        _wire(app, session_factory, push_service)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure based on your needs
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing."""
        start_time = time.time()
        logger.info(f"→ {request.method} {request.url.path}")

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(
            f"← {request.method} {request.url.path} "
            f"[{response.status_code}] ({duration:.3f}s)"
        )
        return response

    app.add_exception_handler(OrderError, order_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])

    @app.get("/", tags=["Root"])
    async def root():
        """API root endpoint."""
        return {
            "message": "Marketplace Orders API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()
