# backend/lesson_scheduler/main.py
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator, Awaitable, Callable, Optional
import uuid

from fastapi import APIRouter, FastAPI, Request, Response

from .core.config import Settings, get_settings
from .core.request_context import attach_request_id_filter, reset_request_id, set_request_id
from .errors import register_error_handlers
from .repositories.factory import RepositoryFactory, Store
from .routes.v1 import bookings as bookings_v1
from .routes.v1 import event_types as event_types_v1
from .routes.v1 import health as health_v1
from .services.notification_service import NotificationService

API_TITLE = "Lesson Scheduler API"
API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
)
attach_request_id_filter()

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[Settings] = None,
    store: Optional[Store] = None,
    notification_service: Optional[NotificationService] = None,
) -> FastAPI:
    """
    Build the API application.

    Tests pass a prebuilt store; otherwise the configured backend is
    created at startup.
    """
    config = config or get_settings()

    @asynccontextmanager
    async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(f"{API_TITLE} starting up...")
        logger.info(f"Environment: {config.environment}, store backend: {config.store_backend}")
        if getattr(app.state, "store", None) is None:
            app.state.store = RepositoryFactory.create_store(config)
        yield
        logger.info(f"{API_TITLE} shutting down...")

    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    app.state.config = config
    app.state.store = store
    app.state.notification_service = notification_service or NotificationService(config)

    register_error_handlers(app)

    @app.middleware("http")
    async def request_id_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)
        response.headers["X-Request-ID"] = request_id
        return response

    api = APIRouter(prefix="/api")
    api.include_router(event_types_v1.router, prefix="/event-types")
    api.include_router(bookings_v1.router, prefix="/bookings")
    api.include_router(health_v1.router)
    app.include_router(api)

    return app


app = create_app()
