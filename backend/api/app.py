"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import get_settings
from shared.log import configure_logging

from .dependencies import request_transactions
from .errors import DEFAULT_MESSAGES, register_exception_handlers
from .routes import health
from modules.contacts.routes import router as contacts_router
from modules.events.routes import router as events_router
from modules.inbound.routes import router as inbound_router
from modules.tasks.routes import router as tasks_router
from modules.threads.routes import router as threads_router
from modules.users.routes import router as users_router

logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PUT", "PATCH", "DELETE"}
FORM_PATHS = ("/inbound",)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    settings = get_settings()
    configure_logging(settings.debug)
    logger.info("Starting %s on %s:%d", settings.app_name, settings.host, settings.port)
    yield
    # Shutdown
    logger.info("Shutting down %s", settings.app_name)


async def require_json(request: Request, call_next):
    """Reject request bodies that are not JSON, except on form endpoints."""
    has_body = request.headers.get("content-length", "0") != "0" or "transfer-encoding" in request.headers
    if request.method in BODY_METHODS and has_body and not request.url.path.startswith(FORM_PATHS):
        content_type = request.headers.get("content-type", "")
        if not content_type.startswith("application/json"):
            return JSONResponse(status_code=415, content={"message": DEFAULT_MESSAGES[415]})
    return await call_next(request)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Threads, events and inbox replies for small groups",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.middleware("http")(require_json)

    register_exception_handlers(app)

    # Register routes
    scoped = [Depends(request_transactions)]
    app.include_router(health.router, tags=["health"])
    app.include_router(users_router, prefix="/users", tags=["users"], dependencies=scoped)
    app.include_router(contacts_router, prefix="/contacts", tags=["contacts"], dependencies=scoped)
    app.include_router(threads_router, prefix="/threads", tags=["threads"], dependencies=scoped)
    app.include_router(events_router, prefix="/events", tags=["events"], dependencies=scoped)
    app.include_router(inbound_router, prefix="/inbound", tags=["inbound"], dependencies=scoped)
    app.include_router(tasks_router, prefix="/tasks", tags=["tasks"], dependencies=scoped)

    return app


# Application instance for uvicorn
app = create_app()
