import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from . import __version__
from .auth import TokenVerifier
from .config import Settings, get_settings
from .database import InvoiceRepository, create_engine_from_settings, create_schema
from .observability import setup_logging
from .responses import register_error_handlers
from .routers.health import router as health_router
from .routers.invoices import router as invoices_router
from .services import InvoiceService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, engine: Optional[AsyncEngine] = None) -> FastAPI:
    """Build the application with its collaborators injected.

    Settings are validated here, so missing configuration fails startup.
    The engine is shared by all requests and disposed on shutdown only when
    this factory created it.
    """
    settings = settings or get_settings()
    owns_engine = engine is None
    engine = engine if engine is not None else create_engine_from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_format)
        if settings.create_schema:
            await create_schema(engine)
        logger.info("Billing API started")
        yield
        if owns_engine:
            await engine.dispose()
        logger.info("Billing API shutting down")

    app = FastAPI(
        title="Billing API",
        description="Invoice management API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.engine = engine
    app.state.token_verifier = TokenVerifier.from_settings(settings)
    app.state.invoice_service = InvoiceService(
        InvoiceRepository(engine, timeout=settings.query_timeout_seconds)
    )

    app.include_router(health_router)
    app.include_router(invoices_router)

    register_error_handlers(app)
    return app
