"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import register_exception_handlers
from src.api.routes import health, listings, uploads
from src.config import settings
from src.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("listings_api_starting")
    yield
    logger.info("listings_api_stopping")


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Rentbid Listings API",
        description="Rental listings with landlord-invited agent bidding.",
        version="0.1.0",
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

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(listings.router)
    app.include_router(uploads.router)

    return app


app = create_app()
