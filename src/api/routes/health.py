import asyncio
from functools import partial

import pika
import structlog
from fastapi import APIRouter
from sqlalchemy import text

from src.config import settings
from src.infrastructure.database.connection import AsyncSessionLocal

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


def _ping_rabbitmq(url: str) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(url))
    connection.close()


@router.get("/health")
async def health_check() -> dict:  # type: ignore[type-arg]
    """Liveness + dependency health check."""
    db_status = "connected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("health_database_unreachable", error=str(exc))
        db_status = f"error: {exc}"

    rabbitmq_status = "connected"
    try:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, partial(_ping_rabbitmq, settings.rabbitmq_url))
    except Exception as exc:
        logger.warning("health_rabbitmq_unreachable", error=str(exc))
        rabbitmq_status = f"error: {exc}"

    overall = "healthy" if db_status == "connected" and rabbitmq_status == "connected" else "degraded"

    return {
        "status": overall,
        "database": db_status,
        "rabbitmq": rabbitmq_status,
    }
