"""
FastAPI dependency injection wiring.

Each dependency function returns a fully-constructed object with its
collaborators injected, keeping the route handlers thin. Tests swap any of
these through app.dependency_overrides.
"""
from collections.abc import AsyncGenerator
from datetime import timedelta

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.identity_provider import IdentityProvider
from src.application.interfaces.listing_repository import ListingRepository
from src.application.interfaces.object_store import ObjectStore
from src.application.services.listing_service import ListingService
from src.config import settings
from src.domain.value_objects import Principal
from src.infrastructure.database.connection import get_db_session
from src.infrastructure.database.repositories.listing_repository import (
    SqlAlchemyListingRepository,
)
from src.infrastructure.identity.jwt_identity_provider import JwtIdentityProvider
from src.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher
from src.infrastructure.storage.cloudinary_object_store import CloudinaryObjectStore

# Missing headers are reported by the identity check, not by FastAPI's 403
_bearer = HTTPBearer(auto_error=False)


# ---- Low-level dependencies ------------------------------------------------

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


def get_listing_repo(session: AsyncSession = Depends(get_session)) -> ListingRepository:
    return SqlAlchemyListingRepository(session)


def get_event_publisher() -> EventPublisher:
    return RabbitMQPublisher()


def get_identity_provider() -> IdentityProvider:
    return JwtIdentityProvider()


def get_object_store() -> ObjectStore:
    return CloudinaryObjectStore()


# ---- Service dependencies --------------------------------------------------

def get_listing_service(
    listing_repo: ListingRepository = Depends(get_listing_repo),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> ListingService:
    return ListingService(
        listing_repo,
        identity_provider,
        event_publisher,
        listing_ttl=timedelta(days=settings.listing_ttl_days),
    )


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    service: ListingService = Depends(get_listing_service),
) -> Principal:
    return await service.resolve_principal(credentials.credentials if credentials else None)
