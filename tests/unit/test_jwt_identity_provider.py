"""Unit tests for bearer-token verification."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from src.domain.enums.user_role import UserRole
from src.domain.errors import UnauthorizedError
from src.domain.value_objects import Principal
from src.infrastructure.identity.jwt_identity_provider import JwtIdentityProvider

SECRET = "test-secret"


def _token(claims: dict, secret: str = SECRET) -> str:  # type: ignore[type-arg]
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture()
def provider() -> JwtIdentityProvider:
    return JwtIdentityProvider(secret=SECRET, algorithm="HS256")


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_id_claim(self, provider: JwtIdentityProvider) -> None:
        principal = await provider.authenticate(_token({"id": "user-1", "role": "landlord"}))
        assert principal == Principal(id="user-1", role=UserRole.LANDLORD)

    @pytest.mark.asyncio
    async def test_sub_claim(self, provider: JwtIdentityProvider) -> None:
        principal = await provider.authenticate(_token({"sub": "user-2", "role": "agent"}))
        assert principal == Principal(id="user-2", role=UserRole.AGENT)

    @pytest.mark.asyncio
    async def test_wrong_secret(self, provider: JwtIdentityProvider) -> None:
        token = _token({"id": "user-1", "role": "agent"}, secret="someone-elses-secret")
        with pytest.raises(UnauthorizedError):
            await provider.authenticate(token)

    @pytest.mark.asyncio
    async def test_expired(self, provider: JwtIdentityProvider) -> None:
        expired = datetime.now(timezone.utc) - timedelta(minutes=5)
        token = _token({"id": "user-1", "role": "agent", "exp": expired})
        with pytest.raises(UnauthorizedError) as exc_info:
            await provider.authenticate(token)
        assert exc_info.value.message == "Token expired"

    @pytest.mark.asyncio
    async def test_garbage(self, provider: JwtIdentityProvider) -> None:
        with pytest.raises(UnauthorizedError):
            await provider.authenticate("not-a-jwt")

    @pytest.mark.asyncio
    async def test_missing_user_id(self, provider: JwtIdentityProvider) -> None:
        with pytest.raises(UnauthorizedError):
            await provider.authenticate(_token({"role": "agent"}))

    @pytest.mark.asyncio
    async def test_unknown_role(self, provider: JwtIdentityProvider) -> None:
        with pytest.raises(UnauthorizedError):
            await provider.authenticate(_token({"id": "user-1", "role": "admin"}))
