import jwt
import structlog

from src.application.interfaces.identity_provider import IdentityProvider
from src.config import settings
from src.domain.enums.user_role import UserRole
from src.domain.errors import UnauthorizedError
from src.domain.value_objects import Principal

logger = structlog.get_logger(__name__)


class JwtIdentityProvider(IdentityProvider):
    """
    Verifies bearer tokens issued by the identity service.

    Tokens are HS256-signed and carry the user id (as ``id`` or ``sub``)
    and the user's ``role``.
    """

    def __init__(
        self,
        secret: str = settings.jwt_secret,
        algorithm: str = settings.jwt_algorithm,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def authenticate(self, credential: str) -> Principal:
        try:
            payload = jwt.decode(credential, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as exc:
            logger.info("token_expired")
            raise UnauthorizedError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.info("token_invalid", error=str(exc))
            raise UnauthorizedError("Token invalid") from exc

        user_id = payload.get("id") or payload.get("sub")
        if not user_id:
            raise UnauthorizedError("Token missing user ID")

        try:
            role = UserRole(payload.get("role"))
        except ValueError as exc:
            logger.info("token_role_invalid", user_id=str(user_id), role=payload.get("role"))
            raise UnauthorizedError("Token invalid") from exc

        return Principal(id=str(user_id), role=role)
