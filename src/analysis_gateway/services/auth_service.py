import logging

from src.analysis_gateway.core.security import create_access_token
from src.analysis_gateway.domain.errors import InvalidRequest
from src.analysis_gateway.infra.identity_client import IdentityClient

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, identity: IdentityClient):
        self.identity = identity

    async def login(self, username: str, password: str) -> str:
        if not username or not password:
            raise InvalidRequest("Username and password required")

        user_id = await self.identity.validate_credentials(username, password)
        logger.info("auth successful for user %s, token generated", user_id)

        return create_access_token(user_id=user_id, username=username)
