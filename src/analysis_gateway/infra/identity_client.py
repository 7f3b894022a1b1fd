from __future__ import annotations

import logging

import httpx

from src.analysis_gateway.domain.errors import InvalidCredentials, UpstreamUnavailable

logger = logging.getLogger(__name__)


class IdentityClient:
    """Проверка логина/пароля во внешнем identity provider'е."""

    def __init__(
        self,
        base_url: str,
        random_param: str = "",
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/validate-user"
        self._random_param = random_param
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def validate_credentials(self, username: str, password: str) -> int:
        logger.info("validating credentials for %s", username)
        try:
            response = await self._client.post(
                self._url,
                json={
                    "username": username,
                    "password": password,
                    "random_param": self._random_param,
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("identity provider call failed: %s", exc)
            raise UpstreamUnavailable("Failed to connect to identity provider") from exc

        logger.info("identity provider responded with %s", response.status_code)
        if response.status_code >= 500:
            raise UpstreamUnavailable(f"Identity provider error ({response.status_code})")

        try:
            data = response.json()
        except ValueError as exc:
            logger.warning("identity provider returned non-JSON body: %s", response.text[:200])
            raise UpstreamUnavailable("Invalid response from identity provider") from exc

        user_id = data.get("userID") if isinstance(data, dict) else None
        if not user_id:
            raise InvalidCredentials()

        try:
            return int(user_id)
        except (TypeError, ValueError) as exc:
            raise InvalidCredentials() from exc
