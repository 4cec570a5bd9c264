"""GoTrue-compatible identity provider (the auth service behind hosted Postgres backends).

Verifies a user's access token by asking the auth server who it belongs to:
``GET {auth_url}/auth/v1/user`` with the token as bearer and the project API key.
"""

from __future__ import annotations

import logging

import httpx

from app.adapters.base import IdentityProvider
from app.config import settings

logger = logging.getLogger(__name__)


class GoTrueIdentityProvider(IdentityProvider):
    def __init__(self, base_url: str | None = None, api_key: str | None = None) -> None:
        self._base_url = (base_url or settings.auth_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.auth_api_key
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url, timeout=settings.auth_timeout_seconds
            )
        return self._client

    async def get_user_id(self, access_token: str) -> str | None:
        if not access_token:
            return None
        headers = {"Authorization": f"Bearer {access_token}"}
        if self._api_key:
            headers["apikey"] = self._api_key
        try:
            resp = await self._get_client().get("/auth/v1/user", headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable: %s", exc)
            return None
        if resp.status_code != 200:
            return None
        try:
            user_id = resp.json().get("id")
        except (ValueError, AttributeError):
            logger.warning("Identity provider returned an unexpected body")
            return None
        return str(user_id) if user_id else None

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Singleton — shared across the application
identity = GoTrueIdentityProvider()
