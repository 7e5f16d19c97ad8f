"""
Managed identity provider client.

Passwords, sessions and token issuance live in Supabase Auth (GoTrue).
The backend only needs two calls:

* ``verify_token``  -- resolve a bearer token to a user id
  (``GET /auth/v1/user``)
* ``create_user``   -- create a confirmed account at signup
  (``POST /auth/v1/admin/users``, service-role key)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from uniride.config import Settings
from uniride.domain.errors import InvalidInput, Unauthenticated

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    @abstractmethod
    async def verify_token(self, token: str) -> str:
        """Return the user id the token belongs to, or raise ``Unauthenticated``."""

    @abstractmethod
    async def create_user(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> str:
        """Create an account and return its user id, or raise ``InvalidInput``."""

    async def aclose(self) -> None:
        return None


class SupabaseIdentityProvider(IdentityProvider):
    def __init__(self, base_url: str, service_key: str, client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseIdentityProvider":
        client = httpx.AsyncClient(timeout=settings.identity_timeout_seconds)
        return cls(settings.supabase_url, settings.supabase_service_role_key, client)

    async def verify_token(self, token: str) -> str:
        resp = await self.client.get(
            f"{self.base_url}/auth/v1/user",
            headers={"apikey": self.service_key, "Authorization": f"Bearer {token}"},
        )
        if resp.status_code in (401, 403, 404):
            raise Unauthenticated("Invalid access token")
        resp.raise_for_status()
        user_id = resp.json().get("id")
        if not user_id:
            raise Unauthenticated("Invalid access token")
        return user_id

    async def create_user(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> str:
        resp = await self.client.post(
            f"{self.base_url}/auth/v1/admin/users",
            headers={
                "apikey": self.service_key,
                "Authorization": f"Bearer {self.service_key}",
            },
            json={
                "email": email,
                "password": password,
                "user_metadata": metadata,
                # No mail server is configured, so confirm straight away
                "email_confirm": True,
            },
        )
        if 400 <= resp.status_code < 500:
            message = _error_message(resp)
            logger.info("Identity provider rejected signup for %s: %s", email, message)
            raise InvalidInput(message)
        resp.raise_for_status()
        return resp.json()["id"]

    async def aclose(self) -> None:
        await self.client.aclose()


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or "Signup failed"
    for field in ("msg", "message", "error_description", "error"):
        if body.get(field):
            return str(body[field])
    return "Signup failed"
