"""Identity provider backed by a Supabase (GoTrue) auth server.

Only the three password-grant calls the wallet flow needs are wrapped:
sign-in, sign-up and user lookup. Any transport or protocol failure is
surfaced as ``IdentityProviderError`` so callers never see raw responses.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from anonchat.core.settings import settings
from anonchat.services.errors import IdentityNotFoundError, IdentityProviderError
from anonchat.services.identity import IdentitySession

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
_INVALID_CREDENTIAL_CODES = frozenset({"invalid_credentials", "invalid_grant"})


@dataclass(frozen=True)
class SupabaseConfig:
    """Connection settings for the Supabase auth API."""

    base_url: str
    anon_key: str
    timeout_seconds: float = 10.0


def load_supabase_config() -> SupabaseConfig:
    """Build configuration object from global settings."""
    if not (settings.supabase_url and settings.supabase_anon_key):
        raise IdentityProviderError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")
    return SupabaseConfig(
        base_url=settings.supabase_url.rstrip("/"),
        anon_key=settings.supabase_anon_key,
        timeout_seconds=float(settings.supabase_timeout_seconds),
    )


def _error_code(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    code = body.get("error_code") or body.get("error")
    return str(code) if code else None


class SupabaseIdentityProvider:
    """HTTP client wrapper for Supabase auth interactions."""

    def __init__(
        self,
        config: SupabaseConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_supabase_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=f"{self.config.base_url}/auth/v1",
                    headers={"apikey": self.config.anon_key},
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
            return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        client = await self._ensure_client()
        try:
            return await client.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Supabase request %s %s failed: %s", method, path, exc)
            raise IdentityProviderError(f"Supabase request failed: {exc}") from exc

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as err:
            raise IdentityProviderError("Supabase returned a non-JSON body") from err
        if not isinstance(body, dict):
            raise IdentityProviderError("Supabase returned an unexpected payload")
        return body

    async def sign_in(self, email: str, credential: str) -> IdentitySession:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": credential},
        )
        if response.status_code == HTTP_BAD_REQUEST and (
            _error_code(response) in _INVALID_CREDENTIAL_CODES
        ):
            # GoTrue reports unknown users and wrong passwords identically.
            raise IdentityNotFoundError("Invalid login credentials")
        if response.status_code != HTTP_OK:
            raise IdentityProviderError(f"Supabase sign-in responded with {response.status_code}")

        body = self._json(response)
        user = body.get("user")
        if not isinstance(user, dict):
            raise IdentityProviderError("Supabase sign-in returned no user")
        return IdentitySession(session=body, user=user)

    async def create_identity(
        self,
        email: str,
        credential: str,
        metadata: Mapping[str, str],
    ) -> IdentitySession:
        response = await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": credential, "data": dict(metadata)},
        )
        if response.status_code != HTTP_OK:
            raise IdentityProviderError(
                f"Supabase sign-up responded with {response.status_code}: {_error_code(response)}"
            )

        body = self._json(response)
        if "access_token" in body:
            user = body.get("user")
            if not isinstance(user, dict):
                raise IdentityProviderError("Supabase sign-up returned no user")
            return IdentitySession(session=body, user=user)
        # Email confirmation enabled: the body is the bare user object.
        return IdentitySession(session=None, user=body)

    async def get_user(self, access_token: str) -> dict[str, Any]:
        response = await self._request(
            "GET",
            "/user",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code != HTTP_OK:
            raise IdentityProviderError(f"Supabase user lookup responded with {response.status_code}")
        return self._json(response)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


_PROVIDER: SupabaseIdentityProvider | None = None


def get_supabase_provider() -> SupabaseIdentityProvider:
    """Return the shared Supabase provider, creating it on first use."""
    global _PROVIDER
    if _PROVIDER is None:
        _PROVIDER = SupabaseIdentityProvider()
    return _PROVIDER


async def close_supabase_provider() -> None:
    """Close the shared Supabase provider if one was created."""
    global _PROVIDER
    if _PROVIDER is not None:
        await _PROVIDER.close()
        _PROVIDER = None
