# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
OAuth2 client-credentials token acquisition for Copernicus Data Space.

TokenProvider performs one round trip per call. CachedTokenProvider wraps any
provider and reuses the credential until it is close to expiry.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import aiohttp

from .errors import AuthError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    access_token: str
    expires_at: datetime
    token_type: str = "Bearer"

    def is_expired(self, now: Optional[datetime] = None, margin_seconds: int = 0) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at - timedelta(seconds=margin_seconds)

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"


class TokenProvider:
    """Fetches a fresh bearer token from the identity endpoint on every call."""

    def __init__(self, token_url: str, client_id: Optional[str], client_secret: Optional[str]):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret

    @classmethod
    def from_settings(cls, settings) -> "TokenProvider":
        return cls(
            token_url=settings.copernicus_token_url,
            client_id=settings.copernicus_client_id,
            client_secret=settings.copernicus_client_secret,
        )

    async def get_access_token(self, session: aiohttp.ClientSession) -> Credential:
        if not self.client_id or not self.client_secret:
            raise ConfigurationError("Copernicus credentials not configured")

        form = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

        logger.debug(f"Requesting access token from {self.token_url}")
        try:
            async with session.post(self.token_url, data=form) as response:
                if not 200 <= response.status < 300:
                    error_text = await response.text()
                    logger.error(f"❌ Token endpoint error {response.status}: {error_text}")
                    raise AuthError(f"Failed to get access token: {response.status}", response.status)

                payload = await response.json()
        except aiohttp.ClientError as e:
            raise AuthError(f"Failed to get access token: {e}") from e
        except asyncio.TimeoutError as e:
            raise AuthError("Failed to get access token: request timed out") from e

        if not isinstance(payload, dict):
            logger.error(f"❌ Unexpected token endpoint response: {type(payload).__name__}")
            raise AuthError("Unexpected token endpoint response", response.status)

        access_token = payload.get("access_token")
        if not access_token:
            raise AuthError("Token endpoint response did not include an access_token", response.status)

        expires_in = int(payload.get("expires_in") or 0)
        return Credential(
            access_token=access_token,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
            token_type=payload.get("token_type") or "Bearer",
        )


class CachedTokenProvider:
    """
    Reuses a credential across invocations until it is within
    ``margin_seconds`` of expiring. Refreshes are serialised so concurrent
    requests trigger a single token round trip.
    """

    def __init__(
        self,
        provider: TokenProvider,
        margin_seconds: int = 60,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.provider = provider
        self.margin_seconds = margin_seconds
        self._clock = clock
        self._credential: Optional[Credential] = None
        self._lock = asyncio.Lock()
        self.refresh_count = 0

    async def get_access_token(self, session: aiohttp.ClientSession) -> Credential:
        credential = self._credential
        if credential and not credential.is_expired(self._clock(), self.margin_seconds):
            return credential

        async with self._lock:
            # Another waiter may have refreshed while we were blocked
            credential = self._credential
            if credential and not credential.is_expired(self._clock(), self.margin_seconds):
                return credential

            started = time.monotonic()
            credential = await self.provider.get_access_token(session)
            self._credential = credential
            self.refresh_count += 1
            logger.info(f"🔑 Access token refreshed in {(time.monotonic() - started) * 1000:.0f}ms")
            return credential

    def invalidate(self) -> None:
        self._credential = None
