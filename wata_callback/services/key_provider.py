"""
Gateway public key provider.

The key used to sign callbacks is published by the gateway at
``{api_base}public-key`` as ``{"value": "<PEM>"}``. It is fetched lazily,
cached for ``ttl_seconds`` and shared by every in-flight request.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
from cryptography.hazmat.primitives.asymmetric import rsa

from ..exceptions import NetworkError
from ..logging_config import get_logger
from .signature import load_public_key

logger = get_logger(__name__)

BODY_LOG_LIMIT = 200


@dataclass(frozen=True)
class CachedKey:
    key: rsa.RSAPublicKey
    pem: bytes
    fetched_at: float


class PublicKeyCache:
    """
    Process-wide cache of the gateway signing key.

    Misses are single-flighted: every caller that arrives while a refresh
    is running awaits that same task and gets its result, key or None.
    Entries are replaced whole, never mutated.
    """

    def __init__(
        self,
        key_url: str,
        *,
        ttl_seconds: float = 3600,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.key_url = key_url
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self._transport = transport
        self._clock = clock
        self._entry: Optional[CachedKey] = None
        self._inflight: Optional[asyncio.Task] = None

    @property
    def entry(self) -> Optional[CachedKey]:
        return self._entry

    def _is_fresh(self, entry: Optional[CachedKey]) -> bool:
        if entry is None:
            return False
        return (self._clock() - entry.fetched_at) < self.ttl_seconds

    def invalidate(self) -> None:
        self._entry = None

    async def get_public_key(self) -> Optional[rsa.RSAPublicKey]:
        """
        Return the current gateway key, or None when it cannot be obtained.

        Never raises: callers treat None as "cannot verify".
        """
        entry = self._entry
        if self._is_fresh(entry):
            return entry.key

        task = self._inflight
        if task is None or task.done() or task.get_loop() is not asyncio.get_running_loop():
            task = asyncio.ensure_future(self._refresh())
            self._inflight = task
        # Cancelling one caller leaves the shared refresh running
        return await asyncio.shield(task)

    async def _refresh(self) -> Optional[rsa.RSAPublicKey]:
        try:
            pem = await self._fetch_pem()
            key = load_public_key(pem)
        except NetworkError as e:
            logger.error("public_key_fetch_failed", url=self.key_url,
                         status_code=e.status_code, error=str(e))
            return None
        except ValueError as e:
            logger.error("public_key_parse_failed", url=self.key_url, error=str(e))
            return None

        self._entry = CachedKey(key=key, pem=pem, fetched_at=self._clock())
        logger.info("public_key_refreshed", url=self.key_url)
        return key

    async def _fetch_pem(self) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(self.key_url, headers={"Content-Type": "application/json"})
        except httpx.HTTPError as e:
            raise NetworkError(f"Public key request failed: {e}") from e

        if r.status_code != 200:
            raise NetworkError(
                f"Unexpected status from key endpoint: {r.text[:BODY_LOG_LIMIT]}",
                status_code=r.status_code,
            )
        try:
            data = r.json()
        except ValueError as e:
            raise NetworkError(
                f"Malformed key response: {r.text[:BODY_LOG_LIMIT]}",
                status_code=r.status_code,
            ) from e

        value = data.get("value") if isinstance(data, dict) else None
        if not value or not isinstance(value, str):
            raise NetworkError("Key response has no 'value' field", status_code=r.status_code)
        return value.encode("utf-8")
