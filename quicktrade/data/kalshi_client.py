"""
Kalshi REST Client
===================

Thin aiohttp wrapper around the Kalshi trade API v2 with RSA-PSS
request signing.
"""

import base64
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import aiohttp
import structlog
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from quicktrade.utils.rate_limiter import TokenBucketRateLimiter

logger = structlog.get_logger()

DEFAULT_API_BASE = "https://api.elections.kalshi.com/trade-api/v2"


class KalshiAPIError(Exception):
    """Raised for non-2xx responses from the Kalshi API."""

    def __init__(self, status: int, message: str, path: str = ""):
        super().__init__(f"HTTP {status} on {path}: {message}" if path else f"HTTP {status}: {message}")
        self.status = status
        self.message = message
        self.path = path


class KalshiAuth:
    """
    Signs requests with an API key id and its RSA private key.

    The signed message is `timestamp_ms + METHOD + path`, where path is
    the full URL path (including the /trade-api/v2 prefix) without the
    query string.
    """

    def __init__(self, api_key: str, private_key: rsa.RSAPrivateKey):
        self.api_key = api_key
        self.private_key = private_key

    @classmethod
    def from_key_file(cls, api_key: str, key_path: str) -> "KalshiAuth":
        with open(key_path, "rb") as f:
            private_key = serialization.load_pem_private_key(f.read(), password=None)

        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise ValueError(f"{key_path} does not contain an RSA private key")

        return cls(api_key, private_key)

    def sign(self, message: str) -> str:
        signature = self.private_key.sign(
            message.encode("utf-8"),
            padding.PSS(
                mgf=padding.MGF1(hashes.SHA256()),
                salt_length=padding.PSS.DIGEST_LENGTH
            ),
            hashes.SHA256()
        )
        return base64.b64encode(signature).decode("utf-8")

    def headers(self, method: str, path: str, timestamp_ms: Optional[int] = None) -> Dict[str, str]:
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)

        path = path.split("?", 1)[0]
        ts = str(timestamp_ms)

        return {
            "KALSHI-ACCESS-KEY": self.api_key,
            "KALSHI-ACCESS-TIMESTAMP": ts,
            "KALSHI-ACCESS-SIGNATURE": self.sign(ts + method.upper() + path),
        }


class KalshiClient:
    """
    Async Kalshi API client.

    Use as an async context manager so the underlying session is
    closed when the run ends:

        async with KalshiClient.from_settings(settings) as client:
            data = await client.get("/markets", params={...})
    """

    def __init__(
        self,
        api_base: str = DEFAULT_API_BASE,
        auth: Optional[KalshiAuth] = None,
        timeout_seconds: Optional[float] = None,
        rate_limiter: Optional[TokenBucketRateLimiter] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Args:
            api_base: Base URL including the /trade-api/v2 prefix
            auth: Request signer; None sends unauthenticated requests
            timeout_seconds: Total timeout per request; None waits
                for the exchange however long it takes
            rate_limiter: Optional limiter acquired before each request
            session: Existing session to reuse (caller owns it)
        """
        self.api_base = api_base.rstrip("/")
        self.auth = auth
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.rate_limiter = rate_limiter

        self._session = session
        self._owns_session = session is None

        # Stats
        self.requests_sent = 0
        self.requests_failed = 0

    @classmethod
    def from_settings(cls, settings) -> "KalshiClient":
        auth = None
        if settings.has_credentials:
            auth = KalshiAuth.from_key_file(settings.api_key, settings.private_key_path)
        else:
            logger.warning(
                "kalshi_credentials_missing",
                message="Set KALSHI_API_KEY and KALSHI_PRIVATE_KEY_PATH to place live orders"
            )

        return cls(
            api_base=settings.api_base,
            auth=auth,
            timeout_seconds=settings.request_timeout_seconds,
            rate_limiter=TokenBucketRateLimiter(rate=settings.max_requests_per_second)
        )

    async def __aenter__(self) -> "KalshiClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _signed_path(self, path: str) -> str:
        return urlsplit(self.api_base).path + path

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Send a request and return the decoded JSON body.

        Raises:
            KalshiAPIError: on a non-2xx response
            aiohttp.ClientError / asyncio.TimeoutError: on transport failure
        """
        if self._session is None:
            raise RuntimeError("KalshiClient used outside of 'async with'")

        if self.rate_limiter:
            await self.rate_limiter.acquire()

        headers = {"Accept": "application/json"}
        if self.auth:
            headers.update(self.auth.headers(method, self._signed_path(path)))

        self.requests_sent += 1
        logger.debug("kalshi_request", method=method, path=path)

        async with self._session.request(
            method,
            self.api_base + path,
            params=params,
            json=payload,
            headers=headers,
            timeout=self.timeout
        ) as resp:
            if resp.status >= 400:
                self.requests_failed += 1
                message = await self._error_message(resp)
                logger.error(
                    "kalshi_api_error",
                    method=method,
                    path=path,
                    status=resp.status,
                    message=message
                )
                raise KalshiAPIError(resp.status, message, path)

            if resp.status == 204:
                return {}

            return await resp.json(content_type=None) or {}

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", path, payload=payload)

    @staticmethod
    async def _error_message(resp: aiohttp.ClientResponse) -> str:
        text = await resp.text()
        try:
            body = await resp.json(content_type=None)
        except ValueError:
            return text[:200]

        # Kalshi wraps errors as {"error": {"code": ..., "message": ...}}
        if isinstance(body, dict):
            err = body.get("error")
            if isinstance(err, dict):
                return err.get("message") or err.get("code") or text[:200]
            if isinstance(err, str):
                return err
        return text[:200]

    def get_stats(self) -> dict:
        return {
            "authenticated": self.auth is not None,
            "requests_sent": self.requests_sent,
            "requests_failed": self.requests_failed,
        }
