"""
Signed REST client for Delta Exchange.

Every private request carries three headers:
- api-key:   the account API key
- timestamp: Unix seconds at signing time
- signature: hex(HMAC-SHA256(secret, method + timestamp + path + body))

Transport and HTTP failures never raise out of the public methods; they come
back as result objects so callers can tell "no positions" from "fetch failed".
"""

import asyncio
import hashlib
import hmac
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import aiohttp
from loguru import logger

from delta_bot.config import ExchangeConfig
from delta_bot.data.models import OrderSide, Position
from delta_bot.exceptions import (
    AuthError,
    ExchangeAPIError,
    FetchError,
    OrderError,
)

POSITIONS_PATH = "/v2/positions"
ORDERS_PATH = "/v2/orders"


def sign_request(
    secret: str,
    method: str,
    timestamp: int,
    path: str,
    body: str = "",
) -> str:
    """Hex HMAC-SHA256 over method + timestamp + path + body."""
    message = f"{method.upper()}{timestamp}{path}{body}"
    return hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def build_order_payload(product_id: int, size: float, side: OrderSide) -> dict:
    """Market IOC order body."""
    return {
        "product_id": product_id,
        "size": abs(size),
        "side": OrderSide(side).value,
        "order_type": "market_order",
        "time_in_force": "immediate_or_cancel",
    }


@dataclass(frozen=True)
class PositionsResult:
    """Outcome of a positions fetch: error, empty, or non-empty."""

    positions: list[Position] = field(default_factory=list)
    error: Optional[ExchangeAPIError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_empty(self) -> bool:
        return self.ok and not self.positions


@dataclass(frozen=True)
class OrderResult:
    """Outcome of an order submission."""

    success: bool
    response: dict = field(default_factory=dict)
    error: Optional[OrderError] = None


class DeltaExchangeClient:
    """
    Async client for the two private endpoints the bot uses.

    Features:
    - Request signing with an injectable clock
    - Fixed per-request timeout
    - Lazily created (or injected) aiohttp session
    - No retries: order placement is not idempotent
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str = "https://api.delta.exchange",
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._clock = clock
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_config(cls, config: ExchangeConfig) -> "DeltaExchangeClient":
        return cls(
            api_key=config.api_key,
            api_secret=config.api_secret,
            base_url=config.base_url,
            timeout=config.request_timeout_seconds,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def build_headers(self, method: str, path: str, body: str = "") -> dict[str, str]:
        """Signed headers for a request made now."""
        timestamp = int(self._clock())
        return {
            "api-key": self.api_key,
            "timestamp": str(timestamp),
            "signature": sign_request(self.api_secret, method, timestamp, path, body),
            "Content-Type": "application/json",
        }

    async def fetch_positions(self) -> PositionsResult:
        """
        Fetch open positions.

        Returns:
            PositionsResult; `error` is an AuthError for rejected credentials
            and a FetchError for every other failure
        """
        try:
            status, payload = await self._send("GET", POSITIONS_PATH)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"Positions request failed: {e!r}")
            return PositionsResult(error=FetchError(_describe_exception(e)))

        if status in (401, 403):
            return PositionsResult(error=AuthError(_error_message(payload), code=status))
        if status >= 400:
            return PositionsResult(error=FetchError(_error_message(payload), code=status))
        if not isinstance(payload, dict) or payload.get("success") is False:
            return PositionsResult(error=FetchError(_error_message(payload), code=status))

        raw_positions = payload.get("result") or []
        if isinstance(raw_positions, dict):
            raw_positions = [raw_positions]

        try:
            positions = [Position.from_exchange(p) for p in raw_positions]
        except (TypeError, ValueError, AttributeError) as e:
            return PositionsResult(error=FetchError(f"Malformed position payload: {e}"))

        return PositionsResult(positions=positions)

    async def submit_order(
        self,
        product_id: int,
        size: float,
        side: OrderSide,
    ) -> OrderResult:
        """
        Place a market IOC order. May fill on the exchange; never retried.

        Args:
            product_id: Exchange product to trade
            size: Contracts, must be > 0 (sign is ignored)
            side: buy or sell

        Returns:
            OrderResult with the exchange response on success
        """
        if not size:
            return OrderResult(success=False, error=OrderError("Order size must be positive"))

        body = json.dumps(build_order_payload(product_id, size, side), separators=(",", ":"))

        try:
            status, payload = await self._send("POST", ORDERS_PATH, body)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"Order request failed: {e!r}")
            return OrderResult(success=False, error=OrderError(_describe_exception(e)))

        if status >= 400:
            return OrderResult(
                success=False,
                error=OrderError(_error_message(payload), code=status),
            )
        if not isinstance(payload, dict) or payload.get("success") is False:
            return OrderResult(
                success=False,
                error=OrderError(_error_message(payload), code=status),
            )

        return OrderResult(success=True, response=payload)

    async def _send(self, method: str, path: str, body: str = "") -> tuple[int, Any]:
        """Issue a signed request and return (status, decoded JSON or None)."""
        session = self._ensure_session()
        headers = self.build_headers(method, path, body)

        async with session.request(
            method,
            f"{self.base_url}{path}",
            headers=headers,
            data=body or None,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            text = await response.text()
            payload = json.loads(text) if text else None
            return response.status, payload

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return str(error.get("code") or error.get("message") or error)
        if error:
            return str(error)
        if payload.get("message"):
            return str(payload["message"])
    return "Unexpected response from exchange"


def _describe_exception(error: BaseException) -> str:
    if isinstance(error, asyncio.TimeoutError):
        return "Request timed out"
    return str(error) or type(error).__name__
