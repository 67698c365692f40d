"""Exchange connectivity."""

from delta_bot.exchange.client import (
    DeltaExchangeClient,
    OrderResult,
    PositionsResult,
    build_order_payload,
    sign_request,
)

__all__ = [
    "DeltaExchangeClient",
    "OrderResult",
    "PositionsResult",
    "build_order_payload",
    "sign_request",
]
