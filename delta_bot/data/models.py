"""
Data models for the hedging bot.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProductType(str, Enum):
    """Exchange product type, as consumed by the exposure calculation."""
    FUTURE = "future"
    CALL_OPTION = "call_option"
    PUT_OPTION = "put_option"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ProductType":
        return _PRODUCT_TYPE_ALIASES.get((raw or "").lower(), cls.OTHER)


_PRODUCT_TYPE_ALIASES = {
    "future": ProductType.FUTURE,
    "futures": ProductType.FUTURE,
    "perpetual_futures": ProductType.FUTURE,
    "call_option": ProductType.CALL_OPTION,
    "call_options": ProductType.CALL_OPTION,
    "put_option": ProductType.PUT_OPTION,
    "put_options": ProductType.PUT_OPTION,
}


class OrderSide(str, Enum):
    """Order side enumeration."""
    BUY = "buy"
    SELL = "sell"


class BotStatus(str, Enum):
    """Engine lifecycle state."""
    STOPPED = "stopped"
    RUNNING = "running"


class LogLevel(str, Enum):
    """Activity log levels."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Position(BaseModel):
    """An open position as reported by the exchange. Read-only."""

    model_config = ConfigDict(frozen=True)

    size: float = 0.0  # Signed: positive long, negative short
    delta: float = 0.0  # 0 for futures
    product_type: ProductType = ProductType.OTHER
    mark_price: float = Field(default=0.0, ge=0)
    product_id: Optional[int] = None
    symbol: Optional[str] = None

    @classmethod
    def from_exchange(cls, payload: dict[str, Any]) -> "Position":
        """Build a position from a `/v2/positions` result entry."""
        product = payload.get("product") or {}
        return cls(
            size=_as_float(payload.get("size")),
            delta=_as_float(payload.get("delta")),
            product_type=ProductType.parse(
                product.get("product_type") or payload.get("product_type")
            ),
            mark_price=abs(_as_float(payload.get("mark_price"))),
            product_id=payload.get("product_id") or product.get("id"),
            symbol=payload.get("product_symbol") or product.get("symbol"),
        )


def _as_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


@dataclass(frozen=True)
class ExposureSnapshot:
    """One cycle's exposure measurement, appended to the delta history."""

    delta_percentage: float
    total_delta: float
    notional: float
    position_count: int
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "delta_percentage": self.delta_percentage,
            "total_delta": self.total_delta,
            "notional": self.notional,
            "position_count": self.position_count,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class Trade:
    """A hedge order the exchange accepted."""

    side: OrderSide
    hedge_size: float  # Signed: positive buy, negative sell
    delta_before_hedge: float
    order_result: dict
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "side": self.side.value,
            "hedge_size": self.hedge_size,
            "delta_before_hedge": self.delta_before_hedge,
            "order_result": self.order_result,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class LogEntry:
    """Activity log entry shown to observers."""

    level: LogLevel
    message: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class BotState:
    """Mutable engine state. Only the engine writes to it."""

    status: BotStatus = BotStatus.STOPPED
    current_delta: float = 0.0
    current_notional: float = 0.0
    total_trades_executed: int = 0
    last_check_timestamp: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "current_delta": self.current_delta,
            "current_notional": self.current_notional,
            "total_trades_executed": self.total_trades_executed,
            "last_check_timestamp": (
                self.last_check_timestamp.isoformat()
                if self.last_check_timestamp
                else None
            ),
        }
