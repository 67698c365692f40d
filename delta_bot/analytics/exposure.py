"""
Portfolio delta exposure aggregation.
"""

from dataclasses import dataclass
from typing import Iterable

from delta_bot.data.models import Position, ProductType


@dataclass(frozen=True)
class ExposureSummary:
    """Aggregated directional exposure of a set of positions."""

    total_delta: float  # In contracts of the underlying
    notional: float  # Sum of |size| * mark price
    delta_percentage: float  # total_delta / notional, 0 when flat
    position_count: int = 0

    def __str__(self) -> str:
        return (
            f"Exposure: delta {self.total_delta:+.4f} | "
            f"notional ${self.notional:,.2f} | "
            f"{self.delta_percentage * 100:+.2f}% | "
            f"{self.position_count} positions"
        )


def position_delta(position: Position) -> float:
    """
    Directional contribution of a single position.

    Futures count one delta per contract, options are weighted by their
    delta Greek, anything else contributes nothing.
    """
    if position.product_type == ProductType.FUTURE:
        return position.size
    if position.product_type in (ProductType.CALL_OPTION, ProductType.PUT_OPTION):
        return position.size * position.delta
    return 0.0


def compute_exposure(positions: Iterable[Position]) -> ExposureSummary:
    """
    Calculate aggregated exposure for a list of positions.

    Pure function: no I/O, inputs are not modified.

    Args:
        positions: Open positions

    Returns:
        ExposureSummary; delta_percentage is 0 when there is no notional
    """
    total_delta = 0.0
    notional = 0.0
    count = 0

    for position in positions:
        total_delta += position_delta(position)
        notional += abs(position.size) * position.mark_price
        count += 1

    delta_percentage = total_delta / notional if notional > 0 else 0.0

    return ExposureSummary(
        total_delta=total_delta,
        notional=notional,
        delta_percentage=delta_percentage,
        position_count=count,
    )
