"""Analytics layer for exposure calculations."""

from delta_bot.analytics.exposure import (
    ExposureSummary,
    compute_exposure,
    position_delta,
)

__all__ = [
    "ExposureSummary",
    "compute_exposure",
    "position_delta",
]
