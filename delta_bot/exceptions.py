"""
Exception hierarchy for the hedging bot.
"""

from typing import Optional


class DeltaBotError(Exception):
    """Base exception for the bot."""
    pass


class ExchangeAPIError(DeltaBotError):
    """Failure talking to the exchange."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"HTTP {self.code}: {self.message}"


class FetchError(ExchangeAPIError):
    """Positions could not be fetched (network, timeout or HTTP failure)."""
    pass


class AuthError(ExchangeAPIError):
    """Signature or timestamp rejected by the exchange."""
    pass


class OrderError(ExchangeAPIError):
    """Order rejected, or transport failure during submission."""
    pass


class ConfigError(DeltaBotError, ValueError):
    """Invalid settings supplied to the engine."""
    pass
