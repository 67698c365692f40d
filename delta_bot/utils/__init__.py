"""Utility functions and helpers."""

from delta_bot.utils.logging import setup_logging

__all__ = [
    "setup_logging",
]
