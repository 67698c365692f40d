"""
Personal Delta Hedging Bot

A small automated hedging agent that:
- Polls open derivative positions on Delta Exchange
- Computes aggregate portfolio delta as a fraction of notional
- Flattens exposure with a single market order when it leaves the band
"""

__version__ = "0.1.0"
