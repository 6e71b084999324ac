"""
Tradefolio - portfolio aggregation and valuation engine.

Turns an append-only trade log into currency-normalized holdings,
realized/unrealized P&L, allocation weights, and time-weighted
performance series.
"""

__version__ = "0.1.0"
