"""Core computation for Tradefolio (no I/O, no persistence)."""
