"""Trade and portfolio records exchanged with backtest collaborators."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Trade:
    """
    A single executed trade.

    `pnl` is the realized profit/loss booked by this trade, or None for
    trades that only open or add to a position.
    """

    timestamp: datetime
    pnl: Optional[float] = None
    volume: float = 0.0


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Portfolio value at a point in time."""

    timestamp: datetime
    value: float
