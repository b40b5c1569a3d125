"""Performance metrics for trade and portfolio histories."""

import math
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from config.metrics import MetricsConfig, PrimaryMetric
from utils.logger import get_metrics_logger
from validation.trades import PortfolioSnapshot, Trade

logger = get_metrics_logger()

DAYS_PER_YEAR = 365.0

TradesInput = Union[Iterable[Trade], pd.DataFrame, None]
TimelineInput = Union[Iterable[PortfolioSnapshot], pd.Series, pd.DataFrame, None]


@dataclass(frozen=True)
class PerformanceMetrics:
    """
    Statistics for one parameter combination over one period.

    Percentages (returns, drawdown, win rate) are expressed in percent, so
    12.5 means 12.5%. Sortino ratio and profit factor may be +inf (no
    losing returns / no gross loss), as may annualized return when
    compounding a short period overflows. No field is ever NaN.
    """

    start: datetime
    end: datetime

    # Trade counts
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0

    # Returns
    total_return: float = 0.0
    annualized_return: float = 0.0

    # Risk-adjusted
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    max_drawdown: float = 0.0

    # Win/Loss
    win_rate: float = 0.0
    profit_factor: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    net_profit: float = 0.0

    # Capital
    initial_value: float = 0.0
    final_value: float = 0.0
    trading_period_days: int = 0
    average_trades_per_day: float = 0.0

    @classmethod
    def zero(cls, start: datetime, end: datetime) -> "PerformanceMetrics":
        """All-zero record for a period without trades."""
        return cls(start=start, end=end)

    def get(self, metric: Union[PrimaryMetric, str]) -> float:
        """Value of a named metric (e.g. PrimaryMetric.SHARPE_RATIO)."""
        name = metric.value if isinstance(metric, PrimaryMetric) else str(metric)
        if name in ("start", "end") or name not in {f.name for f in fields(self)}:
            raise KeyError(f"Unknown metric '{name}'")
        return float(getattr(self, name))

    def to_dict(self) -> dict:
        """Convert to a plain dictionary (timestamps as ISO strings)."""
        data = asdict(self)
        data["start"] = self.start.isoformat()
        data["end"] = self.end.isoformat()
        return data

    def summary(self) -> str:
        """
        Get human-readable summary.

        Returns:
            Formatted summary string
        """
        summary = "Performance Metrics\n"
        summary += "==================\n\n"
        summary += "Trades:\n"
        summary += f"  Total:               {self.total_trades:>8}\n"
        summary += f"  Winning:             {self.winning_trades:>8}\n"
        summary += f"  Losing:              {self.losing_trades:>8}\n"
        summary += f"  Win Rate:            {self.win_rate:>7.2f}%\n"
        summary += "\n"
        summary += "Returns:\n"
        summary += f"  Total Return:        {self.total_return:>7.2f}%\n"
        summary += f"  Annualized Return:   {self.annualized_return:>7.2f}%\n"
        summary += f"  Net Profit:          {self.net_profit:>8.2f}\n"
        summary += "\n"
        summary += "Risk:\n"
        summary += f"  Sharpe Ratio:        {self.sharpe_ratio:>8.2f}\n"
        summary += f"  Sortino Ratio:       {self.sortino_ratio:>8.2f}\n"
        summary += f"  Max Drawdown:        {self.max_drawdown:>7.2f}%\n"
        summary += f"  Profit Factor:       {self.profit_factor:>8.2f}\n"
        summary += "\n"
        summary += "Capital:\n"
        summary += f"  Initial Value:       {self.initial_value:>8.2f}\n"
        summary += f"  Final Value:         {self.final_value:>8.2f}\n"
        summary += f"  Period:              {self.trading_period_days:>8} days\n"

        return summary

    def __str__(self) -> str:
        return (
            f"Total Return: {self.total_return:.2f}%, Sharpe: {self.sharpe_ratio:.2f}, "
            f"Max DD: {self.max_drawdown:.2f}%, Trades: {self.total_trades}, "
            f"Win Rate: {self.win_rate:.1f}%, PF: {self.profit_factor:.2f}"
        )


def _clean_number(value: Any) -> Optional[float]:
    """Float value, or None for missing / NaN / infinite input."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _no_nan(value: float) -> float:
    return 0.0 if math.isnan(value) else float(value)


class MetricsCalculator:
    """
    Calculate performance metrics from trades and a portfolio-value timeline.

    `calculate` is total: every input, including empty or malformed
    histories, produces a complete record instead of an exception.
    """

    @staticmethod
    def calculate(
        trades: TradesInput,
        portfolio_timeline: TimelineInput,
        start: datetime,
        end: datetime,
        risk_free_rate: float = 0.0,
        initial_capital: Optional[float] = None,
    ) -> PerformanceMetrics:
        """
        Calculate metrics for the trades executed within [start, end].

        Args:
            trades: Trade records, or a DataFrame with 'timestamp' and 'pnl' columns
            portfolio_timeline: PortfolioSnapshots, a value Series indexed by
                timestamp, or a DataFrame with 'timestamp' and 'value' columns
            start: Period start (inclusive)
            end: Period end (inclusive)
            risk_free_rate: Annual risk-free rate as decimal
            initial_capital: Starting value used when the timeline has no
                points inside the period

        Returns:
            PerformanceMetrics (all-zero when no trade falls in the period)
        """
        period_trades = [
            (ts, pnl)
            for ts, pnl in MetricsCalculator._normalize_trades(trades)
            if MetricsCalculator._in_period(ts, start, end)
        ]

        if not period_trades:
            logger.debug(f"No trades between {start} and {end}; returning zero metrics")
            return PerformanceMetrics.zero(start, end)

        period_trades.sort(key=lambda item: item[0])
        realized = np.array([pnl for _, pnl in period_trades if pnl is not None], dtype=float)
        total_pnl = float(realized.sum()) if realized.size else 0.0

        initial_value, final_value = MetricsCalculator._portfolio_values(
            portfolio_timeline, start, end, initial_capital, total_pnl
        )

        total_days = (end - start).total_seconds() / 86400.0

        if initial_value > 0:
            total_return = (final_value - initial_value) / initial_value * 100.0
        else:
            total_return = 0.0
        annualized_return = MetricsCalculator._annualized_return(initial_value, final_value, total_days)

        # Win/loss statistics
        wins = realized[realized > 0]
        losses = realized[realized < 0]
        total_trades = len(period_trades)

        win_rate = len(wins) / total_trades * 100.0
        average_win = float(wins.mean()) if wins.size else 0.0
        average_loss = float(losses.mean()) if losses.size else 0.0
        gross_profit = float(wins.sum()) if wins.size else 0.0
        gross_loss = abs(float(losses.sum())) if losses.size else 0.0
        profit_factor = gross_profit / gross_loss if gross_loss > 0 else math.inf

        # Path-dependent statistics over cumulative realized P&L
        cumulative = np.cumsum(realized)
        max_drawdown = MetricsCalculator._max_drawdown(cumulative)
        returns = MetricsCalculator._period_returns(cumulative)
        sharpe_ratio = MetricsCalculator._sharpe_ratio(returns, risk_free_rate)
        sortino_ratio = MetricsCalculator._sortino_ratio(returns, risk_free_rate)

        return PerformanceMetrics(
            start=start,
            end=end,
            total_trades=total_trades,
            winning_trades=int(wins.size),
            losing_trades=int(losses.size),
            total_return=_no_nan(total_return),
            annualized_return=_no_nan(annualized_return),
            sharpe_ratio=_no_nan(sharpe_ratio),
            sortino_ratio=_no_nan(sortino_ratio),
            max_drawdown=_no_nan(max_drawdown),
            win_rate=win_rate,
            profit_factor=_no_nan(profit_factor),
            average_win=_no_nan(average_win),
            average_loss=_no_nan(average_loss),
            gross_profit=_no_nan(gross_profit),
            gross_loss=_no_nan(gross_loss),
            net_profit=_no_nan(gross_profit - gross_loss),
            initial_value=_no_nan(initial_value),
            final_value=_no_nan(final_value),
            trading_period_days=int(total_days) if total_days > 0 else 0,
            average_trades_per_day=total_trades / total_days if total_days > 0 else 0.0,
        )

    @staticmethod
    def _in_period(timestamp: Any, start: datetime, end: datetime) -> bool:
        try:
            return start <= timestamp <= end
        except TypeError:
            # Incomparable timestamps (e.g. naive vs aware) fall outside the period
            return False

    @staticmethod
    def _normalize_trades(trades: TradesInput) -> List[Tuple[Any, Optional[float]]]:
        """Convert supported trade inputs into (timestamp, pnl) pairs."""
        if trades is None:
            return []

        if isinstance(trades, pd.DataFrame):
            if "timestamp" not in trades.columns:
                logger.warning("Trades DataFrame has no 'timestamp' column; ignoring trades")
                return []
            pnl_column = trades["pnl"] if "pnl" in trades.columns else [None] * len(trades)
            return [
                (ts, _clean_number(pnl))
                for ts, pnl in zip(trades["timestamp"], pnl_column)
            ]

        return [(trade.timestamp, _clean_number(trade.pnl)) for trade in trades]

    @staticmethod
    def _normalize_timeline(timeline: TimelineInput) -> List[Tuple[Any, float]]:
        """Convert supported timeline inputs into (timestamp, value) pairs."""
        if timeline is None:
            return []

        if isinstance(timeline, pd.Series):
            pairs = zip(timeline.index, timeline.values)
        elif isinstance(timeline, pd.DataFrame):
            if "timestamp" not in timeline.columns or "value" not in timeline.columns:
                logger.warning("Timeline DataFrame needs 'timestamp' and 'value' columns; ignoring it")
                return []
            pairs = zip(timeline["timestamp"], timeline["value"])
        else:
            pairs = ((snapshot.timestamp, snapshot.value) for snapshot in timeline)

        cleaned = []
        for ts, value in pairs:
            number = _clean_number(value)
            if number is not None:
                cleaned.append((ts, number))
        return cleaned

    @staticmethod
    def _portfolio_values(
        timeline: TimelineInput,
        start: datetime,
        end: datetime,
        initial_capital: Optional[float],
        total_pnl: float,
    ) -> Tuple[float, float]:
        """Initial and final portfolio value for the period."""
        points = [
            (ts, value)
            for ts, value in MetricsCalculator._normalize_timeline(timeline)
            if MetricsCalculator._in_period(ts, start, end)
        ]
        if points:
            points.sort(key=lambda item: item[0])
            return points[0][1], points[-1][1]

        if initial_capital is not None:
            return float(initial_capital), float(initial_capital) + total_pnl

        return 0.0, 0.0

    @staticmethod
    def _annualized_return(initial_value: float, final_value: float, total_days: float) -> float:
        """Compound the period growth to a 365-day basis (percent)."""
        if total_days <= 0 or initial_value <= 0:
            return 0.0

        ratio = final_value / initial_value
        if ratio <= 0:
            return -100.0

        try:
            growth = math.exp(math.log(ratio) * DAYS_PER_YEAR / total_days)
        except OverflowError:
            return math.inf

        return (growth - 1.0) * 100.0

    @staticmethod
    def _max_drawdown(cumulative: np.ndarray) -> float:
        """
        Maximum drawdown of the cumulative P&L path, in percent.

        The running peak starts at zero; points where the peak is not
        positive contribute no drawdown. Result lies in [0, 100].
        """
        if cumulative.size == 0:
            return 0.0

        peaks = np.maximum.accumulate(np.concatenate(([0.0], cumulative)))[1:]
        with np.errstate(divide="ignore", invalid="ignore"):
            drawdowns = np.where(peaks > 0, (peaks - cumulative) / peaks, 0.0)

        worst = float(np.nanmax(drawdowns)) if drawdowns.size else 0.0
        return float(np.clip(worst, 0.0, 1.0)) * 100.0

    @staticmethod
    def _period_returns(cumulative: np.ndarray) -> np.ndarray:
        """Step returns of the cumulative series, skipping non-positive bases."""
        if cumulative.size == 0:
            return np.array([], dtype=float)

        previous = np.concatenate(([0.0], cumulative[:-1]))
        mask = previous > 0
        return (cumulative[mask] - previous[mask]) / previous[mask]

    @staticmethod
    def _sharpe_ratio(returns: np.ndarray, risk_free_rate: float) -> float:
        if returns.size == 0:
            return 0.0

        std = float(returns.std())
        if not std > 0:
            return 0.0

        daily_risk_free = risk_free_rate / DAYS_PER_YEAR
        return (float(returns.mean()) - daily_risk_free) / std * math.sqrt(DAYS_PER_YEAR)

    @staticmethod
    def _sortino_ratio(returns: np.ndarray, risk_free_rate: float) -> float:
        if returns.size == 0:
            return 0.0

        negative = returns[returns < 0]
        if negative.size == 0:
            return math.inf

        downside = math.sqrt(float(np.mean(negative ** 2)))
        if not downside > 0:
            return 0.0

        daily_risk_free = risk_free_rate / DAYS_PER_YEAR
        return (float(returns.mean()) - daily_risk_free) / downside * math.sqrt(DAYS_PER_YEAR)


def calculate_metrics(
    trades: TradesInput,
    portfolio_timeline: TimelineInput,
    start: datetime,
    end: datetime,
    config: Optional[MetricsConfig] = None,
) -> PerformanceMetrics:
    """Calculate metrics with settings taken from a MetricsConfig."""
    config = config or MetricsConfig()
    return MetricsCalculator.calculate(
        trades,
        portfolio_timeline,
        start,
        end,
        risk_free_rate=config.risk_free_rate,
        initial_capital=config.initial_capital,
    )
