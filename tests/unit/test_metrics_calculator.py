"""Unit tests for the performance metrics calculator."""

import json
import math
from dataclasses import fields
from datetime import datetime, timedelta

import pandas as pd
import pytest

from config.metrics import MetricsConfig, PrimaryMetric
from validation.metrics import MetricsCalculator, PerformanceMetrics, calculate_metrics
from validation.trades import PortfolioSnapshot, Trade


def _numeric_values(metrics: PerformanceMetrics):
    return [getattr(metrics, f.name) for f in fields(metrics) if f.name not in ("start", "end")]


class TestMetricsTotality:
    """Every input produces a complete, NaN-free record."""

    def test_empty_trades_return_zero_record(self, t0):
        """No trades yields an all-zero record."""
        end = t0 + timedelta(days=30)

        metrics = MetricsCalculator.calculate([], [], t0, end)

        assert metrics == PerformanceMetrics.zero(t0, end)
        assert all(value == 0 for value in _numeric_values(metrics))

    def test_none_inputs(self, t0):
        metrics = MetricsCalculator.calculate(None, None, t0, t0 + timedelta(days=1))

        assert metrics.total_trades == 0

    def test_non_finite_pnl_never_produces_nan(self, t0):
        """NaN and infinite P&L values are ignored, not propagated."""
        trades = [
            Trade(timestamp=t0 + timedelta(hours=1), pnl=float("nan")),
            Trade(timestamp=t0 + timedelta(hours=2), pnl=float("inf")),
            Trade(timestamp=t0 + timedelta(hours=3), pnl=None),
        ]

        metrics = MetricsCalculator.calculate(trades, [], t0, t0 + timedelta(days=1))

        assert metrics.total_trades == 3
        assert not any(math.isnan(value) for value in _numeric_values(metrics))

    def test_single_trade_has_zero_ratios(self, t0):
        """One trade gives no return series: Sharpe and Sortino are 0."""
        trades = [Trade(timestamp=t0 + timedelta(hours=1), pnl=50.0)]

        metrics = MetricsCalculator.calculate(trades, [], t0, t0 + timedelta(days=1))

        assert metrics.sharpe_ratio == 0.0
        assert metrics.sortino_ratio == 0.0

    def test_incomparable_timestamps_fall_outside(self, t0):
        """Naive trade timestamps against an aware period are ignored."""
        trades = [Trade(timestamp=datetime(2024, 1, 1, 12), pnl=10.0)]

        metrics = MetricsCalculator.calculate(trades, [], t0, t0 + timedelta(days=1))

        assert metrics.total_trades == 0


class TestTradeStatistics:
    """Win/loss and return statistics."""

    def test_mixed_trades(self, t0, sample_trades):
        """Counts, profit factor and returns for a known trade list."""
        metrics = MetricsCalculator.calculate(
            sample_trades, [], t0, t0 + timedelta(days=10), initial_capital=10000.0
        )

        assert metrics.total_trades == 10
        assert metrics.winning_trades == 6
        assert metrics.losing_trades == 4
        assert metrics.win_rate == pytest.approx(60.0)
        assert metrics.gross_profit == pytest.approx(655.0)
        assert metrics.gross_loss == pytest.approx(205.0)
        assert metrics.net_profit == pytest.approx(450.0)
        assert metrics.profit_factor == pytest.approx(655.0 / 205.0)
        assert metrics.average_win == pytest.approx(655.0 / 6)
        assert metrics.average_loss == pytest.approx(-205.0 / 4)
        assert metrics.initial_value == pytest.approx(10000.0)
        assert metrics.final_value == pytest.approx(10450.0)
        assert metrics.total_return == pytest.approx(4.5)
        assert metrics.annualized_return > metrics.total_return
        assert metrics.trading_period_days == 10
        assert metrics.average_trades_per_day == pytest.approx(1.0)

    def test_max_drawdown_of_pnl_path(self, t0, sample_trades):
        """Worst peak-to-trough of cumulative P&L is 100 -> 50 (50%)."""
        metrics = MetricsCalculator.calculate(sample_trades, [], t0, t0 + timedelta(days=10))

        assert metrics.max_drawdown == pytest.approx(50.0)

    def test_no_capital_gives_zero_returns(self, t0, sample_trades):
        """Without a timeline or capital, return-based metrics are 0."""
        metrics = MetricsCalculator.calculate(sample_trades, [], t0, t0 + timedelta(days=10))

        assert metrics.total_return == 0.0
        assert metrics.annualized_return == 0.0

    def test_timeline_supplies_portfolio_values(self, t0, sample_trades):
        """First and last in-period snapshots define the returns."""
        timeline = [
            PortfolioSnapshot(t0 - timedelta(days=1), 1.0),
            PortfolioSnapshot(t0, 2000.0),
            PortfolioSnapshot(t0 + timedelta(days=5), 2100.0),
            PortfolioSnapshot(t0 + timedelta(days=10), 2200.0),
            PortfolioSnapshot(t0 + timedelta(days=11), 5000.0),
        ]

        metrics = MetricsCalculator.calculate(sample_trades, timeline, t0, t0 + timedelta(days=10))

        assert metrics.initial_value == pytest.approx(2000.0)
        assert metrics.final_value == pytest.approx(2200.0)
        assert metrics.total_return == pytest.approx(10.0)

    def test_total_loss_annualizes_to_minus_100(self, t0):
        trades = [Trade(timestamp=t0 + timedelta(hours=1), pnl=-200.0)]

        metrics = MetricsCalculator.calculate(trades, [], t0, t0 + timedelta(days=30), initial_capital=100.0)

        assert metrics.total_return == pytest.approx(-200.0)
        assert metrics.annualized_return == -100.0


class TestDrawdownBound:
    """Max drawdown always lies in [0, 100]."""

    @pytest.mark.parametrize(
        "pnls",
        [
            [100.0, -500.0],
            [-10.0, -20.0, -30.0],
            [10.0, 20.0, 30.0],
            [1.0, -1.0, 1.0, -1.0],
            [1e9, -1e12, 5.0],
        ],
    )
    def test_drawdown_within_bounds(self, t0, pnls):
        trades = [Trade(timestamp=t0 + timedelta(hours=i), pnl=p) for i, p in enumerate(pnls)]

        metrics = MetricsCalculator.calculate(trades, [], t0, t0 + timedelta(days=1))

        assert 0.0 <= metrics.max_drawdown <= 100.0

    def test_loss_beyond_peak_is_capped(self, t0):
        trades = [
            Trade(timestamp=t0 + timedelta(hours=1), pnl=100.0),
            Trade(timestamp=t0 + timedelta(hours=2), pnl=-500.0),
        ]

        metrics = MetricsCalculator.calculate(trades, [], t0, t0 + timedelta(days=1))

        assert metrics.max_drawdown == 100.0


class TestInfiniteRatios:
    """All-winning trade sets give infinite ratios that still serialize."""

    def test_all_winners(self, t0):
        trades = [Trade(timestamp=t0 + timedelta(hours=i), pnl=p) for i, p in enumerate([10.0, 20.0, 30.0])]

        metrics = MetricsCalculator.calculate(trades, [], t0, t0 + timedelta(days=1))

        assert metrics.profit_factor == math.inf
        assert metrics.sortino_ratio == math.inf
        assert metrics.max_drawdown == 0.0

        encoded = json.dumps(metrics.to_dict())
        assert json.loads(encoded)["profit_factor"] == math.inf

    def test_short_period_annualized_overflow(self, t0):
        """A 10% gain in one hour compounds past float range."""
        trades = [Trade(timestamp=t0 + timedelta(minutes=30), pnl=100.0)]

        metrics = MetricsCalculator.calculate(trades, [], t0, t0 + timedelta(hours=1), initial_capital=1000.0)

        assert metrics.total_return == pytest.approx(10.0)
        assert metrics.annualized_return == math.inf
        assert not any(isinstance(v, float) and math.isnan(v) for v in _numeric_values(metrics))


class TestPeriodFiltering:
    """Only trades within [start, end] count."""

    def test_trades_outside_period_are_ignored(self, t0):
        end = t0 + timedelta(days=2)
        trades = [
            Trade(timestamp=t0 - timedelta(seconds=1), pnl=1000.0),
            Trade(timestamp=t0, pnl=10.0),
            Trade(timestamp=end, pnl=-5.0),
            Trade(timestamp=end + timedelta(seconds=1), pnl=1000.0),
        ]

        metrics = MetricsCalculator.calculate(trades, [], t0, end)

        assert metrics.total_trades == 2
        assert metrics.net_profit == pytest.approx(5.0)


class TestDataFrameInputs:
    """pandas inputs are accepted alongside records."""

    def test_dataframe_trades_and_series_timeline(self, t0, sample_trades):
        trades_df = pd.DataFrame(
            {"timestamp": [t.timestamp for t in sample_trades], "pnl": [t.pnl for t in sample_trades]}
        )
        timeline = pd.Series(
            [10000.0, 10450.0],
            index=pd.DatetimeIndex([t0, t0 + timedelta(days=10)]),
        )

        from_df = MetricsCalculator.calculate(trades_df, timeline, t0, t0 + timedelta(days=10))
        from_records = MetricsCalculator.calculate(
            sample_trades, [], t0, t0 + timedelta(days=10), initial_capital=10000.0
        )

        assert from_df.total_trades == from_records.total_trades
        assert from_df.profit_factor == pytest.approx(from_records.profit_factor)
        assert from_df.total_return == pytest.approx(from_records.total_return)

    def test_dataframe_without_timestamp_is_ignored(self, t0):
        metrics = MetricsCalculator.calculate(pd.DataFrame({"pnl": [1.0]}), None, t0, t0 + timedelta(days=1))

        assert metrics.total_trades == 0


class TestCalculateMetrics:
    """Config-driven entry point and metric lookup."""

    def test_config_is_threaded_through(self, t0, sample_trades):
        config = MetricsConfig(initial_capital=10000.0, risk_free_rate=0.05)

        with_rf = calculate_metrics(sample_trades, [], t0, t0 + timedelta(days=10), config)
        without_rf = calculate_metrics(
            sample_trades, [], t0, t0 + timedelta(days=10), MetricsConfig(initial_capital=10000.0)
        )

        assert with_rf.total_return == pytest.approx(4.5)
        assert with_rf.sharpe_ratio < without_rf.sharpe_ratio

    def test_get_by_primary_metric(self, t0, sample_trades):
        metrics = calculate_metrics(sample_trades, [], t0, t0 + timedelta(days=10))

        assert metrics.get(PrimaryMetric.NET_PROFIT) == pytest.approx(450.0)
        assert metrics.get("win_rate") == pytest.approx(60.0)
        with pytest.raises(KeyError):
            metrics.get("start")
