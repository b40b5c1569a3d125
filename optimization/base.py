"""Shared evaluation and ranking for optimizer adapters."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from config.metrics import MetricsConfig, PrimaryMetric
from config.walk_forward import MetricFilters
from utils.logger import get_optimization_logger
from validation.cancellation import CancellationToken
from validation.collaborators import BacktestOutcome, BacktestRunner, OptimizationOutcome, Optimizer
from validation.errors import ConfigurationError
from validation.metrics import PerformanceMetrics, calculate_metrics
from validation.parameters import ParameterCombination, ParameterSpace
from validation.windows import Period

logger = get_optimization_logger()

# Secondary keys used when objectives tie
TIE_BREAK_METRICS = (
    PrimaryMetric.SHARPE_RATIO,
    PrimaryMetric.SORTINO_RATIO,
    PrimaryMetric.TOTAL_RETURN,
)


@dataclass(frozen=True)
class Evaluation:
    """One combination backtested over one training period."""

    combination: ParameterCombination
    outcome: BacktestOutcome
    metrics: PerformanceMetrics
    rank: Tuple[float, ...]

    @property
    def score(self) -> float:
        return self.rank[0]


class BaseOptimizer(Optimizer):
    """
    Base class for optimizers that score candidates with a BacktestRunner.

    Each candidate is simulated over the training period only and scored by
    `objective`. Ties are broken on Sharpe, then Sortino, then total return.
    Evaluations are memoized per combination hash within a single
    `optimize` call.

    Candidates failing `filters` are not selected unless every candidate
    fails, in which case the best total return wins.
    """

    def __init__(
        self,
        runner: BacktestRunner,
        objective: PrimaryMetric = PrimaryMetric.SHARPE_RATIO,
        metrics_config: Optional[MetricsConfig] = None,
        filters: Optional[MetricFilters] = None,
    ):
        self.runner = runner
        self.objective = PrimaryMetric(objective)
        self.metrics_config = metrics_config or MetricsConfig()
        self.filters = filters or MetricFilters()

    def rank_key(self, metrics: PerformanceMetrics) -> Tuple[float, ...]:
        return (metrics.get(self.objective),) + tuple(metrics.get(m) for m in TIE_BREAK_METRICS)

    def passes_filters(self, metrics: PerformanceMetrics) -> bool:
        """Check training metrics against the configured thresholds."""
        if self.filters.min_trades is not None and metrics.total_trades < self.filters.min_trades:
            return False
        if self.filters.min_net_profit is not None and not metrics.net_profit > self.filters.min_net_profit:
            return False
        return True

    def select_best(self, evaluations: Iterable[Evaluation]) -> Evaluation:
        """
        Pick the best evaluation; earlier evaluations win exact ties.

        Args:
            evaluations: Candidates in evaluation order (must not be empty)

        Returns:
            Highest-ranked candidate among those passing the filters, or the
            highest total return when none pass
        """
        evaluations = list(evaluations)
        candidates = evaluations
        if self.filters.active:
            candidates = [e for e in evaluations if self.passes_filters(e.metrics)]

        # max() keeps the first of equal keys
        if candidates:
            return max(candidates, key=lambda e: e.rank)

        logger.warning(
            f"No candidate passed the metric filters; selecting by total return "
            f"among {len(evaluations)} candidates",
            extra_data={"filters": self.filters.model_dump(exclude_none=True)},
        )
        return max(evaluations, key=lambda e: (e.metrics.total_return,) + e.rank)

    def evaluate(
        self,
        combination: ParameterCombination,
        strategy_template: Any,
        period: Period,
        memo: Dict[str, Evaluation],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Evaluation:
        """Backtest a combination over `period`, reusing a memoized result if present."""
        key = combination.stable_hash
        if key in memo:
            return memo[key]

        outcome = self.runner.run(strategy_template, combination, period, cancel_token=cancel_token)
        metrics = calculate_metrics(
            outcome.trades,
            outcome.portfolio_timeline,
            period.start,
            period.end,
            self.metrics_config,
        )
        evaluation = Evaluation(
            combination=combination,
            outcome=outcome,
            metrics=metrics,
            rank=self.rank_key(metrics),
        )
        memo[key] = evaluation

        logger.debug(
            f"Evaluated {combination!r}: {self.objective.value}={evaluation.score:.4f}",
        )
        return evaluation

    @staticmethod
    def coerce_space(parameter_space: Any) -> ParameterSpace:
        """Accept a ParameterSpace or its dict form; reject empty spaces."""
        if isinstance(parameter_space, Mapping):
            parameter_space = ParameterSpace.from_dict(parameter_space)
        if not isinstance(parameter_space, ParameterSpace):
            raise ConfigurationError(
                f"Expected a ParameterSpace, got {type(parameter_space).__name__}"
            )
        if len(parameter_space) == 0:
            raise ConfigurationError("Parameter space is empty")
        return parameter_space

    def to_outcome(self, best: Evaluation, evaluations: int) -> OptimizationOutcome:
        return OptimizationOutcome(
            best_combination=best.combination,
            trades=best.outcome.trades,
            portfolio_timeline=best.outcome.portfolio_timeline,
            objective_value=best.score,
            evaluations=evaluations,
        )
