"""Cross-window aggregation: walk-forward efficiency and consistency."""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from config.metrics import PrimaryMetric
from utils.logger import get_validation_logger
from validation.results import RunStatus, WalkForwardReport, WindowResult

logger = get_validation_logger()


def performance_degradation(training_value: float, testing_value: float) -> float:
    """
    Relative drop from training to testing: (train - test) / |train|.

    Returns 0.0 when the training value is zero or either value is not
    finite.
    """
    if not (math.isfinite(training_value) and math.isfinite(testing_value)):
        return 0.0
    if training_value == 0:
        return 0.0
    return (training_value - testing_value) / abs(training_value)


@dataclass(frozen=True)
class AggregateScores:
    """Global robustness scores over a list of window results."""

    total_windows: int = 0
    walk_forward_efficiency: float = 0.0
    consistency: float = 0.0
    excluded_windows: int = 0

    def to_dict(self) -> Dict[str, float]:
        return {
            "total_windows": self.total_windows,
            "walk_forward_efficiency": self.walk_forward_efficiency,
            "consistency": self.consistency,
            "excluded_windows": self.excluded_windows,
        }


class WalkForwardAggregator:
    """
    Aggregate window results into efficiency and consistency.

    Efficiency is the mean over windows of testing / training on the
    primary metric. Windows whose training value is within
    `zero_tolerance` of zero, or where either value is not finite, are
    excluded from the mean and reported in `excluded_windows`.

    Consistency is the population standard deviation of the testing
    primary metric (finite values only); fewer than two values give 0.
    """

    def __init__(
        self,
        primary_metric: PrimaryMetric = PrimaryMetric.TOTAL_RETURN,
        zero_tolerance: float = 0.0,
    ):
        if zero_tolerance < 0:
            raise ValueError(f"zero_tolerance must be >= 0, got {zero_tolerance}")
        self.primary_metric = primary_metric
        self.zero_tolerance = zero_tolerance

    def aggregate(self, window_results: Sequence[WindowResult]) -> AggregateScores:
        if not window_results:
            return AggregateScores()

        ratios = []
        excluded = 0
        testing_values = []

        for result in window_results:
            train = result.training_metrics.get(self.primary_metric)
            test = result.testing_metrics.get(self.primary_metric)

            if math.isfinite(test):
                testing_values.append(test)

            if not (math.isfinite(train) and math.isfinite(test)) or abs(train) <= self.zero_tolerance:
                excluded += 1
                continue
            ratios.append(test / train)

        efficiency = float(np.mean(ratios)) if ratios else 0.0
        consistency = float(np.std(testing_values)) if len(testing_values) >= 2 else 0.0

        if excluded:
            logger.warning(
                f"{excluded}/{len(window_results)} windows excluded from efficiency "
                f"(training {self.primary_metric.value} ~0 or non-finite)"
            )

        return AggregateScores(
            total_windows=len(window_results),
            walk_forward_efficiency=efficiency,
            consistency=consistency,
            excluded_windows=excluded,
        )

    def build_report(
        self,
        window_results: Sequence[WindowResult],
        status: RunStatus = RunStatus.COMPLETED,
        planned_windows: Optional[int] = None,
        optimizer_deterministic: Optional[bool] = None,
    ) -> WalkForwardReport:
        """Aggregate and wrap results into a WalkForwardReport."""
        ordered = tuple(sorted(window_results, key=lambda r: r.index))
        scores = self.aggregate(ordered)

        return WalkForwardReport(
            windows=ordered,
            total_windows=scores.total_windows,
            walk_forward_efficiency=scores.walk_forward_efficiency,
            consistency=scores.consistency,
            excluded_windows=scores.excluded_windows,
            planned_windows=len(ordered) if planned_windows is None else planned_windows,
            status=status,
            primary_metric=self.primary_metric,
            optimizer_deterministic=optimizer_deterministic,
        )


def aggregate(
    window_results: Sequence[WindowResult],
    primary_metric: PrimaryMetric = PrimaryMetric.TOTAL_RETURN,
    zero_tolerance: float = 0.0,
) -> AggregateScores:
    """Aggregate window results (see WalkForwardAggregator)."""
    return WalkForwardAggregator(primary_metric, zero_tolerance).aggregate(window_results)
