"""Per-window results and the final walk-forward report."""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from config.metrics import PrimaryMetric, RobustnessBands
from validation.metrics import PerformanceMetrics
from validation.parameters import ParameterCombination
from validation.windows import Window


class RunStatus(str, Enum):
    """How a walk-forward run ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Robustness(str, Enum):
    """Presentation label for a walk-forward efficiency."""

    ROBUST = "robust"
    MARGINAL = "marginal"
    OVERFIT = "overfit"


def classify_efficiency(efficiency: float, bands: Optional[RobustnessBands] = None) -> Robustness:
    """
    Label an efficiency with the given bands.

    Defaults: >= 0.5 robust, >= 0.3 marginal, otherwise overfit.
    """
    bands = bands or RobustnessBands()
    if efficiency >= bands.robust:
        return Robustness.ROBUST
    if efficiency >= bands.marginal:
        return Robustness.MARGINAL
    return Robustness.OVERFIT


@dataclass(frozen=True)
class WindowResult:
    """
    Outcome of one walk-forward window.

    `performance_degradation` is (training - testing) / |training| on the
    primary metric: positive values mean the parameters did worse on
    unseen data than on the data they were chosen on.
    """

    window: Window
    parameters: ParameterCombination
    training_metrics: PerformanceMetrics
    testing_metrics: PerformanceMetrics
    performance_degradation: float
    primary_metric: PrimaryMetric = PrimaryMetric.TOTAL_RETURN

    @property
    def index(self) -> int:
        return self.window.index

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.window.index,
            "training_period": self.window.training.to_dict(),
            "testing_period": self.window.testing.to_dict(),
            "parameters": self.parameters.to_dict(),
            "parameters_hash": self.parameters.stable_hash,
            "training_metrics": self.training_metrics.to_dict(),
            "testing_metrics": self.testing_metrics.to_dict(),
            "performance_degradation": self.performance_degradation,
            "primary_metric": self.primary_metric.value,
        }


@dataclass(frozen=True)
class WalkForwardReport:
    """
    Final artifact of a walk-forward run.

    Attributes:
        windows: Window results in index order
        total_windows: Number of window results in the report
        walk_forward_efficiency: Mean testing/training ratio of the primary metric
        consistency: Standard deviation of the testing primary metric
        excluded_windows: Windows left out of the efficiency mean
            (training metric ~0 or a non-finite value)
        planned_windows: Windows generated for the run
        status: COMPLETED, or CANCELLED with a partial window list
        primary_metric: Metric used for degradation and aggregation
        optimizer_deterministic: What the optimizer declared, if known
    """

    windows: Tuple[WindowResult, ...]
    total_windows: int
    walk_forward_efficiency: float
    consistency: float
    excluded_windows: int = 0
    planned_windows: int = 0
    status: RunStatus = RunStatus.COMPLETED
    primary_metric: PrimaryMetric = PrimaryMetric.TOTAL_RETURN
    optimizer_deterministic: Optional[bool] = None

    @property
    def cancelled(self) -> bool:
        return self.status == RunStatus.CANCELLED

    def robustness(self, bands: Optional[RobustnessBands] = None) -> Robustness:
        return classify_efficiency(self.walk_forward_efficiency, bands)

    def is_robust(self, bands: Optional[RobustnessBands] = None) -> bool:
        return self.total_windows > 0 and self.robustness(bands) == Robustness.ROBUST

    def to_dict(self) -> Dict[str, Any]:
        """Plain nested dictionary for exporters."""
        return {
            "status": self.status.value,
            "total_windows": self.total_windows,
            "planned_windows": self.planned_windows,
            "walk_forward_efficiency": self.walk_forward_efficiency,
            "consistency": self.consistency,
            "excluded_windows": self.excluded_windows,
            "primary_metric": self.primary_metric.value,
            "optimizer_deterministic": self.optimizer_deterministic,
            "windows": [w.to_dict() for w in self.windows],
        }

    def to_json(self, path: Path | str) -> Path:
        """
        Write the report as JSON.

        Infinite ratios are written as the JSON extension `Infinity`,
        which Python's json module reads back as float('inf').
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        return path

    def summary(self, bands: Optional[RobustnessBands] = None) -> str:
        """
        Get summary of walk-forward results.

        Returns:
            Formatted summary string
        """
        summary = "Walk-Forward Validation Summary\n"
        summary += "=" * 50 + "\n\n"
        summary += f"Status:              {self.status.value}\n"
        summary += f"Windows:             {self.total_windows}/{self.planned_windows}\n"
        summary += f"Primary Metric:      {self.primary_metric.value}\n"
        summary += f"WF Efficiency:       {self.walk_forward_efficiency:>8.3f} ({self.robustness(bands).value})\n"
        summary += f"Consistency (std):   {self.consistency:>8.3f}\n"
        if self.excluded_windows:
            summary += f"Excluded Windows:    {self.excluded_windows:>8}\n"

        if self.windows:
            summary += "\nIndividual Window Results:\n"
            for r in self.windows:
                train = r.training_metrics.get(r.primary_metric)
                test = r.testing_metrics.get(r.primary_metric)
                summary += (
                    f"  Window {r.index}: "
                    f"Train={train:>9.3f}, "
                    f"Test={test:>9.3f}, "
                    f"Degradation={r.performance_degradation:>7.2%}\n"
                )

        return summary
