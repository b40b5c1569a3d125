"""Exhaustive grid search over a parameter space."""

from typing import Any, Dict, Optional

from optimization.base import BaseOptimizer, Evaluation
from utils.logger import get_optimization_logger
from validation.cancellation import CancellationToken
from validation.collaborators import OptimizationOutcome
from validation.windows import Period

logger = get_optimization_logger()


class GridSearchOptimizer(BaseOptimizer):
    """
    Evaluate every combination and keep the best.

    Combinations are visited in the space's Cartesian order; on an exact
    tie the earlier combination wins, so the result is deterministic.
    """

    @property
    def deterministic(self) -> bool:
        return True

    def optimize(
        self,
        parameter_space: Any,
        strategy_template: Any,
        period: Period,
        cancel_token: Optional[CancellationToken] = None,
    ) -> OptimizationOutcome:
        space = self.coerce_space(parameter_space)
        logger.info(f"Grid search over {len(space)} combinations for {period}")

        memo: Dict[str, Evaluation] = {}

        for combination in space.combinations():
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            self.evaluate(combination, strategy_template, period, memo, cancel_token)

        best = self.select_best(memo.values())

        logger.info(
            f"Best {self.objective.value}={best.score:.4f} with {best.combination!r}",
            extra_data={"evaluations": len(memo), "parameters": best.combination.to_dict()},
        )
        return self.to_outcome(best, len(memo))
