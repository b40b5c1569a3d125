"""Parameter search using Optuna."""

from typing import Any, Dict, Optional

import numpy as np
import optuna
from optuna.samplers import TPESampler

from config.metrics import MetricsConfig, PrimaryMetric
from config.walk_forward import MetricFilters
from optimization.base import BaseOptimizer, Evaluation
from utils.logger import get_optimization_logger
from validation.cancellation import CancellationToken
from validation.collaborators import BacktestRunner, OptimizationOutcome
from validation.parameters import FLOAT_PRECISION, ParameterCombination, ParameterDefinition, ParameterSpace
from validation.windows import Period

logger = get_optimization_logger()

# Optuna's samplers cannot rank infinite objectives
OBJECTIVE_CLIP = 1e12


def suggest_params(trial: optuna.Trial, space: ParameterSpace) -> Dict[str, Any]:
    """
    Suggest one value per parameter definition.

    Args:
        trial: Optuna trial object
        space: Parameter space to sample from

    Returns:
        Dictionary of suggested parameters
    """
    params = {}

    for definition in space.definitions:
        params[definition.name] = _suggest(trial, definition)

    return params


def _suggest(trial: optuna.Trial, definition: ParameterDefinition) -> Any:
    name = definition.name
    if definition.choices is not None:
        return trial.suggest_categorical(name, definition.choices)
    if definition.is_integer:
        return trial.suggest_int(name, definition.min_value, definition.max_value, step=definition.step)
    value = trial.suggest_float(
        name, float(definition.min_value), float(definition.max_value), step=float(definition.step)
    )
    return round(value, FLOAT_PRECISION)


class OptunaOptimizer(BaseOptimizer):
    """
    TPE search with a fixed trial budget.

    With a seed and no timeout the sequence of trials, and therefore the
    chosen combination, is reproducible. A timeout makes the number of
    trials depend on wall-clock time.
    """

    def __init__(
        self,
        runner: BacktestRunner,
        objective: PrimaryMetric = PrimaryMetric.SHARPE_RATIO,
        metrics_config: Optional[MetricsConfig] = None,
        n_trials: int = 50,
        seed: Optional[int] = 42,
        timeout: Optional[float] = None,
        filters: Optional[MetricFilters] = None,
    ):
        super().__init__(runner, objective, metrics_config, filters)
        if n_trials < 1:
            raise ValueError(f"n_trials must be >= 1, got {n_trials}")
        self.n_trials = n_trials
        self.seed = seed
        self.timeout = timeout

    @property
    def deterministic(self) -> bool:
        return self.seed is not None and self.timeout is None

    def optimize(
        self,
        parameter_space: Any,
        strategy_template: Any,
        period: Period,
        cancel_token: Optional[CancellationToken] = None,
    ) -> OptimizationOutcome:
        space = self.coerce_space(parameter_space)
        memo: Dict[str, Evaluation] = {}

        def objective(trial: optuna.Trial) -> float:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            combination = ParameterCombination(suggest_params(trial, space))
            evaluation = self.evaluate(combination, strategy_template, period, memo, cancel_token)
            return float(np.clip(evaluation.score, -OBJECTIVE_CLIP, OBJECTIVE_CLIP))

        optuna.logging.set_verbosity(optuna.logging.WARNING)
        study = optuna.create_study(direction="maximize", sampler=TPESampler(seed=self.seed))

        logger.info(f"Starting Optuna search with {self.n_trials} trials for {period}")
        # Exceptions from the objective (including cancellation) propagate
        study.optimize(objective, n_trials=self.n_trials, timeout=self.timeout)

        # Rank on the memo rather than study.best_trial to apply tie-breaks and filters
        best = self.select_best(memo.values())

        logger.info(
            f"Best {self.objective.value}={best.score:.4f} with {best.combination!r}",
            extra_data={"trials": len(study.trials), "evaluations": len(memo)},
        )
        return self.to_outcome(best, len(memo))
