"""Contracts for the external optimizer and backtest runner.

The engine never simulates a strategy or searches a parameter space
itself; it drives implementations of these two interfaces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from validation.cancellation import CancellationToken
from validation.parameters import ParameterCombination
from validation.trades import PortfolioSnapshot, Trade
from validation.windows import Period


@dataclass(frozen=True)
class BacktestOutcome:
    """Trades and portfolio values produced by one simulation."""

    trades: Sequence[Trade] = field(default_factory=tuple)
    portfolio_timeline: Sequence[PortfolioSnapshot] = field(default_factory=tuple)


@dataclass(frozen=True)
class OptimizationOutcome:
    """
    Result of optimizing over one training period.

    Attributes:
        best_combination: Chosen parameters
        trades: Trades generated by the best combination on the training period
        portfolio_timeline: Portfolio values for the same run
        objective_value: Score of the best combination, if the optimizer has one
        evaluations: Number of distinct combinations evaluated
    """

    best_combination: ParameterCombination
    trades: Sequence[Trade] = field(default_factory=tuple)
    portfolio_timeline: Sequence[PortfolioSnapshot] = field(default_factory=tuple)
    objective_value: Optional[float] = None
    evaluations: int = 0


class BacktestRunner(ABC):
    """Simulates one fixed combination over one fixed period."""

    @abstractmethod
    def run(
        self,
        strategy_template: Any,
        combination: ParameterCombination,
        period: Period,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BacktestOutcome:
        """
        Run a deterministic simulation.

        Args:
            strategy_template: Opaque strategy description
            combination: Parameters to apply
            period: Interval to simulate; no data outside it may be used
            cancel_token: Optional token to observe

        Returns:
            BacktestOutcome with trades and portfolio timeline
        """
        pass


class Optimizer(ABC):
    """
    Selects the best combination for a training period.

    The search strategy is opaque to the engine. Implementations declare
    through `deterministic` whether repeated calls with identical inputs
    return identical outcomes.
    """

    @property
    @abstractmethod
    def deterministic(self) -> bool:
        pass

    @abstractmethod
    def optimize(
        self,
        parameter_space: Any,
        strategy_template: Any,
        period: Period,
        cancel_token: Optional[CancellationToken] = None,
    ) -> OptimizationOutcome:
        """
        Explore candidates over exactly `period` and return the best one.

        Args:
            parameter_space: Candidate space (usually a ParameterSpace)
            strategy_template: Opaque strategy description
            period: Training interval
            cancel_token: Optional token to observe

        Returns:
            OptimizationOutcome for the best combination
        """
        pass
