"""Walk-forward validation for parameterized trading strategies."""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple, Union

from config.walk_forward import WalkForwardConfig, WindowPolicy
from utils.logger import get_validation_logger
from validation.aggregator import WalkForwardAggregator, performance_degradation
from validation.cancellation import CancellationToken
from validation.collaborators import BacktestRunner, Optimizer
from validation.errors import CancelledError, ConfigurationError, WindowExecutionError
from validation.metrics import calculate_metrics
from validation.parameters import ParameterCombination, ParameterSpace
from validation.results import RunStatus, WalkForwardReport, WindowResult
from validation.windows import Period, Window, WindowGenerator

logger = get_validation_logger()


class _WindowFailure(Exception):
    """Collaborator failure inside a single window."""

    def __init__(self, window_index: int, phase: str, cause: BaseException):
        super().__init__(f"Window {window_index} failed during {phase}: {cause}")
        self.window_index = window_index
        self.phase = phase
        self.cause = cause


class WalkForwardValidator:
    """
    Walk-forward validation of a strategy's parameter selection.

    For every window the optimizer picks parameters using the training
    interval only; the backtest runner then replays exactly those
    parameters on the following testing interval. Training and testing
    metrics are computed for each window and aggregated into efficiency
    and consistency scores.

    Windows are independent, so up to `config.max_concurrency` of them are
    evaluated in parallel on a thread pool. Results are always reported in
    window order.
    """

    def __init__(
        self,
        optimizer: Optimizer,
        runner: BacktestRunner,
        config: Optional[WalkForwardConfig] = None,
    ):
        """
        Initialize walk-forward validator.

        Args:
            optimizer: Selects parameters on a training interval
            runner: Simulates fixed parameters on a testing interval
            config: Engine settings (window policy, concurrency, metrics)
        """
        self.optimizer = optimizer
        self.runner = runner
        self.config = config or WalkForwardConfig()
        self.aggregator = WalkForwardAggregator(
            primary_metric=self.config.metrics.primary_metric,
            zero_tolerance=self.config.metrics.zero_tolerance,
        )

        logger.info(
            "Initialized WalkForwardValidator",
            extra_data={
                "optimizer": type(optimizer).__name__,
                "runner": type(runner).__name__,
                "max_concurrency": self.config.max_concurrency,
                "primary_metric": self.config.metrics.primary_metric.value,
            },
        )

    def run(
        self,
        parameter_space: Any,
        strategy_template: Any,
        full_range: Period,
        window_policy: Optional[Union[WindowPolicy, Dict[str, Any]]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> WalkForwardReport:
        """
        Run walk-forward validation.

        Args:
            parameter_space: Candidate space handed to the optimizer
            strategy_template: Opaque strategy description for collaborators
            full_range: Complete historical range
            window_policy: Overrides config.window_policy
            cancel_token: Token observed between windows and by collaborators

        Returns:
            WalkForwardReport; status is CANCELLED (with the completed
            windows) if the token fired

        Raises:
            ConfigurationError: Invalid policy or empty parameter space
            WindowExecutionError: A collaborator failed; carries partial results
        """
        policy = window_policy if window_policy is not None else self.config.window_policy
        if policy is None:
            raise ConfigurationError("No window policy given and none configured")

        generator = WindowGenerator(policy)
        self._check_parameter_space(parameter_space)
        token = cancel_token or CancellationToken()
        deterministic = self._optimizer_determinism()

        windows = generator.generate(full_range)
        if not windows:
            return self.aggregator.build_report([], planned_windows=0, optimizer_deterministic=deterministic)

        max_workers = min(self.config.max_concurrency, len(windows))
        logger.info(
            "Starting walk-forward validation",
            extra_data={
                "windows": len(windows),
                "mode": generator.policy.mode.value,
                "workers": max_workers,
            },
        )

        if max_workers <= 1:
            results, failures, cancelled = self._run_sequential(
                windows, parameter_space, strategy_template, token
            )
        else:
            results, failures, cancelled = self._run_concurrent(
                windows, parameter_space, strategy_template, token, max_workers
            )

        partial = [results[index] for index in sorted(results)]

        if failures:
            first = failures[min(failures)]
            # Windows past the failure may have finished concurrently; keep the prefix only
            partial = [result for result in partial if result.index < first.window_index]
            logger.error(
                f"Walk-forward aborted at window {first.window_index} ({first.phase}); "
                f"{len(partial)}/{len(windows)} windows completed"
            )
            raise WindowExecutionError(first.window_index, first.phase, partial) from first.cause

        status = RunStatus.CANCELLED if cancelled or token.cancelled else RunStatus.COMPLETED
        if status == RunStatus.CANCELLED:
            logger.warning(f"Walk-forward cancelled: {len(partial)}/{len(windows)} windows completed")

        report = self.aggregator.build_report(
            partial,
            status=status,
            planned_windows=len(windows),
            optimizer_deterministic=deterministic,
        )

        logger.info(
            f"Walk-forward validation {status.value}: {report.total_windows}/{len(windows)} windows, "
            f"efficiency={report.walk_forward_efficiency:.3f}, consistency={report.consistency:.3f}"
        )
        return report

    def _run_sequential(
        self,
        windows: List[Window],
        parameter_space: Any,
        strategy_template: Any,
        token: CancellationToken,
    ) -> Tuple[Dict[int, WindowResult], Dict[int, _WindowFailure], bool]:
        results: Dict[int, WindowResult] = {}
        failures: Dict[int, _WindowFailure] = {}

        for window in windows:
            if token.cancelled:
                return results, failures, True
            try:
                results[window.index] = self._process_window(
                    window, parameter_space, strategy_template, token
                )
            except CancelledError:
                return results, failures, True
            except _WindowFailure as failure:
                failures[failure.window_index] = failure
                break

        return results, failures, False

    def _run_concurrent(
        self,
        windows: List[Window],
        parameter_space: Any,
        strategy_template: Any,
        token: CancellationToken,
        max_workers: int,
    ) -> Tuple[Dict[int, WindowResult], Dict[int, _WindowFailure], bool]:
        # Each worker hands back its own result; the merge happens on this thread
        results: Dict[int, WindowResult] = {}
        failures: Dict[int, _WindowFailure] = {}
        cancelled = False
        config_error: Optional[ConfigurationError] = None
        abort = threading.Event()

        def task(window: Window) -> Optional[WindowResult]:
            if abort.is_set() or token.cancelled:
                return None
            return self._process_window(window, parameter_space, strategy_template, token)

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="walk-forward") as executor:
            futures = {executor.submit(task, window): window for window in windows}

            for future in as_completed(futures):
                if future.cancelled():
                    continue
                window = futures[future]
                try:
                    result = future.result()
                except CancelledError:
                    cancelled = True
                    continue
                except (_WindowFailure, ConfigurationError) as e:
                    if isinstance(e, _WindowFailure):
                        failures[e.window_index] = e
                    elif config_error is None:
                        config_error = e
                    abort.set()
                    for pending in futures:
                        pending.cancel()
                    continue

                if result is not None:
                    results[window.index] = result

        if config_error is not None:
            raise config_error

        return results, failures, cancelled

    def _process_window(
        self,
        window: Window,
        parameter_space: Any,
        strategy_template: Any,
        token: CancellationToken,
    ) -> WindowResult:
        token.raise_if_cancelled()
        logger.info(f"Processing {window!r}")
        metrics_config = self.config.metrics
        primary = metrics_config.primary_metric

        # Optimize on the training interval only
        try:
            optimization = self.optimizer.optimize(
                parameter_space, strategy_template, window.training, cancel_token=token
            )
            combination = self._selected_combination(optimization)
            training_trades = optimization.trades
            training_timeline = optimization.portfolio_timeline
        except (CancelledError, ConfigurationError):
            raise
        except Exception as e:
            logger.error(f"Optimization failed for window {window.index}: {e}")
            raise _WindowFailure(window.index, "optimize", e) from e

        training_metrics = calculate_metrics(
            training_trades,
            training_timeline,
            window.training.start,
            window.training.end,
            metrics_config,
        )

        token.raise_if_cancelled()

        # Replay the same combination on the unseen testing interval
        try:
            backtest = self.runner.run(strategy_template, combination, window.testing, cancel_token=token)
            testing_trades = backtest.trades
            testing_timeline = backtest.portfolio_timeline
        except CancelledError:
            raise
        except Exception as e:
            logger.error(f"Testing backtest failed for window {window.index}: {e}")
            raise _WindowFailure(window.index, "backtest", e) from e

        testing_metrics = calculate_metrics(
            testing_trades,
            testing_timeline,
            window.testing.start,
            window.testing.end,
            metrics_config,
        )

        degradation = performance_degradation(training_metrics.get(primary), testing_metrics.get(primary))

        logger.info(
            f"Window {window.index} complete: "
            f"Train {primary.value}={training_metrics.get(primary):.3f}, "
            f"Test {primary.value}={testing_metrics.get(primary):.3f}, "
            f"Degradation={degradation:.2%}",
            extra_data={"parameters": combination.to_dict(), "hash": combination.stable_hash[:12]},
        )

        return WindowResult(
            window=window,
            parameters=combination,
            training_metrics=training_metrics,
            testing_metrics=testing_metrics,
            performance_degradation=degradation,
            primary_metric=primary,
        )

    @staticmethod
    def _selected_combination(optimization: Any) -> ParameterCombination:
        combination = optimization.best_combination
        if isinstance(combination, Mapping) and not isinstance(combination, ParameterCombination):
            combination = ParameterCombination(combination)
        if not isinstance(combination, ParameterCombination):
            raise TypeError(
                f"Optimizer returned {type(combination).__name__} instead of a ParameterCombination"
            )
        return combination

    def _check_parameter_space(self, parameter_space: Any) -> None:
        if parameter_space is None:
            raise ConfigurationError("Parameter space is required")
        if isinstance(parameter_space, Mapping):
            parameter_space = ParameterSpace.from_dict(parameter_space)
        try:
            size = len(parameter_space)
        except TypeError:
            return
        if size == 0:
            raise ConfigurationError("Parameter space is empty")

    def _optimizer_determinism(self) -> Optional[bool]:
        deterministic = getattr(self.optimizer, "deterministic", None)
        if deterministic is False:
            logger.warning(
                f"{type(self.optimizer).__name__} is non-deterministic; "
                "repeated runs may select different parameters"
            )
        return deterministic
