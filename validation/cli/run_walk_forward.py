"""
Walk-forward validation CLI entrypoint.

Usage:
    python -m validation.cli.run_walk_forward --config configs/walk_forward_default.yaml
    python -m validation.cli.run_walk_forward --config my_run.yaml --output results/wf.json --max-concurrency 4
"""

import argparse
import importlib
import logging
import signal
import sys
from pathlib import Path
from typing import Any, List, Optional

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from pydantic import ValidationError  # noqa: E402

from config.walk_forward import WalkForwardConfig  # noqa: E402
from optimization.factory import create_optimizer  # noqa: E402
from utils.determinism import set_random_seeds  # noqa: E402
from utils.logger import get_validation_logger, setup_logger  # noqa: E402
from validation.cancellation import CancellationToken  # noqa: E402
from validation.errors import ConfigurationError, WalkForwardError, WindowExecutionError  # noqa: E402
from validation.parameters import ParameterSpace  # noqa: E402
from validation.walk_forward import WalkForwardValidator  # noqa: E402
from validation.windows import Period, WindowGenerator  # noqa: E402

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


def resolve_runner(path: str) -> Any:
    """
    Import a backtest runner from 'package.module:attribute'.

    Classes are instantiated without arguments.
    """
    module_name, _, attr_path = path.partition(":")
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import runner module '{module_name}': {e}") from e

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            raise ConfigurationError(f"Runner '{path}' not found") from e

    if isinstance(target, type):
        target = target()
    if not callable(getattr(target, "run", None)):
        raise ConfigurationError(f"Runner '{path}' has no run() method")
    return target


def build_run(cfg: WalkForwardConfig):
    """Validate a run config and return (parameter_space, full_range)."""
    if cfg.window_policy is None:
        raise ConfigurationError("Config has no window_policy")
    if cfg.start is None or cfg.end is None:
        raise ConfigurationError("Config needs both start and end")
    if cfg.runner is None:
        raise ConfigurationError("Config has no runner")

    space = ParameterSpace.from_dict(cfg.parameters)
    if len(space) == 0:
        raise ConfigurationError("Config defines an empty parameter space")
    return space, Period(cfg.start, cfg.end)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run walk-forward validation for a strategy.")
    parser.add_argument("--config", required=True, help="Path to walk-forward YAML config.")
    parser.add_argument("--output", default=None, help="Write the JSON report to this path.")
    parser.add_argument("--max-concurrency", type=int, default=None, help="Override max_concurrency.")
    parser.add_argument("--json-logs", action="store_true", help="Log JSON lines instead of text.")
    parser.add_argument("--dry-run", action="store_true", help="Load config, plan windows, then exit.")
    args = parser.parse_args(argv)

    setup_logger(level=logging.INFO, json_format=args.json_logs)
    logger = get_validation_logger()

    try:
        cfg = WalkForwardConfig.from_yaml(args.config)
        if args.max_concurrency is not None:
            cfg.max_concurrency = args.max_concurrency
        space, full_range = build_run(cfg)
        runner = resolve_runner(cfg.runner)
    except (ValidationError, ConfigurationError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_FAILED

    if args.dry_run:
        windows = WindowGenerator(cfg.window_policy).generate(full_range)
        for window in windows:
            logger.info(repr(window))
        logger.info(
            f"Dry run completed: {len(windows)} windows, {len(space)} combinations per window.",
        )
        return EXIT_OK

    set_random_seeds(cfg.optimizer.seed)
    optimizer = create_optimizer(cfg.optimizer, runner, cfg.metrics)
    validator = WalkForwardValidator(optimizer, runner, cfg)

    token = CancellationToken()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())
    try:
        report = validator.run(space, cfg.strategy, full_range, cancel_token=token)
    except WindowExecutionError as e:
        logger.error(f"Walk-forward failed: {e}", exc_info=True)
        logger.info(f"{len(e.partial_results)} windows completed before the failure")
        return EXIT_FAILED
    except WalkForwardError as e:
        logger.error(f"Walk-forward failed: {e}")
        return EXIT_FAILED
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    for line in report.summary(cfg.bands).splitlines():
        logger.info(line)

    if args.output:
        path = report.to_json(args.output)
        logger.info(f"Report saved to: {path}")

    return EXIT_CANCELLED if report.cancelled else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
