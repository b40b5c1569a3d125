"""
End-to-end walk-forward tests: YAML config -> optimizer -> validator -> report.

These tests wire real components together (config loading, the optimizer
factory, the orchestrator, JSON export and the CLI) around the
deterministic PatternRunner stub.
"""

import json
from datetime import timedelta

import pytest
import yaml

from config.walk_forward import WalkForwardConfig
from optimization import create_optimizer
from utils.config import ConfigLoader
from validation.cli.run_walk_forward import EXIT_CANCELLED, EXIT_FAILED, EXIT_OK, main, resolve_runner
from validation.errors import ConfigurationError
from validation.parameters import ParameterSpace
from validation.results import RunStatus
from validation.walk_forward import WalkForwardValidator
from validation.windows import Period

from stubs import PatternRunner


def _run_config(**overrides):
    config = {
        "start": "2024-01-01T00:00:00Z",
        "end": "2024-03-21T00:00:00Z",
        "window_policy": {
            "training_size": "30d",
            "testing_size": "10d",
            "step_size": "10d",
            "mode": "rolling",
        },
        "max_concurrency": 1,
        "metrics": {"primary_metric": "total_return"},
        "optimizer": {"method": "grid", "objective": "total_return"},
        "parameters": {"x": {"min_value": 1, "max_value": 3, "step": 1}},
        "runner": "stubs:PatternRunner",
        "strategy": {"name": "pattern"},
    }
    config.update(overrides)
    return config


@pytest.fixture
def config_file(tmp_path):
    def write(**overrides):
        path = tmp_path / "walk_forward.yaml"
        path.write_text(yaml.safe_dump(_run_config(**overrides)))
        return path

    return write


class TestPipeline:
    """Library-level run assembled from a YAML config."""

    @pytest.mark.parametrize("method", ["grid", "optuna"])
    def test_config_driven_run(self, config_file, method):
        cfg = WalkForwardConfig.from_yaml(
            config_file(optimizer={"method": method, "objective": "total_return", "n_trials": 10, "seed": 1})
        )
        runner = PatternRunner()
        optimizer = create_optimizer(cfg.optimizer, runner, cfg.metrics)
        space = ParameterSpace.from_dict(cfg.parameters)

        report = WalkForwardValidator(optimizer, runner, cfg).run(
            space, cfg.strategy, Period(cfg.start, cfg.end)
        )

        assert report.status == RunStatus.COMPLETED
        assert report.total_windows == 5
        assert report.optimizer_deterministic is True
        for result in report.windows:
            assert result.window.training.end <= result.window.testing.start
            assert result.testing_metrics.total_trades == 10

    def test_anchored_concurrent_run_matches_sequential(self, config_file):
        overrides = {
            "window_policy": {"training_size": "30d", "testing_size": "10d", "step_size": "10d"},
        }
        cfg = WalkForwardConfig.from_yaml(config_file(**overrides))
        space = ParameterSpace.from_dict(cfg.parameters)
        full_range = Period(cfg.start, cfg.end)

        reports = []
        for workers in (1, 3):
            runner = PatternRunner()
            run_cfg = cfg.update(max_concurrency=workers)
            optimizer = create_optimizer(run_cfg.optimizer, runner, run_cfg.metrics)
            reports.append(WalkForwardValidator(optimizer, runner, run_cfg).run(space, {}, full_range))

        assert reports[0].to_dict() == reports[1].to_dict()
        assert reports[0].windows[-1].window.training.duration == timedelta(days=70)


class TestCommandLine:
    """run_walk_forward entrypoint."""

    def test_full_run_writes_report(self, config_file, tmp_path):
        output = tmp_path / "out" / "report.json"

        exit_code = main(["--config", str(config_file()), "--output", str(output), "--max-concurrency", "2"])

        assert exit_code == EXIT_OK
        report = json.loads(output.read_text())
        assert report["status"] == "completed"
        assert report["total_windows"] == 5
        assert [w["index"] for w in report["windows"]] == [0, 1, 2, 3, 4]
        assert all(w["parameters"] == {"x": 3} for w in report["windows"])

    def test_dry_run(self, config_file, tmp_path):
        output = tmp_path / "report.json"

        exit_code = main(["--config", str(config_file()), "--output", str(output), "--dry-run"])

        assert exit_code == EXIT_OK
        assert not output.exists()

    def test_json_logs(self, config_file, capsys):
        exit_code = main(["--config", str(config_file()), "--json-logs", "--dry-run"])

        assert exit_code == EXIT_OK
        lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
        assert lines
        assert all(json.loads(line)["logger"] == "forwardtest" for line in lines)

    def test_invalid_config_exits_with_failure(self, config_file):
        assert main(["--config", str(config_file(parameters={}))]) == EXIT_FAILED
        assert main(["--config", str(config_file(runner="stubs:DoesNotExist"))]) == EXIT_FAILED
        assert main(["--config", str(config_file(max_concurrency=0))]) == EXIT_FAILED

    def test_default_config_with_real_runner(self, tmp_path):
        """The shipped config only needs its placeholder runner replaced."""
        path = tmp_path / "default.yaml"
        ConfigLoader.load_default_walk_forward().update(runner="stubs:PatternRunner").to_yaml(path)

        assert main(["--config", str(path), "--dry-run"]) == EXIT_OK

    def test_missing_config_file(self, tmp_path):
        assert main(["--config", str(tmp_path / "missing.yaml")]) == EXIT_FAILED

    def test_runner_failure_exits_with_failure(self, config_file):
        assert main(["--config", str(config_file(runner="stubs:FailingRunner"))]) == EXIT_FAILED

    def test_cancellation_exit_code(self, config_file):
        assert main(["--config", str(config_file(runner="stubs:CancellingRunner"))]) == EXIT_CANCELLED


class TestResolveRunner:
    """Runner import paths."""

    def test_class_is_instantiated(self):
        assert isinstance(resolve_runner("stubs:PatternRunner"), PatternRunner)

    def test_bad_module(self):
        with pytest.raises(ConfigurationError):
            resolve_runner("no_such_module_xyz:Runner")

    def test_object_without_run(self):
        with pytest.raises(ConfigurationError):
            resolve_runner("stubs:T0")
