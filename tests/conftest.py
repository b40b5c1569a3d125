"""Pytest configuration and shared fixtures."""

import sys
from datetime import timedelta
from pathlib import Path

import pytest

# Add project root and the tests directory to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from config.metrics import MetricsConfig, PrimaryMetric  # noqa: E402
from config.walk_forward import WalkForwardConfig, WindowMode, WindowPolicy  # noqa: E402
from stubs import T0, PatternRunner  # noqa: E402
from validation.parameters import ParameterSpace  # noqa: E402
from validation.trades import Trade  # noqa: E402
from validation.windows import Period  # noqa: E402


@pytest.fixture
def t0():
    """Fixed timezone-aware start timestamp."""
    return T0


@pytest.fixture
def runner():
    """Deterministic backtest runner stub."""
    return PatternRunner()


@pytest.fixture
def parameter_space():
    """Single integer parameter x in {1, 2, 3}."""
    return ParameterSpace.from_dict({"x": {"min_value": 1, "max_value": 3, "step": 1}})


@pytest.fixture
def rolling_policy():
    """30d training / 10d testing / 10d step rolling policy."""
    return WindowPolicy(
        training_size=timedelta(days=30),
        testing_size=timedelta(days=10),
        step_size=timedelta(days=10),
        mode=WindowMode.ROLLING,
    )


@pytest.fixture
def full_range():
    """80-day range starting at T0 (five 30/10/10 windows)."""
    return Period(T0, T0 + timedelta(days=80))


@pytest.fixture
def walk_forward_config(rolling_policy):
    """Engine config ranking on total return."""
    return WalkForwardConfig(
        window_policy=rolling_policy,
        metrics=MetricsConfig(primary_metric=PrimaryMetric.TOTAL_RETURN),
    )


@pytest.fixture
def sample_trades():
    """Mixed winning and losing trades over ten days."""
    pnls = [100.0, -50.0, 200.0, -25.0, 75.0, -100.0, 150.0, 50.0, -30.0, 80.0]
    return [Trade(timestamp=T0 + timedelta(days=i, hours=1), pnl=p) for i, p in enumerate(pnls)]
