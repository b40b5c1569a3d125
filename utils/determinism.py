"""Determinism utilities for reproducible walk-forward runs."""

import os
import random
from typing import Optional

import numpy as np


def set_random_seeds(seed: Optional[int] = 42) -> None:
    """
    Seed Python's and NumPy's global generators.

    Optimizer adapters carry their own seeded samplers; this covers
    collaborators (backtest runners, strategies) that draw from the global
    generators. A seed of None leaves the generators untouched.

    Args:
        seed: Random seed value (default: 42)
    """
    if seed is None:
        return

    random.seed(seed)
    np.random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)
