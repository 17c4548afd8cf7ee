"""Shared fixtures: a small synthetic basin table."""

import os
from pathlib import Path
import tempfile

os.environ.setdefault(
    "CAMELS_ML_LOG_FILE", str(Path(tempfile.gettempdir()) / "camels_ml_tests.log")
)

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def basins() -> pd.DataFrame:
    """100 basins with two positive predictors, a categorical attribute and a linear target."""
    rng = np.random.default_rng(0)
    n = 100
    x1 = rng.uniform(0.5, 5.0, n)
    x2 = rng.uniform(1.0, 10.0, n)
    category = rng.choice(["forest", "grass", "crop"], n)
    effect = pd.Series(category).map({"forest": 0.0, "grass": 1.0, "crop": -1.0}).to_numpy()
    target = 2.0 * x1 + 0.5 * x2 + effect + rng.normal(0.0, 0.2, n)
    return pd.DataFrame(
        {
            "gauge_id": [f"{i:08d}" for i in range(n)],
            "x1": x1,
            "x2": x2,
            "category": category,
            "target": target,
        }
    )


@pytest.fixture
def numeric_basins(basins: pd.DataFrame) -> pd.DataFrame:
    return basins.drop(columns=["category"])
