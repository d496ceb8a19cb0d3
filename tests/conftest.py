"""Pytest fixtures — sample high/low data for fractal tests."""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def scenario_highs():
    """13 highs, oldest → newest, with clear peaks at index 3 (5.0) and 9 (6.0)."""
    return [1.0, 2.0, 3.0, 5.0, 3.0, 2.0, 1.0, 2.0, 4.0, 6.0, 4.0, 2.0, 1.0]


@pytest.fixture
def scenario_lows():
    """Mirror of scenario_highs: troughs at index 3 (-5.0) and 9 (-6.0)."""
    return [-1.0, -2.0, -3.0, -5.0, -3.0, -2.0, -1.0, -2.0, -4.0, -6.0, -4.0, -2.0, -1.0]


@pytest.fixture
def sample_ohlc():
    """Generate 300 bars of synthetic OHLC data.

    Two overlapping sine waves plus noise so both fractal highs and
    lows of several sizes appear.
    """
    np.random.seed(42)
    n = 300
    t = np.arange(n, dtype=float)
    base = 100.0
    swing1 = 5.0 * np.sin(2 * np.pi * t / 40)
    swing2 = 2.0 * np.sin(2 * np.pi * t / 15)
    noise = np.random.normal(0, 0.2, n)
    close = base + swing1 + swing2 + noise

    open_ = np.roll(close, 1)
    open_[0] = close[0]
    high = np.maximum(open_, close) + np.abs(np.random.normal(0, 0.15, n))
    low = np.minimum(open_, close) - np.abs(np.random.normal(0, 0.15, n))

    return pd.DataFrame({
        "timestamp": (np.arange(n) * 60_000 + 1_700_000_000_000).astype(int),
        "open": open_,
        "high": high,
        "low": low,
        "close": close,
    })
