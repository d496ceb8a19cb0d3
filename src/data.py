"""Load OHLC bars from CSV files or JSON kline dumps."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

import pandas as pd

from models import Candle

logger = logging.getLogger(__name__)

OHLC_COLUMNS = ("open", "high", "low", "close")


def klines_to_df(klines: list[dict]) -> pd.DataFrame:
    """Convert list-of-dicts klines to a DataFrame.

    Accepts dicts with keys: timestamp, open, high, low, close (volume optional).
    """
    if not klines:
        return pd.DataFrame(columns=["timestamp", *OHLC_COLUMNS])
    return _normalize(pd.DataFrame(klines))


def load_bars(path: Path | str) -> pd.DataFrame:
    """Load bars ordered oldest → newest from a .csv or .json file.

    Raises:
        FileNotFoundError: path does not exist.
        ValueError: unsupported extension or no high/low columns.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Bar file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path)
    elif suffix == ".json":
        with open(path) as f:
            raw = json.load(f)
        if isinstance(raw, dict):
            raw = raw.get("klines") or raw.get("data") or []
        df = pd.DataFrame(raw)
    else:
        raise ValueError(f"Unsupported bar file type: {path.suffix}")

    if df.empty:
        return klines_to_df([])
    df = _normalize(df)
    logger.info("Loaded %d bars from %s", len(df), path)
    return df


def _normalize(df: pd.DataFrame) -> pd.DataFrame:
    df = df.rename(columns={c: str(c).strip().lower() for c in df.columns})
    missing = [c for c in ("high", "low") if c not in df.columns]
    if missing:
        raise ValueError(f"Bars are missing required columns: {', '.join(missing)}")

    for col in OHLC_COLUMNS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)

    bad = df["high"].isna() | df["low"].isna()
    if bad.any():
        logger.warning("Dropping %d bars with missing high/low", int(bad.sum()))
        df = df.loc[~bad].copy()

    if "timestamp" in df.columns:
        df["timestamp"] = df["timestamp"].astype("int64")
        df = df.sort_values("timestamp", kind="stable")

    return df.reset_index(drop=True)


def iter_candles(df: pd.DataFrame) -> Iterator[Candle]:
    """Yield Candle objects; open/close fall back to NaN when absent."""
    nan = float("nan")
    for i, row in enumerate(df.itertuples(index=False)):
        yield Candle(
            index=i,
            open=float(getattr(row, "open", nan)),
            high=float(row.high),
            low=float(row.low),
            close=float(getattr(row, "close", nan)),
        )
