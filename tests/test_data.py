"""Tests for bar loading."""

import json
import math

import pandas as pd
import pytest

from data import iter_candles, klines_to_df, load_bars


class TestLoadBars:
    """Test CSV / JSON loading and validation."""

    def test_csv(self, tmp_path, sample_ohlc):
        path = tmp_path / "bars.csv"
        sample_ohlc.rename(columns=str.upper).to_csv(path, index=False)
        df = load_bars(path)
        assert len(df) == len(sample_ohlc)
        for col in ("open", "high", "low", "close", "timestamp"):
            assert col in df.columns
        assert df["high"].dtype == float

    def test_json_list(self, tmp_path):
        klines = [
            {"timestamp": 2000, "open": 102, "high": 108, "low": 100, "close": 107},
            {"timestamp": 1000, "open": 100, "high": 105, "low": 95, "close": 102},
        ]
        path = tmp_path / "bars.json"
        path.write_text(json.dumps(klines))
        df = load_bars(path)
        assert len(df) == 2
        assert df["timestamp"].tolist() == [1000, 2000]  # sorted oldest first
        assert df["high"].tolist() == [105.0, 108.0]

    def test_json_wrapped(self, tmp_path):
        path = tmp_path / "bars.json"
        path.write_text(json.dumps({"klines": [{"high": 2, "low": 1}]}))
        df = load_bars(path)
        assert len(df) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_bars(tmp_path / "missing.csv")

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "bars.txt"
        path.write_text("high,low\n1,2\n")
        with pytest.raises(ValueError):
            load_bars(path)

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "bars.csv"
        path.write_text("open,close\n1,2\n")
        with pytest.raises(ValueError, match="high, low"):
            load_bars(path)

    def test_bad_rows_dropped(self, tmp_path):
        path = tmp_path / "bars.csv"
        path.write_text("high,low\n2,1\nx,1\n3,2\n")
        df = load_bars(path)
        assert df["high"].tolist() == [2.0, 3.0]

    def test_empty_json(self, tmp_path):
        path = tmp_path / "bars.json"
        path.write_text("[]")
        assert load_bars(path).empty


class TestKlinesToDf:

    def test_basic_conversion(self):
        klines = [
            {"timestamp": 1000, "open": 100, "high": 105, "low": 95, "close": 102, "volume": 50},
            {"timestamp": 2000, "open": 102, "high": 108, "low": 100, "close": 107, "volume": 60},
        ]
        df = klines_to_df(klines)
        assert len(df) == 2
        assert df["close"].dtype == float

    def test_empty_input(self):
        assert klines_to_df([]).empty


class TestIterCandles:

    def test_candles(self):
        df = pd.DataFrame({"high": [2.0, 3.0], "low": [1.0, 2.5]})
        candles = list(iter_candles(df))
        assert [c.index for c in candles] == [0, 1]
        assert candles[1].high == 3.0
        assert candles[1].low == 2.5
        assert math.isnan(candles[0].open)
