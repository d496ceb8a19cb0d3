#!/usr/bin/env python3
"""CLI fractal scanner.

Usage:
    python scripts/scan_fractals.py --file data/BTCUSDT_60m.csv
    python scripts/scan_fractals.py --file data/BTCUSDT_60m.json --min-size 3 --stream
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from config import DATA_DIR, load_config, setup_logging
from data import iter_candles, load_bars
from indicators.fractal_tracker import StreamingFractals
from indicators.fractals import FractalFactory, significant_fractals
from indicators.series import BarSeries
from models import FractalKind

logger = logging.getLogger(__name__)


def print_fractals(title: str, fractals, bar_count: int) -> None:
    print(f"\n{title}")
    print(f"{'Bar':>8s} | {'Bars ago':>8s} | {'Value':>14s} | {'Left':>5s} | {'Right':>5s}")
    print(f"{'-' * 53}")
    for f in fractals:
        print(
            f"{f.position:>8d} | {f.bars_ago(bar_count):>8d} | {f.value:>14.6f} | "
            f"{f.left_size:>5d} | {f.right_size:>5d}"
        )
    if not fractals:
        print("  (none)")


def main():
    parser = argparse.ArgumentParser(description="Fractal high/low scanner")
    parser.add_argument("--file", default=None, help="CSV or JSON bar file, absolute or under data/ (overrides config)")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--min-size", type=int, default=0, help="Override min fractal size (0=use config)")
    parser.add_argument("--max-count", type=int, default=0, help="Override fractals kept per side (0=use config)")
    parser.add_argument("--require-right", action="store_true", help="Require min-size bars right of a fractal")
    parser.add_argument("--stream", action="store_true", help="Replay bars one by one and print each new fractal")
    parser.add_argument("--significant", action="store_true", help="Only show significant fractals")
    parser.add_argument("--log-level", default=None, help="Override log level")
    args = parser.parse_args()

    cfg = load_config(args.config)
    if args.log_level:
        cfg.logging.level = args.log_level
    setup_logging(cfg.logging)

    params = cfg.fractals
    if args.min_size > 0:
        params.min_size = args.min_size
    if args.max_count > 0:
        params.max_count = args.max_count
    if args.require_right:
        params.require_right_min_size = True
    if args.significant:
        params.measure_sides = True

    path = args.file or cfg.data_file
    if not path:
        print("No bar file given. Use --file or set data_file in config.yaml")
        sys.exit(1)

    path = Path(path)
    if not path.exists() and (DATA_DIR / path).exists():
        path = DATA_DIR / path

    try:
        df = load_bars(path)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Cannot load bars: {exc}")
        sys.exit(1)

    if args.stream:
        tracker = StreamingFractals.from_params(params)
        logger.info("Replaying %d bars (min_size=%d)", len(df), params.min_size)
        for candle in iter_candles(df):
            for f in tracker.update_candle(candle):
                print(f"bar {candle.index:>6d}: fractal {f.kind.value:<4s} at bar {f.position} = {f.value:.6f}")
        factory = tracker.factory
        bar_count = tracker.bar_count
    else:
        factory = FractalFactory.from_params(
            BarSeries.from_frame(df, "high"), BarSeries.from_frame(df, "low"), params,
        )
        bar_count = len(df)

    for kind in FractalKind:
        fractals = factory.get_fractals(kind, bar_count)
        if args.significant:
            fractals = significant_fractals(fractals)
        print_fractals(f"Recent fractal {kind.value.lower()}s ({bar_count} bars)", fractals, bar_count)


if __name__ == "__main__":
    main()
