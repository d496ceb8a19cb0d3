"""Fractal (local extremum) detection over append-only price series.

Series are addressed by offset from the newest bar (0 = still-forming bar).

Tie rule: the older (left) side accepts equal values, the newer (right) side
does not. On a flat top or bottom only the newest bar of the plateau is a
fractal.

Three interfaces:
- Point-check (series, offset → bool): is_extremum and its high/low shorthands
- Incremental (FractalFactory): most recent fractals per direction, rescanned
  only when the series has grown
- Vectorized (numpy array → boolean array): for backtest pre-computation
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from indicators.series import BarSeries, OffsetSeries
from models import Fractal, FractalKind

if TYPE_CHECKING:
    from config import FractalParams

logger = logging.getLogger(__name__)

FIRST_SCAN_OFFSET = 2       # offset 1 has only the forming bar to its right
DEFAULT_MAX_COUNT = 5
DEFAULT_MAX_SIDE_COUNT = 50


# ── Point-check ───────────────────────────────────────────


def is_extremum(
    series: OffsetSeries,
    offset: int,
    min_size: int = 1,
    check_left: bool = True,
    check_right: bool = True,
    require_right_min_size: bool = False,
    kind: FractalKind = FractalKind.HIGH,
) -> bool:
    """Check whether series[offset] is a fractal of at least min_size bars.

    Args:
        series: Values addressed by offset from newest.
        offset: Candidate bar. Offset 0 never qualifies.
        min_size: Bars on each side the candidate must dominate (clamped to >= 1).
        check_left: Validate the older side.
        check_right: Validate the newer side. Fewer than min_size newer bars
            are checked if that is all that exists yet.
        require_right_min_size: Reject candidates that don't have min_size
            newer bars yet.
        kind: HIGH compares with >, LOW with <.

    Returns:
        True if the candidate passes every enabled side check.
    """
    assert isinstance(offset, (int, np.integer)) and offset >= 0, \
        f"offset must be a non-negative integer, got {offset!r}"
    if offset <= 0:
        return False

    min_size = max(int(min_size), 1)
    if require_right_min_size and offset <= min_size:
        return False

    n = len(series)
    if offset >= n:
        return False

    val = series[offset]
    if math.isnan(val):
        return False
    high = FractalKind(kind).is_high

    if check_left:
        # Left window must be fully formed
        if offset + min_size >= n:
            return False
        for i in range(offset + 1, offset + min_size + 1):
            if high and val < series[i]:
                return False
            if not high and val > series[i]:
                return False

    if check_right:
        right_count = min(offset, min_size)
        for r in range(offset - 1, offset - right_count - 1, -1):
            if high and val <= series[r]:
                return False
            if not high and val >= series[r]:
                return False

    return True


def is_fractal_high(series: OffsetSeries, offset: int, min_size: int = 1,
                    check_left: bool = True, check_right: bool = True,
                    require_right_min_size: bool = False) -> bool:
    return is_extremum(series, offset, min_size, check_left, check_right,
                       require_right_min_size, FractalKind.HIGH)


def is_fractal_low(series: OffsetSeries, offset: int, min_size: int = 1,
                   check_left: bool = True, check_right: bool = True,
                   require_right_min_size: bool = False) -> bool:
    return is_extremum(series, offset, min_size, check_left, check_right,
                       require_right_min_size, FractalKind.LOW)


# ── Side measurement / significance ───────────────────────


def measure_sides(
    series: OffsetSeries,
    offset: int,
    kind: FractalKind = FractalKind.HIGH,
    max_count: int = DEFAULT_MAX_SIDE_COUNT,
) -> tuple[int, int]:
    """Count consecutive bars dominated by series[offset] on each side.

    Uses the same tie rule as is_extremum (left non-strict, right strict).
    Each count is capped at max_count and at the available history.

    Returns:
        (left_size, right_size)
    """
    n = len(series)
    if offset < 0 or offset >= n:
        return 0, 0
    high = FractalKind(kind).is_high
    val = series[offset]

    left = 0
    i = offset + 1
    while i < n and left < max_count:
        other = series[i]
        if (high and val < other) or (not high and val > other):
            break
        left += 1
        i += 1

    right = 0
    r = offset - 1
    while r >= 0 and right < max_count:
        other = series[r]
        if (high and val <= other) or (not high and val >= other):
            break
        right += 1
        r -= 1

    return left, right


def is_significant(
    fractal: Fractal,
    prev: Fractal | None = None,
    next_: Fractal | None = None,
) -> bool:
    """Apply the fractal significance rules to measured side sizes.

    Any one rule is enough:
        1. both sides >= 5
        2. both sides >= the matching sides of the neighbouring fractals
           (older `prev` and newer `next_`; needs at least one neighbour)
        3. smaller side >= half the larger side, and both sides >= 10
    """
    left, right = fractal.left_size, fractal.right_size

    if left >= 5 and right >= 5:
        return True

    neighbours = [f for f in (prev, next_) if f is not None]
    if neighbours and all(left >= f.left_size and right >= f.right_size
                          for f in neighbours):
        return True

    small, large = min(left, right), max(left, right)
    if small * 2 >= large and left >= 10 and right >= 10:
        return True

    return False


def significant_fractals(fractals: list[Fractal]) -> list[Fractal]:
    """Filter a newest-first list of same-kind fractals by is_significant."""
    result = []
    for i, f in enumerate(fractals):
        next_ = fractals[i - 1] if i > 0 else None
        prev = fractals[i + 1] if i + 1 < len(fractals) else None
        if is_significant(f, prev, next_):
            result.append(f)
    return result


# ── Incremental factory ───────────────────────────────────


class FractalFactory:
    """Keeps the most recent fractal highs and lows of two growing series.

    A direction is rescanned from scratch whenever the caller reports a longer
    series than at the previous scan; otherwise the cached result is reused.
    Not safe for concurrent use.
    """

    def __init__(
        self,
        highs: OffsetSeries | None,
        lows: OffsetSeries | None,
        min_size: int = 1,
        check_left: bool = True,
        check_right: bool = True,
        require_right_min_size: bool = False,
        max_count: int = DEFAULT_MAX_COUNT,
        measure_sides: bool = False,
        max_side_count: int = DEFAULT_MAX_SIDE_COUNT,
    ):
        self.highs = highs
        self.lows = lows
        self.min_size = max(int(min_size), 1)
        self.check_left = check_left
        self.check_right = check_right
        self.require_right_min_size = require_right_min_size
        self.max_count = max(int(max_count), 1)
        self.measure_sides = measure_sides
        self.max_side_count = max_side_count

        self._last_scanned: dict[FractalKind, int] = {
            FractalKind.HIGH: 0,
            FractalKind.LOW: 0,
        }
        self._fractals: dict[FractalKind, list[Fractal]] = {
            FractalKind.HIGH: [],
            FractalKind.LOW: [],
        }

    @classmethod
    def from_params(
        cls,
        highs: OffsetSeries | None,
        lows: OffsetSeries | None,
        params: FractalParams,
    ) -> FractalFactory:
        return cls(
            highs, lows,
            min_size=params.min_size,
            check_left=params.check_left,
            check_right=params.check_right,
            require_right_min_size=params.require_right_min_size,
            max_count=params.max_count,
            measure_sides=params.measure_sides,
            max_side_count=params.max_side_count,
        )

    def series_for(self, kind: FractalKind) -> OffsetSeries | None:
        return self.highs if FractalKind(kind).is_high else self.lows

    def last_scanned_length(self, kind: FractalKind) -> int:
        return self._last_scanned[FractalKind(kind)]

    def ensure_scanned(self, kind: FractalKind, current_length: int) -> bool:
        """Rescan one direction if the series grew since the last scan.

        Returns:
            True if a scan ran.
        """
        kind = FractalKind(kind)
        series = self.series_for(kind)
        if series is None:
            return False
        if current_length <= self._last_scanned[kind]:
            return False

        found: list[Fractal] = []
        offset = FIRST_SCAN_OFFSET
        while len(found) < self.max_count:
            # Don't claim fractals whose left window isn't formed yet
            if offset + self.min_size >= current_length:
                break
            if is_extremum(series, offset, self.min_size, self.check_left,
                           self.check_right, self.require_right_min_size, kind):
                found.append(self._make_fractal(series, offset, kind))
            offset += 1

        self._fractals[kind] = found
        self._last_scanned[kind] = current_length
        logger.debug("Rescanned %s fractals at length %d: %d found",
                     kind.value, current_length, len(found))
        return True

    def _make_fractal(self, series: OffsetSeries, offset: int, kind: FractalKind) -> Fractal:
        left = right = 0
        if self.measure_sides:
            left, right = measure_sides(series, offset, kind, self.max_side_count)
        return Fractal(
            position=len(series) - 1 - offset,
            offset=offset,
            value=float(series[offset]),
            kind=kind,
            left_size=left,
            right_size=right,
        )

    # ── Accessors ──

    def get_fractals(self, kind: FractalKind, current_length: int) -> list[Fractal]:
        """Most recent fractals of one direction, newest first."""
        kind = FractalKind(kind)
        if self.series_for(kind) is None:
            return []
        self.ensure_scanned(kind, current_length)
        return list(self._fractals[kind])

    def get_positions(self, kind: FractalKind, current_length: int) -> list[int]:
        return [f.position for f in self.get_fractals(kind, current_length)]

    def get_values(self, kind: FractalKind, current_length: int) -> list[float]:
        return [f.value for f in self.get_fractals(kind, current_length)]

    def get_offset_map(self, kind: FractalKind, current_length: int) -> dict[int, float]:
        """Offset-from-newest (as of confirmation) → value."""
        return {f.offset: f.value for f in self.get_fractals(kind, current_length)}

    def fractal_high_ids(self, current_length: int) -> list[int]:
        return self.get_positions(FractalKind.HIGH, current_length)

    def fractal_high_values(self, current_length: int) -> list[float]:
        return self.get_values(FractalKind.HIGH, current_length)

    def fractal_high_bars_ago(self, current_length: int) -> dict[int, float]:
        return self.get_offset_map(FractalKind.HIGH, current_length)

    def fractal_low_ids(self, current_length: int) -> list[int]:
        return self.get_positions(FractalKind.LOW, current_length)

    def fractal_low_values(self, current_length: int) -> list[float]:
        return self.get_values(FractalKind.LOW, current_length)

    def fractal_low_bars_ago(self, current_length: int) -> dict[int, float]:
        return self.get_offset_map(FractalKind.LOW, current_length)


# ── Vectorized (backtest) ─────────────────────────────────


def compute_fractals_high(arr: np.ndarray, min_size: int = 1, check_left: bool = True,
                          check_right: bool = True,
                          require_right_min_size: bool = False) -> np.ndarray:
    """Flag fractal highs over a complete array.

    Result[i] is True if arr[i] is confirmed when the whole array is visible,
    with the same offset limits FractalFactory scans under but no count limit.
    """
    return _compute_fractals(arr, FractalKind.HIGH, min_size, check_left,
                             check_right, require_right_min_size)


def compute_fractals_low(arr: np.ndarray, min_size: int = 1, check_left: bool = True,
                         check_right: bool = True,
                         require_right_min_size: bool = False) -> np.ndarray:
    """Flag fractal lows over a complete array."""
    return _compute_fractals(arr, FractalKind.LOW, min_size, check_left,
                             check_right, require_right_min_size)


def _compute_fractals(arr, kind: FractalKind, min_size: int, check_left: bool,
                      check_right: bool, require_right_min_size: bool) -> np.ndarray:
    values = np.asarray(arr, dtype=float)
    n = len(values)
    result = np.zeros(n, dtype=bool)
    series = BarSeries.from_values(values)
    min_size = max(int(min_size), 1)
    for offset in range(FIRST_SCAN_OFFSET, n - min_size):
        if is_extremum(series, offset, min_size, check_left, check_right,
                       require_right_min_size, kind):
            result[n - 1 - offset] = True
    return result


def fractals_from_frame(df: pd.DataFrame, min_size: int = 1, check_left: bool = True,
                        check_right: bool = True,
                        require_right_min_size: bool = False) -> pd.DataFrame:
    """Add fractal_high / fractal_low bool columns to a copy of an OHLC DataFrame."""
    out = df.copy()
    out["fractal_high"] = compute_fractals_high(
        df["high"].to_numpy(dtype=float), min_size, check_left, check_right,
        require_right_min_size,
    )
    out["fractal_low"] = compute_fractals_low(
        df["low"].to_numpy(dtype=float), min_size, check_left, check_right,
        require_right_min_size,
    )
    return out
