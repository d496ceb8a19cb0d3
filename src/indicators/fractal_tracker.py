"""Bar-by-bar fractal tracking for live feeds.

Owns the highs/lows series and a FractalFactory. Push bars one at a time via
update(); it returns the fractals confirmed by that bar.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from indicators.fractals import DEFAULT_MAX_COUNT, DEFAULT_MAX_SIDE_COUNT, FractalFactory
from indicators.series import BarSeries
from models import Candle, Fractal, FractalKind

if TYPE_CHECKING:
    from config import FractalParams

logger = logging.getLogger(__name__)


@dataclass
class StreamingFractals:
    """Streaming fractal detector.

    A position, once past the newest-bar window, can lose its fractal status
    but never gain it, so anything newer than the last reported position is
    new.
    """

    min_size: int = 2
    check_left: bool = True
    check_right: bool = True
    require_right_min_size: bool = False
    max_count: int = DEFAULT_MAX_COUNT
    measure_sides: bool = False
    max_side_count: int = DEFAULT_MAX_SIDE_COUNT

    # Internal state
    _last_reported: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._highs = BarSeries()
        self._lows = BarSeries()
        self._factory = FractalFactory(
            self._highs, self._lows,
            min_size=self.min_size,
            check_left=self.check_left,
            check_right=self.check_right,
            require_right_min_size=self.require_right_min_size,
            max_count=self.max_count,
            measure_sides=self.measure_sides,
            max_side_count=self.max_side_count,
        )
        self._last_reported = {FractalKind.HIGH: -1, FractalKind.LOW: -1}

    @classmethod
    def from_params(cls, params: FractalParams) -> StreamingFractals:
        return cls(
            min_size=params.min_size,
            check_left=params.check_left,
            check_right=params.check_right,
            require_right_min_size=params.require_right_min_size,
            max_count=params.max_count,
            measure_sides=params.measure_sides,
            max_side_count=params.max_side_count,
        )

    @property
    def highs(self) -> BarSeries:
        return self._highs

    @property
    def lows(self) -> BarSeries:
        return self._lows

    @property
    def factory(self) -> FractalFactory:
        return self._factory

    @property
    def bar_count(self) -> int:
        return len(self._highs)

    def warmup(self, highs: Iterable[float], lows: Iterable[float]) -> None:
        """Load history without reporting the fractals it contains."""
        highs, lows = list(highs), list(lows)
        if len(highs) != len(lows):
            raise ValueError(f"highs and lows differ in length ({len(highs)} vs {len(lows)})")
        self._highs.extend(highs)
        self._lows.extend(lows)
        for kind in FractalKind:
            fractals = self._factory.get_fractals(kind, self.bar_count)
            if fractals:
                self._last_reported[kind] = fractals[0].position

    def update(self, high: float, low: float) -> list[Fractal]:
        """Append one bar. Returns newly confirmed fractals, newest first."""
        self._highs.append(high)
        self._lows.append(low)
        n = self.bar_count

        new: list[Fractal] = []
        for kind in FractalKind:
            last = self._last_reported[kind]
            fresh = [f for f in self._factory.get_fractals(kind, n) if f.position > last]
            if fresh:
                self._last_reported[kind] = fresh[0].position
                new.extend(fresh)
                for f in fresh:
                    logger.debug("New fractal %s at bar %d (%.8g)",
                                 kind.value, f.position, f.value)

        new.sort(key=lambda f: f.position, reverse=True)
        return new

    def update_candle(self, candle: Candle) -> list[Fractal]:
        return self.update(candle.high, candle.low)

    def fractals(self, kind: FractalKind) -> list[Fractal]:
        return self._factory.get_fractals(kind, self.bar_count)

    def latest_high(self) -> Fractal | None:
        fractals = self.fractals(FractalKind.HIGH)
        return fractals[0] if fractals else None

    def latest_low(self) -> Fractal | None:
        fractals = self.fractals(FractalKind.LOW)
        return fractals[0] if fractals else None
