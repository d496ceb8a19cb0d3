"""Data models for the fractal detection engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FractalKind(str, Enum):
    HIGH = "HIGH"
    LOW = "LOW"

    @property
    def is_high(self) -> bool:
        return self == FractalKind.HIGH


@dataclass
class Candle:
    """Single OHLC bar."""
    index: int
    open: float
    high: float
    low: float
    close: float


@dataclass(frozen=True)
class Fractal:
    """Confirmed local extremum.

    `offset` is captured at confirmation time and never updated; use
    bars_ago() for the distance from the newest bar of a longer series.
    """
    position: int           # absolute index, 0 = oldest bar
    offset: int             # offset from newest bar when confirmed
    value: float
    kind: FractalKind
    left_size: int = 0      # dominated bars on the older side (0 = not measured)
    right_size: int = 0     # dominated bars on the newer side

    @property
    def size(self) -> int:
        return min(self.left_size, self.right_size)

    @property
    def is_high(self) -> bool:
        return self.kind == FractalKind.HIGH

    @property
    def is_low(self) -> bool:
        return self.kind == FractalKind.LOW

    def bars_ago(self, current_length: int) -> int:
        return current_length - 1 - self.position
