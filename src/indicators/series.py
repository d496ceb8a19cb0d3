"""Append-only price series addressed by offset from the newest bar.

Offset 0 is the newest (still-forming) bar, larger offsets are older. History
is never rewritten: the fractal factory relies on that to skip rescans when
the length has not grown.
"""

from __future__ import annotations

from typing import Iterable, Protocol

import numpy as np
import pandas as pd


class OffsetSeries(Protocol):
    """Read-only view consumed by the fractal predicate and factory."""

    def __len__(self) -> int: ...

    def __getitem__(self, offset: int) -> float: ...


class BarSeries:
    """Growable float buffer with offset-from-newest indexing."""

    def __init__(self, values: Iterable[float] | None = None):
        self._values: list[float] = []
        if values is not None:
            self.extend(values)

    @classmethod
    def from_values(cls, values: Iterable[float]) -> BarSeries:
        """Build from values ordered oldest → newest."""
        return cls(values)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, column: str) -> BarSeries:
        return cls(df[column].to_numpy(dtype=float))

    def append(self, value: float) -> None:
        self._values.append(float(value))

    def extend(self, values: Iterable[float]) -> None:
        self._values.extend(float(v) for v in values)

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, offset: int) -> float:
        n = len(self._values)
        if offset < 0 or offset >= n:
            raise IndexError(f"offset {offset} out of range for series of length {n}")
        return self._values[n - 1 - offset]

    def at(self, position: int) -> float:
        """Absolute access, 0 = oldest bar."""
        return self._values[position]

    def values(self) -> np.ndarray:
        """Copy of the buffer ordered oldest → newest."""
        return np.asarray(self._values, dtype=float)

    def __repr__(self) -> str:
        return f"BarSeries(len={len(self._values)})"
