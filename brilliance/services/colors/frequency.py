"""
Color frequency tables indexed by packed RGB.

The dense table is a 256³ counter array (64MB as int32) with O(1) lookups;
the sparse table only stores colors that were actually counted. Both give
identical extraction results.
"""
from typing import Dict

import numpy as np

from .utils import PACKED_RGB_SPACE

TABLE_KINDS = ("dense", "sparse")


class ColorFrequencyTable:
    """Per-extraction counters. Never shared between calls."""

    kind = "abstract"

    @staticmethod
    def create(kind: str = "dense") -> "ColorFrequencyTable":
        if kind == "dense":
            return DenseFrequencyTable()
        if kind == "sparse":
            return SparseFrequencyTable()
        raise ValueError(f"Unknown frequency table kind: {kind!r} (expected one of {TABLE_KINDS})")

    def counts(self, colors: np.ndarray) -> np.ndarray:
        """Current counts (int64) for each packed color in ``colors``."""
        raise NotImplementedError

    def increment(self, colors: np.ndarray, occurrences: np.ndarray) -> None:
        """Add ``occurrences[i]`` to the counter of ``colors[i]``; colors must be unique."""
        raise NotImplementedError

    def add(self, packed: np.ndarray) -> None:
        """Count every packed color in ``packed`` once per occurrence."""
        if packed.size == 0:
            return
        colors, occurrences = np.unique(packed, return_counts=True)
        self.increment(colors, occurrences)

    def get(self, rgb: int) -> int:
        return int(self.counts(np.array([rgb], dtype=np.int64))[0])

    def __len__(self) -> int:
        """Number of distinct colors counted so far."""
        raise NotImplementedError


class DenseFrequencyTable(ColorFrequencyTable):
    kind = "dense"

    def __init__(self):
        self._table = np.zeros(PACKED_RGB_SPACE, dtype=np.int32)

    def counts(self, colors: np.ndarray) -> np.ndarray:
        return self._table[colors].astype(np.int64)

    def increment(self, colors: np.ndarray, occurrences: np.ndarray) -> None:
        self._table[colors] += occurrences.astype(np.int32)

    def __len__(self) -> int:
        return int(np.count_nonzero(self._table))


class SparseFrequencyTable(ColorFrequencyTable):
    kind = "sparse"

    def __init__(self):
        self._table: Dict[int, int] = {}

    def counts(self, colors: np.ndarray) -> np.ndarray:
        lookup = self._table.get
        return np.fromiter((lookup(int(c), 0) for c in colors), dtype=np.int64, count=len(colors))

    def increment(self, colors: np.ndarray, occurrences: np.ndarray) -> None:
        for color, n in zip(colors.tolist(), occurrences.tolist()):
            self._table[color] = self._table.get(color, 0) + n

    def __len__(self) -> int:
        return len(self._table)
