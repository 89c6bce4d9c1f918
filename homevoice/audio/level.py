"""Audio level normalization for the listening indicator."""

from __future__ import annotations

from typing import Sequence

import numpy as np

# Mean byte magnitude that maps to a full-scale level.
LEVEL_FULL_SCALE = 128.0


def normalized_level(sample: Sequence[int] | np.ndarray) -> float:
    """Mean of a byte frequency sample divided by 128, clamped to [0, 1]."""

    arr = np.asarray(sample, dtype=np.float64)
    if arr.size == 0:
        return 0.0
    level = float(np.mean(arr)) / LEVEL_FULL_SCALE
    return min(max(level, 0.0), 1.0)
