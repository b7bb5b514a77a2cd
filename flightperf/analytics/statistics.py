"""
Numeric primitives for delay statistics.

All functions take plain sequences, convert to NumPy arrays and return
plain Python floats (or None). An undefined statistic is always None:
an empty sample has no mean, a single value has no sample deviation,
a constant series has no correlation. Nothing here raises on a
degenerate input and nothing returns NaN.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class DelaySummary:
    """Distribution summary of one delay sample."""
    count: int
    mean: Optional[float] = None
    stddev: Optional[float] = None
    q1: Optional[float] = None
    median: Optional[float] = None
    q3: Optional[float] = None
    min_val: Optional[float] = None
    max_val: Optional[float] = None


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def mean(values: Sequence[float]) -> Optional[float]:
    """Arithmetic mean, None for an empty sample."""
    arr = _as_array(values)
    if arr.size == 0:
        return None
    return float(np.mean(arr))


def sample_stddev(values: Sequence[float]) -> Optional[float]:
    """Sample (n-1) standard deviation, None below two observations."""
    arr = _as_array(values)
    if arr.size < 2:
        return None
    return float(np.std(arr, ddof=1))


def percentile(values: Sequence[float], q: float) -> Optional[float]:
    """
    Percentile with linear interpolation between closest ranks.

    Matches SQL PERCENTILE_CONT: for q in [0, 100] the result lies between
    the sample minimum and maximum, and is monotonic in q.
    """
    arr = _as_array(values)
    if arr.size == 0:
        return None
    q = min(max(float(q), 0.0), 100.0)
    return float(np.percentile(arr, q))


def pearson(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    """
    Pearson correlation coefficient of two paired samples.

    None when fewer than two pairs exist or either side is constant.
    """
    x = _as_array(xs)
    y = _as_array(ys)
    if x.size != y.size or x.size < 2:
        return None

    dx = x - x.mean()
    dy = y - y.mean()
    denom = float(np.sqrt(np.sum(dx * dx) * np.sum(dy * dy)))
    if denom == 0.0:
        return None

    r = float(np.sum(dx * dy)) / denom
    # Floating point can push |r| a hair past 1
    return max(-1.0, min(1.0, r))


def safe_ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """numerator / denominator, None when either is missing or the divisor is zero."""
    if numerator is None or denominator is None or denominator == 0:
        return None
    return float(numerator) / float(denominator)


def percentage(part: float, whole: float) -> Optional[float]:
    """part as a percentage of whole, None when whole is zero."""
    ratio = safe_ratio(part, whole)
    return None if ratio is None else ratio * 100.0


def summarize(values: Sequence[float]) -> DelaySummary:
    """Count, mean, sample stddev, quartiles and range of a sample."""
    arr = _as_array(values)
    if arr.size == 0:
        return DelaySummary(count=0)

    q1, median, q3 = (float(v) for v in np.percentile(arr, [25, 50, 75]))
    return DelaySummary(
        count=int(arr.size),
        mean=float(np.mean(arr)),
        stddev=float(np.std(arr, ddof=1)) if arr.size >= 2 else None,
        q1=q1,
        median=median,
        q3=q3,
        min_val=float(np.min(arr)),
        max_val=float(np.max(arr)),
    )
