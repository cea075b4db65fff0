"""Grade statistics — deterministic descriptive stats over valid grade points.

Numbers from here are authoritative for the dashboard's distribution chart
and per-class averages.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from models.dashboard import GradeStatistics

DISTRIBUTION_BINS = [0, 40, 50, 60, 70, 80, 90, 100]
DISTRIBUTION_LABELS = ["0-39", "40-49", "50-59", "60-69", "70-79", "80-89", "90-100"]


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like the dashboard always has: halves go up, not to even."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def mean_or_none(points: Sequence[float], digits: int = 1) -> float | None:
    """Mean of *points* rounded half-up, ``None`` for an empty sequence."""
    if not points:
        return None
    return round_half_up(float(np.mean(np.asarray(points, dtype=float))), digits)


def calculate_stats(points: Sequence[float]) -> GradeStatistics:
    """Descriptive statistics for a list of grade points.

    Returns an all-zero :class:`GradeStatistics` for empty input.  Points
    above 100 land in the top bucket.
    """
    if not points:
        return GradeStatistics()

    arr = np.asarray(points, dtype=float)
    counts, _ = np.histogram(np.clip(arr, 0, 100), bins=DISTRIBUTION_BINS)

    return GradeStatistics(
        count=len(arr),
        mean=round(float(np.mean(arr)), 2),
        median=round(float(np.median(arr)), 2),
        stddev=round(float(np.std(arr, ddof=1)) if len(arr) > 1 else 0.0, 2),
        min=round(float(np.min(arr)), 2),
        max=round(float(np.max(arr)), 2),
        percentiles={
            "p25": round(float(np.percentile(arr, 25)), 2),
            "p50": round(float(np.percentile(arr, 50)), 2),
            "p75": round(float(np.percentile(arr, 75)), 2),
            "p90": round(float(np.percentile(arr, 90)), 2),
        },
        distribution={
            "labels": list(DISTRIBUTION_LABELS),
            "counts": [int(c) for c in counts],
        },
    )
