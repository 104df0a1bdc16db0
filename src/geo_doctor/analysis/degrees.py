"""Out-degree statistics and histogram of the adjacency relation."""

import math
from typing import Any, Dict, Mapping, Sequence

import numpy as np


def degree_stats(adjacency: Mapping[str, Sequence[str]]) -> Dict[str, Any]:
    """Summarize out-degrees: min, median, p90, max, mean and a histogram.

    Quantiles pick the sorted degree at index `floor(p * (n - 1))` rather than
    interpolating, so values are always observed degrees. All values are 0 for
    an empty adjacency map.

    Example:
        >>> degree_stats({"a": ["b"], "b": ["a", "c"], "c": []})["histogram"]
        {'0': 1, '1': 1, '2': 1}
    """
    degrees = np.sort(np.array([len(v) for v in adjacency.values()], dtype=int))
    if degrees.size == 0:
        return {"min": 0, "median": 0, "p90": 0, "max": 0, "mean": 0.0, "histogram": {}}

    def quantile(p: float) -> int:
        return int(degrees[min(degrees.size - 1, math.floor(p * (degrees.size - 1)))])

    values, counts = np.unique(degrees, return_counts=True)
    histogram = {str(int(value)): int(count) for value, count in zip(values, counts)}

    return {
        "min": int(degrees[0]),
        "median": quantile(0.5),
        "p90": quantile(0.9),
        "max": int(degrees[-1]),
        "mean": float(degrees.mean()),
        "histogram": histogram,
    }
