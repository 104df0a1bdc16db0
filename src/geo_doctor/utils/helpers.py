"""General utility functions shared by the doctor and the proximity builder.

This module provides the great-circle distance primitives, coordinate validity
checks, rounding conventions and small file I/O helpers.
"""

import math
from pathlib import Path
from typing import Any, Optional

import numpy as np
import pandas as pd

EARTH_RADIUS_KM = 6371.0


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """Check that a lat/lng pair is present, numeric, finite and in range.

    Booleans are rejected even though they are `int` subclasses.

    Example:
        >>> is_valid_coordinate(-27.47, 153.02)
        True
        >>> is_valid_coordinate(None, 153.02)
        False
    """
    for value in (lat, lng):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometers between two lat/lng points.

    Uses the mean Earth radius of 6371 km.

    Args:
        lat1: Latitude of the first point in decimal degrees.
        lng1: Longitude of the first point in decimal degrees.
        lat2: Latitude of the second point in decimal degrees.
        lng2: Longitude of the second point in decimal degrees.

    Returns:
        Distance in kilometers.

    Example:
        >>> round(haversine_km(0.0, 0.0, 1.0, 0.0), 1)
        111.2
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    s = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(s)))


def haversine_km_many(
    lat: float, lng: float, lats: np.ndarray, lngs: np.ndarray
) -> np.ndarray:
    """Vectorized great-circle distance from one point to many points.

    Args:
        lat: Source latitude in decimal degrees.
        lng: Source longitude in decimal degrees.
        lats: Target latitudes in decimal degrees.
        lngs: Target longitudes in decimal degrees.

    Returns:
        Array of distances in kilometers, aligned with the targets.
    """
    phi1 = np.radians(lat)
    phi2 = np.radians(lats)
    d_phi = phi2 - phi1
    d_lambda = np.radians(lngs - lng)
    s = np.sin(d_phi / 2.0) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(s, 0.0, 1.0)))


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round half away from zero, independent of Python's banker's rounding.

    Example:
        >>> round_half_up(0.5)
        1.0
        >>> round_half_up(2.25, 1)
        2.3
    """
    factor = 10 ** ndigits
    scaled = abs(value) * factor
    rounded = math.floor(scaled + 0.5) / factor
    return math.copysign(rounded, value) if value else 0.0


def round_half_up_many(values: np.ndarray, ndigits: int = 0) -> np.ndarray:
    """Vectorized `round_half_up` for numpy arrays.

    Example:
        >>> round_half_up_many(np.array([0.25, 1.35, -0.05]), 1)
        array([ 0.3,  1.4, -0.1])
    """
    factor = 10.0 ** ndigits
    return np.sign(values) * np.floor(np.abs(values) * factor + 0.5) / factor


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning `default` when the denominator is zero."""
    if not denominator:
        return default
    return numerator / denominator


def ensure_dir_exists(dir_path: str) -> None:
    """Create directory (and parents) if it does not exist."""
    Path(dir_path).mkdir(parents=True, exist_ok=True)


def save_dataframe(df: pd.DataFrame, path: str, format: Optional[str] = None) -> None:
    """Save DataFrame to file.

    Args:
        df: DataFrame to save.
        path: File path to save to.
        format: File format ("csv" or "json"). Inferred from the suffix when None.

    Raises:
        ValueError: If format is not supported.

    Example:
        >>> df = pd.DataFrame({"area_key": ["a"], "neighbor_key": ["b"]})
        >>> save_dataframe(df, "__reports/proximity.csv")
    """
    file_path = Path(path)
    fmt = (format or file_path.suffix.lstrip(".") or "csv").lower()

    file_path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "csv":
        df.to_csv(file_path, index=False)
    elif fmt == "json":
        df.to_json(file_path, orient="records", indent=2)
    else:
        raise ValueError(f"Unsupported format: {fmt}. Use 'csv' or 'json'.")
