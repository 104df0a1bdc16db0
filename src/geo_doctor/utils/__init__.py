"""Utility modules: configuration, logging, helpers."""

from geo_doctor.utils.config import load_config
from geo_doctor.utils.helpers import (
    ensure_dir_exists,
    haversine_km,
    haversine_km_many,
    is_valid_coordinate,
    round_half_up,
    round_half_up_many,
    safe_ratio,
    save_dataframe,
)
from geo_doctor.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Config
    "load_config",
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    # Helpers - distance and coordinates
    "haversine_km",
    "haversine_km_many",
    "is_valid_coordinate",
    # Helpers - numeric conventions
    "round_half_up",
    "round_half_up_many",
    "safe_ratio",
    # Helpers - file I/O
    "ensure_dir_exists",
    "save_dataframe",
]
