"""Threshold gate and the doctor pipeline."""

from geo_doctor.validation.doctor import DoctorOutcome, GeoDoctor
from geo_doctor.validation.thresholds import (
    UNBOUNDED,
    ThresholdConfig,
    ThresholdConfigError,
    ThresholdGate,
    parse_limit,
)

__all__ = [
    "DoctorOutcome",
    "GeoDoctor",
    "ThresholdConfig",
    "ThresholdConfigError",
    "ThresholdGate",
    "UNBOUNDED",
    "parse_limit",
]
