"""Data loading: typed records and the JSON source loader."""

from geo_doctor.data.records import Area, Cluster, GeoSnapshot, canonical_key
from geo_doctor.data.store import GeoLoadError, GeoRecordStore

__all__ = ["Area", "Cluster", "GeoSnapshot", "GeoLoadError", "GeoRecordStore", "canonical_key"]
