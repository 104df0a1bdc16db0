"""k-nearest-neighbor proximity graph builder."""

from geo_doctor.proximity.builder import ProximityBuilder, ProximityEntry, to_dataframe, to_payload

__all__ = ["ProximityBuilder", "ProximityEntry", "to_dataframe", "to_payload"]
