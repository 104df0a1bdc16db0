"""Loader that turns the three geo JSON sources into one immutable snapshot.

The loader is the only place that deals with loosely shaped JSON. Whole-file
problems (missing file, invalid JSON, wrong top-level shape, duplicate area keys)
raise `GeoLoadError` and abort the run. Problems with individual records are
logged, collected on `GeoSnapshot.warnings` and the record is skipped, so the
analyzers still run on whatever data is usable.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from geo_doctor.data.records import Area, Cluster, GeoSnapshot, canonical_key
from geo_doctor.utils.helpers import is_valid_coordinate
from geo_doctor.utils.logging import get_logger

logger = get_logger(__name__)

AREA_KEY_FIELDS = ("key", "slug")
AREA_LNG_FIELDS = ("lng", "lon")
AREA_CLUSTER_FIELDS = ("clusterKey", "cluster_key", "cluster")
CLUSTER_MEMBER_FIELDS = ("memberAreaKeys", "members", "suburbs")
ADJACENCY_LIST_FIELDS = ("adjacent_suburbs", "neighbors")


class GeoLoadError(Exception):
    """A required geo source is missing, unreadable or structurally invalid."""


def _first_present(record: Mapping[str, Any], fields: Tuple[str, ...]) -> Any:
    for name in fields:
        if name in record and record[name] is not None:
            return record[name]
    return None


def _key_or_none(raw: Any) -> Optional[str]:
    if raw is None or isinstance(raw, bool) or not isinstance(raw, (str, int)):
        return None
    key = canonical_key(raw)
    return key or None


class GeoRecordStore:
    """Load areas, clusters and adjacency from JSON files.

    Attributes:
        areas_path: Path to the area list (`[{key, lat?, lng?, clusterKey?}]`).
        clusters_path: Path to the cluster forest (`[{key, memberAreaKeys?, children?}]`).
        adjacency_path: Path to the adjacency map (`{key: [neighbor keys]}`).

    Example:
        >>> store = GeoRecordStore("areas.json", "clusters.json", "adj.json")
        >>> snapshot = store.load()
        >>> len(snapshot.areas)
        42
    """

    def __init__(self, areas_path: str, clusters_path: str, adjacency_path: str) -> None:
        self.areas_path = Path(areas_path)
        self.clusters_path = Path(clusters_path)
        self.adjacency_path = Path(adjacency_path)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "GeoRecordStore":
        """Build a store from the `paths` section of a loaded configuration."""
        paths = config.get("paths", {})
        return cls(paths["areas"], paths["clusters"], paths["adjacency"])

    def load(self) -> GeoSnapshot:
        """Read and normalize all three sources.

        Returns:
            A `GeoSnapshot` with canonical keys and collected record warnings.

        Raises:
            GeoLoadError: If any source is missing, unreadable or malformed, or
                if the area list contains a duplicate key.
        """
        warnings: List[str] = []

        areas = self._parse_areas(self._read_json(self.areas_path, "areas"), warnings)
        clusters = self._parse_clusters(
            self._read_json(self.clusters_path, "clusters"), warnings
        )
        adjacency = self._parse_adjacency(
            self._read_json(self.adjacency_path, "adjacency"), warnings
        )

        snapshot = GeoSnapshot(
            areas=areas, clusters=clusters, adjacency=adjacency, warnings=()
        )
        self._check_references(snapshot, warnings)

        for warning in warnings:
            logger.warning(warning)
        logger.info(
            f"Loaded {len(areas)} areas, {snapshot.cluster_count()} clusters, "
            f"{len(adjacency)} adjacency sources ({len(warnings)} warnings)"
        )

        return GeoSnapshot(
            areas=areas,
            clusters=clusters,
            adjacency=adjacency,
            warnings=tuple(warnings),
        )

    def load_areas(self) -> Tuple[Dict[str, Area], Tuple[str, ...]]:
        """Read only the area source (all the proximity builder needs).

        Returns:
            Tuple of (areas keyed by canonical key, record warnings).

        Raises:
            GeoLoadError: If the area source is missing or malformed.
        """
        warnings: List[str] = []
        areas = self._parse_areas(self._read_json(self.areas_path, "areas"), warnings)
        for warning in warnings:
            logger.warning(warning)
        logger.info(f"Loaded {len(areas)} areas ({len(warnings)} warnings)")
        return areas, tuple(warnings)

    def _read_json(self, path: Path, label: str) -> Any:
        if not path.exists():
            raise GeoLoadError(f"Required {label} source not found at {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise GeoLoadError(f"{label} source is not valid JSON at {path}: {e}") from e
        except OSError as e:
            raise GeoLoadError(f"Failed to read {label} source at {path}: {e}") from e

    def _parse_areas(self, raw: Any, warnings: List[str]) -> Dict[str, Area]:
        if isinstance(raw, dict) and isinstance(raw.get("areas"), list):
            raw = raw["areas"]
        if not isinstance(raw, list):
            raise GeoLoadError(
                f"areas source {self.areas_path} must be a list of area records"
            )

        areas: Dict[str, Area] = {}
        for index, record in enumerate(raw):
            where = f"areas[{index}]"
            if not isinstance(record, dict):
                warnings.append(f"{where}: record is not an object; skipped")
                continue

            key = _key_or_none(_first_present(record, AREA_KEY_FIELDS))
            if key is None:
                warnings.append(f"{where}: missing key; skipped")
                continue
            if key in areas:
                raise GeoLoadError(f"Duplicate area key '{key}' in {self.areas_path}")

            lat = record.get("lat")
            lng = _first_present(record, AREA_LNG_FIELDS)
            if lat is None and lng is None:
                lat_value, lng_value = None, None
            elif is_valid_coordinate(lat, lng):
                lat_value, lng_value = float(lat), float(lng)
                if lat_value == 0.0 and lng_value == 0.0:
                    warnings.append(f"{where} ({key}): lat/lng == 0 looks like a placeholder")
            else:
                warnings.append(
                    f"{where} ({key}): invalid or partial coordinates "
                    f"(lat={lat!r}, lng={lng!r}); treated as missing"
                )
                lat_value, lng_value = None, None

            cluster_key = _key_or_none(_first_present(record, AREA_CLUSTER_FIELDS))

            areas[key] = Area(key=key, lat=lat_value, lng=lng_value, cluster_key=cluster_key)

        return areas

    def _parse_clusters(self, raw: Any, warnings: List[str]) -> Tuple[Cluster, ...]:
        if isinstance(raw, dict) and isinstance(raw.get("clusters"), list):
            raw = raw["clusters"]
        if not isinstance(raw, list):
            raise GeoLoadError(
                f"clusters source {self.clusters_path} must be a list of cluster records"
            )

        seen: set = set()
        roots = []
        for index, record in enumerate(raw):
            cluster = self._parse_cluster(record, f"clusters[{index}]", seen, warnings)
            if cluster is not None:
                roots.append(cluster)
        return tuple(roots)

    def _parse_cluster(
        self, record: Any, where: str, seen: set, warnings: List[str]
    ) -> Optional[Cluster]:
        if not isinstance(record, dict):
            warnings.append(f"{where}: cluster is not an object; skipped")
            return None

        key = _key_or_none(_first_present(record, AREA_KEY_FIELDS))
        if key is None:
            warnings.append(f"{where}: cluster missing key; skipped")
            return None
        if key in seen:
            warnings.append(f"{where}: duplicate cluster key '{key}'; skipped")
            return None
        seen.add(key)

        members: List[str] = []
        raw_members = _first_present(record, CLUSTER_MEMBER_FIELDS)
        if raw_members is not None and not isinstance(raw_members, list):
            warnings.append(f"{where} ({key}): member list is not an array; ignored")
            raw_members = None
        for position, entry in enumerate(raw_members or []):
            if isinstance(entry, dict):
                entry = _first_present(entry, AREA_KEY_FIELDS)
            member = _key_or_none(entry)
            if member is None:
                warnings.append(f"{where} ({key}): member {position} has no key; skipped")
            elif member in members:
                warnings.append(f"{where} ({key}): duplicate member '{member}'; skipped")
            else:
                members.append(member)

        children: List[Cluster] = []
        raw_children = record.get("children")
        if raw_children is not None and not isinstance(raw_children, list):
            warnings.append(f"{where} ({key}): children is not an array; ignored")
            raw_children = None
        for position, child_record in enumerate(raw_children or []):
            child = self._parse_cluster(
                child_record, f"{where}.children[{position}]", seen, warnings
            )
            if child is not None:
                children.append(child)

        return Cluster(key=key, member_area_keys=tuple(members), children=tuple(children))

    def _parse_adjacency(
        self, raw: Any, warnings: List[str]
    ) -> Dict[str, Tuple[str, ...]]:
        if not isinstance(raw, dict):
            raise GeoLoadError(
                f"adjacency source {self.adjacency_path} must be an object of key -> [keys]"
            )

        merged: Dict[str, set] = {}
        for raw_key in sorted(raw, key=str):
            value = raw[raw_key]
            source = _key_or_none(raw_key)
            if source is None:
                warnings.append(f"adjacency[{raw_key!r}]: empty key; skipped")
                continue
            if isinstance(value, dict):
                value = _first_present(value, ADJACENCY_LIST_FIELDS)
            if not isinstance(value, list):
                warnings.append(f"adjacency[{source}]: neighbor list is not an array; skipped")
                continue

            if source in merged:
                warnings.append(
                    f"adjacency[{raw_key!r}]: key collides with '{source}' after "
                    f"normalization; neighbor lists merged"
                )
            neighbors = merged.setdefault(source, set())
            for entry in value:
                if not isinstance(entry, str):
                    warnings.append(
                        f"adjacency[{source}]: non-string neighbor {entry!r}; skipped"
                    )
                    continue
                neighbor = canonical_key(entry)
                if not neighbor:
                    continue
                if neighbor == source:
                    warnings.append(f"adjacency[{source}]: self reference dropped")
                    continue
                neighbors.add(neighbor)

        return {key: tuple(sorted(values)) for key, values in sorted(merged.items())}

    def _check_references(self, snapshot: GeoSnapshot, warnings: List[str]) -> None:
        """Collect warnings for keys that do not resolve to a known area."""
        areas = snapshot.areas
        for cluster in snapshot.iter_clusters():
            for member in cluster.member_area_keys:
                if member not in areas:
                    warnings.append(f"cluster {cluster.key}: member '{member}' is not a known area")

        for source, neighbors in snapshot.adjacency.items():
            if source not in areas:
                warnings.append(f"adjacency source '{source}' is not a known area")
            for neighbor in neighbors:
                if neighbor not in areas:
                    warnings.append(f"adjacency '{source}' -> '{neighbor}' is not a known area")

        cluster_keys = {cluster.key for cluster in snapshot.iter_clusters()}
        for area in areas.values():
            if area.cluster_key is not None and area.cluster_key not in cluster_keys:
                warnings.append(
                    f"area '{area.key}' references unknown cluster '{area.cluster_key}'"
                )
