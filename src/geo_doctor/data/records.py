"""Typed, immutable records for one geo dataset snapshot."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Set, Tuple


def canonical_key(raw: object) -> str:
    """Case-fold and trim a slug into its canonical form."""
    return str(raw).strip().casefold()


@dataclass(frozen=True)
class Area:
    """A single geographic unit (suburb).

    `lat` and `lng` are either both set and valid or both None.
    """

    key: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    cluster_key: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


@dataclass(frozen=True)
class Cluster:
    """A named group of areas; clusters with children are internal nodes."""

    key: str
    member_area_keys: Tuple[str, ...] = ()
    children: Tuple["Cluster", ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class GeoSnapshot:
    """Everything one doctor run reads. Built once by `GeoRecordStore.load()`."""

    areas: Mapping[str, Area]
    clusters: Tuple[Cluster, ...]
    adjacency: Mapping[str, Tuple[str, ...]]
    warnings: Tuple[str, ...] = field(default=())

    def iter_clusters(self) -> Iterator[Cluster]:
        """Yield every cluster in the forest, pre-order, without recursion."""
        stack: List[Cluster] = list(reversed(self.clusters))
        while stack:
            cluster = stack.pop()
            yield cluster
            stack.extend(reversed(cluster.children))

    def cluster_count(self) -> int:
        return sum(1 for _ in self.iter_clusters())

    def has_hierarchy(self) -> bool:
        return any(not cluster.is_leaf for cluster in self.clusters)

    def area_to_cluster(self) -> Dict[str, str]:
        """Resolve each area key to its cluster key.

        An area's own `cluster_key` wins; otherwise the first leaf cluster (in
        pre-order) listing the area as a member is used, then the first internal
        cluster listing it directly. Keys that are not known areas are left out.
        """
        mapping: Dict[str, str] = {}
        clusters = list(self.iter_clusters())
        for leaf_pass in (True, False):
            for cluster in clusters:
                if cluster.is_leaf != leaf_pass:
                    continue
                for member in cluster.member_area_keys:
                    mapping.setdefault(member, cluster.key)
        for area in self.areas.values():
            if area.cluster_key:
                mapping[area.key] = area.cluster_key
        return {key: cluster for key, cluster in mapping.items() if key in self.areas}

    def node_universe(self) -> Set[str]:
        """Union of area keys seen in areas, cluster membership and adjacency."""
        nodes: Set[str] = set(self.areas)
        for cluster in self.iter_clusters():
            nodes.update(cluster.member_area_keys)
        for source, neighbors in self.adjacency.items():
            nodes.add(source)
            nodes.update(neighbors)
        return nodes
