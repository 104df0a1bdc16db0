"""Coordinate coverage per cluster, rolled up through the cluster hierarchy."""

from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from geo_doctor.data.records import Area, Cluster
from geo_doctor.utils.helpers import round_half_up, safe_ratio
from geo_doctor.utils.logging import get_logger

logger = get_logger(__name__)


class CoverageCalculator:
    """Compute the share of areas that carry valid coordinates.

    Members that do not resolve to a known area count as lacking coordinates.

    Args:
        areas: Area records keyed by canonical key.

    Example:
        >>> calc = CoverageCalculator(snapshot.areas)
        >>> calc.rollup(snapshot.clusters)["brisbane"]
        0.875
    """

    def __init__(self, areas: Mapping[str, Area]) -> None:
        self.areas = areas

    def _with_coordinates(self, keys: Iterable[str]) -> int:
        count = 0
        for key in keys:
            area = self.areas.get(key)
            if area is not None and area.has_coordinates:
                count += 1
        return count

    def leaf_coverage(self, cluster: Cluster) -> float:
        """Fraction of the cluster's own members with coordinates; 0 when empty."""
        members = cluster.member_area_keys
        return safe_ratio(self._with_coordinates(members), len(members))

    def coverage_by_cluster(self, clusters: Sequence[Cluster]) -> Dict[str, float]:
        """Leaf coverage for every leaf cluster in the forest."""
        coverage: Dict[str, float] = {}
        stack: List[Cluster] = list(clusters)
        while stack:
            cluster = stack.pop()
            if cluster.is_leaf:
                coverage[cluster.key] = self.leaf_coverage(cluster)
            else:
                stack.extend(cluster.children)
        return dict(sorted(coverage.items()))

    def rollup(self, clusters: Sequence[Cluster]) -> Dict[str, float]:
        """Coverage for every cluster, internal nodes derived bottom-up.

        An internal node's value is the mean of its children's values weighted
        by each child's explicit member count (1 when the child lists no members).
        Members listed directly on an internal node contribute one more term,
        weighted by how many there are.
        """
        values: Dict[str, float] = {}
        # (cluster, children_done) pairs give an iterative post-order walk
        stack: List[Tuple[Cluster, bool]] = [(root, False) for root in reversed(clusters)]
        while stack:
            cluster, children_done = stack.pop()
            if cluster.is_leaf:
                values[cluster.key] = self.leaf_coverage(cluster)
                continue
            if not children_done:
                stack.append((cluster, True))
                stack.extend((child, False) for child in reversed(cluster.children))
                continue

            weighted_sum = 0.0
            total_weight = 0.0
            for child in cluster.children:
                weight = len(child.member_area_keys) or 1
                weighted_sum += values[child.key] * weight
                total_weight += weight
            own_members = cluster.member_area_keys
            if own_members:
                weighted_sum += self._with_coordinates(own_members)
                total_weight += len(own_members)
            values[cluster.key] = safe_ratio(weighted_sum, total_weight)

        return dict(sorted(values.items()))

    def overall_pct(self) -> float:
        """Percentage (0-100, two decimals) of all areas with coordinates."""
        total = len(self.areas)
        pct = safe_ratio(self._with_coordinates(self.areas), total) * 100
        return round_half_up(pct, 2)


def round_coverage(coverage: Mapping[str, float]) -> Dict[str, float]:
    """Round coverage values to four decimals for reporting."""
    return {key: round_half_up(value, 4) for key, value in sorted(coverage.items())}
