"""Count undirected adjacency edges that cross cluster boundaries."""

from dataclasses import dataclass
from typing import Iterator, Mapping, Sequence, Tuple

from geo_doctor.utils.helpers import safe_ratio
from geo_doctor.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CrossEdgeResult:
    cross_cluster_edges: int
    considered_edges: int
    ratio: float


def undirected_edge(a: str, b: str) -> Tuple[str, str]:
    """Canonical undirected form of an edge: lexicographically smaller key first."""
    return (a, b) if a <= b else (b, a)


def iter_undirected_edges(adjacency: Mapping[str, Sequence[str]]) -> Iterator[Tuple[str, str]]:
    """Yield each undirected edge once, in sorted order."""
    seen = set()
    for source in sorted(adjacency):
        for target in adjacency[source]:
            if target == source:
                continue
            a, b = undirected_edge(source, target)
            pair_key = f"{a}|{b}"
            if pair_key in seen:
                continue
            seen.add(pair_key)
            yield a, b


class CrossEdgeCounter:
    """Count edges whose endpoints belong to different clusters.

    Only edges with both endpoints resolved to a cluster are considered. The
    doctor passes a mapping of known areas only, so stray adjacency keys are
    ignored here (they still count in the directed/undirected totals of
    `SymmetryAnalyzer`).
    """

    def count(
        self, adjacency: Mapping[str, Sequence[str]], area_to_cluster: Mapping[str, str]
    ) -> CrossEdgeResult:
        cross = 0
        considered = 0
        for a, b in iter_undirected_edges(adjacency):
            cluster_a = area_to_cluster.get(a)
            cluster_b = area_to_cluster.get(b)
            if not cluster_a or not cluster_b:
                continue
            considered += 1
            if cluster_a != cluster_b:
                cross += 1

        logger.debug(f"Cross-cluster edges: {cross}/{considered}")
        return CrossEdgeResult(
            cross_cluster_edges=cross,
            considered_edges=considered,
            ratio=safe_ratio(cross, considered),
        )
