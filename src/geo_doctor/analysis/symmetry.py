"""Reciprocity checks and repair for the directed adjacency relation."""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Set, Tuple

from geo_doctor.utils.helpers import round_half_up
from geo_doctor.utils.logging import get_logger

logger = get_logger(__name__)

Adjacency = Mapping[str, Sequence[str]]


@dataclass(frozen=True)
class SymmetryResult:
    directed_edge_count: int
    undirected_edge_count: int
    asymmetric_edges: Tuple[Tuple[str, str], ...]

    @property
    def is_symmetric(self) -> bool:
        return not self.asymmetric_edges


@dataclass(frozen=True)
class RepairResult:
    added_edge_count: int
    fixed_adjacency: Dict[str, List[str]]


class SymmetryAnalyzer:
    """Classify every directed edge `a -> b` as reciprocal or not.

    The analyzer expects normalized adjacency (canonical keys, no self loops,
    no duplicate neighbors), as produced by `GeoRecordStore`.

    Example:
        >>> result = SymmetryAnalyzer().analyze({"a": ["b"], "b": []})
        >>> result.asymmetric_edges
        (('a', 'b'),)
    """

    def analyze(self, adjacency: Adjacency) -> SymmetryResult:
        """Count directed edges and list the ones without a reverse edge.

        `undirected_edge_count` is `directed / 2` rounded half up. It is exact
        only for a fully symmetric graph; `asymmetric_edges` shows how far off
        it can be.
        """
        neighbor_sets: Dict[str, Set[str]] = {
            source: set(neighbors) for source, neighbors in adjacency.items()
        }

        directed = 0
        asymmetric: List[Tuple[str, str]] = []
        for source in sorted(neighbor_sets):
            for target in sorted(neighbor_sets[source]):
                directed += 1
                if source not in neighbor_sets.get(target, ()):
                    asymmetric.append((source, target))

        result = SymmetryResult(
            directed_edge_count=directed,
            undirected_edge_count=int(round_half_up(directed / 2)),
            asymmetric_edges=tuple(asymmetric),
        )
        logger.debug(
            f"Symmetry: directed={directed} undirected~={result.undirected_edge_count} "
            f"asymmetric={len(asymmetric)}"
        )
        return result

    def repair(self, adjacency: Adjacency) -> RepairResult:
        """Build a new, fully symmetric adjacency map.

        Every edge present in either direction ends up in both directions,
        every endpoint becomes a key, self loops are dropped and neighbor lists
        are deduplicated and sorted. The input mapping is left untouched.

        Returns:
            `RepairResult` with the number of directed edges that had to be added.
        """
        fixed: Dict[str, Set[str]] = {}
        original = 0
        for source, neighbors in adjacency.items():
            cleaned = {target for target in neighbors if target and target != source}
            original += len(cleaned)
            fixed.setdefault(source, set()).update(cleaned)
            for target in cleaned:
                fixed.setdefault(target, set()).add(source)

        fixed_adjacency = {key: sorted(values) for key, values in sorted(fixed.items())}
        total = sum(len(values) for values in fixed_adjacency.values())
        added = total - original

        logger.info(f"Symmetry repair added {added} directed edges")
        return RepairResult(added_edge_count=added, fixed_adjacency=fixed_adjacency)
