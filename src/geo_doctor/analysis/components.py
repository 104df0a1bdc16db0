"""Connected components over the undirected projection of the adjacency relation."""

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Sequence, Tuple

import networkx as nx

from geo_doctor.utils.helpers import safe_ratio
from geo_doctor.utils.logging import get_logger

logger = get_logger(__name__)

SMALL_COMPONENT_MAX_SIZE = 20
SMALLEST_LIMIT = 5


@dataclass(frozen=True)
class ComponentResult:
    components: Tuple[Tuple[str, ...], ...]
    largest_size: int
    largest_ratio: float
    smallest: Tuple[Tuple[str, ...], ...]

    @property
    def count(self) -> int:
        return len(self.components)


class ComponentAnalyzer:
    """Partition the node universe into connected components.

    Every directed edge is added in both directions before traversal, so an
    asymmetric edge (already reported by `SymmetryAnalyzer`) does not split the
    graph. Traversal is an explicit-stack DFS; deep chains of thousands of
    suburbs never hit the recursion limit.

    Attributes:
        small_component_max_size: Components up to this size are listed as
            anomalies (isolated suburbs, small islands).
        smallest_limit: Maximum number of small components listed.
    """

    def __init__(
        self,
        small_component_max_size: int = SMALL_COMPONENT_MAX_SIZE,
        smallest_limit: int = SMALLEST_LIMIT,
    ) -> None:
        self.small_component_max_size = small_component_max_size
        self.smallest_limit = smallest_limit

    def build_graph(
        self, node_universe: Iterable[str], adjacency: Mapping[str, Sequence[str]]
    ) -> nx.Graph:
        """Undirected projection containing every universe node, even isolated ones."""
        graph = nx.Graph()
        graph.add_nodes_from(sorted(node_universe))
        for source, neighbors in adjacency.items():
            graph.add_node(source)
            for target in neighbors:
                if target != source:
                    graph.add_edge(source, target)
        return graph

    def analyze(
        self, node_universe: Iterable[str], adjacency: Mapping[str, Sequence[str]]
    ) -> ComponentResult:
        graph = self.build_graph(node_universe, adjacency)

        visited = set()
        components: List[Tuple[str, ...]] = []
        for start in sorted(graph.nodes):
            if start in visited:
                continue
            visited.add(start)
            stack = [start]
            members = []
            while stack:
                node = stack.pop()
                members.append(node)
                for neighbor in graph.adj[node]:
                    if neighbor not in visited:
                        visited.add(neighbor)
                        stack.append(neighbor)
            components.append(tuple(sorted(members)))

        components.sort(key=lambda comp: (-len(comp), comp[0]))

        node_count = graph.number_of_nodes()
        largest = len(components[0]) if components else 0
        smallest = sorted(
            (comp for comp in components if len(comp) <= self.small_component_max_size),
            key=lambda comp: (len(comp), comp[0]),
        )[: self.smallest_limit]

        result = ComponentResult(
            components=tuple(components),
            largest_size=largest,
            largest_ratio=safe_ratio(largest, node_count, default=1.0),
            smallest=tuple(smallest),
        )
        logger.debug(
            f"Components: count={result.count} largest={largest}/{node_count} "
            f"small={len(smallest)}"
        )
        return result
