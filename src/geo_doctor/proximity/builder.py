"""k-nearest-neighbor proximity graph from area coordinates.

For each area with coordinates the builder ranks every other located area by
Haversine distance and keeps the first `k`. The all-pairs computation is done one
source row at a time with numpy, so memory stays linear in the number of areas.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import numpy as np
import pandas as pd

from geo_doctor.data.records import Area
from geo_doctor.utils.helpers import haversine_km_many, round_half_up_many
from geo_doctor.utils.logging import get_logger

logger = get_logger(__name__)

DISTANCE_DECIMALS = 1


@dataclass(frozen=True)
class Neighbor:
    key: str
    distance_km: float


@dataclass(frozen=True)
class ProximityEntry:
    area_key: str
    neighbors: Tuple[Neighbor, ...]


class ProximityBuilder:
    """Build fixed-size nearest-neighbor lists for located areas.

    Neighbors are ordered by distance rounded to 0.1 km, then by key, so the
    output does not depend on floating point noise below the reported precision.

    Attributes:
        max_workers: Number of threads used to process chunks of source areas.
            Results are concatenated in key order, so the output is identical
            for any worker count.

    Example:
        >>> entries = ProximityBuilder().build(snapshot.areas, k=6)
        >>> entries[0].neighbors[0].distance_km
        1.4
    """

    def __init__(self, max_workers: int = 1) -> None:
        self.max_workers = max(1, int(max_workers))

    def build(self, areas: Mapping[str, Area], k: int) -> List[ProximityEntry]:
        """Compute the k nearest located areas for every located area.

        Args:
            areas: Area records keyed by canonical key.
            k: Number of neighbors per area (fewer when not enough areas exist).

        Returns:
            One `ProximityEntry` per located area, sorted by area key.

        Raises:
            ValueError: If k is smaller than 1.
        """
        if isinstance(k, bool) or not isinstance(k, int) or k < 1:
            raise ValueError(f"k must be a positive integer, got {k!r}")

        located = sorted(
            (area for area in areas.values() if area.has_coordinates),
            key=lambda area: area.key,
        )
        keys = [area.key for area in located]
        lats = np.array([area.lat for area in located], dtype=float)
        lngs = np.array([area.lng for area in located], dtype=float)

        skipped = len(areas) - len(located)
        if skipped:
            logger.info(f"Proximity: {skipped} areas without coordinates excluded")

        indices = list(range(len(keys)))
        if self.max_workers == 1 or len(indices) < 2:
            entries = self._build_rows(indices, keys, lats, lngs, k)
        else:
            chunk_size = -(-len(indices) // self.max_workers)
            chunks = [indices[i : i + chunk_size] for i in range(0, len(indices), chunk_size)]
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [
                    executor.submit(self._build_rows, chunk, keys, lats, lngs, k)
                    for chunk in chunks
                ]
                entries = []
                for future in futures:
                    entries.extend(future.result())

        logger.info(f"Proximity: built {len(entries)} neighbor lists (k={k})")
        return entries

    def _build_rows(
        self,
        rows: Sequence[int],
        keys: Sequence[str],
        lats: np.ndarray,
        lngs: np.ndarray,
        k: int,
    ) -> List[ProximityEntry]:
        entries = []
        order_by_key = np.arange(len(keys))
        for row in rows:
            distances = round_half_up_many(
                haversine_km_many(lats[row], lngs[row], lats, lngs), DISTANCE_DECIMALS
            )
            # keys are pre-sorted, so the array index doubles as the key tiebreak
            order = np.lexsort((order_by_key, distances))
            neighbors = []
            for index in order:
                if index == row:
                    continue
                neighbors.append(Neighbor(key=keys[index], distance_km=float(distances[index])))
                if len(neighbors) == k:
                    break
            entries.append(ProximityEntry(area_key=keys[row], neighbors=tuple(neighbors)))
        return entries


def to_payload(entries: Sequence[ProximityEntry], k: int) -> Dict[str, Any]:
    """JSON-ready proximity document: `{"k": k, "nearby": {key: [{key, distance_km}]}}`."""
    return {
        "k": k,
        "nearby": {
            entry.area_key: [
                {"key": n.key, "distance_km": n.distance_km} for n in entry.neighbors
            ]
            for entry in entries
        },
    }


def to_dataframe(entries: Sequence[ProximityEntry]) -> pd.DataFrame:
    """Flatten proximity entries to one row per (area, neighbor) pair."""
    rows = [
        {
            "area_key": entry.area_key,
            "rank": rank,
            "neighbor_key": neighbor.key,
            "distance_km": neighbor.distance_km,
        }
        for entry in entries
        for rank, neighbor in enumerate(entry.neighbors, start=1)
    ]
    return pd.DataFrame(rows, columns=["area_key", "rank", "neighbor_key", "distance_km"])
