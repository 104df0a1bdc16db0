"""Geo doctor: run every analyzer over one snapshot, gate the metrics, build the report.

The analyzers are independent and read-only over the same immutable snapshot,
so they are submitted to a thread pool together. The gate then consumes all of
their results and every violated rule is listed in the report.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from geo_doctor.analysis.components import (
    SMALL_COMPONENT_MAX_SIZE,
    SMALLEST_LIMIT,
    ComponentAnalyzer,
)
from geo_doctor.analysis.coverage import CoverageCalculator, round_coverage
from geo_doctor.analysis.cross_edges import CrossEdgeCounter
from geo_doctor.analysis.degrees import degree_stats
from geo_doctor.analysis.symmetry import RepairResult, SymmetryAnalyzer
from geo_doctor.data.records import GeoSnapshot
from geo_doctor.reporting.report_writer import graph_hash
from geo_doctor.utils.helpers import round_half_up
from geo_doctor.utils.logging import get_logger
from geo_doctor.validation.thresholds import (
    GateMetrics,
    ThresholdConfig,
    ThresholdGate,
    parse_count,
)

logger = get_logger(__name__)

SCHEMA_VERSION = 1
TOOL_VERSION = "geo-doctor/1"


@dataclass(frozen=True)
class DoctorOutcome:
    """Result of one doctor run.

    Attributes:
        report: JSON-ready report dictionary.
        ok: Whether every threshold passed.
        failures: One human-readable entry per violated threshold.
        repair: The symmetric adjacency artifact when auto-repair was requested.
    """

    report: Dict[str, Any]
    ok: bool
    failures: Tuple[str, ...]
    repair: Optional[RepairResult] = None


class GeoDoctor:
    """Validate a geo snapshot against configured thresholds.

    Attributes:
        thresholds: Parsed `ThresholdConfig`.
        max_workers: Thread pool size for the independent analyzers.
        component_analyzer: Configured `ComponentAnalyzer`.

    Example:
        >>> doctor = GeoDoctor.from_config(load_config())
        >>> outcome = doctor.run(GeoRecordStore.from_config(config).load())
        >>> outcome.ok
        True
    """

    def __init__(
        self,
        thresholds: ThresholdConfig,
        max_workers: int = 4,
        small_component_max_size: int = SMALL_COMPONENT_MAX_SIZE,
        smallest_limit: int = SMALLEST_LIMIT,
    ) -> None:
        self.thresholds = thresholds
        self.max_workers = max(1, int(max_workers))
        self.component_analyzer = ComponentAnalyzer(
            small_component_max_size=small_component_max_size,
            smallest_limit=smallest_limit,
        )
        self.symmetry_analyzer = SymmetryAnalyzer()
        self.cross_edge_counter = CrossEdgeCounter()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "GeoDoctor":
        """Build a doctor from a loaded configuration.

        Raises:
            ThresholdConfigError: If the `thresholds` section, the worker count
                or a `components` setting is invalid.
        """
        components = config.get("components", {})
        pipeline = config.get("pipeline", {})
        return cls(
            thresholds=ThresholdConfig.from_mapping(config.get("thresholds", {})),
            max_workers=parse_count(
                pipeline.get("max_workers", 4), "pipeline.max_workers", minimum=1
            ),
            small_component_max_size=parse_count(
                components.get("small_component_max_size", SMALL_COMPONENT_MAX_SIZE),
                "components.small_component_max_size",
            ),
            smallest_limit=parse_count(
                components.get("smallest_limit", SMALLEST_LIMIT),
                "components.smallest_limit",
            ),
        )

    def run(
        self, snapshot: GeoSnapshot, autofix: bool = False, profile: bool = False
    ) -> DoctorOutcome:
        """Analyze, gate and assemble the report for one snapshot.

        Args:
            snapshot: Loaded geo data; never modified.
            autofix: Also build a symmetric copy of the adjacency. The report
                still describes the original data.
            profile: Include wall-clock timings in `meta.timings`. Off by
                default so repeated runs produce identical reports.

        Returns:
            `DoctorOutcome` with the report and gate decision.
        """
        started = time.perf_counter()
        logger.info(f"Running geo doctor on {len(snapshot.areas)} areas")

        adjacency = snapshot.adjacency
        coverage = CoverageCalculator(snapshot.areas)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            symmetry_future = executor.submit(self.symmetry_analyzer.analyze, adjacency)
            components_future = executor.submit(
                self.component_analyzer.analyze, snapshot.node_universe(), adjacency
            )
            cross_future = executor.submit(
                self.cross_edge_counter.count, adjacency, snapshot.area_to_cluster()
            )
            coverage_future = executor.submit(
                lambda: (
                    coverage.overall_pct(),
                    coverage.coverage_by_cluster(snapshot.clusters),
                    coverage.rollup(snapshot.clusters) if snapshot.has_hierarchy() else None,
                )
            )
            degrees_future = executor.submit(degree_stats, adjacency)
            repair_future = (
                executor.submit(self.symmetry_analyzer.repair, adjacency) if autofix else None
            )

            symmetry = symmetry_future.result()
            components = components_future.result()
            cross = cross_future.result()
            coords_pct, by_cluster, rollup = coverage_future.result()
            degrees = degrees_future.result()
            repair = repair_future.result() if repair_future is not None else None

        cluster_count = snapshot.cluster_count()
        gate = ThresholdGate(self.thresholds).evaluate(
            GateMetrics(
                clusters=cluster_count,
                asymmetric_edge_count=len(symmetry.asymmetric_edges),
                coords_coverage_pct=coords_pct,
                cross_cluster_edges=cross.cross_cluster_edges,
                component_count=components.count,
            )
        )

        if not autofix:
            autofix_section: Dict[str, Any] = {"enabled": False}
        else:
            autofix_section = {"enabled": True, "added_edges": repair.added_edge_count}

        body = {
            "clusters": cluster_count,
            "areas": len(snapshot.areas),
            "nodes": sum(len(component) for component in components.components),
            "edges": {
                "directed": symmetry.directed_edge_count,
                "undirected": symmetry.undirected_edge_count,
            },
            "asymmetry_edges": len(symmetry.asymmetric_edges),
            "asymmetric_edges": [
                {"from": source, "to": target} for source, target in symmetry.asymmetric_edges
            ],
            "cross_cluster_edges": cross.cross_cluster_edges,
            "cross_cluster_ratio": round_half_up(cross.ratio, 4),
            "coords_coverage_pct": coords_pct,
            "coverage_by_cluster": round_coverage(by_cluster),
            "hierarchy_rollup": round_coverage(rollup) if rollup is not None else None,
            "graph_components": {
                "count": components.count,
                "largest_size": components.largest_size,
                "largest_ratio": round_half_up(components.largest_ratio, 3),
                "smallest": [
                    {"size": len(component), "nodes": list(component)}
                    for component in components.smallest
                ],
            },
            "degrees": degrees,
            "autofix": autofix_section,
        }

        meta: Dict[str, Any] = {
            "schema_version": SCHEMA_VERSION,
            "tool_version": TOOL_VERSION,
            "input_hashes": {"graph": graph_hash(adjacency)},
        }
        if profile:
            meta["timings"] = {
                "doctor_ms": round_half_up((time.perf_counter() - started) * 1000, 1)
            }

        report = {
            "ok": gate.ok,
            "failures": list(gate.failures),
            "thresholds": self.thresholds.to_dict(),
            "report": body,
            "load": {
                "warning_count": len(snapshot.warnings),
                "warnings": list(snapshot.warnings),
            },
            "meta": meta,
        }

        if gate.ok:
            logger.info("Geo doctor OK")
        else:
            logger.info(f"Geo doctor FAIL ({len(gate.failures)} thresholds violated)")

        return DoctorOutcome(report=report, ok=gate.ok, failures=gate.failures, repair=repair)
