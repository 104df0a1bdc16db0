"""Command line entry point: `geo-doctor validate` and `geo-doctor proximity`.

Exit codes:
    0  validation passed (or proximity file written)
    1  one or more thresholds violated
    2  configuration, load or write error; no report is written
"""

import argparse
import sys
from typing import List, Optional

import yaml

from geo_doctor.data.store import GeoLoadError, GeoRecordStore
from geo_doctor.proximity.builder import ProximityBuilder, to_dataframe, to_payload
from geo_doctor.reporting.report_writer import ReportWriter
from geo_doctor.utils.config import load_config
from geo_doctor.utils.helpers import save_dataframe
from geo_doctor.utils.logging import get_logger, setup_logging_from_config
from geo_doctor.validation.doctor import GeoDoctor
from geo_doctor.validation.thresholds import ThresholdConfigError, parse_bool, parse_count

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_GATE_FAILED = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="geo-doctor",
        description="Validate geo area/cluster/adjacency data and build proximity graphs",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML configuration file (default: config/geo_doctor.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override the configured log level (DEBUG, INFO, WARNING, ERROR)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Run integrity checks and the threshold gate")
    validate.add_argument("--areas", type=str, default=None, help="Area list JSON")
    validate.add_argument("--clusters", type=str, default=None, help="Cluster tree JSON")
    validate.add_argument("--adjacency", type=str, default=None, help="Adjacency map JSON")
    validate.add_argument("--out", type=str, default=None, help="Report output path")
    validate.add_argument(
        "--autofix-symmetry",
        action="store_true",
        help="Also write a symmetric copy of the adjacency map",
    )
    validate.add_argument(
        "--symmetric-out",
        type=str,
        default=None,
        help="Output path for the repaired symmetric adjacency",
    )
    validate.add_argument(
        "--profile",
        action="store_true",
        help="Include timings in the report (makes the report non-deterministic)",
    )

    proximity = subparsers.add_parser("proximity", help="Build the k-nearest-neighbor file")
    proximity.add_argument("--areas", type=str, default=None, help="Area list JSON")
    proximity.add_argument("--k", type=int, default=None, help="Neighbors per area")
    proximity.add_argument("--out", type=str, default=None, help="Proximity JSON output path")
    proximity.add_argument("--csv", type=str, default=None, help="Optional flat CSV export")
    proximity.add_argument("--workers", type=int, default=None, help="Worker threads")

    return parser


def _apply_path_overrides(config: dict, overrides: dict) -> None:
    paths = config["paths"]
    for name, value in overrides.items():
        if value is not None:
            paths[name] = value


def run_validate(args: argparse.Namespace, config: dict) -> int:
    _apply_path_overrides(
        config,
        {
            "areas": args.areas,
            "clusters": args.clusters,
            "adjacency": args.adjacency,
            "report": args.out,
            "symmetric_adjacency": args.symmetric_out,
        },
    )
    paths = config["paths"]

    try:
        autofix = args.autofix_symmetry or parse_bool(
            config["pipeline"].get("autofix_symmetry", False), "autofix_symmetry"
        )
        doctor = GeoDoctor.from_config(config)
    except ThresholdConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_FATAL

    try:
        snapshot = GeoRecordStore.from_config(config).load()
    except GeoLoadError as e:
        logger.error(f"Load failed: {e}")
        return EXIT_FATAL

    outcome = doctor.run(snapshot, autofix=autofix, profile=args.profile)
    writer = ReportWriter()

    try:
        if outcome.repair is not None:
            writer.write(outcome.repair.fixed_adjacency, paths["symmetric_adjacency"])
            outcome.report["report"]["autofix"]["output"] = paths["symmetric_adjacency"]

        digest = writer.write(outcome.report, paths["report"])
    except OSError as e:
        logger.error(f"Failed to write output: {e}")
        return EXIT_FATAL

    print("=" * 80)
    print("GEO DOCTOR SUMMARY")
    print("=" * 80)
    body = outcome.report["report"]
    print(f"Clusters: {body['clusters']}  Areas: {body['areas']}  Nodes: {body['nodes']}")
    print(
        f"Edges: {body['edges']['directed']} directed, "
        f"{body['asymmetry_edges']} asymmetric, {body['cross_cluster_edges']} cross-cluster"
    )
    print(f"Coordinate coverage: {body['coords_coverage_pct']}%")
    print(f"Components: {body['graph_components']['count']}")
    print(f"Load warnings: {len(snapshot.warnings)}")
    print(f"Report: {paths['report']} (sha256 {digest})")
    if outcome.ok:
        print("Result: OK")
    else:
        print("Result: FAIL")
        for failure in outcome.failures:
            print(f"  - {failure}")
    print("=" * 80)

    return EXIT_OK if outcome.ok else EXIT_GATE_FAILED


def run_proximity(args: argparse.Namespace, config: dict) -> int:
    _apply_path_overrides(config, {"areas": args.areas, "proximity": args.out})
    proximity_config = config["proximity"]
    try:
        k = parse_count(
            args.k if args.k is not None else proximity_config.get("k", 6), "k", minimum=1
        )
        workers = parse_count(
            args.workers if args.workers is not None else proximity_config.get("max_workers", 1),
            "proximity.max_workers",
            minimum=1,
        )
    except ThresholdConfigError as e:
        logger.error(f"Invalid proximity settings: {e}")
        return EXIT_FATAL

    try:
        areas, _ = GeoRecordStore.from_config(config).load_areas()
    except GeoLoadError as e:
        logger.error(f"Load failed: {e}")
        return EXIT_FATAL

    entries = ProximityBuilder(max_workers=workers).build(areas, k)

    try:
        digest = ReportWriter().write(to_payload(entries, k), config["paths"]["proximity"])
        if args.csv:
            save_dataframe(to_dataframe(entries), args.csv, format="csv")
            logger.info(f"Wrote proximity CSV to {args.csv}")
    except OSError as e:
        logger.error(f"Failed to write output: {e}")
        return EXIT_FATAL

    print(f"Proximity: {len(entries)} areas, k={k} -> {config['paths']['proximity']} (sha256 {digest})")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, yaml.YAMLError, ValueError) as e:
        setup_logging_from_config({}, args.log_level)
        logger.error(f"Configuration error: {e}")
        return EXIT_FATAL

    setup_logging_from_config(config, args.log_level)

    if args.command == "validate":
        return run_validate(args, config)
    return run_proximity(args, config)


if __name__ == "__main__":
    sys.exit(main())
