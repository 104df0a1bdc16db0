"""Deterministic report serialization."""

from geo_doctor.reporting.report_writer import ReportWriter, content_hash, dumps, graph_hash

__all__ = ["ReportWriter", "content_hash", "dumps", "graph_hash"]
