"""Graph and coverage analyzers run by the geo doctor."""

from geo_doctor.analysis.components import ComponentAnalyzer, ComponentResult
from geo_doctor.analysis.coverage import CoverageCalculator
from geo_doctor.analysis.cross_edges import CrossEdgeCounter, CrossEdgeResult
from geo_doctor.analysis.degrees import degree_stats
from geo_doctor.analysis.symmetry import RepairResult, SymmetryAnalyzer, SymmetryResult

__all__ = [
    "ComponentAnalyzer",
    "ComponentResult",
    "CoverageCalculator",
    "CrossEdgeCounter",
    "CrossEdgeResult",
    "RepairResult",
    "SymmetryAnalyzer",
    "SymmetryResult",
    "degree_stats",
]
