"""Unit tests for GeoDoctor.

Snapshots are built in memory; the four canonical scenarios are a clean
dataset, one asymmetric edge, an isolated area and one cross-cluster edge.
"""

import pytest

from geo_doctor.data.records import Area, Cluster, GeoSnapshot
from geo_doctor.reporting.report_writer import content_hash, dumps
from geo_doctor.validation.doctor import SCHEMA_VERSION, TOOL_VERSION, GeoDoctor
from geo_doctor.validation.thresholds import ThresholdConfig, ThresholdConfigError


def located(key, lat, cluster_key=None):
    return Area(key, lat, 153.0, cluster_key)


def make_snapshot(areas, clusters, adjacency, warnings=()):
    return GeoSnapshot(
        areas={area.key: area for area in areas},
        clusters=tuple(clusters),
        adjacency={key: tuple(values) for key, values in adjacency.items()},
        warnings=tuple(warnings),
    )


@pytest.fixture
def clean_snapshot():
    """Two areas in one cluster, reciprocal adjacency."""
    return make_snapshot(
        [located("a", -27.0), located("b", -27.1)],
        [Cluster("c1", member_area_keys=("a", "b"))],
        {"a": ["b"], "b": ["a"]},
    )


@pytest.fixture
def doctor():
    """Create GeoDoctor with default thresholds."""
    return GeoDoctor(ThresholdConfig())


def test_clean_dataset_passes(doctor, clean_snapshot):
    """Test a clean dataset passes with a complete report."""
    outcome = doctor.run(clean_snapshot)

    assert outcome.ok
    assert outcome.failures == ()
    report = outcome.report
    assert report["ok"] is True
    assert report["failures"] == []
    body = report["report"]
    assert body["clusters"] == 1
    assert body["areas"] == 2
    assert body["nodes"] == 2
    assert body["edges"] == {"directed": 2, "undirected": 1}
    assert body["asymmetry_edges"] == 0
    assert body["asymmetric_edges"] == []
    assert body["cross_cluster_edges"] == 0
    assert body["cross_cluster_ratio"] == 0.0
    assert body["coords_coverage_pct"] == 100.0
    assert body["coverage_by_cluster"] == {"c1": 1.0}
    assert body["hierarchy_rollup"] is None
    assert body["graph_components"] == {
        "count": 1,
        "largest_size": 2,
        "largest_ratio": 1.0,
        "smallest": [{"size": 2, "nodes": ["a", "b"]}],
    }
    assert body["degrees"]["max"] == 1
    assert body["autofix"] == {"enabled": False}


def test_report_meta(doctor, clean_snapshot):
    """Test schema and tool versions and the input hash; no timings by default."""
    meta = doctor.run(clean_snapshot).report["meta"]

    assert meta["schema_version"] == SCHEMA_VERSION
    assert meta["tool_version"] == TOOL_VERSION
    assert len(meta["input_hashes"]["graph"]) == 64
    assert "timings" not in meta


def test_profile_adds_timings(doctor, clean_snapshot):
    """Test timings appear only when profiling."""
    meta = doctor.run(clean_snapshot, profile=True).report["meta"]

    assert meta["timings"]["doctor_ms"] >= 0


def test_asymmetric_edge_fails_symmetry_only(doctor):
    """Test a single one-way edge produces exactly one failure."""
    snapshot = make_snapshot(
        [located("a", -27.0), located("b", -27.1)],
        [Cluster("c1", member_area_keys=("a", "b"))],
        {"a": ["b"], "b": []},
    )

    outcome = doctor.run(snapshot)

    assert not outcome.ok
    assert outcome.failures == ("asymmetry_edges=1",)
    body = outcome.report["report"]
    assert body["edges"]["directed"] == 1
    assert body["asymmetric_edges"] == [{"from": "a", "to": "b"}]
    assert body["graph_components"]["count"] == 1


def test_island_is_reported(doctor):
    """Test an area with no neighbors shows up as a size-1 component."""
    snapshot = make_snapshot(
        [located("a", -27.0), located("b", -27.1), located("island", -28.0)],
        [Cluster("c1", member_area_keys=("a", "b", "island"))],
        {"a": ["b"], "b": ["a"]},
    )

    outcome = doctor.run(snapshot)

    components = outcome.report["report"]["graph_components"]
    assert outcome.ok
    assert components["count"] == 2
    assert components["largest_size"] == 2
    assert components["largest_ratio"] == 0.667
    assert {"size": 1, "nodes": ["island"]} in components["smallest"]


def test_island_fails_component_limit():
    """Test max_components turns the island into a failure."""
    snapshot = make_snapshot(
        [located("a", -27.0), located("island", -28.0)],
        [Cluster("c1", member_area_keys=("a", "island"))],
        {"a": []},
    )

    outcome = GeoDoctor(ThresholdConfig(max_components=1)).run(snapshot)

    assert outcome.failures == ("graph_components.count=2 > 1",)


def test_cross_cluster_edge(doctor):
    """Test one edge between clusters is counted and can be gated."""
    snapshot = make_snapshot(
        [located("a", -27.0), located("b", -27.1), located("c", -27.2)],
        [
            Cluster("north", member_area_keys=("a", "b")),
            Cluster("south", member_area_keys=("c",)),
        ],
        {"a": ["b"], "b": ["a", "c"], "c": ["b"]},
    )

    body = doctor.run(snapshot).report["report"]
    assert body["cross_cluster_edges"] == 1
    assert body["cross_cluster_ratio"] == 0.5

    gated = GeoDoctor(ThresholdConfig(max_cross_cluster_edges=0)).run(snapshot)
    assert gated.failures == ("cross_cluster_edges=1 > 0",)


def test_low_coverage_and_cluster_count_fail():
    """Test coverage and cluster minimums are both reported."""
    snapshot = make_snapshot(
        [located("a", -27.0), Area("b")],
        [Cluster("c1", member_area_keys=("a", "b"))],
        {"a": ["b"], "b": ["a"]},
    )

    outcome = GeoDoctor(ThresholdConfig(min_clusters=2)).run(snapshot)

    assert outcome.failures == ("clusters=1 < 2", "coords_coverage_pct=50% < 80%")
    assert outcome.report["report"]["coverage_by_cluster"] == {"c1": 0.5}


def test_hierarchy_rollup_present_for_nested_clusters(doctor):
    """Test the rollup is reported when clusters are nested."""
    snapshot = make_snapshot(
        [located("a", -27.0), Area("b"), located("c", -27.2)],
        [
            Cluster(
                "region",
                children=(
                    Cluster("leaf-1", member_area_keys=("a", "b")),
                    Cluster("leaf-2", member_area_keys=("c",)),
                ),
            )
        ],
        {"a": ["b"], "b": ["a", "c"], "c": ["b"]},
    )

    body = doctor.run(snapshot).report["report"]

    assert body["clusters"] == 3
    assert body["coverage_by_cluster"] == {"leaf-1": 0.5, "leaf-2": 1.0}
    assert body["hierarchy_rollup"] == {"leaf-1": 0.5, "leaf-2": 1.0, "region": 0.6667}


def test_autofix_builds_repair_without_changing_report(doctor):
    """Test autofix returns the symmetric map but reports the original data."""
    snapshot = make_snapshot(
        [located("a", -27.0), located("b", -27.1)],
        [Cluster("c1", member_area_keys=("a", "b"))],
        {"a": ["b"]},
    )

    outcome = doctor.run(snapshot, autofix=True)

    assert outcome.repair.fixed_adjacency == {"a": ["b"], "b": ["a"]}
    assert outcome.report["report"]["autofix"] == {"enabled": True, "added_edges": 1}
    assert outcome.report["report"]["asymmetry_edges"] == 1
    assert snapshot.adjacency == {"a": ("b",)}


def test_load_warnings_are_reported(doctor):
    """Test snapshot warnings are carried into the report."""
    snapshot = make_snapshot(
        [located("a", -27.0)],
        [Cluster("c1", member_area_keys=("a",))],
        {},
        warnings=["areas[1]: missing key; skipped"],
    )

    load = doctor.run(snapshot).report["load"]

    assert load == {"warning_count": 1, "warnings": ["areas[1]: missing key; skipped"]}


def test_thresholds_serialized_in_report(doctor, clean_snapshot):
    """Test the effective thresholds are echoed with the unbounded sentinel."""
    thresholds = doctor.run(clean_snapshot).report["thresholds"]

    assert thresholds["max_components"] == "Infinity"
    assert thresholds["min_clusters"] == 1


def test_report_is_deterministic(clean_snapshot):
    """Test repeated runs and worker counts give byte-identical reports."""
    first = GeoDoctor(ThresholdConfig(), max_workers=4).run(clean_snapshot).report
    second = GeoDoctor(ThresholdConfig(), max_workers=1).run(clean_snapshot).report

    assert dumps(first) == dumps(second)
    assert content_hash(first) == content_hash(second)


def test_from_config():
    """Test the doctor reads thresholds, workers and component settings."""
    config = {
        "thresholds": {"min_clusters": 2, "max_components": "3"},
        "components": {"small_component_max_size": 4, "smallest_limit": 1},
        "pipeline": {"max_workers": 2},
    }

    doctor = GeoDoctor.from_config(config)

    assert doctor.thresholds.min_clusters == 2
    assert doctor.thresholds.max_components == 3
    assert doctor.max_workers == 2
    assert doctor.component_analyzer.small_component_max_size == 4
    assert doctor.component_analyzer.smallest_limit == 1


def test_from_config_invalid_thresholds():
    """Test bad threshold values surface as ThresholdConfigError."""
    with pytest.raises(ThresholdConfigError):
        GeoDoctor.from_config({"thresholds": {"max_components": "lots"}})


@pytest.mark.parametrize(
    "config",
    [
        {"pipeline": {"max_workers": "four"}},
        {"pipeline": {"max_workers": 0}},
        {"components": {"small_component_max_size": "big"}},
        {"components": {"smallest_limit": 2.5}},
    ],
)
def test_from_config_invalid_settings(config):
    """Test bad worker and component settings surface as ThresholdConfigError."""
    with pytest.raises(ThresholdConfigError):
        GeoDoctor.from_config(config)
