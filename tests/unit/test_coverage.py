"""Unit tests for CoverageCalculator."""

import pytest

from geo_doctor.analysis.coverage import CoverageCalculator, round_coverage
from geo_doctor.data.records import Area, Cluster


@pytest.fixture
def areas():
    """Three located areas and one without coordinates."""
    return {
        "a": Area("a", -27.0, 153.0),
        "b": Area("b"),
        "c": Area("c", -27.1, 153.1),
        "d": Area("d", -27.2, 153.2),
    }


@pytest.fixture
def calculator(areas):
    """Create CoverageCalculator instance for testing."""
    return CoverageCalculator(areas)


def test_leaf_coverage(calculator):
    """Test the fraction of members with coordinates."""
    assert calculator.leaf_coverage(Cluster("x", member_area_keys=("a", "b"))) == 0.5
    assert calculator.leaf_coverage(Cluster("x", member_area_keys=("a", "c"))) == 1.0


def test_leaf_coverage_empty_cluster_is_zero(calculator):
    """Test a cluster without members has zero coverage."""
    assert calculator.leaf_coverage(Cluster("empty")) == 0.0


def test_unknown_members_count_as_missing(calculator):
    """Test members that are not known areas lower coverage."""
    assert calculator.leaf_coverage(Cluster("x", member_area_keys=("a", "ghost"))) == 0.5


def test_coverage_by_cluster_lists_leaves_only(calculator):
    """Test internal clusters are not part of the per-leaf map."""
    forest = (
        Cluster(
            "region",
            children=(
                Cluster("leaf-1", member_area_keys=("a", "b")),
                Cluster("leaf-2", member_area_keys=("c",)),
            ),
        ),
        Cluster("flat", member_area_keys=("d",)),
    )

    assert calculator.coverage_by_cluster(forest) == {
        "flat": 1.0,
        "leaf-1": 0.5,
        "leaf-2": 1.0,
    }


def test_rollup_weights_children_by_member_count(calculator):
    """Test internal nodes take a member-weighted mean of their children."""
    forest = (
        Cluster(
            "region",
            children=(
                Cluster("leaf-1", member_area_keys=("a", "b")),
                Cluster("leaf-2", member_area_keys=("c",)),
            ),
        ),
    )

    rollup = calculator.rollup(forest)

    assert rollup["leaf-1"] == 0.5
    assert rollup["leaf-2"] == 1.0
    assert rollup["region"] == pytest.approx(2 / 3)


def test_rollup_internal_own_members(calculator):
    """Test members listed on an internal node add a weighted term."""
    forest = (
        Cluster(
            "region",
            member_area_keys=("d",),
            children=(
                Cluster("leaf-1", member_area_keys=("a", "b")),
                Cluster("leaf-2", member_area_keys=("c",)),
            ),
        ),
    )

    assert calculator.rollup(forest)["region"] == pytest.approx(0.75)


def test_rollup_nested_levels(calculator):
    """Test values propagate through several levels."""
    forest = (
        Cluster(
            "state",
            children=(
                Cluster("city", children=(Cluster("inner", member_area_keys=("a", "b")),)),
                Cluster("rural", member_area_keys=("c",)),
            ),
        ),
    )

    rollup = calculator.rollup(forest)

    assert rollup["city"] == 0.5
    # city lists no members itself so it weighs 1
    assert rollup["state"] == pytest.approx(0.75)


def test_overall_pct(calculator):
    """Test overall coverage as a two-decimal percentage."""
    assert calculator.overall_pct() == 75.0


def test_overall_pct_rounding():
    """Test the percentage rounds half up to two decimals."""
    areas = {"a": Area("a", 1.0, 1.0), "b": Area("b", 1.0, 1.0), "c": Area("c")}

    assert CoverageCalculator(areas).overall_pct() == 66.67


def test_overall_pct_no_areas():
    """Test zero areas gives zero coverage."""
    assert CoverageCalculator({}).overall_pct() == 0.0


def test_round_coverage():
    """Test values are rounded to four decimals and sorted by key."""
    rounded = round_coverage({"b": 2 / 3, "a": 0.12346})

    assert list(rounded) == ["a", "b"]
    assert rounded["a"] == 0.1235
    assert rounded["b"] == 0.6667
