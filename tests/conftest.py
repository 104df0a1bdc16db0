"""Shared fixtures: small on-disk geo datasets for store, doctor and CLI tests."""

import json
from pathlib import Path

import pytest


def write_json(path: Path, payload) -> str:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


@pytest.fixture
def clean_dataset():
    """Two clusters, four located areas, symmetric adjacency, no cross-cluster edges."""
    areas = [
        {"key": "alpha", "lat": -27.47, "lng": 153.02, "clusterKey": "north"},
        {"key": "beta", "lat": -27.48, "lng": 153.03, "clusterKey": "north"},
        {"key": "gamma", "lat": -27.55, "lng": 153.10, "clusterKey": "south"},
        {"key": "delta", "lat": -27.56, "lng": 153.11, "clusterKey": "south"},
    ]
    clusters = [
        {"key": "north", "memberAreaKeys": ["alpha", "beta"]},
        {"key": "south", "memberAreaKeys": ["gamma", "delta"]},
    ]
    adjacency = {
        "alpha": ["beta"],
        "beta": ["alpha"],
        "gamma": ["delta"],
        "delta": ["gamma"],
    }
    return {"areas": areas, "clusters": clusters, "adjacency": adjacency}


@pytest.fixture
def write_dataset(tmp_path):
    """Write a dataset dict to areas/clusters/adjacency files and return their paths."""

    def _write(dataset):
        return {
            "areas": write_json(tmp_path / "areas.json", dataset["areas"]),
            "clusters": write_json(tmp_path / "areas.clusters.json", dataset["clusters"]),
            "adjacency": write_json(tmp_path / "areas.adj.json", dataset["adjacency"]),
        }

    return _write
