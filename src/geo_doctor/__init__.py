"""geo-doctor: integrity checks and proximity graphs for suburb/cluster/adjacency data."""

__version__ = "1.0.0"
