"""Deterministic JSON serialization and content hashing for doctor artifacts.

Reports are diffed in CI and cached by content hash, so the same input must
always give the same bytes. Keys are sorted recursively, finite floats are
rounded to six decimals, array order is preserved and the file always ends with
a single newline.
"""

import enum
import hashlib
import json
import math
import os
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from geo_doctor.utils.helpers import ensure_dir_exists
from geo_doctor.utils.logging import get_logger

logger = get_logger(__name__)

FLOAT_DECIMALS = 6


def stable_report(value: Any) -> Any:
    """Return a JSON-ready copy with sorted keys and rounded floats.

    Tuples and sets become lists (sets are sorted), enum members become their
    value and dataclasses become dictionaries. Non-finite floats are left as-is
    and rejected later by `dumps()`.
    """
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, bool) or value is None or isinstance(value, (str, int)):
        return value
    if isinstance(value, float):
        return round(value, FLOAT_DECIMALS) if math.isfinite(value) else value
    if is_dataclass(value) and not isinstance(value, type):
        return stable_report(asdict(value))
    if isinstance(value, Mapping):
        return {str(key): stable_report(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, (set, frozenset)):
        return [stable_report(item) for item in sorted(value)]
    if isinstance(value, Sequence):
        return [stable_report(item) for item in value]
    # numpy scalars and similar expose item()
    if hasattr(value, "item"):
        return stable_report(value.item())
    raise TypeError(f"Cannot serialize {type(value).__name__} in report")


def dumps(value: Any) -> str:
    """Serialize to the canonical text form used for files and hashes."""
    text = json.dumps(
        stable_report(value),
        sort_keys=True,
        indent=2,
        ensure_ascii=False,
        allow_nan=False,
    )
    return text + "\n"


def content_hash(value: Any) -> str:
    """SHA-256 of the canonical serialization."""
    return hashlib.sha256(dumps(value).encode("utf-8")).hexdigest()


def graph_hash(adjacency: Mapping[str, Sequence[str]]) -> str:
    """Stable SHA-256 of an adjacency map, independent of key and list order."""
    normalized = [[key, sorted(adjacency[key])] for key in sorted(adjacency)]
    payload = json.dumps(normalized, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ReportWriter:
    """Write canonical JSON artifacts and return their content hash.

    Example:
        >>> digest = ReportWriter().write(report, "__reports/geo-doctor.json")
        >>> len(digest)
        64
    """

    def write(self, report: Any, path: str) -> str:
        """Write `report` atomically to `path`.

        The text goes to a sibling temp file first and is then moved into place,
        so a crashed run never leaves a half-written report behind.

        Returns:
            SHA-256 hex digest of the bytes written.
        """
        data = dumps(report).encode("utf-8")
        target = Path(path)
        ensure_dir_exists(str(target.parent))

        tmp_path = target.with_name(target.name + ".tmp")
        with open(tmp_path, "wb") as f:
            f.write(data)
        os.replace(tmp_path, target)

        digest = hashlib.sha256(data).hexdigest()
        logger.info(f"Wrote {target} (sha256 {digest[:12]})")
        return digest
