"""Threshold configuration and the pass/fail gate over doctor metrics."""

import enum
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple, Union

from geo_doctor.utils.logging import get_logger

logger = get_logger(__name__)

UNBOUNDED_SPELLINGS = ("infinity", "inf", "∞")


class ThresholdConfigError(ValueError):
    """A threshold value cannot be interpreted."""


class Bound(enum.Enum):
    """Sentinel for an upper limit that nothing exceeds."""

    UNBOUNDED = "Infinity"

    def __repr__(self) -> str:
        return "UNBOUNDED"


UNBOUNDED = Bound.UNBOUNDED

Limit = Union[int, float, Bound]


def parse_limit(value: Any, name: str = "limit") -> Limit:
    """Parse an upper-limit threshold.

    None, empty strings and the spellings "infinity", "inf" and "∞" (any case)
    mean `UNBOUNDED`. Anything else must be a finite number.

    Raises:
        ThresholdConfigError: If the value is neither a sentinel nor a finite number.

    Example:
        >>> parse_limit("INF")
        UNBOUNDED
        >>> parse_limit("12")
        12
    """
    if value is None or value is UNBOUNDED:
        return UNBOUNDED
    if isinstance(value, bool):
        raise ThresholdConfigError(f"{name}: expected a number or 'Infinity', got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        # YAML's `.inf` arrives as a float
        if value == math.inf:
            return UNBOUNDED
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text or text.lower() in UNBOUNDED_SPELLINGS:
            return UNBOUNDED
        try:
            number = float(text)
        except ValueError:
            raise ThresholdConfigError(
                f"{name}: expected a number or 'Infinity', got {value!r}"
            ) from None
    else:
        raise ThresholdConfigError(f"{name}: expected a number or 'Infinity', got {value!r}")

    if not math.isfinite(number):
        raise ThresholdConfigError(f"{name}: expected a finite number, got {value!r}")
    return int(number) if number.is_integer() else number


def parse_bool(value: Any, name: str = "flag") -> bool:
    """Parse a boolean threshold from bools, 0/1 or common spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "1", "yes", "on"):
            return True
        if text in ("false", "0", "no", "off", ""):
            return False
    raise ThresholdConfigError(f"{name}: expected a boolean, got {value!r}")


def parse_number(value: Any, name: str) -> float:
    """Parse a required finite number."""
    if isinstance(value, bool):
        raise ThresholdConfigError(f"{name}: expected a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ThresholdConfigError(f"{name}: expected a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ThresholdConfigError(f"{name}: expected a finite number, got {value!r}")
    return number


def parse_count(value: Any, name: str, minimum: int = 0) -> int:
    """Parse an integer setting such as a worker count or a list size.

    Raises:
        ThresholdConfigError: If the value is not an integer of at least `minimum`.
    """
    number = parse_number(value, name)
    if not number.is_integer() or number < minimum:
        raise ThresholdConfigError(
            f"{name}: expected an integer >= {minimum}, got {value!r}"
        )
    return int(number)


def exceeds(value: float, limit: Limit) -> bool:
    """True when `value` is strictly above a finite limit; never for UNBOUNDED."""
    if limit is UNBOUNDED:
        return False
    return value > limit


@dataclass(frozen=True)
class ThresholdConfig:
    """The five gate thresholds.

    `min_clusters` and `min_coords_pct` are lower bounds; the two `max_*`
    fields are upper bounds that may be `UNBOUNDED`.
    """

    min_clusters: int = 1
    require_symmetry: bool = True
    min_coords_pct: float = 80.0
    max_cross_cluster_edges: Limit = UNBOUNDED
    max_components: Limit = UNBOUNDED

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ThresholdConfig":
        """Validate and build thresholds from the `thresholds` config section.

        Raises:
            ThresholdConfigError: If any value cannot be parsed.
        """
        defaults = cls()
        min_clusters = parse_number(
            values.get("min_clusters", defaults.min_clusters), "min_clusters"
        )
        if not min_clusters.is_integer():
            raise ThresholdConfigError(
                f"min_clusters: expected an integer, got {values.get('min_clusters')!r}"
            )
        return cls(
            min_clusters=int(min_clusters),
            require_symmetry=parse_bool(
                values.get("require_symmetry", defaults.require_symmetry), "require_symmetry"
            ),
            min_coords_pct=parse_number(
                values.get("min_coords_pct", defaults.min_coords_pct), "min_coords_pct"
            ),
            max_cross_cluster_edges=parse_limit(
                values.get("max_cross_cluster_edges"), "max_cross_cluster_edges"
            ),
            max_components=parse_limit(values.get("max_components"), "max_components"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form; `UNBOUNDED` becomes the string "Infinity"."""

        def serialize(limit: Limit) -> Any:
            return limit.value if isinstance(limit, Bound) else limit

        return {
            "min_clusters": self.min_clusters,
            "require_symmetry": self.require_symmetry,
            "min_coords_pct": self.min_coords_pct,
            "max_cross_cluster_edges": serialize(self.max_cross_cluster_edges),
            "max_components": serialize(self.max_components),
        }


@dataclass(frozen=True)
class GateMetrics:
    clusters: int
    asymmetric_edge_count: int
    coords_coverage_pct: float
    cross_cluster_edges: int
    component_count: int


@dataclass(frozen=True)
class GateResult:
    ok: bool
    failures: Tuple[str, ...]


class ThresholdGate:
    """Evaluate every rule against the metrics and list each violation.

    Rules are independent and never short-circuit, so one run reports all
    problems at once.
    """

    def __init__(self, config: ThresholdConfig) -> None:
        self.config = config

    def evaluate(self, metrics: GateMetrics) -> GateResult:
        config = self.config
        failures: List[str] = []

        if metrics.clusters < config.min_clusters:
            failures.append(f"clusters={metrics.clusters} < {config.min_clusters}")

        if config.require_symmetry and metrics.asymmetric_edge_count > 0:
            failures.append(f"asymmetry_edges={metrics.asymmetric_edge_count}")

        if metrics.coords_coverage_pct < config.min_coords_pct:
            failures.append(
                f"coords_coverage_pct={metrics.coords_coverage_pct:g}% "
                f"< {config.min_coords_pct:g}%"
            )

        if exceeds(metrics.cross_cluster_edges, config.max_cross_cluster_edges):
            failures.append(
                f"cross_cluster_edges={metrics.cross_cluster_edges} "
                f"> {config.max_cross_cluster_edges}"
            )

        if exceeds(metrics.component_count, config.max_components):
            failures.append(
                f"graph_components.count={metrics.component_count} > {config.max_components}"
            )

        for failure in failures:
            logger.error(f"Threshold violated: {failure}")

        return GateResult(ok=not failures, failures=tuple(failures))
