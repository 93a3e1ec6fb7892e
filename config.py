# config.py

from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional

# Interaction modes
NODE_MODE = "node"
EDGE_MODE = "edge"
SELECT_MODE = "select"
MODES = (NODE_MODE, EDGE_MODE, SELECT_MODE)

# Layer filter modes
INCLUDE = "include"
EXCLUDE = "exclude"

# Edge directionality
DIRECTED = "directed"
BIDIRECTIONAL = "bidirectional"
DIRECTIONS = (DIRECTED, BIDIRECTIONAL)

# Centrality measures, in the order they are written onto nodes
MEASURES = ("degree", "closeness", "betweenness", "eigenvector", "pagerank")


@dataclass
class ViewConfig:
    zoom_min: float = 0.1
    zoom_max: float = 5.0
    zoom_in_factor: float = 1.1
    zoom_out_factor: float = 0.9
    # World units, so the on-screen tolerance shrinks as the user zooms in
    edge_hit_threshold: float = 5.0


@dataclass
class EntityDefaults:
    color: str = "#6737E8"
    radius: float = 20.0
    radius_min: float = 1.0
    radius_max: float = 100.0
    weight: float = 1.0
    weight_min: float = 0.1
    weight_max: float = 30.0


@dataclass
class AnalyticsConfig:
    damping: float = 0.85
    max_iterations: int = 100
    tolerance: float = 1.0e-6


@dataclass
class EngineConfig:
    history_capacity: int = 50
    view: ViewConfig = field(default_factory=ViewConfig)
    defaults: EntityDefaults = field(default_factory=EntityDefaults)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "EngineConfig":
        """
        Build a config from a plain mapping such as a parsed settings file.
        Nested sections are mappings too; unknown keys are ignored.
        """
        cfg = cls()
        if not data:
            return cfg
        if "history_capacity" in data:
            cfg.history_capacity = max(1, int(data["history_capacity"]))
        for name, section in (("view", cfg.view), ("defaults", cfg.defaults),
                              ("analytics", cfg.analytics)):
            values = data.get(name) or {}
            for f in fields(section):
                if f.name in values:
                    current = getattr(section, f.name)
                    setattr(section, f.name, type(current)(values[f.name]))
        return cfg


def clamp(value: float, lo: float, hi: float) -> float:
    return lo if value < lo else (hi if value > hi else value)


def clamp_number(value, lo: float, hi: float, fallback: float) -> float:
    # Non-numeric input degrades to the fallback instead of raising
    try:
        v = float(value)
    except (TypeError, ValueError):
        return fallback
    if v != v:  # NaN
        return fallback
    return clamp(v, lo, hi)
