# edge.py
from __future__ import annotations
from typing import FrozenSet, Optional

from config import DIRECTED, DIRECTIONS, EntityDefaults, clamp_number
from node import normalize_category

_DEFAULTS = EntityDefaults()


def clamp_weight(w, defaults: EntityDefaults = _DEFAULTS) -> float:
    return clamp_number(w, defaults.weight_min, defaults.weight_max, defaults.weight)


def normalize_direction(direction) -> str:
    d = (direction or "").strip().lower() if isinstance(direction, str) else ""
    return d if d in DIRECTIONS else DIRECTED


class Edge:
    __slots__ = ("_id", "_from", "_to", "_weight", "_category", "_direction")

    def __init__(self, edge_id: str, fromId: str, toId: str, weight: float = _DEFAULTS.weight,
                 category: Optional[str] = None, direction: str = DIRECTED):
        # Prevent loops
        if fromId == toId:
            raise ValueError("Edge endpoints must be distinct (no loops).")
        self._id = str(edge_id)
        # Orientation is kept as given; `from` -> `to` is meaningful
        self._from = str(fromId)
        self._to = str(toId)
        self._weight = clamp_weight(weight)
        self._category = normalize_category(category)
        self._direction = normalize_direction(direction)

    @property
    def id(self) -> str:
        return self._id

    # --- Getters and Setters ---
    def getFrom(self) -> str: return self._from
    def getTo(self) -> str: return self._to
    def getWeight(self) -> float: return self._weight
    def setWeight(self, w) -> None: self._weight = clamp_weight(w)
    def getCategory(self) -> Optional[str]: return self._category
    def setCategory(self, category) -> None: self._category = normalize_category(category)
    def getDirection(self) -> str: return self._direction
    def setDirection(self, direction) -> None: self._direction = normalize_direction(direction)
    def isBidirectional(self) -> bool: return self._direction != DIRECTED

    def touches(self, node_id: str) -> bool:
        return self._from == node_id or self._to == node_id

    def other(self, node_id: str) -> Optional[str]:
        if node_id == self._from:
            return self._to
        if node_id == self._to:
            return self._from
        return None

    # Convenience: unordered endpoint pair
    def key(self) -> FrozenSet[str]:
        return frozenset((self._from, self._to))

    def __repr__(self):
        arrow = "<->" if self.isBidirectional() else "->"
        return f"E({self._from[:8]} {arrow} {self._to[:8]}, w={self._weight:g})"
