# node.py

from PyQt5.QtCore import QPointF
from typing import Dict, Optional, Tuple, Union

from config import EntityDefaults, clamp_number

_DEFAULTS = EntityDefaults()


def clamp_radius(r, defaults: EntityDefaults = _DEFAULTS) -> float:
    return clamp_number(r, defaults.radius_min, defaults.radius_max, defaults.radius)


def normalize_category(category) -> Optional[str]:
    # Blank tags mean "no layer"
    if category is None:
        return None
    text = str(category).strip()
    return text or None


class Node:
    __slots__ = ("_id", "_position", "_label", "_secondaryLabel", "_color",
                 "_radius", "_category", "_centrality", "_highlighted")

    def __init__(self, node_id: str, position: Union[QPointF, Tuple[float, float]],
                 label: str, color: str = _DEFAULTS.color, radius: float = _DEFAULTS.radius,
                 category: Optional[str] = None, secondaryLabel: str = ""):
        self._id = str(node_id)
        self._position = QPointF()
        self.setPosition(position)
        self._label = str(label)
        self._secondaryLabel = secondaryLabel or ""
        self._color = color or _DEFAULTS.color
        self._radius = clamp_radius(radius)
        self._category = normalize_category(category)
        self._centrality: Dict[str, float] = {}
        self._highlighted = False

    # Immutable: no setter
    @property
    def id(self) -> str:
        return self._id

    # --- Getters and Setters ---
    def getPosition(self) -> QPointF:
        return QPointF(self._position)

    def setPosition(self, pos: Union[QPointF, Tuple[float, float]]) -> None:
        if isinstance(pos, QPointF):
            self._position = QPointF(pos)
        else:
            x, y = pos
            self._position = QPointF(float(x), float(y))

    def x(self) -> float:
        return self._position.x()

    def y(self) -> float:
        return self._position.y()

    def moveBy(self, dx: float, dy: float) -> None:
        self._position = QPointF(self._position.x() + dx, self._position.y() + dy)

    def getLabel(self) -> str:
        return self._label

    def setLabel(self, label) -> None:
        self._label = "" if label is None else str(label)

    def getSecondaryLabel(self) -> str:
        return self._secondaryLabel

    def setSecondaryLabel(self, label) -> None:
        self._secondaryLabel = "" if label is None else str(label)

    def getColor(self) -> str:
        return self._color

    def setColor(self, color) -> None:
        if color:
            self._color = str(color)

    def getRadius(self) -> float:
        return self._radius

    def setRadius(self, r) -> None:
        self._radius = clamp_radius(r)

    def getCategory(self) -> Optional[str]:
        return self._category

    def setCategory(self, category) -> None:
        self._category = normalize_category(category)

    def getCentrality(self) -> Dict[str, float]:
        return dict(self._centrality)

    def setCentrality(self, scores: Dict[str, float]) -> None:
        self._centrality = {k: float(v) for k, v in scores.items()}

    def isHighlighted(self) -> bool:
        return self._highlighted

    def setHighlighted(self, flag: bool) -> None:
        self._highlighted = bool(flag)

    def __repr__(self) -> str:
        return f"N({self._label!r} @ {self._position.x():.1f},{self._position.y():.1f})"
