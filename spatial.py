# spatial.py
"""
Pointer hit testing against world-space geometry.

Both queries are first-match linear scans in insertion order: overlapping
nodes resolve to whichever was created earlier, not to the nearest one.
"""

from PyQt5.QtCore import QPointF
from typing import Iterable, Optional
import math

from node import Node
from edge import Edge
from utils_geom import point_segment_distance

EDGE_HIT_THRESHOLD = 5.0


def nodeAt(nodes: Iterable[Node], x: float, y: float) -> Optional[Node]:
    for n in nodes:
        if math.hypot(x - n.x(), y - n.y()) <= n.getRadius():
            return n
    return None


def edgeAt(edges: Iterable[Edge], nodes: Iterable[Node], x: float, y: float,
           threshold: float = EDGE_HIT_THRESHOLD) -> Optional[Edge]:
    # Only edges whose endpoints are both in `nodes` are candidates
    positions = {n.id: n.getPosition() for n in nodes}
    p = QPointF(x, y)
    for e in edges:
        a = positions.get(e.getFrom())
        b = positions.get(e.getTo())
        if a is None or b is None:
            continue
        if point_segment_distance(p, a, b) <= threshold:
            return e
    return None
