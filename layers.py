# layers.py
from typing import Iterable, List, Optional, Set, Tuple

from analytics import analyzeDistances
from config import EXCLUDE, INCLUDE, MEASURES
from graph import Graph
from node import Node
from edge import Edge


class LayerFilter:
    """
    Visibility predicate over node categories.
    - include: empty active set shows everything, otherwise only members
    - exclude: members are hidden, empty set again shows everything
    Nodes without a category count as a non-member.
    """

    def __init__(self):
        self._active: Set[str] = set()
        self._mode = INCLUDE

    # -------- state --------
    def getMode(self) -> str:
        return self._mode

    def setMode(self, mode: str) -> bool:
        m = (mode or "").strip().lower()
        if m not in (INCLUDE, EXCLUDE):
            return False
        self._mode = m
        return True

    def activeLayers(self) -> Tuple[str, ...]:
        return tuple(sorted(self._active))

    def setActiveLayers(self, layers: Iterable[str]) -> None:
        self._active = {str(l).strip() for l in layers if l is not None and str(l).strip()}

    def toggleLayer(self, layer: str) -> bool:
        """Returns True if the layer is active after the toggle."""
        name = (layer or "").strip()
        if not name:
            return False
        if name in self._active:
            self._active.discard(name)
            return False
        self._active.add(name)
        return True

    def isLayerActive(self, layer: str) -> bool:
        return (layer or "").strip() in self._active

    def isEnabled(self) -> bool:
        return bool(self._active)

    def clear(self) -> None:
        self._active.clear()

    # -------- queries --------
    def isNodeVisible(self, node: Node) -> bool:
        if not self._active:
            return True
        member = node.getCategory() in self._active
        return member if self._mode == INCLUDE else not member

    def visibleNodes(self, nodes: Iterable[Node]) -> List[Node]:
        return [n for n in nodes if self.isNodeVisible(n)]

    def visibleEdges(self, edges: Iterable[Edge], nodes: Iterable[Node]) -> List[Edge]:
        return edgesAmong(edges, self.visibleNodes(nodes))


def allLayers(nodes: Iterable[Node]) -> List[str]:
    return sorted({n.getCategory() for n in nodes if n.getCategory()})


def edgesAmong(edges: Iterable[Edge], nodes: Iterable[Node]) -> List[Edge]:
    """Edges whose endpoints are both in `nodes`."""
    shown = {n.id for n in nodes}
    return [e for e in edges if e.getFrom() in shown and e.getTo() in shown]


class CentralityFilter:
    """
    Keeps nodes whose score for one measure lies in [minValue, maxValue].
    A node without a score for the measure counts as 0.
    """

    def __init__(self):
        self.measure: Optional[str] = None
        self.minValue = 0.0
        self.maxValue = 0.0

    def set(self, measure: str, minValue: float, maxValue: float) -> bool:
        if measure not in MEASURES:
            return False
        try:
            lo, hi = float(minValue), float(maxValue)
        except (TypeError, ValueError):
            return False
        if lo != lo or hi != hi or lo > hi:
            return False
        self.measure, self.minValue, self.maxValue = measure, lo, hi
        return True

    def isEnabled(self) -> bool:
        return self.measure is not None

    def clear(self) -> None:
        self.measure = None

    def isNodeVisible(self, node: Node) -> bool:
        if self.measure is None:
            return True
        value = node.getCentrality().get(self.measure, 0.0)
        return self.minValue <= value <= self.maxValue

    def visibleNodes(self, nodes: Iterable[Node]) -> List[Node]:
        return [n for n in nodes if self.isNodeVisible(n)]


class LocalGraphFilter:
    """
    Neighbourhood view: the center plus every node within `maxDistance`
    (summed weight) and `maxDepth` hops of it. Reachability is recomputed on
    each query, so it follows edits made while the view is active.
    """

    def __init__(self):
        self.centerId: Optional[str] = None
        self.maxDistance = 10.0
        self.maxDepth = 5

    def set(self, centerId: str, maxDistance: float = 10, maxDepth: int = 5) -> bool:
        try:
            dist, depth = float(maxDistance), int(maxDepth)
        except (TypeError, ValueError):
            return False
        if not centerId or dist != dist or dist < 0 or depth < 1:
            return False
        self.centerId, self.maxDistance, self.maxDepth = centerId, dist, depth
        return True

    def isEnabled(self) -> bool:
        return self.centerId is not None

    def clear(self) -> None:
        self.centerId = None

    def reachable(self, graph: Graph) -> Optional[Set[str]]:
        """Ids in view, or None when the filter is off or its center is gone."""
        if self.centerId is None:
            return None
        result = analyzeDistances(graph, self.centerId, self.maxDistance, self.maxDepth)
        if result is None:
            return None
        return {self.centerId} | {r["id"] for r in result["nodes"]}

    def visibleNodes(self, graph: Graph, nodes: Iterable[Node]) -> List[Node]:
        ids = self.reachable(graph)
        if ids is None:
            return list(nodes)
        return [n for n in nodes if n.id in ids]
