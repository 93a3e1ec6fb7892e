# graph.py

from node import Node, clamp_radius
from edge import Edge, clamp_weight
from config import EntityDefaults
from typing import Callable, Dict, Iterable, List, Optional
import logging
import secrets
import time
import uuid

import networkx as nx

logger = logging.getLogger(__name__)

# Keys accepted by updateNode / updateEdge
NODE_FIELDS = frozenset(("x", "y", "label", "secondaryLabel", "color", "radius", "category"))
EDGE_FIELDS = frozenset(("weight", "category", "direction"))

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


# --------------------------
# Identifier generation
# --------------------------
def _base36(n: int) -> str:
    out = ""
    while True:
        n, r = divmod(n, 36)
        out = _BASE36[r] + out
        if n == 0:
            return out

def _random_uuid() -> str:
    return str(uuid.uuid4())

def _time_ordered_uuid() -> str:
    gen = getattr(uuid, "uuid7", None) or uuid.uuid1
    return str(gen())

def _timestamp_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return _base36(time.time_ns() // 1_000_000) + suffix

# Preference order; a strategy that raises is skipped
ID_STRATEGIES: List[Callable[[], str]] = [_random_uuid, _time_ordered_uuid, _timestamp_id]

def newId(strategies: Optional[Iterable[Callable[[], str]]] = None) -> str:
    for strategy in (strategies or ID_STRATEGIES):
        try:
            value = strategy()
        except Exception as e:
            logger.debug("id strategy %s unavailable: %s", getattr(strategy, "__name__", strategy), e)
            continue
        if value:
            return value
    return _timestamp_id()


class Graph:
    """
    Owns nodes and edges and keeps the structural invariants:
    - edge endpoints always reference live nodes (deleteNode cascades)
    - at most one edge per unordered endpoint pair (addEdge merges)
    - identifiers are never reused, even after deletion
    Insertion order of both lists is significant for hit testing and ranks.
    """

    def __init__(self, defaults: Optional[EntityDefaults] = None):
        self.defaults = defaults or EntityDefaults()
        self.nodes: List[Node] = []
        self.edges: List[Edge] = []
        self._nodeMap: Dict[str, Node] = {}
        self._pairMap: Dict[frozenset, Edge] = {}
        self._issued = set()  # every id ever handed out, so deletes never free one

    # --------------------------
    # Small helpers
    # --------------------------
    def _issueId(self) -> str:
        while True:
            value = newId()
            if value not in self._issued:
                self._issued.add(value)
                return value

    def _reserveId(self, value: str) -> None:
        self._issued.add(value)

    # --------------------------
    # Base graph ops
    # --------------------------
    def clear(self):
        self.nodes.clear()
        self.edges.clear()
        self._nodeMap.clear()
        self._pairMap.clear()

    def addNode(self, x: float, y: float, label: Optional[str] = None, color: Optional[str] = None,
                category: Optional[str] = None, radius: Optional[float] = None,
                secondaryLabel: Optional[str] = None) -> Node:
        node = Node(
            self._issueId(), (x, y),
            label if label else f"Node {len(self.nodes) + 1}",
            color=color or self.defaults.color,
            radius=clamp_radius(self.defaults.radius if radius is None else radius, self.defaults),
            category=category,
            secondaryLabel=secondaryLabel or "",
        )
        self.nodes.append(node)
        self._nodeMap[node.id] = node
        return node

    def addEdge(self, fromId: str, toId: str, weight: Optional[float] = None,
                category: Optional[str] = None, direction: Optional[str] = None) -> Optional[Edge]:
        """
        Create an edge, or update the existing edge of the same unordered
        pair in place (weight always, category/direction only when given).
        Returns None for self-loops and unknown endpoints.
        """
        if fromId == toId:
            return None
        if fromId not in self._nodeMap or toId not in self._nodeMap:
            logger.debug("addEdge rejected: unknown endpoint %s / %s", fromId, toId)
            return None
        w = self.defaults.weight if weight is None else weight

        existing = self._pairMap.get(frozenset((fromId, toId)))
        if existing is not None:
            existing.setWeight(clamp_weight(w, self.defaults))
            if category is not None:
                existing.setCategory(category)
            if direction is not None:
                existing.setDirection(direction)
            return existing

        edge = Edge(self._issueId(), fromId, toId, clamp_weight(w, self.defaults), category, direction)
        self.edges.append(edge)
        self._pairMap[edge.key()] = edge
        return edge

    def deleteNode(self, node_id: str) -> bool:
        node = self._nodeMap.pop(node_id, None)
        if node is None:
            return False
        self.nodes.remove(node)
        self.edges = [e for e in self.edges if not e.touches(node_id)]
        self._pairMap = {e.key(): e for e in self.edges}
        return True

    def deleteEdge(self, edge_id: str) -> bool:
        for i, e in enumerate(self.edges):
            if e.id == edge_id:
                del self.edges[i]
                self._pairMap.pop(e.key(), None)
                return True
        return False

    def moveNode(self, node: Node, dx: float, dy: float) -> None:
        node.moveBy(dx, dy)

    def updateNode(self, node_id: str, changes: dict) -> bool:
        node = self._nodeMap.get(node_id)
        if node is None:
            return False
        if "x" in changes or "y" in changes:
            pos = node.getPosition()
            try:
                node.setPosition((float(changes.get("x", pos.x())), float(changes.get("y", pos.y()))))
            except (TypeError, ValueError):
                pass
        if "label" in changes:
            node.setLabel(changes["label"])
        if "secondaryLabel" in changes:
            node.setSecondaryLabel(changes["secondaryLabel"])
        if "color" in changes:
            node.setColor(changes["color"])
        if "radius" in changes:
            node.setRadius(changes["radius"])
        if "category" in changes:
            node.setCategory(changes["category"])
        return True

    def updateEdge(self, edge_id: str, changes: dict) -> bool:
        edge = self.getEdge(edge_id)
        if edge is None:
            return False
        if "weight" in changes:
            edge.setWeight(clamp_weight(changes["weight"], self.defaults))
        if "category" in changes:
            edge.setCategory(changes["category"])
        if "direction" in changes:
            edge.setDirection(changes["direction"])
        return True

    def replace(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
        """
        Bulk load (snapshot import / undo). Re-establishes the invariants on
        untrusted input: duplicate node ids, dangling edges and self-loops are
        dropped, duplicate pairs merge into the first edge (last weight wins).
        """
        self.clear()
        for n in nodes:
            if n.id in self._nodeMap:
                logger.warning("Dropping node with duplicate id %s", n.id)
                continue
            self.nodes.append(n)
            self._nodeMap[n.id] = n
            self._reserveId(n.id)
        for e in edges:
            self._reserveId(e.id)
            if e.getFrom() not in self._nodeMap or e.getTo() not in self._nodeMap:
                logger.warning("Dropping edge %s with a dangling endpoint", e.id)
                continue
            existing = self._pairMap.get(e.key())
            if existing is not None:
                existing.setWeight(e.getWeight())
                if e.getCategory() is not None:
                    existing.setCategory(e.getCategory())
                continue
            self.edges.append(e)
            self._pairMap[e.key()] = e

    # --------------------------
    # Lookups
    # --------------------------
    def getNodes(self) -> List[Node]:
        return self.nodes

    def getEdges(self) -> List[Edge]:
        return self.edges

    def getNode(self, node_id: Optional[str]) -> Optional[Node]:
        return self._nodeMap.get(node_id) if node_id is not None else None

    def getEdge(self, edge_id: Optional[str]) -> Optional[Edge]:
        if edge_id is None:
            return None
        for e in self.edges:
            if e.id == edge_id:
                return e
        return None

    def hasNode(self, node_id: str) -> bool:
        return node_id in self._nodeMap

    def edgeBetween(self, a: str, b: str) -> Optional[Edge]:
        return self._pairMap.get(frozenset((a, b)))

    def incidentEdges(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.touches(node_id)]

    # --------------------------
    # Validation and stats
    # --------------------------
    def toNetworkx(self) -> nx.Graph:
        G = nx.Graph()
        G.add_nodes_from(n.id for n in self.nodes)
        for e in self.edges:
            G.add_edge(e.getFrom(), e.getTo(), weight=e.getWeight())
        return G

    def validate(self) -> List[str]:
        issues = []
        seen = set()
        for n in self.nodes:
            if n.id in seen:
                issues.append(f"duplicate node id {n.id}")
            seen.add(n.id)
        pairs = set()
        for e in self.edges:
            if e.getFrom() not in seen:
                issues.append(f"edge {e.id} has missing 'from' node")
            if e.getTo() not in seen:
                issues.append(f"edge {e.id} has missing 'to' node")
            if e.key() in pairs:
                issues.append(f"edge {e.id} duplicates an existing pair")
            pairs.add(e.key())
        return issues

    def get_stats(self):
        V = len(self.nodes)
        E = len(self.edges)
        touched = set()
        for e in self.edges:
            touched.add(e.getFrom()); touched.add(e.getTo())
        return {
            "nodes": V,
            "edges": E,
            "avg_connections": E / max(1, V),
            "isolated_nodes": sum(1 for n in self.nodes if n.id not in touched),
            "density": (E / (V * (V - 1) / 2)) if V >= 2 else 0.0,
            "components": nx.number_connected_components(self.toNetworkx()) if V else 0,
        }
