# snapshot.py
"""
Canonical snapshot encoding of engine state.

A snapshot is a plain, JSON-compatible dict:

    {
        "nodes":  [{"id", "x", "y", "label", "secondaryLabel", "color",
                    "radius", "category", "centrality"}, ...],
        "edges":  [{"id", "from", "to", "weight", "category", "direction"}, ...],
        "scale":  1.0,
        "offset": {"x": 0.0, "y": 0.0},
    }

Export is pure. Decoding is lenient: missing fields take their defaults,
unknown fields are ignored, malformed records are skipped with a warning.
Older files wrote `chineseLabel` for the secondary label and a `layers`
list instead of `category`; both are still understood.
"""

from PyQt5.QtCore import QPointF
from typing import Any, List, Optional, Tuple
import copy
import logging

from config import EntityDefaults, clamp_number
from node import Node
from edge import Edge
from graph import Graph, newId

logger = logging.getLogger(__name__)

_DEFAULTS = EntityDefaults()


# --------------------------
# Export
# --------------------------
def encodeNode(n: Node) -> dict:
    return {
        "id": n.id,
        "x": n.x(),
        "y": n.y(),
        "label": n.getLabel(),
        "secondaryLabel": n.getSecondaryLabel(),
        "color": n.getColor(),
        "radius": n.getRadius(),
        "category": n.getCategory(),
        "centrality": n.getCentrality(),
    }

def encodeEdge(e: Edge) -> dict:
    return {
        "id": e.id,
        "from": e.getFrom(),
        "to": e.getTo(),
        "weight": e.getWeight(),
        "category": e.getCategory(),
        "direction": e.getDirection(),
    }

def exportSnapshot(graph: Graph, scale: float = 1.0, offset: Optional[QPointF] = None) -> dict:
    off = offset if offset is not None else QPointF(0.0, 0.0)
    return {
        "nodes": [encodeNode(n) for n in graph.getNodes()],
        "edges": [encodeEdge(e) for e in graph.getEdges()],
        "scale": float(scale),
        "offset": {"x": off.x(), "y": off.y()},
    }


# --------------------------
# Import
# --------------------------
def _float(value: Any, fallback: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return fallback
    return fallback if v != v else v

def _category(rec: dict) -> Optional[str]:
    cat = rec.get("category")
    if cat:
        return cat
    layers = rec.get("layers")
    if isinstance(layers, (list, tuple)) and layers:
        return layers[0]
    return None

def decodeNode(rec: dict, index: int) -> Optional[Node]:
    if not isinstance(rec, dict):
        logger.warning("Skipping node record %d: not an object", index)
        return None
    node_id = rec.get("id")
    if node_id is None or node_id == "":
        node_id = newId()
    node = Node(
        str(node_id),
        (_float(rec.get("x"), 0.0), _float(rec.get("y"), 0.0)),
        rec.get("label") or f"Node {index + 1}",
        color=rec.get("color") or _DEFAULTS.color,
        radius=clamp_number(rec.get("radius", _DEFAULTS.radius), _DEFAULTS.radius_min,
                            _DEFAULTS.radius_max, _DEFAULTS.radius),
        category=_category(rec),
        secondaryLabel=rec.get("secondaryLabel") or rec.get("chineseLabel") or "",
    )
    scores = rec.get("centrality")
    if isinstance(scores, dict):
        clean = {}
        for k, v in scores.items():
            try:
                clean[str(k)] = float(v)
            except (TypeError, ValueError):
                continue
        node.setCentrality(clean)
    return node

def decodeEdge(rec: dict, index: int) -> Optional[Edge]:
    if not isinstance(rec, dict):
        logger.warning("Skipping edge record %d: not an object", index)
        return None
    a, b = rec.get("from"), rec.get("to")
    if a is None or b is None:
        logger.warning("Skipping edge record %d: missing endpoint", index)
        return None
    try:
        return Edge(str(rec.get("id") or newId()), str(a), str(b),
                    rec.get("weight", _DEFAULTS.weight), rec.get("category"), rec.get("direction"))
    except ValueError as e:
        logger.warning("Skipping edge record %d: %s", index, e)
        return None

def _records(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        logger.warning("Snapshot field %r is not a list; ignoring it", key)
        return []
    return value

def decodeSnapshot(data: Any) -> Tuple[List[Node], List[Edge], float, QPointF]:
    if not isinstance(data, dict):
        logger.warning("Snapshot is not an object; treating it as empty")
        data = {}
    nodes = [n for n in (decodeNode(r, i) for i, r in enumerate(_records(data, "nodes"))) if n]
    edges = [e for e in (decodeEdge(r, i) for i, r in enumerate(_records(data, "edges"))) if e]
    scale = _float(data.get("scale"), 1.0)
    if scale <= 0:
        scale = 1.0
    off = data.get("offset") if isinstance(data.get("offset"), dict) else {}
    offset = QPointF(_float(off.get("x"), 0.0), _float(off.get("y"), 0.0))
    return nodes, edges, scale, offset


# --------------------------
# Comparison
# --------------------------
def normalizedSnapshot(data: dict) -> dict:
    # Round-trips through the codec, so legacy aliases and defaults compare equal
    g = Graph()
    nodes, edges, scale, offset = decodeSnapshot(copy.deepcopy(data))
    g.replace(nodes, edges)
    return exportSnapshot(g, scale, offset)

def snapshotsEqual(a: dict, b: dict) -> bool:
    return normalizedSnapshot(a) == normalizedSnapshot(b)
