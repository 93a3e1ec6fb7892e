# analytics.py
"""
Structural analytics over the graph.

Distance-based measures (closeness, betweenness, distance analysis) treat the
edge set as undirected with weight as cost. PageRank and connection
classification also read `from` -> `to`. Everything in the centrality pass
works on plain snapshot records, so it can run on a worker thread without
touching live Node/Edge objects.
"""

from collections import namedtuple
from typing import Dict, Iterable, List, Optional, Sequence
import logging

import networkx as nx
import numpy as np

from config import AnalyticsConfig, BIDIRECTIONAL, MEASURES
from graph import Graph
from node import Node

logger = logging.getLogger(__name__)

Connection = namedtuple("Connection", ["edge", "node", "direction"])

INCOMING = "incoming"
OUTGOING = "outgoing"


# --------------------------
# Graph construction
# --------------------------
def _node_ids(nodes: Iterable[dict]) -> List[str]:
    return [n["id"] for n in nodes]

def build_undirected(nodes: Iterable[dict], edges: Iterable[dict]) -> nx.Graph:
    G = nx.Graph()
    G.add_nodes_from(_node_ids(nodes))
    for e in edges:
        if e["from"] in G and e["to"] in G:
            G.add_edge(e["from"], e["to"], weight=float(e["weight"]))
    return G

def build_directed(nodes: Iterable[dict], edges: Iterable[dict]) -> nx.DiGraph:
    D = nx.DiGraph()
    D.add_nodes_from(_node_ids(nodes))
    for e in edges:
        a, b = e["from"], e["to"]
        if a not in D or b not in D:
            continue
        D.add_edge(a, b, weight=float(e["weight"]))
        if e.get("direction") == BIDIRECTIONAL:
            D.add_edge(b, a, weight=float(e["weight"]))
    return D


# --------------------------
# Measures
# --------------------------
def degree_centrality(G: nx.Graph) -> Dict[str, float]:
    return {v: float(G.degree(v)) for v in G.nodes}

def closeness_centrality(G: nx.Graph) -> Dict[str, float]:
    # Unreachable nodes are left out of the sum
    out = {}
    for v in G.nodes:
        lengths = nx.single_source_dijkstra_path_length(G, v, weight="weight")
        total = sum(d for u, d in lengths.items() if u != v)
        out[v] = 1.0 / total if total > 0 else 0.0
    return out

def betweenness_centrality(G: nx.Graph) -> Dict[str, float]:
    if G.number_of_nodes() <= 2:
        return {v: 0.0 for v in G.nodes}
    return dict(nx.betweenness_centrality(G, weight="weight", normalized=True))

def eigenvector_centrality(G: nx.Graph, max_iterations: int = 100,
                           tolerance: float = 1.0e-6) -> Dict[str, float]:
    """
    Power iteration on (A + I) where A[i][j] = 1 / weight, so close
    neighbours count for more. The identity shift keeps bipartite graphs
    from oscillating. Scores are scaled so the largest is 1. When the cap
    is hit first the current estimate is returned.
    """
    order = list(G.nodes)
    n = len(order)
    if n == 0:
        return {}
    A = nx.to_numpy_array(G, nodelist=order, weight="weight", nonedge=0.0)
    A = np.divide(1.0, A, out=np.zeros_like(A), where=A > 0)
    M = A + np.eye(n)

    x = np.full(n, 1.0 / np.sqrt(n))
    converged = False
    for _ in range(max_iterations):
        nxt = M @ x
        norm = np.linalg.norm(nxt)
        if norm == 0:
            break
        nxt /= norm
        delta = np.abs(nxt - x).sum()
        x = nxt
        if delta < n * tolerance:
            converged = True
            break
    if not converged:
        logger.debug("eigenvector centrality stopped at the iteration cap")

    peak = x.max()
    if peak > 0:
        x = x / peak
    return {v: float(s) for v, s in zip(order, x)}

def pagerank(D: nx.DiGraph, damping: float = 0.85, max_iterations: int = 100,
             tolerance: float = 1.0e-6) -> Dict[str, float]:
    """
    Damped random walk along from -> to. Transition probability out of a
    node is proportional to 1 / weight. Nodes without outgoing edges spread
    their rank uniformly. Scores sum to 1.
    """
    order = list(D.nodes)
    n = len(order)
    if n == 0:
        return {}
    W = nx.to_numpy_array(D, nodelist=order, weight="weight", nonedge=0.0)
    W = np.divide(1.0, W, out=np.zeros_like(W), where=W > 0)
    out_strength = W.sum(axis=1)
    dangling = out_strength == 0
    P = np.divide(W, out_strength[:, None], out=np.zeros_like(W), where=~dangling[:, None])

    pr = np.full(n, 1.0 / n)
    for i in range(max_iterations):
        nxt = (1.0 - damping) / n + damping * (pr @ P + pr[dangling].sum() / n)
        delta = np.abs(nxt - pr).sum()
        pr = nxt
        if delta < n * tolerance:
            break
    else:
        logger.debug("pagerank stopped at the iteration cap")
    pr = pr / pr.sum()
    return {v: float(s) for v, s in zip(order, pr)}


def computeCentralities(nodes: Sequence[dict], edges: Sequence[dict],
                        config: Optional[AnalyticsConfig] = None) -> Dict[str, Dict[str, float]]:
    """Full, non-incremental pass. Returns {node_id: {measure: score}}."""
    cfg = config or AnalyticsConfig()
    G = build_undirected(nodes, edges)
    D = build_directed(nodes, edges)
    per_measure = {
        "degree": degree_centrality(G),
        "closeness": closeness_centrality(G),
        "betweenness": betweenness_centrality(G),
        "eigenvector": eigenvector_centrality(G, cfg.max_iterations, cfg.tolerance),
        "pagerank": pagerank(D, cfg.damping, cfg.max_iterations, cfg.tolerance),
    }
    return {v: {m: per_measure[m].get(v, 0.0) for m in MEASURES} for v in G.nodes}


def rankOf(nodes: Sequence[Node], nodeId: str, measure: str) -> Optional[int]:
    """
    1-based rank by descending score; ties keep node order. Nodes created
    since the last pass have no score and are not ranked.
    """
    if measure not in MEASURES:
        return None
    scored = []
    for i, n in enumerate(nodes):
        scores = n.getCentrality()
        if measure in scores:
            scored.append((-scores[measure], i, n.id))
    scored.sort()
    for pos, (_, _, node_id) in enumerate(scored, start=1):
        if node_id == nodeId:
            return pos
    return None


# --------------------------
# Connections and distances
# --------------------------
def nodeConnections(graph: Graph, nodeId: str) -> Dict[str, List[Connection]]:
    result = {INCOMING: [], OUTGOING: [], BIDIRECTIONAL: [], "all": []}
    if not graph.hasNode(nodeId):
        return result
    for e in graph.incidentEdges(nodeId):
        other = graph.getNode(e.other(nodeId))
        if e.isBidirectional():
            direction = BIDIRECTIONAL
        elif e.getFrom() == nodeId:
            direction = OUTGOING
        else:
            direction = INCOMING
        conn = Connection(e, other, direction)
        result[direction].append(conn)
        result["all"].append(conn)
    return result

def analyzeDistances(graph: Graph, centerId: str, maxDistance: float = 10,
                     maxDepth: int = 5) -> Optional[dict]:
    """
    Nodes within `maxDistance` (sum of weights) and `maxDepth` hops of the
    center along their shortest weighted path, nearest first. None when the
    center does not exist.
    """
    center = graph.getNode(centerId)
    if center is None:
        return None
    G = graph.toNetworkx()
    dist, paths = nx.single_source_dijkstra(G, centerId, cutoff=maxDistance, weight="weight")
    rows = []
    for node_id, d in dist.items():
        depth = len(paths[node_id]) - 1
        if node_id == centerId or depth > maxDepth:
            continue
        n = graph.getNode(node_id)
        rows.append({
            "id": node_id,
            "label": n.getLabel(),
            "secondaryLabel": n.getSecondaryLabel(),
            "x": n.x(),
            "y": n.y(),
            "color": n.getColor(),
            "distance": float(d),
            "depth": depth,
        })
    rows.sort(key=lambda r: (r["distance"], r["depth"]))
    return {"centerNode": center, "nodes": rows, "totalCount": len(rows)}

def searchNodes(nodes: Iterable[Node], query: str, limit: int = 20) -> List[Node]:
    q = (query or "").strip().lower()
    if not q:
        return []
    hits = []
    for n in nodes:
        if q in n.getLabel().lower() or q in n.getSecondaryLabel().lower():
            hits.append(n)
            if len(hits) >= limit:
                break
    return hits
