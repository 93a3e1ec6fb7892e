# engine.py
"""
GraphEngine: the one object collaborators talk to.

It owns the entity store, history, layer filter, interaction controller and
analytics runner, accepts commands and reports what happened through typed
Qt signals. It performs no I/O: saving and loading are done by whoever holds
the engine, using exportSnapshot()/importSnapshot().

Every mutating command captures a pre-mutation snapshot into history before
touching the store. Commands that turn out to be no-ops return None/False and
capture nothing.
"""

from PyQt5.QtCore import QObject, QPointF, pyqtSignal
from typing import Dict, Iterable, List, Optional
import logging

from analytics import analyzeDistances, computeCentralities, nodeConnections, rankOf, searchNodes
from analytics_worker import AnalyticsRunner
from config import EngineConfig, clamp
from edge import Edge
from history import HistoryManager
from interaction import LEFT, Interaction
from layers import CentralityFilter, LayerFilter, LocalGraphFilter, allLayers, edgesAmong
from node import Node
from graph import EDGE_FIELDS, NODE_FIELDS, Graph
from snapshot import decodeSnapshot, exportSnapshot
from spatial import edgeAt, nodeAt
from utils_geom import screen_to_world, world_to_screen

logger = logging.getLogger(__name__)


class GraphEngine(QObject):
    nodeCreated = pyqtSignal(str)
    nodeMoved = pyqtSignal(str, float, float)
    nodeUpdated = pyqtSignal(str)
    nodeDeleted = pyqtSignal(str)
    edgeCreated = pyqtSignal(str)
    edgeUpdated = pyqtSignal(str)
    edgeDeleted = pyqtSignal(str)
    selectionChanged = pyqtSignal(object, object)   # node id or None, edge id or None
    topologyMutated = pyqtSignal()
    viewportChanged = pyqtSignal(float, float, float)  # scale, offset x, offset y
    modeChanged = pyqtSignal(str)
    analyticsUpdated = pyqtSignal()
    analyticsFailed = pyqtSignal(str)
    layersChanged = pyqtSignal()
    filtersChanged = pyqtSignal()                    # centrality or local graph filter
    highlightsChanged = pyqtSignal()
    historyChanged = pyqtSignal(bool, bool)          # can undo, can redo
    propertyDialogRequested = pyqtSignal(str, str)   # "node" | "edge", id

    def __init__(self, config: Optional[EngineConfig] = None, parent=None):
        super().__init__(parent)
        self.config = config or EngineConfig()
        self.graph = Graph(self.config.defaults)
        self.history = HistoryManager(self.config.history_capacity)
        self.layers = LayerFilter()
        self.centralityFilter = CentralityFilter()
        self.localFilter = LocalGraphFilter()
        self.interaction = Interaction(self)
        self.analytics = AnalyticsRunner(self.config.analytics, self)
        self.analytics.finished.connect(self._onAnalyticsFinished)
        self.analytics.failed.connect(self._onAnalyticsFailed)

        self.scale = 1.0
        self.offset = QPointF(0.0, 0.0)
        self.selectedNodeId: Optional[str] = None
        self.selectedEdgeId: Optional[str] = None

    # --------------------------
    # Snapshots and history
    # --------------------------
    def exportSnapshot(self) -> dict:
        return exportSnapshot(self.graph, self.scale, self.offset)

    def importSnapshot(self, data, undoable: bool = False) -> bool:
        """
        Replace the whole state with `data`. The replaced state becomes an
        undo entry only when `undoable` is set; otherwise history is cleared.
        """
        if undoable:
            self._capture()
        self._restore(data)
        if not undoable:
            self.history.clear()
            self._emitHistory()
        logger.info("imported snapshot: %d nodes, %d edges",
                    len(self.graph.nodes), len(self.graph.edges))
        return True

    def captureHistory(self) -> None:
        self._capture()

    def undo(self) -> bool:
        snap = self.history.undo(self.exportSnapshot())
        if snap is None:
            return False
        self._restore(snap)
        self._emitHistory()
        return True

    def redo(self) -> bool:
        snap = self.history.redo(self.exportSnapshot())
        if snap is None:
            return False
        self._restore(snap)
        self._emitHistory()
        return True

    def canUndo(self) -> bool:
        return self.history.canUndo()

    def canRedo(self) -> bool:
        return self.history.canRedo()

    def newGraph(self) -> None:
        self.analytics.cancel()
        self.graph.clear()
        self.history.clear()
        self.centralityFilter.clear()
        self.localFilter.clear()
        self.scale = 1.0
        self.offset = QPointF(0.0, 0.0)
        self.interaction.reset()
        self._setSelection(None, None)
        logger.info("new graph")
        self.topologyMutated.emit()
        self.layersChanged.emit()
        self._emitViewport()
        self._emitHistory()
        self.filtersChanged.emit()

    def _capture(self) -> None:
        self.history.capture(self.exportSnapshot())
        self._emitHistory()

    def _restore(self, data) -> None:
        # A pass queued for the replaced state must not write onto this one
        self.analytics.cancel()
        nodes, edges, scale, offset = decodeSnapshot(data)
        self.graph.replace(nodes, edges)
        self.scale = clamp(scale, self.config.view.zoom_min, self.config.view.zoom_max)
        self.offset = QPointF(offset)
        self.interaction.reset()
        self._setSelection(None, None)
        self.topologyMutated.emit()
        self.layersChanged.emit()
        self._emitViewport()

    def _emitHistory(self) -> None:
        self.historyChanged.emit(self.history.canUndo(), self.history.canRedo())

    # --------------------------
    # Entity commands
    # --------------------------
    def createNode(self, x: float, y: float, label: Optional[str] = None, color: Optional[str] = None,
                   category: Optional[str] = None, radius: Optional[float] = None,
                   secondaryLabel: Optional[str] = None) -> Node:
        self._capture()
        node = self.graph.addNode(x, y, label, color, category, radius, secondaryLabel)
        logger.debug("node created %s at (%.1f, %.1f)", node.id, x, y)
        self.nodeCreated.emit(node.id)
        self.topologyMutated.emit()
        if node.getCategory():
            self.layersChanged.emit()
        return node

    def createEdge(self, fromId: str, toId: str, weight: Optional[float] = None,
                   category: Optional[str] = None, direction: Optional[str] = None) -> Optional[Edge]:
        if fromId == toId or not self.graph.hasNode(fromId) or not self.graph.hasNode(toId):
            return None
        existing = self.graph.edgeBetween(fromId, toId)
        self._capture()
        edge = self.graph.addEdge(fromId, toId, weight, category, direction)
        if existing is not None:
            self.edgeUpdated.emit(edge.id)
        else:
            logger.debug("edge created %s -> %s", fromId, toId)
            self.edgeCreated.emit(edge.id)
        self.topologyMutated.emit()
        return edge

    def editNode(self, node_id: str, changes: Dict) -> bool:
        if not self.graph.hasNode(node_id) or not NODE_FIELDS.intersection(changes or ()):
            return False
        self._capture()
        self.graph.updateNode(node_id, changes)
        node = self.graph.getNode(node_id)
        if "x" in changes or "y" in changes:
            self.nodeMoved.emit(node_id, node.x(), node.y())
        self.nodeUpdated.emit(node_id)
        self.topologyMutated.emit()
        if "category" in changes:
            self.layersChanged.emit()
        return True

    def editEdge(self, edge_id: str, changes: Dict) -> bool:
        if self.graph.getEdge(edge_id) is None or not EDGE_FIELDS.intersection(changes or ()):
            return False
        self._capture()
        self.graph.updateEdge(edge_id, changes)
        self.edgeUpdated.emit(edge_id)
        self.topologyMutated.emit()
        return True

    def moveNode(self, node_id: str, dx: float, dy: float) -> bool:
        node = self.graph.getNode(node_id)
        if node is None:
            return False
        self._capture()
        self.graph.moveNode(node, dx, dy)
        self.nodeMoved.emit(node_id, node.x(), node.y())
        self.topologyMutated.emit()
        return True

    def moveNodeTo(self, node_id: str, x: float, y: float) -> bool:
        # Drag step: the caller has already captured history for the gesture
        node = self.graph.getNode(node_id)
        if node is None:
            return False
        node.setPosition((x, y))
        self.nodeMoved.emit(node_id, x, y)
        self.topologyMutated.emit()
        return True

    def deleteNode(self, node_id: str) -> bool:
        if not self.graph.hasNode(node_id):
            return False
        self._capture()
        removed = [e.id for e in self.graph.incidentEdges(node_id)]
        self.graph.deleteNode(node_id)
        self.interaction.forgetNode(node_id)
        if self.localFilter.centerId == node_id:
            self.localFilter.clear()
            self.filtersChanged.emit()
        if self.selectedNodeId == node_id or self.selectedEdgeId in removed:
            self._setSelection(None, None)
        for edge_id in removed:
            self.edgeDeleted.emit(edge_id)
        logger.debug("node deleted %s (%d edges cascaded)", node_id, len(removed))
        self.nodeDeleted.emit(node_id)
        self.topologyMutated.emit()
        self.layersChanged.emit()
        return True

    def deleteEdge(self, edge_id: str) -> bool:
        if self.graph.getEdge(edge_id) is None:
            return False
        self._capture()
        self.graph.deleteEdge(edge_id)
        if self.selectedEdgeId == edge_id:
            self._setSelection(None, None)
        self.edgeDeleted.emit(edge_id)
        self.topologyMutated.emit()
        return True

    def deleteSelection(self) -> bool:
        if self.selectedNodeId is not None:
            return self.deleteNode(self.selectedNodeId)
        if self.selectedEdgeId is not None:
            return self.deleteEdge(self.selectedEdgeId)
        return False

    # --------------------------
    # Selection
    # --------------------------
    def _setSelection(self, node_id: Optional[str], edge_id: Optional[str]) -> None:
        # At most one of the two is ever set
        if edge_id is not None:
            node_id = None
        if (node_id, edge_id) == (self.selectedNodeId, self.selectedEdgeId):
            return
        self.selectedNodeId, self.selectedEdgeId = node_id, edge_id
        self.selectionChanged.emit(node_id, edge_id)

    def selectNode(self, node_id: str) -> bool:
        if not self.graph.hasNode(node_id):
            return False
        self._setSelection(node_id, None)
        return True

    def selectEdge(self, edge_id: str) -> bool:
        if self.graph.getEdge(edge_id) is None:
            return False
        self._setSelection(None, edge_id)
        return True

    def clearSelection(self) -> None:
        self._setSelection(None, None)

    def selectedNode(self) -> Optional[Node]:
        return self.graph.getNode(self.selectedNodeId)

    def selectedEdge(self) -> Optional[Edge]:
        return self.graph.getEdge(self.selectedEdgeId)

    def requestProperties(self, kind: str, entity_id: str) -> None:
        self.propertyDialogRequested.emit(kind, entity_id)

    # --------------------------
    # Mode and pointer passthrough
    # --------------------------
    def setMode(self, mode: str) -> bool:
        if not self.interaction.setMode(mode):
            return False
        self.modeChanged.emit(mode)
        return True

    def mode(self) -> str:
        return self.interaction.mode

    def pointerDown(self, sx: float, sy: float, button=LEFT):
        return self.interaction.pointerDown(sx, sy, button)

    def pointerMove(self, sx: float, sy: float) -> None:
        self.interaction.pointerMove(sx, sy)

    def pointerUp(self, sx: float = 0.0, sy: float = 0.0) -> None:
        self.interaction.pointerUp(sx, sy)

    def wheel(self, delta: float) -> float:
        return self.interaction.wheel(delta)

    def contextClick(self, sx: float, sy: float):
        return self.interaction.contextClick(sx, sy)

    # --------------------------
    # Viewport (never recorded in history on its own)
    # --------------------------
    def _emitViewport(self) -> None:
        self.viewportChanged.emit(self.scale, self.offset.x(), self.offset.y())

    def setZoom(self, scale: float) -> float:
        view = self.config.view
        try:
            value = clamp(float(scale), view.zoom_min, view.zoom_max)
        except (TypeError, ValueError):
            return self.scale
        if value != self.scale:
            self.scale = value
            self._emitViewport()
        return self.scale

    def setOffset(self, x: float, y: float) -> None:
        self.offset = QPointF(float(x), float(y))
        self._emitViewport()

    def panBy(self, dx: float, dy: float) -> None:
        self.setOffset(self.offset.x() + dx, self.offset.y() + dy)

    def centerOnNode(self, node_id: str, viewWidth: float, viewHeight: float) -> bool:
        node = self.graph.getNode(node_id)
        if node is None:
            return False
        self.setOffset(viewWidth / 2 - node.x() * self.scale, viewHeight / 2 - node.y() * self.scale)
        return True

    def screenToWorld(self, sx: float, sy: float) -> QPointF:
        return screen_to_world(sx, sy, self.offset, self.scale)

    def worldToScreen(self, wx: float, wy: float) -> QPointF:
        return world_to_screen(wx, wy, self.offset, self.scale)

    # --------------------------
    # Hit testing (visible entities only)
    # --------------------------
    def nodeAt(self, x: float, y: float) -> Optional[Node]:
        return nodeAt(self.visibleNodes(), x, y)

    def edgeAt(self, x: float, y: float) -> Optional[Edge]:
        return edgeAt(self.graph.getEdges(), self.visibleNodes(), x, y,
                      self.config.view.edge_hit_threshold)

    # --------------------------
    # Layers
    # --------------------------
    def visibleNodes(self) -> List[Node]:
        """Nodes passing the layer, centrality and local graph filters."""
        nodes = self.layers.visibleNodes(self.graph.getNodes())
        nodes = self.centralityFilter.visibleNodes(nodes)
        return self.localFilter.visibleNodes(self.graph, nodes)

    def visibleEdges(self) -> List[Edge]:
        return edgesAmong(self.graph.getEdges(), self.visibleNodes())

    def allLayers(self) -> List[str]:
        return allLayers(self.graph.getNodes())

    def setActiveLayers(self, layers: Iterable[str]) -> None:
        self.layers.setActiveLayers(layers)
        self.layersChanged.emit()

    def setLayerFilterMode(self, mode: str) -> bool:
        if not self.layers.setMode(mode):
            return False
        self.layersChanged.emit()
        return True

    def toggleLayer(self, name: str) -> bool:
        active = self.layers.toggleLayer(name)
        self.layersChanged.emit()
        return active

    def clearLayerFilter(self) -> None:
        self.layers.clear()
        self.layersChanged.emit()

    def layerUsage(self, name: str) -> Dict[str, int]:
        return {
            "nodes": sum(1 for n in self.graph.getNodes() if n.getCategory() == name),
            "edges": sum(1 for e in self.graph.getEdges() if e.getCategory() == name),
        }

    def renameLayer(self, old: str, new: str) -> int:
        """Retag every node and edge in `old`; returns how many changed."""
        new = (new or "").strip()
        usage = self.layerUsage(old)
        if not new or new == old or not (usage["nodes"] or usage["edges"]):
            return 0
        self._capture()
        for n in self.graph.getNodes():
            if n.getCategory() == old:
                n.setCategory(new)
        for e in self.graph.getEdges():
            if e.getCategory() == old:
                e.setCategory(new)
        if self.layers.isLayerActive(old):
            self.layers.toggleLayer(old)
            self.layers.toggleLayer(new)
        self.topologyMutated.emit()
        self.layersChanged.emit()
        return usage["nodes"] + usage["edges"]

    # --------------------------
    # Centrality and local graph filters
    # --------------------------
    def applyCentralityFilter(self, measure: str, minValue: float, maxValue: float) -> bool:
        if not self.centralityFilter.set(measure, minValue, maxValue):
            return False
        f = self.centralityFilter
        logger.debug("centrality filter %s in [%g, %g]", f.measure, f.minValue, f.maxValue)
        self.filtersChanged.emit()
        return True

    def clearCentralityFilter(self) -> None:
        self.centralityFilter.clear()
        self.filtersChanged.emit()

    def applyLocalGraphFilter(self, centerId: str, maxDistance: float = 10, maxDepth: int = 5) -> Optional[dict]:
        """
        Show only the neighbourhood of `centerId`. Returns the distance
        analysis it is based on, or None (filter unchanged) when the center
        does not exist or nothing lies within range.
        """
        try:
            result = self.analyzeDistances(centerId, float(maxDistance), int(maxDepth))
        except (TypeError, ValueError):
            return None
        if not result or not result["nodes"]:
            return None
        if not self.localFilter.set(centerId, maxDistance, maxDepth):
            return None
        self.filtersChanged.emit()
        return result

    def clearLocalGraphFilter(self) -> None:
        self.localFilter.clear()
        self.filtersChanged.emit()

    def resetFilters(self) -> None:
        """Drop every visibility filter, layers included."""
        self.centralityFilter.clear()
        self.localFilter.clear()
        self.layers.clear()
        self.layersChanged.emit()
        self.filtersChanged.emit()

    # --------------------------
    # Analytics
    # --------------------------
    def recomputeAnalytics(self) -> Dict[str, Dict[str, float]]:
        """Synchronous full pass on the calling thread."""
        snap = self.exportSnapshot()
        self.analytics.cancel()
        scores = computeCentralities(snap["nodes"], snap["edges"], self.config.analytics)
        self._writeScores(scores)
        return scores

    def requestAnalytics(self) -> int:
        """Queue a pass on the worker; results land through analyticsUpdated."""
        snap = self.exportSnapshot()
        return self.analytics.request(snap["nodes"], snap["edges"])

    def _onAnalyticsFinished(self, generation: int, scores: object) -> None:
        self._writeScores(scores)

    def _onAnalyticsFailed(self, generation: int, message: str) -> None:
        logger.warning("analytics pass %d failed: %s", generation, message)
        self.analyticsFailed.emit(message)

    def _writeScores(self, scores: Dict[str, Dict[str, float]]) -> None:
        for node in self.graph.getNodes():
            if node.id in scores:
                node.setCentrality(scores[node.id])
        logger.info("analytics updated for %d nodes", len(scores))
        self.analyticsUpdated.emit()

    def rank(self, node_id: str, measure: str) -> Optional[int]:
        if not self.graph.hasNode(node_id):
            return None
        return rankOf(self.graph.getNodes(), node_id, measure)

    def connections(self, node_id: str):
        return nodeConnections(self.graph, node_id)

    def analyzeDistances(self, centerId: str, maxDistance: float = 10, maxDepth: int = 5):
        return analyzeDistances(self.graph, centerId, maxDistance, maxDepth)

    def stats(self) -> dict:
        return self.graph.get_stats()

    # --------------------------
    # Search and highlight
    # --------------------------
    def searchNodes(self, query: str, limit: int = 20) -> List[Node]:
        return searchNodes(self.graph.getNodes(), query, limit)

    def highlightNodes(self, node_ids: Iterable[str]) -> int:
        wanted = set(node_ids)
        count = 0
        for n in self.graph.getNodes():
            n.setHighlighted(n.id in wanted)
            count += n.id in wanted
        self.highlightsChanged.emit()
        return count

    def clearHighlights(self) -> None:
        for n in self.graph.getNodes():
            n.setHighlighted(False)
        self.highlightsChanged.emit()
