# interaction.py

from PyQt5.QtCore import QPointF, Qt
from typing import Optional, Union
import logging

from config import EDGE_MODE, MODES, NODE_MODE, SELECT_MODE, clamp
from node import Node
from edge import Edge

logger = logging.getLogger(__name__)

LEFT = Qt.LeftButton

# Transient sub-states
IDLE = "idle"
DRAGGING = "dragging"
PANNING = "panning"


class Interaction:
    """
    Pointer and wheel state machine. Coordinates coming in are screen
    coordinates; hit tests run in world space via the engine's viewport.

    All mutations go through engine commands so history capture and events
    happen in one place. A drag captures its undo entry on the first actual
    movement, so a click without motion leaves history alone.
    """

    def __init__(self, engine):
        self.engine = engine
        self.mode = NODE_MODE
        self.state = IDLE
        self.pendingSource: Optional[str] = None
        self._dragId: Optional[str] = None
        self._dragOffset = QPointF(0.0, 0.0)
        self._dragCaptured = False
        self._lastScreen: Optional[QPointF] = None

    # --------------------------
    # Mode and reset
    # --------------------------
    def setMode(self, mode: str) -> bool:
        if mode not in MODES:
            logger.debug("ignoring unknown mode %r", mode)
            return False
        self.mode = mode
        self.reset()
        return True

    def reset(self) -> None:
        self.pendingSource = None
        self.state = IDLE
        self._dragId = None
        self._dragCaptured = False
        self._lastScreen = None

    def forgetNode(self, node_id: str) -> None:
        # Called when a node disappears under us
        if self.pendingSource == node_id:
            self.pendingSource = None
        if self._dragId == node_id:
            self.state = IDLE
            self._dragId = None

    # --------------------------
    # Pointer events
    # --------------------------
    def pointerDown(self, sx: float, sy: float, button=LEFT) -> Optional[Union[Node, Edge]]:
        if button != LEFT:
            return None
        w = self.engine.screenToWorld(sx, sy)
        hit = self.engine.nodeAt(w.x(), w.y())

        if self.mode == NODE_MODE:
            if hit is None:
                return self.engine.createNode(w.x(), w.y())
            return None

        if self.mode == SELECT_MODE:
            if hit is not None:
                self.engine.selectNode(hit.id)
                self.state = DRAGGING
                self._dragId = hit.id
                self._dragOffset = QPointF(w.x() - hit.x(), w.y() - hit.y())
                self._dragCaptured = False
                return hit
            self.engine.clearSelection()
            self.state = PANNING
            self._lastScreen = QPointF(sx, sy)
            return None

        if self.mode == EDGE_MODE and hit is not None:
            if self.pendingSource is None:
                self.pendingSource = hit.id
                logger.debug("edge source pending: %s", hit.id)
                return None
            if self.pendingSource == hit.id:
                # Second click on the same node cancels
                self.pendingSource = None
                return None
            edge = self.engine.createEdge(self.pendingSource, hit.id)
            self.pendingSource = None
            return edge
        return None

    def pointerMove(self, sx: float, sy: float) -> None:
        if self.state == DRAGGING and self._dragId is not None:
            if not self._dragCaptured:
                self.engine.captureHistory()
                self._dragCaptured = True
            w = self.engine.screenToWorld(sx, sy)
            self.engine.moveNodeTo(self._dragId, w.x() - self._dragOffset.x(),
                                   w.y() - self._dragOffset.y())
        elif self.state == PANNING and self._lastScreen is not None:
            # Screen delta straight onto the offset, not divided by scale
            self.engine.panBy(sx - self._lastScreen.x(), sy - self._lastScreen.y())
            self._lastScreen = QPointF(sx, sy)

    def pointerUp(self, sx: float = 0.0, sy: float = 0.0) -> None:
        self.state = IDLE
        self._dragId = None
        self._dragCaptured = False
        self._lastScreen = None

    def wheel(self, delta: float) -> float:
        if not delta:
            # Horizontal scroll carries no vertical component
            return self.engine.scale
        view = self.engine.config.view
        factor = view.zoom_in_factor if delta > 0 else view.zoom_out_factor
        return self.engine.setZoom(clamp(self.engine.scale * factor, view.zoom_min, view.zoom_max))

    def contextClick(self, sx: float, sy: float) -> Optional[Union[Node, Edge]]:
        w = self.engine.screenToWorld(sx, sy)
        node = self.engine.nodeAt(w.x(), w.y())
        if node is not None:
            self.engine.selectNode(node.id)
            self.engine.requestProperties("node", node.id)
            return node
        edge = self.engine.edgeAt(w.x(), w.y())
        if edge is not None:
            self.engine.selectEdge(edge.id)
            self.engine.requestProperties("edge", edge.id)
            return edge
        return None

    # --------------------------
    # Introspection
    # --------------------------
    def isDragging(self) -> bool:
        return self.state == DRAGGING

    def isPanning(self) -> bool:
        return self.state == PANNING
