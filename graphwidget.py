# graphwidget.py

from PyQt5.QtWidgets import QWidget
from PyQt5.QtCore import Qt, QPointF, QRectF
from PyQt5.QtGui import QPen, QColor, QPainter, QBrush, QPolygonF
from typing import Optional
import math

from config import BIDIRECTIONAL, EDGE_MODE, SELECT_MODE
from engine import GraphEngine
from utils_geom import line_width, v_add, v_scale, v_sub

EDGE_COLOR = QColor(60, 60, 60)
SELECTED_COLOR = QColor("#e74c3c")
PENDING_COLOR = QColor("#f1c40f")
HIGHLIGHT_COLOR = QColor("#1dd1a1")
ARROW_SIZE = 9.0


class GraphCanvas(QWidget):
    """
    Draws the engine's visible nodes and edges and forwards pointer and
    wheel input to it. Holds no graph state of its own; every repaint pulls
    from the engine, and repaints are only ever requested by engine signals.
    """

    def __init__(self, engine: GraphEngine, parent=None):
        super().__init__(parent)
        self.engine = engine
        self.showLabels = True
        self.setMouseTracking(False)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setAutoFillBackground(True)

        for sig in (engine.topologyMutated, engine.viewportChanged, engine.selectionChanged,
                    engine.layersChanged, engine.analyticsUpdated, engine.highlightsChanged,
                    engine.modeChanged, engine.filtersChanged):
            sig.connect(self.update)
        engine.modeChanged.connect(self._syncCursor)
        self._syncCursor()

    def toggleLabels(self):
        self.showLabels = not self.showLabels
        self.update()

    def _syncCursor(self, *_):
        mode = self.engine.mode()
        if mode == SELECT_MODE:
            self.setCursor(Qt.OpenHandCursor)
        elif mode == EDGE_MODE:
            self.setCursor(Qt.PointingHandCursor)
        else:
            self.setCursor(Qt.CrossCursor)

    # ---------- Painting ----------
    def _arrowHead(self, a: QPointF, b: QPointF, radius: float) -> Optional[QPolygonF]:
        dx, dy = b.x() - a.x(), b.y() - a.y()
        length = math.hypot(dx, dy)
        if length <= radius:
            return None
        ux, uy = dx / length, dy / length
        tip = v_sub(b, QPointF(ux * radius, uy * radius))
        back = v_sub(tip, QPointF(ux * ARROW_SIZE, uy * ARROW_SIZE))
        normal = QPointF(-uy, ux)
        return QPolygonF([tip, v_add(back, v_scale(normal, ARROW_SIZE / 2)),
                          v_sub(back, v_scale(normal, ARROW_SIZE / 2))])

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), Qt.white)

        eng = self.engine
        painter.translate(eng.offset)
        painter.scale(eng.scale, eng.scale)

        nodes = eng.visibleNodes()
        byId = {n.id: n for n in nodes}

        # --- Edges ---
        for edge in eng.visibleEdges():
            a = byId[edge.getFrom()].getPosition()
            b = byId[edge.getTo()].getPosition()
            color = SELECTED_COLOR if edge.id == eng.selectedEdgeId else EDGE_COLOR
            pen = QPen(color)
            pen.setWidthF(line_width(edge.getWeight()))
            pen.setCapStyle(Qt.RoundCap)
            painter.setPen(pen)
            painter.drawLine(a, b)

            painter.setBrush(QBrush(color))
            head = self._arrowHead(a, b, byId[edge.getTo()].getRadius())
            if head is not None:
                painter.drawPolygon(head)
            if edge.getDirection() == BIDIRECTIONAL:
                tail = self._arrowHead(b, a, byId[edge.getFrom()].getRadius())
                if tail is not None:
                    painter.drawPolygon(tail)

        # --- Nodes ---
        pending = eng.interaction.pendingSource
        for n in nodes:
            pos, r = n.getPosition(), n.getRadius()
            if n.id == eng.selectedNodeId:
                pen = QPen(SELECTED_COLOR, 3)
            elif n.id == pending:
                pen = QPen(PENDING_COLOR, 3)
            elif n.isHighlighted():
                pen = QPen(HIGHLIGHT_COLOR, 3)
            else:
                pen = QPen(Qt.black, 1.5)
            painter.setPen(pen)
            painter.setBrush(QColor(n.getColor()))
            painter.drawEllipse(pos, r, r)

            if self.showLabels and 0.3 <= eng.scale:
                painter.setPen(Qt.black)
                text = n.getLabel()
                if n.getSecondaryLabel():
                    text += "\n" + n.getSecondaryLabel()
                painter.drawText(QRectF(pos.x() - 60, pos.y() + r + 2, 120, 36),
                                 Qt.AlignHCenter | Qt.AlignTop, text)
        painter.end()

    # ---------- Input ----------
    def wheelEvent(self, event):
        self.engine.wheel(event.angleDelta().y())
        event.accept()

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self.engine.pointerDown(event.pos().x(), event.pos().y(), event.button())
            if self.engine.interaction.isPanning() or self.engine.interaction.isDragging():
                self.setCursor(Qt.ClosedHandCursor)
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        self.engine.pointerMove(event.pos().x(), event.pos().y())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.LeftButton:
            self.engine.pointerUp(event.pos().x(), event.pos().y())
            self._syncCursor()
        super().mouseReleaseEvent(event)

    def contextMenuEvent(self, event):
        self.engine.contextClick(event.pos().x(), event.pos().y())
        event.accept()
