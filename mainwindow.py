# mainwindow.py
from PyQt5.QtWidgets import (
    QMainWindow, QStatusBar, QAction, QActionGroup, QFileDialog,
    QMessageBox, QDockWidget, QWidget, QVBoxLayout, QHBoxLayout,
    QPushButton, QLabel, QGroupBox, QShortcut, QInputDialog, QComboBox,
    QLineEdit, QListWidget, QListWidgetItem, QDialog, QFormLayout,
    QDialogButtonBox, QDoubleSpinBox
)
from PyQt5.QtCore import Qt
from PyQt5.QtGui import QKeySequence
from config import BIDIRECTIONAL, DIRECTIONS, EDGE_MODE, EXCLUDE, INCLUDE, MEASURES, NODE_MODE, SELECT_MODE
from engine import GraphEngine
from graphwidget import GraphCanvas
import storage


class PropertyDialog(QDialog):
    """Form for one node or edge. `values()` returns only the fields shown."""

    def __init__(self, parent, title, fields):
        super().__init__(parent)
        self.setWindowTitle(title)
        self._editors = {}
        form = QFormLayout(self)
        for key, label, editor in fields:
            self._editors[key] = editor
            form.addRow(label, editor)
        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        form.addRow(buttons)

    def values(self):
        out = {}
        for key, editor in self._editors.items():
            if isinstance(editor, QDoubleSpinBox):
                out[key] = editor.value()
            elif isinstance(editor, QComboBox):
                out[key] = editor.currentText()
            else:
                out[key] = editor.text()
        return out


def _line(text):
    w = QLineEdit()
    w.setText(text or "")
    return w

def _spin(value, lo, hi, step):
    w = QDoubleSpinBox()
    w.setRange(lo, hi)
    w.setSingleStep(step)
    w.setValue(value)
    return w


class MainWindow(QMainWindow):
    def __init__(self, engine: GraphEngine):
        super().__init__()
        self.engine = engine
        self.currentPath = None
        self.dirty = False

        self.canvas = GraphCanvas(engine, self)
        self.setCentralWidget(self.canvas)
        self.setStatusBar(QStatusBar(self))

        self.createActions()
        self.createMenuBar()
        self.createControlsDock()
        self.createShortcuts()

        engine.topologyMutated.connect(self._markDirty)
        engine.historyChanged.connect(self._syncHistoryActions)
        engine.modeChanged.connect(self._syncModeActions)
        engine.layersChanged.connect(self._refreshLayers)
        engine.propertyDialogRequested.connect(self.editProperties)
        engine.selectionChanged.connect(self._showSelection)
        engine.analyticsUpdated.connect(lambda: self.statusBar().showMessage("Analytics updated.", 3000))
        engine.analyticsFailed.connect(lambda msg: QMessageBox.warning(self, "Analytics", msg))

        self._syncHistoryActions(engine.canUndo(), engine.canRedo())
        self._syncModeActions(engine.mode())
        self._refreshLayers()
        self._updateTitle()

    # ---------- Setup ----------
    def createActions(self):
        self.newAction = QAction("&New Graph", self, triggered=self.newGraph)
        self.saveAction = QAction("&Save Graph", self, triggered=self.saveGraph)
        self.saveAsAction = QAction("Save Graph &As...", self, triggered=self.saveGraphAs)
        self.loadAction = QAction("&Load Graph", self, triggered=self.loadGraph)

        self.undoAction = QAction("&Undo", self, triggered=self.engine.undo)
        self.redoAction = QAction("&Redo", self, triggered=self.engine.redo)
        self.deleteAction = QAction("&Delete Selection", self, triggered=self.engine.deleteSelection)
        self.propertiesAction = QAction("&Properties...", self, triggered=self.editSelection)

        self.modeGroup = QActionGroup(self)
        self.modeActions = {}
        for mode, text in ((NODE_MODE, "&Node Mode"), (EDGE_MODE, "&Edge Mode"), (SELECT_MODE, "&Select Mode")):
            act = QAction(text, self, checkable=True)
            act.triggered.connect(lambda _=False, m=mode: self.engine.setMode(m))
            self.modeGroup.addAction(act)
            self.modeActions[mode] = act

        self.analyticsAction = QAction("Compute &Centralities", self, triggered=self.engine.requestAnalytics)
        self.connectionsAction = QAction("Show &Connections", self, triggered=self.showConnections)
        self.distanceAction = QAction("&Distance Analysis...", self, triggered=self.showDistanceAnalysis)
        self.graphInfoAction = QAction("&Graph Info", self, triggered=self.showGraphInfo)
        self.localGraphAction = QAction("&Local Graph View...", self, triggered=self.showLocalGraph)
        self.resetFiltersAction = QAction("&Reset Filters", self, triggered=self.engine.resetFilters)

        self.zoomInAction = QAction("Zoom &In", self, triggered=lambda: self.engine.wheel(1))
        self.zoomOutAction = QAction("Zoom &Out", self, triggered=lambda: self.engine.wheel(-1))
        self.centerAction = QAction("&Center on Selection", self, triggered=self.centerOnSelection)
        self.toggleLabelsAction = QAction("&Toggle Labels", self, triggered=self.canvas.toggleLabels)

    def createMenuBar(self):
        menuBar = self.menuBar()

        fileMenu = menuBar.addMenu("&File")
        fileMenu.addAction(self.newAction)
        fileMenu.addAction(self.saveAction)
        fileMenu.addAction(self.saveAsAction)
        fileMenu.addAction(self.loadAction)

        editMenu = menuBar.addMenu("&Edit")
        editMenu.addAction(self.undoAction)
        editMenu.addAction(self.redoAction)
        editMenu.addSeparator()
        editMenu.addAction(self.deleteAction)
        editMenu.addAction(self.propertiesAction)
        editMenu.addSeparator()
        for act in self.modeActions.values():
            editMenu.addAction(act)

        analysisMenu = menuBar.addMenu("&Analysis")
        analysisMenu.addAction(self.analyticsAction)
        analysisMenu.addAction(self.connectionsAction)
        analysisMenu.addAction(self.distanceAction)
        analysisMenu.addAction(self.graphInfoAction)
        analysisMenu.addSeparator()
        analysisMenu.addAction(self.localGraphAction)
        analysisMenu.addAction(self.resetFiltersAction)

        viewMenu = menuBar.addMenu("&View")
        viewMenu.addAction(self.zoomInAction)
        viewMenu.addAction(self.zoomOutAction)
        viewMenu.addAction(self.centerAction)
        viewMenu.addAction(self.toggleLabelsAction)

    def createControlsDock(self):
        dock = QDockWidget("Controls", self)
        dock.setAllowedAreas(Qt.RightDockWidgetArea)

        mainControlsWidget = QWidget()
        mainLayout = QVBoxLayout(mainControlsWidget)
        mainLayout.setAlignment(Qt.AlignTop)

        modeGroup = QGroupBox("Mode")
        modeLayout = QHBoxLayout()
        for mode, text in ((NODE_MODE, "Node (1)"), (EDGE_MODE, "Edge (2)"), (SELECT_MODE, "Select (3)")):
            btn = QPushButton(text)
            btn.clicked.connect(self.modeActions[mode].trigger)
            modeLayout.addWidget(btn)
        modeGroup.setLayout(modeLayout)

        searchGroup = QGroupBox("Search")
        searchLayout = QVBoxLayout()
        self.searchEdit = QLineEdit()
        self.searchEdit.setPlaceholderText("Label or secondary label")
        self.searchEdit.textChanged.connect(self.runSearch)
        searchLayout.addWidget(self.searchEdit)
        searchGroup.setLayout(searchLayout)

        layerGroup = QGroupBox("Layers")
        layerLayout = QVBoxLayout()
        self.layerModeCombo = QComboBox()
        self.layerModeCombo.addItems([INCLUDE, EXCLUDE])
        self.layerModeCombo.currentTextChanged.connect(self.engine.setLayerFilterMode)
        self.layerList = QListWidget()
        self.layerList.itemChanged.connect(self._layerItemChanged)
        btn_clear_layers = QPushButton("Show All")
        btn_clear_layers.clicked.connect(self.engine.clearLayerFilter)
        btn_rename_layer = QPushButton("Rename Layer...")
        btn_rename_layer.clicked.connect(self.renameLayer)
        layerLayout.addWidget(self.layerModeCombo)
        layerLayout.addWidget(self.layerList)
        layerLayout.addWidget(btn_clear_layers)
        layerLayout.addWidget(btn_rename_layer)
        layerGroup.setLayout(layerLayout)

        analysisGroup = QGroupBox("Analysis")
        analysisLayout = QVBoxLayout()
        btn_analytics = QPushButton("Compute Centralities (Ctrl+K)")
        btn_connections = QPushButton("Show Connections")
        btn_distance = QPushButton("Distance Analysis")
        btn_info = QPushButton("Graph Info (I)")
        btn_analytics.clicked.connect(self.analyticsAction.trigger)
        btn_connections.clicked.connect(self.connectionsAction.trigger)
        btn_distance.clicked.connect(self.distanceAction.trigger)
        btn_info.clicked.connect(self.graphInfoAction.trigger)
        for btn in (btn_analytics, btn_connections, btn_distance, btn_info):
            analysisLayout.addWidget(btn)
        analysisGroup.setLayout(analysisLayout)

        filterGroup = QGroupBox("Filters")
        filterLayout = QVBoxLayout()
        self.filterMeasureCombo = QComboBox()
        self.filterMeasureCombo.addItems(MEASURES)
        rangeLayout = QHBoxLayout()
        self.filterMinSpin = _spin(0.0, 0.0, 1e6, 0.05)
        self.filterMaxSpin = _spin(1.0, 0.0, 1e6, 0.05)
        rangeLayout.addWidget(QLabel("Min"))
        rangeLayout.addWidget(self.filterMinSpin)
        rangeLayout.addWidget(QLabel("Max"))
        rangeLayout.addWidget(self.filterMaxSpin)
        btn_centrality = QPushButton("Apply Centrality Filter")
        btn_centrality.clicked.connect(self.applyCentralityFilter)
        btn_local = QPushButton("Local Graph View...")
        btn_local.clicked.connect(self.localGraphAction.trigger)
        btn_reset = QPushButton("Reset Filters")
        btn_reset.clicked.connect(self.resetFiltersAction.trigger)
        filterLayout.addWidget(self.filterMeasureCombo)
        filterLayout.addLayout(rangeLayout)
        for btn in (btn_centrality, btn_local, btn_reset):
            filterLayout.addWidget(btn)
        filterGroup.setLayout(filterLayout)

        self.selectionLabel = QLabel("Nothing selected")
        self.selectionLabel.setWordWrap(True)

        mainLayout.addWidget(modeGroup)
        mainLayout.addWidget(searchGroup)
        mainLayout.addWidget(layerGroup)
        mainLayout.addWidget(analysisGroup)
        mainLayout.addWidget(filterGroup)
        mainLayout.addSpacing(15)
        mainLayout.addWidget(self.selectionLabel)

        dock.setWidget(mainControlsWidget)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    def createShortcuts(self):
        QShortcut(QKeySequence("Ctrl+N"), self, self.newAction.trigger)
        QShortcut(QKeySequence("Ctrl+S"), self, self.saveAction.trigger)
        QShortcut(QKeySequence("Ctrl+Shift+S"), self, self.saveAsAction.trigger)
        QShortcut(QKeySequence("Ctrl+O"), self, self.loadAction.trigger)
        QShortcut(QKeySequence("Ctrl+Z"), self, self.undoAction.trigger)
        QShortcut(QKeySequence("Ctrl+Y"), self, self.redoAction.trigger)
        QShortcut(QKeySequence("Ctrl+Shift+Z"), self, self.redoAction.trigger)
        QShortcut(QKeySequence(Qt.Key_Delete), self, self.deleteAction.trigger)
        QShortcut(QKeySequence("1"), self, self.modeActions[NODE_MODE].trigger)
        QShortcut(QKeySequence("2"), self, self.modeActions[EDGE_MODE].trigger)
        QShortcut(QKeySequence("3"), self, self.modeActions[SELECT_MODE].trigger)
        QShortcut(QKeySequence("Ctrl+K"), self, self.analyticsAction.trigger)
        QShortcut(QKeySequence("C"), self, self.centerAction.trigger)
        QShortcut(QKeySequence(Qt.Key_Plus), self, self.zoomInAction.trigger)
        QShortcut(QKeySequence(Qt.Key_Equal), self, self.zoomInAction.trigger)
        QShortcut(QKeySequence(Qt.Key_Minus), self, self.zoomOutAction.trigger)
        QShortcut(QKeySequence("T"), self, self.toggleLabelsAction.trigger)
        QShortcut(QKeySequence("I"), self, self.graphInfoAction.trigger)
        QShortcut(QKeySequence("Escape"), self, self.engine.clearHighlights)

    # ---------- Engine feedback ----------
    def _markDirty(self):
        self.dirty = True
        self._updateTitle()

    def _updateTitle(self):
        name = self.currentPath or "Untitled"
        self.setWindowTitle(f"{'*' if self.dirty else ''}{name} - Graph Canvas")

    def _syncHistoryActions(self, canUndo, canRedo):
        self.undoAction.setEnabled(canUndo)
        self.redoAction.setEnabled(canRedo)

    def _syncModeActions(self, mode):
        act = self.modeActions.get(mode)
        if act is not None:
            act.setChecked(True)
        self.statusBar().showMessage(f"Mode: {mode}", 2000)

    def _refreshLayers(self):
        self.layerList.blockSignals(True)
        self.layerList.clear()
        for name in self.engine.allLayers():
            item = QListWidgetItem(name)
            item.setFlags(item.flags() | Qt.ItemIsUserCheckable)
            item.setCheckState(Qt.Checked if self.engine.layers.isLayerActive(name) else Qt.Unchecked)
            self.layerList.addItem(item)
        self.layerList.blockSignals(False)
        self.layerModeCombo.blockSignals(True)
        self.layerModeCombo.setCurrentText(self.engine.layers.getMode())
        self.layerModeCombo.blockSignals(False)

    def _layerItemChanged(self, item):
        active = [self.layerList.item(i).text() for i in range(self.layerList.count())
                  if self.layerList.item(i).checkState() == Qt.Checked]
        self.engine.setActiveLayers(active)

    def _showSelection(self, nodeId, edgeId):
        node = self.engine.selectedNode()
        edge = self.engine.selectedEdge()
        if node is not None:
            lines = [f"<b>{node.getLabel()}</b>"]
            if node.getSecondaryLabel():
                lines.append(node.getSecondaryLabel())
            for m in MEASURES:
                score = node.getCentrality().get(m)
                if score is not None:
                    lines.append(f"{m}: {score:.4f} (rank {self.engine.rank(node.id, m)})")
            self.selectionLabel.setText("<br>".join(lines))
        elif edge is not None:
            a = self.engine.graph.getNode(edge.getFrom()).getLabel()
            b = self.engine.graph.getNode(edge.getTo()).getLabel()
            arrow = "<->" if edge.isBidirectional() else "->"
            self.selectionLabel.setText(f"{a} {arrow} {b}<br>weight: {edge.getWeight():g}")
        else:
            self.selectionLabel.setText("Nothing selected")

    # ---------- File ----------
    def _confirmDiscard(self):
        if not self.dirty:
            return True
        res = QMessageBox.question(self, "Unsaved Changes",
                                   "The current graph has unsaved changes. Discard them?",
                                   QMessageBox.Yes | QMessageBox.No, QMessageBox.No)
        return res == QMessageBox.Yes

    def newGraph(self):
        if not self._confirmDiscard():
            return
        self.engine.newGraph()
        self.currentPath = None
        self.dirty = False
        self._updateTitle()

    def saveGraph(self):
        if not self.currentPath:
            self.saveGraphAs()
            return
        self._writeTo(self.currentPath)

    def saveGraphAs(self):
        path, _ = QFileDialog.getSaveFileName(self, "Save Graph", "", "JSON Files (*.json)")
        if path:
            self._writeTo(path)

    def _writeTo(self, path):
        if storage.save_snapshot(path, self.engine.exportSnapshot()):
            self.currentPath = path
            self.dirty = False
            self._updateTitle()
            self.statusBar().showMessage(f"Graph saved to {path}", 5000)
        else:
            QMessageBox.warning(self, "Error", "Could not save the graph.")

    def loadGraph(self):
        if not self._confirmDiscard():
            return
        path, _ = QFileDialog.getOpenFileName(self, "Load Graph", "", "JSON Files (*.json)")
        if not path:
            return
        data = storage.load_snapshot(path)
        if data is None:
            QMessageBox.warning(self, "Error", "Could not load the graph.")
            return
        self.engine.importSnapshot(data)
        self.currentPath = path
        self.dirty = False
        self._updateTitle()
        self.statusBar().showMessage(f"Graph loaded from {path}", 5000)

    def closeEvent(self, event):
        if self._confirmDiscard():
            self.engine.analytics.waitForDone()
            event.accept()
        else:
            event.ignore()

    # ---------- Edit ----------
    def editSelection(self):
        if self.engine.selectedNodeId is not None:
            self.editProperties("node", self.engine.selectedNodeId)
        elif self.engine.selectedEdgeId is not None:
            self.editProperties("edge", self.engine.selectedEdgeId)

    def editProperties(self, kind, entityId):
        defaults = self.engine.config.defaults
        if kind == "node":
            node = self.engine.graph.getNode(entityId)
            if node is None:
                return
            dlg = PropertyDialog(self, "Node Properties", [
                ("label", "Label", _line(node.getLabel())),
                ("secondaryLabel", "Secondary label", _line(node.getSecondaryLabel())),
                ("color", "Color", _line(node.getColor())),
                ("radius", "Radius", _spin(node.getRadius(), defaults.radius_min, defaults.radius_max, 1.0)),
                ("category", "Layer", _line(node.getCategory())),
            ])
            if dlg.exec_() == QDialog.Accepted:
                self.engine.editNode(entityId, dlg.values())
        elif kind == "edge":
            edge = self.engine.graph.getEdge(entityId)
            if edge is None:
                return
            direction = QComboBox()
            direction.addItems(list(DIRECTIONS))
            direction.setCurrentText(edge.getDirection())
            dlg = PropertyDialog(self, "Edge Properties", [
                ("weight", "Weight", _spin(edge.getWeight(), defaults.weight_min, defaults.weight_max, 0.1)),
                ("category", "Layer", _line(edge.getCategory())),
                ("direction", "Direction", direction),
            ])
            if dlg.exec_() == QDialog.Accepted:
                self.engine.editEdge(entityId, dlg.values())

    def renameLayer(self):
        layers = self.engine.allLayers()
        if not layers:
            return
        old, ok = QInputDialog.getItem(self, "Rename Layer", "Layer:", layers, 0, False)
        if not ok:
            return
        new, ok = QInputDialog.getText(self, "Rename Layer", f"New name for '{old}':", text=old)
        if ok:
            count = self.engine.renameLayer(old, new)
            self.statusBar().showMessage(f"Renamed {count} item(s).", 4000)

    def runSearch(self, text):
        hits = self.engine.searchNodes(text)
        if not text.strip():
            self.engine.clearHighlights()
            return
        self.engine.highlightNodes(n.id for n in hits)
        self.statusBar().showMessage(f"{len(hits)} match(es).", 3000)
        if len(hits) == 1:
            self.engine.centerOnNode(hits[0].id, self.canvas.width(), self.canvas.height())

    # ---------- View ----------
    def centerOnSelection(self):
        if self.engine.selectedNodeId is not None:
            self.engine.centerOnNode(self.engine.selectedNodeId, self.canvas.width(), self.canvas.height())

    # ---------- Analysis ----------
    def showConnections(self):
        node = self.engine.selectedNode()
        if node is None:
            self.statusBar().showMessage("Select a node first.", 3000)
            return
        conns = self.engine.connections(node.id)
        parts = []
        for key in ("outgoing", "incoming", BIDIRECTIONAL):
            names = ", ".join(f"{c.node.getLabel()} ({c.edge.getWeight():g})" for c in conns[key]) or "none"
            parts.append(f"<b>{key.capitalize()}:</b> {names}")
        QMessageBox.information(self, f"Connections - {node.getLabel()}", "<br>".join(parts))

    def showDistanceAnalysis(self):
        node = self.engine.selectedNode()
        if node is None:
            self.statusBar().showMessage("Select a center node first.", 3000)
            return
        maxDistance, ok = QInputDialog.getDouble(self, "Distance Analysis", "Max distance:", 10, 0, 1e6, 1)
        if not ok:
            return
        maxDepth, ok = QInputDialog.getInt(self, "Distance Analysis", "Max depth:", 5, 1, 1000)
        if not ok:
            return
        result = self.engine.analyzeDistances(node.id, maxDistance, maxDepth)
        if not result or not result["nodes"]:
            self.statusBar().showMessage("No nodes found within the specified constraints.", 4000)
            return
        rows = "".join(f"<tr><td>{r['label']}</td><td>{r['distance']:.2f}</td><td>{r['depth']}</td></tr>"
                       for r in result["nodes"])
        QMessageBox.information(self, f"Distance Analysis - {node.getLabel()}",
                                f"<table><tr><th>Node</th><th>Distance</th><th>Depth</th></tr>{rows}</table>"
                                f"<br>Total nodes: {result['totalCount']}")
        self.engine.highlightNodes(r["id"] for r in result["nodes"])

    def applyCentralityFilter(self):
        measure = self.filterMeasureCombo.currentText()
        lo, hi = self.filterMinSpin.value(), self.filterMaxSpin.value()
        if not self.engine.applyCentralityFilter(measure, lo, hi):
            self.statusBar().showMessage("Min must not exceed max.", 3000)
            return
        shown = len(self.engine.visibleNodes())
        self.statusBar().showMessage(f"{measure} in [{lo:g}, {hi:g}]: {shown} nodes shown", 5000)

    def showLocalGraph(self):
        node = self.engine.selectedNode()
        if node is None:
            self.statusBar().showMessage("Select a center node first.", 3000)
            return
        maxDistance, ok = QInputDialog.getDouble(self, "Local Graph View", "Max distance:", 10, 0, 1e6, 1)
        if not ok:
            return
        maxDepth, ok = QInputDialog.getInt(self, "Local Graph View", "Max depth:", 5, 1, 1000)
        if not ok:
            return
        result = self.engine.applyLocalGraphFilter(node.id, maxDistance, maxDepth)
        if result is None:
            self.statusBar().showMessage("No nodes within the specified distance.", 4000)
            return
        self.statusBar().showMessage(
            f"Local graph of {node.getLabel()}: {result['totalCount'] + 1} nodes shown", 5000)

    def showGraphInfo(self):
        stats = self.engine.stats()
        self.statusBar().showMessage(
            f"Nodes: {stats['nodes']}, Edges: {stats['edges']}, "
            f"Avg connections: {stats['avg_connections']:.2f}, Isolated: {stats['isolated_nodes']}, "
            f"Density: {stats['density']:.3f}, Components: {stats['components']}",
            6000
        )
