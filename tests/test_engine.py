"""Engine facade: commands, events, history and persistence isolation."""

import pytest

import engine as engine_module
import storage
from config import BIDIRECTIONAL, EDGE_MODE, EXCLUDE, INCLUDE, MEASURES, SELECT_MODE, EngineConfig
from engine import GraphEngine
from snapshot import snapshotsEqual


class TestScenario:

    def test_build_drag_undo_delete(self, engine):
        engine.pointerDown(0, 0)
        engine.pointerDown(100, 0)
        a, b = engine.graph.getNodes()
        assert a.getRadius() == 20 and b.getRadius() == 20

        engine.setMode(EDGE_MODE)
        engine.pointerDown(0, 0)
        engine.pointerDown(100, 0)
        edges = engine.graph.getEdges()
        assert len(edges) == 1
        edge = edges[0]
        assert (edge.getFrom(), edge.getTo(), edge.getWeight()) == (a.id, b.id, 1)

        engine.setMode(SELECT_MODE)
        engine.pointerDown(0, 0)
        engine.pointerMove(10, 10)
        engine.pointerUp(10, 10)
        assert (a.x(), a.y()) == (10, 10)
        assert len(engine.graph.getEdges()) == 1
        assert engine.graph.getNode(edge.getFrom()) is a
        assert engine.graph.getNode(edge.getTo()) is b

        assert engine.undo()
        a_now = engine.graph.getNode(a.id)
        assert (a_now.x(), a_now.y()) == (0, 0)

        assert engine.deleteNode(b.id)
        assert engine.graph.getEdges() == []


class TestHistory:

    def _mutate(self, engine):
        a = engine.createNode(0, 0, label="A")
        b = engine.createNode(50, 0, label="B")
        c = engine.createNode(0, 50, label="C", category="aux")
        engine.createEdge(a.id, b.id, 3)
        engine.createEdge(b.id, c.id)
        engine.editNode(a.id, {"label": "Alpha", "radius": 35})
        e = engine.createEdge(c.id, a.id, 8)
        engine.editEdge(e.id, {"weight": 2, "direction": BIDIRECTIONAL})
        engine.moveNode(b.id, 5, 5)
        engine.deleteNode(c.id)
        return 10

    def test_undo_redo_round_trip(self, engine):
        engine.createNode(-10, -10, label="seed")
        before = engine.exportSnapshot()
        n = self._mutate(engine)
        after = engine.exportSnapshot()

        for _ in range(n):
            assert engine.undo()
        assert snapshotsEqual(engine.exportSnapshot(), before)
        for _ in range(n):
            assert engine.redo()
        assert snapshotsEqual(engine.exportSnapshot(), after)

    def test_viewport_is_part_of_the_snapshot(self, engine):
        engine.setZoom(2.0)
        engine.setOffset(30, 40)
        engine.createNode(0, 0)
        engine.setZoom(3.0)
        engine.undo()
        assert engine.scale == 2.0
        assert (engine.offset.x(), engine.offset.y()) == (30, 40)

    def test_bound(self):
        eng = GraphEngine(EngineConfig(history_capacity=50))
        for i in range(60):
            eng.createNode(i, 0)
        assert eng.history.undoSize() == 50
        oldest = eng.history.undoEntries()[0]
        assert len(oldest["nodes"]) == 10

    def test_noops_capture_nothing(self, engine):
        a = engine.createNode(0, 0)
        size = engine.history.undoSize()
        assert engine.createEdge(a.id, a.id) is None
        assert engine.createEdge(a.id, "ghost") is None
        assert not engine.deleteNode("ghost")
        assert not engine.deleteEdge("ghost")
        assert not engine.editNode("ghost", {"label": "x"})
        assert not engine.deleteSelection()
        assert engine.history.undoSize() == size

    def test_edit_with_unknown_keys_is_noop(self, engine, recorder):
        a = engine.createNode(0, 0)
        b = engine.createNode(10, 0)
        e = engine.createEdge(a.id, b.id)
        size = engine.history.undoSize()
        updated = recorder(engine.nodeUpdated)
        mutated = recorder(engine.topologyMutated)
        assert not engine.editNode(a.id, {"colour": "red"})
        assert not engine.editEdge(e.id, {"thickness": 3})
        assert engine.history.undoSize() == size
        assert updated.count == 0 and mutated.count == 0

    def test_undo_clears_selection(self, engine):
        a = engine.createNode(0, 0)
        engine.createNode(100, 0)
        engine.selectNode(a.id)
        engine.undo()
        assert engine.selectedNodeId is None

    def test_history_signal(self, engine, recorder):
        changes = recorder(engine.historyChanged)
        engine.createNode(0, 0)
        engine.undo()
        assert changes.calls[0] == (True, False)
        assert changes.calls[-1] == (False, True)


class TestPersistenceIsolation:

    @pytest.fixture
    def no_storage(self, monkeypatch):
        def forbidden(*args, **kwargs):
            raise AssertionError("engine touched storage")

        for name in ("save_snapshot", "load_snapshot", "snapshot_to_json", "snapshot_from_json"):
            monkeypatch.setattr(storage, name, forbidden)

    def test_engine_does_not_reference_storage(self):
        assert "storage" not in vars(engine_module)

    def test_commands_never_persist(self, engine, no_storage):
        a = engine.createNode(0, 0)
        b = engine.createNode(10, 0)
        engine.createEdge(a.id, b.id)
        engine.undo()
        engine.redo()
        engine.importSnapshot(engine.exportSnapshot())
        engine.newGraph()
        engine.recomputeAnalytics()

    def test_import_starts_a_fresh_history(self, engine, recorder):
        engine.createNode(0, 0, label="A1")
        engine.createNode(10, 0, label="A2")
        engine.undo()
        assert engine.canUndo() and engine.canRedo()
        history = recorder(engine.historyChanged)
        engine.importSnapshot({"nodes": [{"id": "b1", "label": "B1"}]})
        assert not engine.canUndo() and not engine.canRedo()
        assert history.calls[-1] == (False, False)
        assert not engine.undo()
        assert [n.getLabel() for n in engine.graph.getNodes()] == ["B1"]

    def test_malformed_file_loads_as_empty(self, engine):
        engine.createNode(0, 0)
        assert engine.importSnapshot({"nodes": 5, "edges": {"a": 1}})
        assert engine.graph.getNodes() == [] and engine.graph.getEdges() == []

    def test_import_can_be_made_undoable(self, engine):
        n = engine.createNode(0, 0)
        engine.importSnapshot({"nodes": []}, undoable=True)
        assert engine.graph.getNodes() == []
        engine.undo()
        assert [x.id for x in engine.graph.getNodes()] == [n.id]

    def test_new_graph_resets_history(self, engine):
        engine.createNode(0, 0)
        engine.setZoom(3)
        engine.newGraph()
        assert not engine.canUndo() and not engine.canRedo()
        assert engine.scale == 1.0
        assert engine.graph.getNodes() == []

    def test_import_is_idempotent(self, engine):
        a = engine.createNode(0, 0, category="core")
        b = engine.createNode(1, 1)
        engine.createEdge(a.id, b.id, 4)
        data = engine.exportSnapshot()
        engine.importSnapshot(data)
        once = engine.exportSnapshot()
        engine.importSnapshot(once)
        assert engine.exportSnapshot() == once == data


class TestEvents:

    def test_topology_events(self, engine, recorder):
        created = recorder(engine.nodeCreated)
        edges = recorder(engine.edgeCreated)
        updated = recorder(engine.edgeUpdated)
        deleted_edges = recorder(engine.edgeDeleted)
        deleted_nodes = recorder(engine.nodeDeleted)
        mutated = recorder(engine.topologyMutated)

        a = engine.createNode(0, 0)
        b = engine.createNode(10, 0)
        e = engine.createEdge(a.id, b.id)
        engine.createEdge(b.id, a.id, 5)
        engine.deleteNode(a.id)

        assert created.calls == [(a.id,), (b.id,)]
        assert edges.calls == [(e.id,)]
        assert updated.calls == [(e.id,)]
        assert deleted_edges.calls == [(e.id,)]
        assert deleted_nodes.calls == [(a.id,)]
        assert mutated.count == 5

    def test_selection_invariant(self, engine, recorder):
        a = engine.createNode(0, 0)
        b = engine.createNode(10, 0)
        e = engine.createEdge(a.id, b.id)
        sel = recorder(engine.selectionChanged)
        engine.selectNode(a.id)
        engine.selectEdge(e.id)
        assert engine.selectedNodeId is None and engine.selectedEdgeId == e.id
        engine.selectNode(b.id)
        assert engine.selectedEdgeId is None
        assert sel.calls == [(a.id, None), (None, e.id), (b.id, None)]

    def test_deleting_selected_node_clears_selection(self, engine):
        a = engine.createNode(0, 0)
        engine.selectNode(a.id)
        assert engine.deleteSelection()
        assert engine.selectedNodeId is None

    def test_cascade_clears_selected_edge(self, engine):
        a = engine.createNode(0, 0)
        b = engine.createNode(10, 0)
        e = engine.createEdge(a.id, b.id)
        engine.selectEdge(e.id)
        engine.deleteNode(b.id)
        assert engine.selectedEdgeId is None

    def test_viewport_changes_are_not_history(self, engine, recorder):
        vp = recorder(engine.viewportChanged)
        engine.setZoom(2)
        engine.setOffset(3, 4)
        engine.panBy(1, 1)
        assert engine.history.undoSize() == 0
        assert vp.calls[-1] == (2.0, 4.0, 5.0)

    def test_set_zoom_clamps(self, engine):
        assert engine.setZoom(100) == 5.0
        assert engine.setZoom(0) == 0.1
        assert engine.setZoom("wide") == 0.1


class TestLayersOnEngine:

    def test_hidden_nodes_are_not_hittable(self, engine):
        engine.createNode(0, 0, category="aux")
        engine.setActiveLayers(["core"])
        assert engine.nodeAt(0, 0) is None
        # Node mode click lands on "empty" canvas and creates a node
        assert engine.pointerDown(0, 0) is not None

    def test_filter_modes(self, engine):
        x = engine.createNode(0, 0, category="core")
        engine.createNode(50, 0, category="aux")
        engine.setActiveLayers({"core"})
        assert engine.setLayerFilterMode(INCLUDE)
        assert engine.visibleNodes() == [x]
        assert engine.setLayerFilterMode(EXCLUDE)
        assert [n.getCategory() for n in engine.visibleNodes()] == ["aux"]
        assert not engine.setLayerFilterMode("bogus")

    def test_rename_layer(self, engine):
        a = engine.createNode(0, 0, category="old")
        b = engine.createNode(10, 0)
        engine.createEdge(a.id, b.id, category="old")
        engine.setActiveLayers(["old"])
        assert engine.renameLayer("old", "new") == 2
        assert engine.allLayers() == ["new"]
        assert engine.layerUsage("new") == {"nodes": 1, "edges": 1}
        assert engine.layers.isLayerActive("new")
        engine.undo()
        assert engine.allLayers() == ["old"]

    def test_rename_to_blank_is_noop(self, engine):
        engine.createNode(0, 0, category="old")
        assert engine.renameLayer("old", "  ") == 0


class TestFiltersOnEngine:

    @pytest.fixture
    def star(self, engine):
        hub = engine.createNode(0, 0, label="hub", category="core")
        near = engine.createNode(100, 0, label="near", category="core")
        far = engine.createNode(0, 100, label="far", category="aux")
        engine.createEdge(hub.id, near.id, 1)
        engine.createEdge(hub.id, far.id, 20)
        engine.recomputeAnalytics()
        return hub, near, far

    def test_centrality_filter(self, engine, star, recorder):
        hub, near, far = star
        changed = recorder(engine.filtersChanged)
        assert engine.applyCentralityFilter("degree", 2, 10)
        assert engine.visibleNodes() == [hub]
        assert engine.visibleEdges() == []
        assert engine.nodeAt(100, 0) is None
        assert not engine.applyCentralityFilter("degree", 5, 1)
        engine.clearCentralityFilter()
        assert len(engine.visibleNodes()) == 3
        assert changed.count == 2

    def test_local_graph_filter(self, engine, star):
        hub, near, far = star
        result = engine.applyLocalGraphFilter(hub.id, 5, 3)
        assert [r["id"] for r in result["nodes"]] == [near.id]
        assert engine.visibleNodes() == [hub, near]
        assert len(engine.visibleEdges()) == 1

    def test_local_graph_filter_needs_something_in_range(self, engine, star):
        hub, near, far = star
        assert engine.applyLocalGraphFilter("ghost") is None
        assert engine.applyLocalGraphFilter(far.id, 5, 3) is None
        assert not engine.localFilter.isEnabled()
        assert len(engine.visibleNodes()) == 3

    def test_filters_combine_with_layers(self, engine, star):
        hub, near, far = star
        engine.applyLocalGraphFilter(hub.id, 50, 3)
        engine.setActiveLayers(["aux"])
        engine.setLayerFilterMode(EXCLUDE)
        assert engine.visibleNodes() == [hub, near]
        engine.resetFilters()
        assert len(engine.visibleNodes()) == 3
        assert not engine.layers.isEnabled()

    def test_deleting_center_drops_local_view(self, engine, star):
        hub, near, far = star
        engine.applyLocalGraphFilter(hub.id, 5, 3)
        engine.deleteNode(hub.id)
        assert not engine.localFilter.isEnabled()
        assert engine.visibleNodes() == [near, far]

    def test_new_graph_clears_filters(self, engine, star):
        hub, *_ = star
        engine.applyCentralityFilter("degree", 2, 2)
        engine.applyLocalGraphFilter(hub.id)
        engine.newGraph()
        assert not engine.centralityFilter.isEnabled()
        assert not engine.localFilter.isEnabled()


class TestAnalyticsOnEngine:

    @pytest.fixture
    def triangle(self, engine):
        a = engine.createNode(0, 0)
        b = engine.createNode(10, 0)
        c = engine.createNode(5, 5)
        engine.createEdge(a.id, b.id)
        engine.createEdge(b.id, c.id)
        return a, b, c

    def test_synchronous_recompute(self, engine, triangle, recorder):
        a, b, c = triangle
        updated = recorder(engine.analyticsUpdated)
        assert engine.rank(b.id, "degree") is None
        size = engine.history.undoSize()
        engine.recomputeAnalytics()
        assert updated.count == 1
        assert set(b.getCentrality()) == set(MEASURES)
        assert engine.rank(b.id, "degree") == 1
        assert engine.rank("ghost", "degree") is None
        assert engine.history.undoSize() == size

    def test_worker_recompute(self, engine, triangle, recorder):
        a, b, c = triangle
        updated = recorder(engine.analyticsUpdated)
        engine.requestAnalytics()
        assert engine.analytics.waitForDone()
        assert updated.count == 1
        assert b.getCentrality()["degree"] == 2

    def test_pending_pass_is_dropped_on_import(self, engine, triangle, recorder):
        a, b, c = triangle
        updated = recorder(engine.analyticsUpdated)
        engine.requestAnalytics()
        engine.importSnapshot({"nodes": [{"id": a.id, "centrality": {"degree": 99.0}}]})
        assert engine.analytics.waitForDone()
        assert updated.count == 0
        assert engine.graph.getNode(a.id).getCentrality() == {"degree": 99.0}

    def test_pending_pass_is_dropped_on_undo(self, engine, triangle, recorder):
        a, b, c = triangle
        updated = recorder(engine.analyticsUpdated)
        engine.requestAnalytics()
        engine.undo()
        assert engine.analytics.waitForDone()
        assert updated.count == 0
        assert engine.graph.getNode(b.id).getCentrality() == {}

    def test_scores_are_stale_not_cleared(self, engine, triangle):
        a, b, c = triangle
        engine.recomputeAnalytics()
        engine.createEdge(a.id, c.id)
        assert b.getCentrality()["degree"] == 2
        assert a.getCentrality()["degree"] == 1

    def test_scores_survive_snapshot(self, engine, triangle):
        engine.recomputeAnalytics()
        data = engine.exportSnapshot()
        other = GraphEngine()
        other.importSnapshot(data)
        assert other.exportSnapshot()["nodes"][1]["centrality"] == data["nodes"][1]["centrality"]

    def test_connections_and_distances(self, engine, triangle):
        a, b, c = triangle
        conns = engine.connections(b.id)
        assert [x.node for x in conns["incoming"]] == [a]
        assert [x.node for x in conns["outgoing"]] == [c]
        result = engine.analyzeDistances(a.id)
        assert [r["id"] for r in result["nodes"]] == [b.id, c.id]


class TestSearchAndView:

    def test_highlight(self, engine):
        a = engine.createNode(0, 0, label="Harbor")
        b = engine.createNode(10, 0, label="Field")
        hits = engine.searchNodes("harb")
        assert hits == [a]
        assert engine.highlightNodes(n.id for n in hits) == 1
        assert a.isHighlighted() and not b.isHighlighted()
        assert "highlighted" not in engine.exportSnapshot()["nodes"][0]
        engine.clearHighlights()
        assert not a.isHighlighted()

    def test_center_on_node(self, engine):
        n = engine.createNode(100, 50)
        engine.setZoom(2.0)
        assert engine.centerOnNode(n.id, 800, 600)
        s = engine.worldToScreen(n.x(), n.y())
        assert (s.x(), s.y()) == (400, 300)
        assert not engine.centerOnNode("ghost", 800, 600)

    def test_stats(self, engine):
        engine.createNode(0, 0)
        assert engine.stats()["nodes"] == 1
