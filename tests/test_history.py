"""Bounded undo/redo stacks."""

from history import HistoryManager


def snap(i):
    return {"nodes": [{"id": str(i)}], "edges": [], "scale": 1.0, "offset": {"x": 0, "y": 0}}


class TestHistoryManager:

    def test_empty(self):
        h = HistoryManager()
        assert not h.canUndo()
        assert not h.canRedo()
        assert h.undo(snap(0)) is None
        assert h.redo(snap(0)) is None

    def test_undo_then_redo(self):
        h = HistoryManager()
        h.capture(snap(1))
        restored = h.undo(snap(2))
        assert restored == snap(1)
        assert h.canRedo()
        assert h.redo(snap(1)) == snap(2)
        assert h.undoSize() == 1

    def test_capture_clears_redo(self):
        h = HistoryManager()
        h.capture(snap(1))
        h.undo(snap(2))
        h.capture(snap(3))
        assert not h.canRedo()

    def test_bound_keeps_most_recent(self):
        """Past capacity the oldest entries are evicted first."""
        h = HistoryManager(capacity=50)
        for i in range(75):
            h.capture(snap(i))
            assert h.undoSize() <= 50
        entries = h.undoEntries()
        assert [e["nodes"][0]["id"] for e in entries] == [str(i) for i in range(25, 75)]

    def test_entries_are_value_copies(self):
        h = HistoryManager()
        live = snap(1)
        h.capture(live)
        live["nodes"][0]["id"] = "mutated"
        restored = h.undo(snap(2))
        assert restored["nodes"][0]["id"] == "1"
        restored["nodes"].clear()
        assert h.redo(snap(9)) == snap(2)

    def test_clear(self):
        h = HistoryManager()
        h.capture(snap(1))
        h.undo(snap(2))
        h.clear()
        assert (h.undoSize(), h.redoSize()) == (0, 0)
