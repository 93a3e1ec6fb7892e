"""Hit testing of nodes and edges."""

from graph import Graph
from spatial import EDGE_HIT_THRESHOLD, edgeAt, nodeAt


class TestNodeAt:

    def test_center_is_always_hit(self):
        g = Graph()
        n = g.addNode(37.5, -12.25, radius=3)
        assert nodeAt(g.getNodes(), 37.5, -12.25) is n

    def test_boundary_and_just_outside(self):
        g = Graph()
        n = g.addNode(0, 0, radius=20)
        assert nodeAt(g.getNodes(), 20, 0) is n
        assert nodeAt(g.getNodes(), 20 + 1e-6, 0) is None

    def test_overlap_resolves_to_first_created(self):
        """First match in insertion order, even when a later node is nearer."""
        g = Graph()
        first = g.addNode(0, 0, radius=20)
        g.addNode(10, 0, radius=20)
        assert nodeAt(g.getNodes(), 9, 0) is first


class TestEdgeAt:

    def setup_method(self):
        self.g = Graph()
        self.a = self.g.addNode(0, 0)
        self.b = self.g.addNode(100, 0)
        self.e = self.g.addEdge(self.a.id, self.b.id)

    def test_within_threshold(self):
        assert edgeAt(self.g.getEdges(), self.g.getNodes(), 50, EDGE_HIT_THRESHOLD) is self.e
        assert edgeAt(self.g.getEdges(), self.g.getNodes(), 50, EDGE_HIT_THRESHOLD + 0.01) is None

    def test_segment_not_infinite_line(self):
        assert edgeAt(self.g.getEdges(), self.g.getNodes(), 110, 0) is None
        assert edgeAt(self.g.getEdges(), self.g.getNodes(), 103, 0) is self.e

    def test_edges_with_missing_endpoints_are_skipped(self):
        only_a = [self.a]
        assert edgeAt(self.g.getEdges(), only_a, 50, 0) is None

    def test_custom_threshold(self):
        assert edgeAt(self.g.getEdges(), self.g.getNodes(), 50, 9, threshold=10) is self.e
