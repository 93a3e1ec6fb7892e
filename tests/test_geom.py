"""Geometry helpers and the edge stroke width function."""

import pytest
from PyQt5.QtCore import QPointF

from utils_geom import (
    line_width, point_segment_distance, project_point_on_segment,
    screen_to_world, world_to_screen,
)


class TestLineWidth:

    def test_extremes(self):
        """Cheapest edge is the thickest, most expensive the thinnest."""
        assert line_width(0.1) == pytest.approx(8.0)
        assert line_width(30) == pytest.approx(0.5)

    def test_monotonically_non_increasing(self):
        weights = [0.1 + i * (29.9 / 300) for i in range(301)]
        widths = [line_width(w) for w in weights]
        for a, b in zip(widths, widths[1:]):
            assert b <= a + 1e-12

    def test_out_of_range_weights_are_clamped(self):
        assert line_width(0.0001) == line_width(0.1)
        assert line_width(1000) == line_width(30)


class TestSegmentDistance:

    def test_perpendicular_distance_inside_segment(self):
        d = point_segment_distance(QPointF(50, 4), QPointF(0, 0), QPointF(100, 0))
        assert d == pytest.approx(4.0)

    def test_projection_is_clamped_to_endpoints(self):
        """Points beyond the segment measure to the nearest endpoint, not the line."""
        d = point_segment_distance(QPointF(110, 0), QPointF(0, 0), QPointF(100, 0))
        assert d == pytest.approx(10.0)
        q, t = project_point_on_segment(QPointF(-5, 3), QPointF(0, 0), QPointF(100, 0))
        assert t == 0.0
        assert (q.x(), q.y()) == (0.0, 0.0)

    def test_zero_length_segment_degenerates_to_point_distance(self):
        d = point_segment_distance(QPointF(3, 4), QPointF(0, 0), QPointF(0, 0))
        assert d == pytest.approx(5.0)


class TestViewportTransform:

    def test_screen_to_world(self):
        w = screen_to_world(120, 80, QPointF(20, -20), 2.0)
        assert (w.x(), w.y()) == (50.0, 50.0)

    def test_world_to_screen_inverts(self):
        offset = QPointF(13, 7)
        s = world_to_screen(4.5, -2.0, offset, 1.7)
        w = screen_to_world(s.x(), s.y(), offset, 1.7)
        assert w.x() == pytest.approx(4.5)
        assert w.y() == pytest.approx(-2.0)
