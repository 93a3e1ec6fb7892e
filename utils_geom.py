# utils_geom.py

from PyQt5.QtCore import QPointF
import math

EPS = 1e-9

# Edge stroke widths (screen px) at the ends of the weight range
LINE_WIDTH_MIN = 0.5
LINE_WIDTH_MAX = 8.0
WEIGHT_FLOOR = 0.1
WEIGHT_CEIL = 30.0


def v_add(a: QPointF, b: QPointF) -> QPointF:
    return QPointF(a.x() + b.x(), a.y() + b.y())

def v_sub(a: QPointF, b: QPointF) -> QPointF:
    return QPointF(a.x() - b.x(), a.y() - b.y())

def v_scale(a: QPointF, s: float) -> QPointF:
    return QPointF(a.x() * s, a.y() * s)

def v_dist(a: QPointF, b: QPointF) -> float:
    return math.hypot(a.x() - b.x(), a.y() - b.y())

def project_point_on_segment(p: QPointF, a: QPointF, b: QPointF):
    """
    Return (q, t) where q is the closest point to p on segment ab,
    and t is the clamped parameter in [0,1].
    A zero-length segment projects everything onto a.
    """
    ax, ay = a.x(), a.y()
    bx, by = b.x(), b.y()
    px, py = p.x(), p.y()
    abx, aby = (bx - ax), (by - ay)
    denom = abx * abx + aby * aby
    if denom <= EPS:
        return QPointF(ax, ay), 0.0
    t = ((px - ax) * abx + (py - ay) * aby) / denom
    t = 0.0 if t < 0.0 else (1.0 if t > 1.0 else t)
    return QPointF(ax + t * abx, ay + t * aby), t

def point_segment_distance(p: QPointF, a: QPointF, b: QPointF) -> float:
    q, _ = project_point_on_segment(p, a, b)
    return v_dist(p, q)

# --------------------------
# Viewport transforms
# --------------------------
def screen_to_world(sx: float, sy: float, offset: QPointF, scale: float) -> QPointF:
    return QPointF((sx - offset.x()) / scale, (sy - offset.y()) / scale)

def world_to_screen(wx: float, wy: float, offset: QPointF, scale: float) -> QPointF:
    return QPointF(wx * scale + offset.x(), wy * scale + offset.y())

# --------------------------
# Edge stroke width
# --------------------------
def line_width(weight: float) -> float:
    # Log-scaled and inverted: cheap (low weight) edges draw thick
    w = max(WEIGHT_FLOOR, min(WEIGHT_CEIL, float(weight)))
    log_w = math.log(w + 0.1) + 2.3
    normalized = max(0.0, min(1.0, (log_w - 1.5) / 3.5))
    width = LINE_WIDTH_MIN + (1.0 - normalized) * (LINE_WIDTH_MAX - LINE_WIDTH_MIN)
    return max(LINE_WIDTH_MIN, min(LINE_WIDTH_MAX, width))
