"""Geometric logic for building puzzle piece outlines."""

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .models import BezierCurve, EdgeDescriptor, EdgeType, PieceRecord

# Shared knob scale so outlines, hit testing and masks agree on the shape.
KNOB_SCALE = 0.25

# Largest size multiplier a descriptor may carry.
MAX_KNOB_SIZE = 1.2

# Knob proportions, relative to the knob height.
HEAD_HALF_WIDTH = 0.45
NECK_HALF_WIDTH = 0.2
SHOULDER_LENGTH = 0.3
NECK_HEIGHT = 0.3
EQUATOR_HEIGHT = 0.65

# Magic number for quarter-circle approximation
KAPPA = 0.5522847498

Point = Tuple[float, float]


def _pt(v: np.ndarray) -> Point:
    return (float(v[0]), float(v[1]))


def _line(start: np.ndarray, end: np.ndarray) -> BezierCurve:
    """Straight segment as a cubic with control points at the thirds."""
    delta = end - start
    return BezierCurve(_pt(start), _pt(start + delta / 3.0), _pt(start + delta * (2.0 / 3.0)), _pt(end))


def knob_height(width: float, height: float, edge: EdgeDescriptor, knob_scale: float = KNOB_SCALE) -> float:
    """How far the knob of ``edge`` reaches out of (or into) a piece."""
    return min(width, height) * knob_scale * edge.size


def generate_knob_edge(
    start: Point,
    end: Point,
    edge: EdgeDescriptor,
    knob_h: float,
) -> List[BezierCurve]:
    """Generate the curves of one piece side from ``start`` to ``end``.

    The side runs straight to the shoulder, rises through the neck to the
    round head, crosses the tip and comes back down symmetrically. Every join
    inside the knob is G1: the control points on both sides of a join are
    collinear with it.

    The construction only depends on the physical knob centre, the physical
    knob direction and the head skew. Traversing the same side from ``end``
    to ``start`` with the mirrored descriptor therefore yields exactly the
    same curves in reverse order, which is what makes a tab fit its blank.

    Args:
        start: Start point of the side, in traversal order.
        end: End point of the side.
        edge: Descriptor as seen by the piece being outlined.
        knob_h: Knob height (see ``knob_height``).

    Returns:
        List of BezierCurve objects forming the side.
    """
    p_start = np.array(start, dtype=float)
    p_end = np.array(end, dtype=float)

    if edge.edge_type is EdgeType.FLAT:
        return [_line(p_start, p_end)]

    edge_vec = p_end - p_start
    edge_length = float(np.linalg.norm(edge_vec))
    e = edge_vec / edge_length

    # Screen coordinates have y pointing down and outlines run clockwise,
    # so the outward normal is the traversal direction turned by -90 degrees.
    outward = np.array([e[1], -e[0]])
    n = outward if edge.edge_type is EdgeType.TAB else -outward

    h = knob_h
    head_half = h * HEAD_HALF_WIDTH
    neck_half = h * NECK_HALF_WIDTH
    shoulder = h * SHOULDER_LENGTH

    centre = p_start + e * edge.offset * edge_length
    skew = e * edge.tilt * h

    shoulder_in = centre - e * (neck_half + shoulder)
    shoulder_out = centre + e * (neck_half + shoulder)
    neck_left = centre - e * neck_half + n * h * NECK_HEIGHT + skew * NECK_HEIGHT
    neck_right = centre + e * neck_half + n * h * NECK_HEIGHT + skew * NECK_HEIGHT
    equator_left = centre - e * head_half + n * h * EQUATOR_HEIGHT + skew * EQUATOR_HEIGHT
    equator_right = centre + e * head_half + n * h * EQUATOR_HEIGHT + skew * EQUATOR_HEIGHT
    tip = centre + n * h + skew

    shoulder_handle = shoulder * 0.6
    neck_handle = h * 0.15
    cap_handle = h * (1.0 - EQUATOR_HEIGHT) * KAPPA
    tip_handle = head_half * KAPPA

    curves = [_line(p_start, shoulder_in)]

    # Shoulder into the neck: leaves along the edge, arrives along the normal
    curves.append(
        BezierCurve(
            _pt(shoulder_in),
            _pt(shoulder_in + e * shoulder_handle),
            _pt(neck_left - n * neck_handle),
            _pt(neck_left),
        )
    )
    # Neck out to the widest point of the head
    curves.append(
        BezierCurve(
            _pt(neck_left),
            _pt(neck_left + n * neck_handle),
            _pt(equator_left - n * neck_handle),
            _pt(equator_left),
        )
    )
    # Head cap, split at the tip
    curves.append(
        BezierCurve(
            _pt(equator_left),
            _pt(equator_left + n * cap_handle),
            _pt(tip - e * tip_handle),
            _pt(tip),
        )
    )
    curves.append(
        BezierCurve(
            _pt(tip),
            _pt(tip + e * tip_handle),
            _pt(equator_right + n * cap_handle),
            _pt(equator_right),
        )
    )
    # Back down through the neck
    curves.append(
        BezierCurve(
            _pt(equator_right),
            _pt(equator_right - n * neck_handle),
            _pt(neck_right + n * neck_handle),
            _pt(neck_right),
        )
    )
    curves.append(
        BezierCurve(
            _pt(neck_right),
            _pt(neck_right - n * neck_handle),
            _pt(shoulder_out - e * shoulder_handle),
            _pt(shoulder_out),
        )
    )

    curves.append(_line(shoulder_out, p_end))
    return curves


@dataclass
class PieceOutline:
    """Closed outline of one piece in local coordinates.

    The cell occupies (0, 0) to (width, height); knobs reach beyond it.
    ``edges`` holds the curves of the top, right, bottom and left sides in
    clockwise traversal order.
    """

    width: float
    height: float
    edges: List[List[BezierCurve]]

    def curves(self) -> List[BezierCurve]:
        return [curve for edge in self.edges for curve in edge]

    def polygon(self, points_per_curve: int = 12) -> np.ndarray:
        """Sample the outline into an (N, 2) array of points.

        The first point is repeated at the end to close the path.
        """
        chunks = [curve.get_points(points_per_curve)[:-1] for curve in self.curves()]
        points = np.concatenate(chunks, axis=0)
        return np.vstack([points, points[:1]])

    def bounds(self) -> Tuple[float, float, float, float]:
        """Axis-aligned (min_x, min_y, max_x, max_y) of the outline.

        Uses the control points, which bound each cubic from outside.
        """
        pts = np.array([p for curve in self.curves() for p in (curve.p0, curve.p1, curve.p2, curve.p3)])
        return (float(pts[:, 0].min()), float(pts[:, 1].min()), float(pts[:, 0].max()), float(pts[:, 1].max()))

    def contains(self, x: float, y: float, points_per_curve: int = 12) -> bool:
        """Even-odd test of a local point against the sampled outline."""
        return point_in_polygon(self.polygon(points_per_curve), x, y)


def point_in_polygon(polygon: np.ndarray, x: float, y: float) -> bool:
    """Ray-casting containment test against a closed (N, 2) polygon."""
    xs = polygon[:, 0]
    ys = polygon[:, 1]
    xj = np.roll(xs, 1)
    yj = np.roll(ys, 1)

    straddles = (ys > y) != (yj > y)
    with np.errstate(divide="ignore", invalid="ignore"):
        x_cross = (xj - xs) * (y - ys) / (yj - ys) + xs
    crossings = np.count_nonzero(straddles & (x < x_cross))
    return bool(crossings % 2 == 1)


def build_outline(piece: PieceRecord, knob_scale: float = KNOB_SCALE) -> PieceOutline:
    """Build the closed outline of a piece from its four edge views.

    The edge descriptors on the piece already carry the neighbour mirroring,
    so they are used as-is.

    Args:
        piece: The piece to outline.
        knob_scale: Knob height relative to the smaller piece dimension.

    Returns:
        The piece outline in local coordinates.
    """
    w, h = piece.width, piece.height
    corners = [(0.0, 0.0), (w, 0.0), (w, h), (0.0, h)]

    edges: List[List[BezierCurve]] = []
    for i, edge in enumerate(piece.edges):
        start = corners[i]
        end = corners[(i + 1) % 4]
        edges.append(generate_knob_edge(start, end, edge, knob_height(w, h, edge, knob_scale)))

    return PieceOutline(width=w, height=h, edges=edges)


def knob_reach(piece: PieceRecord, knob_scale: float = KNOB_SCALE) -> float:
    """Upper bound on how far any knob of ``piece`` can leave its cell."""
    return min(piece.width, piece.height) * knob_scale * MAX_KNOB_SIZE


def piece_polygon_on_board(
    piece: PieceRecord,
    knob_scale: float = KNOB_SCALE,
    points_per_curve: int = 12,
    at_solved: bool = False,
) -> List[Point]:
    """Sample a piece outline in board coordinates.

    Args:
        piece: The piece to outline.
        knob_scale: Knob height relative to the smaller piece dimension.
        points_per_curve: Number of points to sample from each Bezier curve.
        at_solved: Place the outline at the solved position instead of the
            current one.

    Returns:
        List of (x, y) points forming a closed polygon.
    """
    ox, oy = (piece.solved_x, piece.solved_y) if at_solved else (piece.x, piece.y)
    polygon = build_outline(piece, knob_scale).polygon(points_per_curve)
    return [(float(px) + ox, float(py) + oy) for px, py in polygon]
