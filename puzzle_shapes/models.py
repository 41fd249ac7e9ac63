"""Data models for jigsaw pieces and their edges."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

import numpy as np


class PuzzleGenerationError(ValueError):
    """Raised when a puzzle cannot be generated from the given parameters."""


class EdgeType(str, Enum):
    """Shape of one side of a piece."""

    FLAT = "flat"  # Outer border, never interlocks
    TAB = "tab"  # Protrudes outward from the piece
    BLANK = "blank"  # Recessed into the piece

    def inverted(self) -> "EdgeType":
        """Return the type seen by the piece on the other side of the edge."""
        if self is EdgeType.TAB:
            return EdgeType.BLANK
        if self is EdgeType.BLANK:
            return EdgeType.TAB
        return EdgeType.FLAT


@dataclass(frozen=True)
class EdgeDescriptor:
    """Shape parameters for one border between two adjacent pieces.

    Attributes:
        edge_type: Flat, tab or blank.
        size: Knob size multiplier (0.8 to 1.2).
        offset: Knob centre along the traversal direction (0 to 1).
        tilt: Asymmetry of the knob head along the traversal direction.
    """

    edge_type: EdgeType
    size: float = 1.0
    offset: float = 0.5
    tilt: float = 0.0

    @classmethod
    def flat(cls) -> "EdgeDescriptor":
        """Descriptor for an outer border."""
        return cls(EdgeType.FLAT)

    @property
    def is_flat(self) -> bool:
        return self.edge_type is EdgeType.FLAT

    def mirrored(self) -> "EdgeDescriptor":
        """View of this edge from the neighbouring piece.

        The neighbour traverses the shared line in the opposite direction, so
        the type is inverted, the offset is measured from the other end and the
        tilt changes sign. The size is shared.
        """
        if self.is_flat:
            return self
        return EdgeDescriptor(
            edge_type=self.edge_type.inverted(),
            size=self.size,
            offset=1.0 - self.offset,
            tilt=-self.tilt,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"edge_type": self.edge_type.value, "size": self.size, "offset": self.offset, "tilt": self.tilt}


@dataclass
class BezierCurve:
    """A cubic Bezier curve defined by 4 control points."""

    p0: Tuple[float, float]  # Start point
    p1: Tuple[float, float]  # Control point 1
    p2: Tuple[float, float]  # Control point 2
    p3: Tuple[float, float]  # End point

    def evaluate(self, t: float) -> Tuple[float, float]:
        """Evaluate the curve at parameter t (0 to 1)."""
        t2 = t * t
        t3 = t2 * t
        mt = 1 - t
        mt2 = mt * mt
        mt3 = mt2 * mt

        x = mt3 * self.p0[0] + 3 * mt2 * t * self.p1[0] + 3 * mt * t2 * self.p2[0] + t3 * self.p3[0]
        y = mt3 * self.p0[1] + 3 * mt2 * t * self.p1[1] + 3 * mt * t2 * self.p2[1] + t3 * self.p3[1]
        return (x, y)

    def get_points(self, num_points: int = 50) -> np.ndarray:
        """Generate points along the curve."""
        t_values = np.linspace(0, 1, num_points)
        points = [self.evaluate(t) for t in t_values]
        return np.array(points)

    def reversed(self) -> "BezierCurve":
        """The same curve traversed from p3 back to p0."""
        return BezierCurve(p0=self.p3, p1=self.p2, p2=self.p1, p3=self.p0)

    def translated(self, dx: float, dy: float) -> "BezierCurve":
        """The same curve shifted by (dx, dy)."""

        def shift(p: Tuple[float, float]) -> Tuple[float, float]:
            return (p[0] + dx, p[1] + dy)

        return BezierCurve(shift(self.p0), shift(self.p1), shift(self.p2), shift(self.p3))


@dataclass
class PieceRecord:
    """One grid cell of the puzzle.

    Geometry fields (identity, edges, solved position and size) are fixed when
    the layout is generated. Position, placement, grouping and paint order are
    owned by the board session afterwards.
    """

    id: str
    index: int
    col: int
    row: int
    # top / right / bottom / left
    edges: Tuple[EdgeDescriptor, EdgeDescriptor, EdgeDescriptor, EdgeDescriptor]
    # Top-left corner of the cell on the solved board
    solved_x: float
    solved_y: float
    width: float
    height: float
    # Current top-left corner on the board (draggable)
    x: float = 0.0
    y: float = 0.0
    is_placed: bool = False
    group_id: int = 0
    z_index: int = 0
    in_tray: bool = True

    @property
    def top(self) -> EdgeDescriptor:
        return self.edges[0]

    @property
    def right(self) -> EdgeDescriptor:
        return self.edges[1]

    @property
    def bottom(self) -> EdgeDescriptor:
        return self.edges[2]

    @property
    def left(self) -> EdgeDescriptor:
        return self.edges[3]

    @property
    def is_corner(self) -> bool:
        return sum(1 for e in self.edges if e.is_flat) >= 2

    @property
    def is_border(self) -> bool:
        return any(e.is_flat for e in self.edges)


@dataclass
class PuzzleLayout:
    """A generated puzzle: grid dimensions, board size and every piece."""

    cols: int
    rows: int
    seed: int
    board_width: float
    board_height: float
    piece_width: float
    piece_height: float
    pieces: List[PieceRecord] = field(default_factory=list)

    def piece_at(self, col: int, row: int) -> PieceRecord:
        """Return the piece whose solved cell is (col, row)."""
        return self.pieces[row * self.cols + col]
