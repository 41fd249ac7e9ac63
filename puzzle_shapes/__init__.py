"""Puzzle shapes - piece geometry for the jigsaw board.

This package generates the shared edge grid of a puzzle, lays out one record
per grid cell, and builds the Bezier outlines used for hit testing and for
clipping the picture.
"""

from .edge_grid import (
    DEFAULT_SEED,
    MAX_GRID_DIMENSION,
    MAX_TILT,
    OFFSET_RANGE,
    SIZE_RANGE,
    EdgeGrid,
    calculate_grid_dimensions,
    generate_edge_grid,
    generate_puzzle,
)
from .geometry import (
    KNOB_SCALE,
    PieceOutline,
    build_outline,
    generate_knob_edge,
    knob_height,
    knob_reach,
    piece_polygon_on_board,
    point_in_polygon,
)
from .image_masking import calculate_piece_bounds, create_piece_mask, render_piece_mask
from .models import BezierCurve, EdgeDescriptor, EdgeType, PieceRecord, PuzzleGenerationError, PuzzleLayout

__all__ = [
    # Models
    "BezierCurve",
    "EdgeDescriptor",
    "EdgeType",
    "PieceRecord",
    "PuzzleLayout",
    "PuzzleGenerationError",
    # Edge grid
    "DEFAULT_SEED",
    "MAX_GRID_DIMENSION",
    "MAX_TILT",
    "OFFSET_RANGE",
    "SIZE_RANGE",
    "EdgeGrid",
    "calculate_grid_dimensions",
    "generate_edge_grid",
    "generate_puzzle",
    # Geometry
    "KNOB_SCALE",
    "PieceOutline",
    "build_outline",
    "generate_knob_edge",
    "knob_height",
    "knob_reach",
    "piece_polygon_on_board",
    "point_in_polygon",
    # Image masking
    "calculate_piece_bounds",
    "create_piece_mask",
    "render_piece_mask",
]
