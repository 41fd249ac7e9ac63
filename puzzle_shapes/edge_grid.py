"""Edge grid generation for interlocking puzzle pieces.

This module generates a grid of interlocking puzzle edges. Each interior grid
line gets exactly one shared edge descriptor; the two pieces that border the
line derive their views of it, one as generated and one mirrored, so every
tab meets an identical blank by construction.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models import EdgeDescriptor, EdgeType, PieceRecord, PuzzleGenerationError, PuzzleLayout

logger = logging.getLogger(__name__)

# Knob size relative to the base unit. Kept narrow so knobs look uniform.
SIZE_RANGE = (0.85, 1.10)

# Knob centre along the edge. Keeps knobs away from the corners.
OFFSET_RANGE = (0.36, 0.64)

# Maximum head skew in either direction.
MAX_TILT = 0.06

DEFAULT_SEED = 42

# Largest number of columns or rows in a generated grid.
MAX_GRID_DIMENSION = 40


@dataclass
class EdgeGrid:
    """Grid of shared edges for a puzzle.

    The grid stores edges in two 2D arrays:
    - horizontal_edges: (rows+1) x cols - line above piece (r, c), canonical direction left to right
    - vertical_edges: rows x (cols+1) - line left of piece (r, c), canonical direction top to bottom

    Border lines (top row, bottom row, left col, right col) are flat.
    """

    rows: int
    cols: int
    horizontal_edges: List[List[EdgeDescriptor]]  # [row][col] - (rows+1) x cols
    vertical_edges: List[List[EdgeDescriptor]]  # [row][col] - rows x (cols+1)

    def piece_edges(
        self, row: int, col: int
    ) -> Tuple[EdgeDescriptor, EdgeDescriptor, EdgeDescriptor, EdgeDescriptor]:
        """Derive the four edges of piece (row, col) as (top, right, bottom, left).

        The outline runs clockwise on screen: top left to right, right top to
        bottom, bottom right to left and left bottom to top. Top and right
        follow their line's canonical direction and use the descriptor as
        generated. Bottom and left run against it and use the mirrored view.
        """
        top = self.horizontal_edges[row][col]
        right = self.vertical_edges[row][col + 1]
        bottom = self.horizontal_edges[row + 1][col].mirrored()
        left = self.vertical_edges[row][col].mirrored()
        return (top, right, bottom, left)

    def interior_edge_count(self) -> int:
        return (self.rows - 1) * self.cols + self.rows * (self.cols - 1)


def _check_grid(cols: int, rows: int) -> None:
    if cols <= 0 or rows <= 0:
        raise PuzzleGenerationError(f"Grid must have at least one row and one column, got {cols}x{rows}")


def _random_edge(rng: random.Random) -> EdgeDescriptor:
    """Draw one interior edge: type first, then size, offset and tilt."""
    edge_type = EdgeType.TAB if rng.random() < 0.5 else EdgeType.BLANK
    size = rng.uniform(*SIZE_RANGE)
    offset = rng.uniform(*OFFSET_RANGE)
    tilt = rng.uniform(-MAX_TILT, MAX_TILT)
    return EdgeDescriptor(edge_type=edge_type, size=size, offset=offset, tilt=tilt)


def generate_edge_grid(
    cols: int,
    rows: int,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> EdgeGrid:
    """Generate all edges for a puzzle grid.

    Args:
        cols: Number of piece columns.
        rows: Number of piece rows.
        seed: Seed for the generator when ``rng`` is not given.
        rng: Generator to draw from. Takes precedence over ``seed``.

    Returns:
        An EdgeGrid containing all horizontal and vertical edges.

    Raises:
        PuzzleGenerationError: If the grid has no rows or no columns.
    """
    _check_grid(cols, rows)
    if rng is None:
        rng = random.Random(DEFAULT_SEED if seed is None else seed)

    # horizontal_edges[r][c] is the edge at the top of piece (r, c)
    # r=0 is the top border (flat), r=rows is the bottom border (flat)
    horizontal_edges: List[List[EdgeDescriptor]] = []
    for r in range(rows + 1):
        row_edges: List[EdgeDescriptor] = []
        for _c in range(cols):
            if r == 0 or r == rows:
                row_edges.append(EdgeDescriptor.flat())
            else:
                row_edges.append(_random_edge(rng))
        horizontal_edges.append(row_edges)

    # vertical_edges[r][c] is the edge at the left of piece (r, c)
    # c=0 is the left border (flat), c=cols is the right border (flat)
    vertical_edges: List[List[EdgeDescriptor]] = []
    for _r in range(rows):
        row_edges = []
        for c in range(cols + 1):
            if c == 0 or c == cols:
                row_edges.append(EdgeDescriptor.flat())
            else:
                row_edges.append(_random_edge(rng))
        vertical_edges.append(row_edges)

    return EdgeGrid(
        rows=rows,
        cols=cols,
        horizontal_edges=horizontal_edges,
        vertical_edges=vertical_edges,
    )


def generate_puzzle(
    board_width: float,
    board_height: float,
    cols: int,
    rows: int,
    seed: int = DEFAULT_SEED,
    rng: Optional[random.Random] = None,
) -> PuzzleLayout:
    """Cut a board into a grid of interlocking pieces.

    Every piece starts as its own group (``group_id`` equals its index), in the
    tray, with its current position set to its solved position.

    Args:
        board_width: Width of the solved picture in board units (pixels).
        board_height: Height of the solved picture.
        cols: Number of piece columns.
        rows: Number of piece rows.
        seed: Seed recorded on the layout and used when ``rng`` is not given.
        rng: Optional generator to draw edges from.

    Returns:
        The generated PuzzleLayout.

    Raises:
        PuzzleGenerationError: On non-positive grid dimensions or a non-finite
            or non-positive board size.
    """
    _check_grid(cols, rows)
    for name, value in (("board_width", board_width), ("board_height", board_height)):
        if not math.isfinite(value) or value <= 0:
            raise PuzzleGenerationError(f"{name} must be a positive finite number, got {value!r}")

    if rng is None:
        rng = random.Random(seed)
    edge_grid = generate_edge_grid(cols, rows, rng=rng)

    piece_width = board_width / cols
    piece_height = board_height / rows

    pieces: List[PieceRecord] = []
    for r in range(rows):
        for c in range(cols):
            index = r * cols + c
            solved_x = c * piece_width
            solved_y = r * piece_height
            pieces.append(
                PieceRecord(
                    id=f"{c}-{r}",
                    index=index,
                    col=c,
                    row=r,
                    edges=edge_grid.piece_edges(r, c),
                    solved_x=solved_x,
                    solved_y=solved_y,
                    width=piece_width,
                    height=piece_height,
                    x=solved_x,
                    y=solved_y,
                    group_id=index,
                )
            )

    logger.debug("Generated %dx%d puzzle (seed=%d, %d interior edges)", cols, rows, seed, edge_grid.interior_edge_count())

    return PuzzleLayout(
        cols=cols,
        rows=rows,
        seed=seed,
        board_width=board_width,
        board_height=board_height,
        piece_width=piece_width,
        piece_height=piece_height,
        pieces=pieces,
    )


def calculate_grid_dimensions(
    board_width: float,
    board_height: float,
    target_pieces: int,
    max_dimension: int = MAX_GRID_DIMENSION,
) -> Tuple[int, int]:
    """Pick a grid near ``target_pieces`` whose cells are closest to square.

    Column counts around the ideal ``sqrt(target * width / height)`` are tried,
    each paired with the row count that best fills the target. A grid scores
    its cell squareness minus half its relative miss of the target. Both
    dimensions stay within ``[2, max_dimension]``, and targets outside that
    range are clamped first.

    Args:
        board_width: Width of the board in pixels.
        board_height: Height of the board in pixels.
        target_pieces: Approximate number of pieces wanted.
        max_dimension: Largest number of columns or rows.

    Returns:
        Tuple of (cols, rows).

    Raises:
        PuzzleGenerationError: If the board is empty or ``max_dimension`` < 2.
    """
    if board_width <= 0 or board_height <= 0:
        raise PuzzleGenerationError(f"Board must have a positive size, got {board_width}x{board_height}")
    if max_dimension < 2:
        raise PuzzleGenerationError(f"Grid limit must be at least 2, got {max_dimension}")

    target = min(max(target_pieces, 4), max_dimension * max_dimension)
    ideal_cols = math.sqrt(target * board_width / board_height)

    def clamp(n: int) -> int:
        return min(max(n, 2), max_dimension)

    def score(grid: Tuple[int, int]) -> float:
        cols, rows = grid
        cell_ratio = (board_width / cols) / (board_height / rows)
        return min(cell_ratio, 1 / cell_ratio) - 0.5 * abs(cols * rows - target) / target

    grids = {(clamp(c), clamp(round(target / clamp(c)))) for c in range(int(ideal_cols) - 1, int(ideal_cols) + 3)}
    return max(sorted(grids), key=score)
