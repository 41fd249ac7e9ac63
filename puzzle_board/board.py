"""A running puzzle: pieces, groups and the drag lifecycle."""

import logging
import random
from typing import Callable, Dict, List, Optional, Tuple

from puzzle_shapes import DEFAULT_SEED, KNOB_SCALE, PieceOutline, PieceRecord, PuzzleLayout, build_outline, generate_puzzle
from puzzle_shapes.geometry import knob_reach

from .groups import SNAP_FRACTION, GroupEngine
from .snapping import SnapDetector, SnapResult

logger = logging.getLogger(__name__)


class PuzzleBoard:
    """Owns the piece arena and every mutation of it.

    All operations are synchronous and finish before returning, so a reader
    (the paint loop, a save request) never sees a half-moved group. Calls that
    reference unknown pieces, tray pieces or locked groups are refused without
    raising: the gesture layer may race against a snap that just happened.
    """

    def __init__(
        self,
        layout: PuzzleLayout,
        snap_fraction: float = SNAP_FRACTION,
        knob_scale: float = KNOB_SCALE,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        """Initialize the board from a generated layout.

        Args:
            layout: Generated pieces; the board takes ownership of them.
            snap_fraction: Snap distance relative to the smaller piece dimension.
            knob_scale: Knob height relative to the smaller piece dimension.
            on_complete: Called once when the whole puzzle is joined and locked.
        """
        self.layout = layout
        self.pieces: List[PieceRecord] = layout.pieces
        self.knob_scale = knob_scale
        self.on_complete = on_complete
        self.groups = GroupEngine(self.pieces, snap_fraction)
        self.snapper = SnapDetector(self.groups, self.pieces, layout.cols, layout.rows)
        self._by_id: Dict[str, PieceRecord] = {p.id: p for p in self.pieces}
        self._outlines: Dict[int, PieceOutline] = {}
        self._completed = False

    @classmethod
    def create(
        cls,
        board_width: float,
        board_height: float,
        cols: int,
        rows: int,
        seed: int = DEFAULT_SEED,
        snap_fraction: float = SNAP_FRACTION,
        knob_scale: float = KNOB_SCALE,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> "PuzzleBoard":
        """Generate a fresh puzzle with every piece in the tray.

        Raises:
            PuzzleGenerationError: On invalid grid or board dimensions.
        """
        layout = generate_puzzle(board_width, board_height, cols, rows, seed=seed)
        return cls(layout, snap_fraction=snap_fraction, knob_scale=knob_scale, on_complete=on_complete)

    @property
    def seed(self) -> int:
        return self.layout.seed

    @property
    def cols(self) -> int:
        return self.layout.cols

    @property
    def rows(self) -> int:
        return self.layout.rows

    @property
    def board_width(self) -> float:
        return self.layout.board_width

    @property
    def board_height(self) -> float:
        return self.layout.board_height

    @property
    def snap_fraction(self) -> float:
        return self.groups.snap_fraction

    @property
    def total(self) -> int:
        return len(self.pieces)

    @property
    def placed_count(self) -> int:
        return sum(1 for p in self.pieces if p.is_placed)

    @property
    def is_complete(self) -> bool:
        return self._completed

    def get_piece(self, piece_id: str) -> Optional[PieceRecord]:
        return self._by_id.get(piece_id)

    def outline(self, piece: PieceRecord) -> PieceOutline:
        """Outline of a piece; geometry never changes, so it is built once."""
        outline = self._outlines.get(piece.index)
        if outline is None:
            outline = build_outline(piece, self.knob_scale)
            self._outlines[piece.index] = outline
        return outline

    def _draggable(self, piece_id: str, action: str) -> Optional[PieceRecord]:
        piece = self._by_id.get(piece_id)
        if piece is None:
            logger.debug("%s ignored: unknown piece %s", action, piece_id)
            return None
        if piece.in_tray:
            logger.debug("%s ignored: piece %s is in the tray", action, piece_id)
            return None
        if self.groups.is_locked(piece.index):
            logger.debug("%s ignored: piece %s is locked", action, piece_id)
            return None
        return piece

    def begin_drag(self, piece_id: str) -> bool:
        """Pick up a piece: its whole group is raised above everything else."""
        piece = self._draggable(piece_id, "begin_drag")
        if piece is None:
            return False
        self.groups.bring_to_front(piece.index)
        return True

    def drag_to(self, piece_id: str, dx: float, dy: float) -> bool:
        """Move the held piece's group by the displacement since the last call."""
        piece = self._draggable(piece_id, "drag_to")
        if piece is None:
            return False
        return self.groups.move_group(piece.index, dx, dy)

    def end_drag(self, piece_id: str) -> SnapResult:
        """Release a piece and run snap detection.

        A release with no valid snap leaves the piece where it was dropped.
        """
        piece = self._draggable(piece_id, "end_drag")
        if piece is None:
            return SnapResult()

        result = self.snapper.evaluate(piece.index)
        if result.completed:
            if self._completed:
                result.completed = False
            else:
                self._complete()
        return result

    def snap_preview(self, piece_id: str) -> Optional[Tuple[float, float]]:
        """Where the held piece would land if released near its current spot.

        A read-only query for drawing a snap hint while dragging; it looks
        twice as far as a release does.
        """
        piece = self._draggable(piece_id, "snap_preview")
        if piece is None:
            return None
        return self.snapper.preview(piece.index)

    def _complete(self) -> None:
        self._completed = True
        logger.info("Puzzle complete (%d pieces)", self.total)
        if self.on_complete is not None:
            self.on_complete()

    def mark_completed(self) -> None:
        """Record completion without firing ``on_complete`` (restored games)."""
        self._completed = True

    def hit_test(self, x: float, y: float, include_locked: bool = False) -> Optional[PieceRecord]:
        """Find the topmost piece whose outline contains the board point (x, y).

        Knobs count: a point inside a neighbour's protruding tab belongs to that
        neighbour, not to the cell underneath.
        """
        candidates = [p for p in self.pieces if not p.in_tray]
        if not include_locked:
            candidates = [p for p in candidates if not self.groups.is_locked(p.index)]

        for piece in sorted(candidates, key=lambda p: (p.z_index, p.index), reverse=True):
            lx = x - piece.x
            ly = y - piece.y
            pad = knob_reach(piece, self.knob_scale)
            if lx < -pad or lx > piece.width + pad or ly < -pad or ly > piece.height + pad:
                continue
            if self.outline(piece).contains(lx, ly):
                return piece
        return None

    def lift_from_tray(self, piece_id: str, x: float, y: float) -> bool:
        """Put a tray piece on the board centred on (x, y), on top of everything."""
        piece = self._by_id.get(piece_id)
        if piece is None or not piece.in_tray:
            return False
        piece.in_tray = False
        piece.x = x - piece.width / 2
        piece.y = y - piece.height / 2
        self.groups.bring_to_front(piece.index)
        return True

    def return_to_tray(self, piece_id: str) -> bool:
        """Send a loose piece back to the tray.

        Only single, unlocked pieces can go back; joined groups never split.
        """
        piece = self._draggable(piece_id, "return_to_tray")
        if piece is None or self.groups.size(piece.index) > 1:
            return False
        piece.in_tray = True
        piece.is_placed = False
        return True

    def clear_strays(self) -> int:
        """Send every loose single piece on the board back to the tray.

        Joined groups and locked pieces stay where they are.

        Returns:
            Number of pieces returned.
        """
        strays = [
            p
            for p in self.pieces
            if not p.in_tray and self.groups.size(p.index) == 1 and not self.groups.is_locked(p.index)
        ]
        for piece in strays:
            piece.in_tray = True
            piece.is_placed = False
        logger.info("Returned %d stray pieces to the tray", len(strays))
        return len(strays)

    def tray_pieces(self) -> List[PieceRecord]:
        return [p for p in self.pieces if p.in_tray]

    def scatter(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        seed: int = 99,
        gap: float = 8.0,
    ) -> int:
        """Lay every tray piece out on the board over a jittered grid.

        Pieces are shuffled first so that neighbours do not land side by side.

        Args:
            x: Left of the area to fill.
            y: Top of the area to fill.
            width: Width of the area; at least two columns are used.
            height: Height of the area. Rows continue below it if needed.
            seed: Seed for shuffle, jitter and paint order.
            gap: Spacing between grid cells.

        Returns:
            Number of pieces placed.
        """
        pieces = self.tray_pieces()
        if not pieces:
            return 0

        rng = random.Random(seed)
        cell_w = pieces[0].width + gap
        cell_h = pieces[0].height + gap
        cols = max(2, int(width // cell_w))
        rows_in_area = max(1, int(height // cell_h))
        rng.shuffle(pieces)

        top = max((p.z_index for p in self.pieces if not p.in_tray), default=0)
        for i, piece in enumerate(pieces):
            col = i % cols
            row = i // cols
            jitter_x = (rng.random() - 0.5) * gap * 1.5
            jitter_y = (rng.random() - 0.5) * gap * 1.5
            piece.x = x + col * cell_w + jitter_x
            piece.y = y + row * cell_h + jitter_y
            piece.z_index = top + 1 + rng.randrange(len(pieces))
            piece.in_tray = False

        if len(pieces) > cols * rows_in_area:
            logger.debug("Scatter area holds %d pieces, overflowed with %d", cols * rows_in_area, len(pieces))
        return len(pieces)
