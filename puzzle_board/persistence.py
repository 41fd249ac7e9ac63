"""Saving and restoring a game.

Only derived facts are saved: where each piece is, relative to the board,
which group it belongs to and which groups are locked. Piece geometry is
regenerated from the seed and grid dimensions on restore, so a save can be
loaded onto a board of different pixel dimensions.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, cast

from puzzle_shapes import KNOB_SCALE, PieceRecord

from .board import PuzzleBoard
from .errors import PuzzleRestoreError
from .groups import SNAP_FRACTION

logger = logging.getLogger(__name__)


@dataclass
class SavedPieceState:
    """Saved state of one piece.

    ``fx``/``fy`` are the piece position divided by the board width/height.
    ``group_id`` is the id of a piece in the same group.
    """

    id: str
    fx: float
    fy: float
    is_placed: bool
    group_id: str
    z_index: int
    in_tray: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fx": self.fx,
            "fy": self.fy,
            "is_placed": self.is_placed,
            "group_id": self.group_id,
            "z_index": self.z_index,
            "in_tray": self.in_tray,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedPieceState":
        return cls(
            id=data["id"],
            fx=float(data["fx"]),
            fy=float(data["fy"]),
            is_placed=bool(data.get("is_placed", False)),
            group_id=data.get("group_id", data["id"]),
            z_index=int(data.get("z_index", 0)),
            in_tray=bool(data.get("in_tray", False)),
        )


@dataclass
class PuzzleSave:
    """Everything needed to rebuild a game besides the picture."""

    seed: int
    cols: int
    rows: int
    pieces: List[SavedPieceState] = field(default_factory=list)
    locked_groups: List[str] = field(default_factory=list)
    placed_count: int = 0
    total: int = 0
    is_completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "seed": self.seed,
            "cols": self.cols,
            "rows": self.rows,
            "pieces": [p.to_dict() for p in self.pieces],
            "locked_groups": list(self.locked_groups),
            "placed_count": self.placed_count,
            "total": self.total,
            "is_completed": self.is_completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PuzzleSave":
        """Create from dictionary."""
        return cls(
            seed=int(data["seed"]),
            cols=int(data["cols"]),
            rows=int(data["rows"]),
            pieces=[SavedPieceState.from_dict(p) for p in data.get("pieces", [])],
            locked_groups=list(data.get("locked_groups", [])),
            placed_count=int(data.get("placed_count", 0)),
            total=int(data.get("total", 0)),
            is_completed=bool(data.get("is_completed", False)),
        )


def snapshot(board: PuzzleBoard) -> PuzzleSave:
    """Project the board onto its saved form."""
    groups = board.groups
    pieces = [
        SavedPieceState(
            id=p.id,
            fx=p.x / board.board_width,
            fy=p.y / board.board_height,
            is_placed=p.is_placed,
            group_id=board.pieces[groups.find(p.index)].id,
            z_index=p.z_index,
            in_tray=p.in_tray,
        )
        for p in board.pieces
    ]
    locked = [board.pieces[root].id for root in groups.roots() if groups.is_locked(root)]
    return PuzzleSave(
        seed=board.seed,
        cols=board.cols,
        rows=board.rows,
        pieces=pieces,
        locked_groups=locked,
        placed_count=board.placed_count,
        total=board.total,
        is_completed=board.is_complete,
    )


def restore(
    save: PuzzleSave,
    board_width: float,
    board_height: float,
    snap_fraction: float = SNAP_FRACTION,
    knob_scale: float = KNOB_SCALE,
    on_complete: Optional[Callable[[], None]] = None,
) -> PuzzleBoard:
    """Rebuild a board from a save.

    The layout is regenerated from the saved seed and grid. Groups are rebuilt
    directly from the saved group ids: pieces sharing a group id are joined.
    Pieces of the layout that the save does not mention go to the tray.

    Args:
        save: The saved game.
        board_width: Width of the board to restore onto.
        board_height: Height of the board to restore onto.
        snap_fraction: Snap distance relative to the smaller piece dimension.
        knob_scale: Knob height relative to the smaller piece dimension.
        on_complete: Completion callback for the restored board. It is not
            called for a save that was already complete.

    Returns:
        The restored board.

    Raises:
        PuzzleGenerationError: If the saved grid cannot be generated.
        PuzzleRestoreError: If the save references pieces the layout lacks.
    """
    board = PuzzleBoard.create(
        board_width,
        board_height,
        save.cols,
        save.rows,
        seed=save.seed,
        snap_fraction=snap_fraction,
        knob_scale=knob_scale,
        on_complete=on_complete,
    )

    missing = [s.id for s in save.pieces if board.get_piece(s.id) is None]
    missing += [s.group_id for s in save.pieces if board.get_piece(s.group_id) is None]
    missing += [g for g in save.locked_groups if board.get_piece(g) is None]
    if missing:
        logger.warning("Save for %dx%d puzzle (seed=%d) does not match its layout", save.cols, save.rows, save.seed)
        raise PuzzleRestoreError("Saved game references pieces missing from the layout", missing)

    saved_group_ids = {s.group_id for s in save.pieces}
    orphan_locks = [g for g in save.locked_groups if g not in saved_group_ids]
    if orphan_locks:
        raise PuzzleRestoreError("Locked groups have no saved members", orphan_locks)

    # Each group is rebuilt around the piece its id names, so that piece stays
    # the root and the group keeps its saved id.
    anchors: Dict[str, int] = {}
    for state in save.pieces:
        # Both ids were checked against the layout above
        piece = cast(PieceRecord, board.get_piece(state.id))
        anchor = cast(PieceRecord, board.get_piece(state.group_id))
        piece.x = state.fx * board_width
        piece.y = state.fy * board_height
        piece.z_index = state.z_index
        piece.in_tray = state.in_tray

        anchors[state.group_id] = anchor.index
        if piece.index != anchor.index:
            board.groups.union(anchor.index, piece.index)

    locked_ids = set(save.locked_groups) | {s.group_id for s in save.pieces if s.is_placed}
    for group_id in locked_ids:
        board.groups.force_lock(anchors[group_id])

    root = board.groups.find(0)
    if board.groups.size(root) == board.total and board.groups.is_locked(root):
        board.mark_completed()

    logger.info(
        "Restored %dx%d puzzle (seed=%d): %d groups, %d placed",
        save.cols,
        save.rows,
        save.seed,
        len(board.groups.roots()),
        board.placed_count,
    )
    return board
