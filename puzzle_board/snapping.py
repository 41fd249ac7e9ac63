"""Snap detection run when a dragged piece is released."""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple

from puzzle_shapes import PieceRecord

from .groups import GroupEngine

logger = logging.getLogger(__name__)

# (dcol, drow) of the top, right, bottom and left neighbours
NEIGHBOUR_OFFSETS = ((0, -1), (1, 0), (0, 1), (-1, 0))

# Snap preview distance as a multiple of the snap tolerance.
PREVIEW_REACH = 2.0


@dataclass
class SnapResult:
    """Outcome of one drag release.

    Attributes:
        snapped: Whether any merge or alignment happened.
        kind: "neighbor" or "solved" when snapped.
        root: Root of the dragged piece's group after the snap.
        merged_with: Ids of the neighbour pieces whose groups were absorbed.
        locked: Whether the resulting group is locked.
        completed: Whether the resulting group spans the whole puzzle and is locked.
    """

    snapped: bool = False
    kind: Optional[str] = None
    root: Optional[int] = None
    merged_with: List[str] = field(default_factory=list)
    locked: bool = False
    completed: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


class SnapDetector:
    """Decides whether a released piece joins a neighbour or its solved position."""

    def __init__(self, groups: GroupEngine, pieces: List[PieceRecord], cols: int, rows: int) -> None:
        self.groups = groups
        self.pieces = pieces
        self.cols = cols
        self.rows = rows

    def _neighbours(self, piece: PieceRecord) -> List[PieceRecord]:
        found = []
        for dcol, drow in NEIGHBOUR_OFFSETS:
            col, row = piece.col + dcol, piece.row + drow
            if 0 <= col < self.cols and 0 <= row < self.rows:
                found.append(self.pieces[row * self.cols + col])
        return found

    def _merge(self, dragged: PieceRecord, stationary: PieceRecord, dx: float, dy: float) -> int:
        """Bring two groups into one frame and join them.

        (dx, dy) is the displacement that aligns the dragged piece with the
        stationary one. A locked group never moves: if the dragged group is
        locked the stationary group moves the other way instead, and if both
        are locked they are already consistent and only their identities merge.
        """
        dragged_locked = self.groups.is_locked(dragged.index)
        stationary_locked = self.groups.is_locked(stationary.index)

        if not dragged_locked:
            self.groups.move_group(dragged.index, dx, dy)
        elif not stationary_locked:
            self.groups.move_group(stationary.index, -dx, -dy)

        return self.groups.union(dragged.index, stationary.index)

    def _neighbour_offset(self, piece: PieceRecord, neighbour: PieceRecord) -> Tuple[float, float]:
        """Displacement that puts ``piece`` exactly beside ``neighbour``."""
        expected_x = neighbour.x + (piece.col - neighbour.col) * piece.width
        expected_y = neighbour.y + (piece.row - neighbour.row) * piece.height
        return expected_x - piece.x, expected_y - piece.y

    def _loose_neighbours(self, piece: PieceRecord) -> List[PieceRecord]:
        root = self.groups.find(piece.index)
        return [n for n in self._neighbours(piece) if not n.in_tray and self.groups.find(n.index) != root]

    def _snap_to_neighbours(self, piece: PieceRecord) -> List[str]:
        """Join every neighbour within tolerance to the piece's group.

        A merge moves the group, which can bring a neighbour passed over
        earlier into tolerance, so the scan repeats until a pass merges
        nothing. Every merge removes a group, so this terminates.
        """
        merged: List[str] = []
        merged_in_pass = True
        while merged_in_pass:
            merged_in_pass = False
            for neighbour in self._loose_neighbours(piece):
                if self.groups.find(neighbour.index) == self.groups.find(piece.index):
                    continue
                dx, dy = self._neighbour_offset(piece, neighbour)
                if math.hypot(dx, dy) > self.groups.tolerance(piece):
                    continue

                root = self._merge(piece, neighbour, dx, dy)
                merged.append(neighbour.id)
                merged_in_pass = True
                logger.info("Piece %s joined neighbour %s (group %d)", piece.id, neighbour.id, root)
        return merged

    def _snap_to_solved(self, piece: PieceRecord) -> bool:
        dx = piece.solved_x - piece.x
        dy = piece.solved_y - piece.y
        if math.hypot(dx, dy) > self.groups.tolerance(piece):
            return False
        return self.groups.move_group(piece.index, dx, dy)

    def preview(self, index: int, reach: float = PREVIEW_REACH) -> Optional[Tuple[float, float]]:
        """Where the piece would be pulled to if it were released a little closer.

        Uses the same targets as ``evaluate`` but with the tolerance widened
        by ``reach``: the nearest loose neighbour's slot, or failing that the
        solved position. Nothing is moved.

        Args:
            index: Arena index of the piece being dragged.
            reach: Multiple of the snap tolerance to look within.

        Returns:
            Top-left corner the piece would snap to, or None.
        """
        piece = self.pieces[index]
        if piece.in_tray or self.groups.is_locked(index):
            return None

        limit = self.groups.tolerance(piece) * reach
        best: Optional[Tuple[float, float]] = None
        best_distance = limit
        for neighbour in self._loose_neighbours(piece):
            dx, dy = self._neighbour_offset(piece, neighbour)
            distance = math.hypot(dx, dy)
            if distance <= best_distance:
                best, best_distance = (piece.x + dx, piece.y + dy), distance
        if best is not None:
            return best

        if math.hypot(piece.solved_x - piece.x, piece.solved_y - piece.y) <= limit:
            return (piece.solved_x, piece.solved_y)
        return None

    def evaluate(self, index: int) -> SnapResult:
        """Run snap detection for the released piece at arena ``index``.

        Neighbour snaps are tried first for the four grid-adjacent cells; a
        solved-position snap is only tried when no neighbour matched. After a
        snap the resulting group is locked if it is fully aligned.

        Args:
            index: Arena index of the piece that was released.

        Returns:
            The snap outcome. Pieces in the tray or in locked groups never snap.
        """
        piece = self.pieces[index]
        if piece.in_tray or self.groups.is_locked(index):
            return SnapResult()

        merged_with = self._snap_to_neighbours(piece)
        if merged_with:
            kind = "neighbor"
        elif self._snap_to_solved(piece):
            kind = "solved"
        else:
            return SnapResult()

        root = self.groups.find(index)
        locked = self.groups.lock_if_aligned(root)
        completed = locked and self.groups.size(root) == len(self.pieces)
        return SnapResult(
            snapped=True,
            kind=kind,
            root=root,
            merged_with=merged_with,
            locked=locked,
            completed=completed,
        )
