"""Puzzle board - grouping, snapping and save/restore for a running puzzle."""

from .board import PuzzleBoard
from .errors import PuzzleRestoreError
from .groups import SNAP_FRACTION, GroupEngine, snap_tolerance
from .persistence import PuzzleSave, SavedPieceState, restore, snapshot
from .snapping import SnapDetector, SnapResult

__all__ = [
    "PuzzleBoard",
    "PuzzleRestoreError",
    "SNAP_FRACTION",
    "GroupEngine",
    "snap_tolerance",
    "PuzzleSave",
    "SavedPieceState",
    "restore",
    "snapshot",
    "SnapDetector",
    "SnapResult",
]
