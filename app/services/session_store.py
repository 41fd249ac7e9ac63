"""In-memory registry of running puzzles."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import Callable, Dict, Optional

from puzzle_board import PuzzleBoard, PuzzleSave, restore
from puzzle_shapes import calculate_grid_dimensions

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass
class PuzzleSession:
    """A puzzle being played, with its completion time once solved."""

    puzzle_id: str
    board: PuzzleBoard
    completed_at: Optional[datetime] = None

    def mark_complete(self) -> None:
        self.completed_at = datetime.now(timezone.utc)
        logger.info("Puzzle %s completed", self.puzzle_id)


class SessionStore:
    """Keeps every running puzzle in memory, keyed by puzzle id.

    One board per puzzle id; each board has a single writer (the request being
    handled), so boards are never shared between concurrent editors.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._sessions: Dict[str, PuzzleSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _on_complete(self, puzzle_id: str) -> None:
        session = self._sessions.get(puzzle_id)
        if session is not None:
            session.mark_complete()

    def _register(self, build: Callable[[Callable[[], None]], PuzzleBoard]) -> PuzzleSession:
        puzzle_id = str(uuid.uuid4())
        board = build(partial(self._on_complete, puzzle_id))
        session = PuzzleSession(puzzle_id=puzzle_id, board=board)
        self._sessions[puzzle_id] = session
        return session

    def create(
        self,
        board_width: float,
        board_height: float,
        cols: Optional[int] = None,
        rows: Optional[int] = None,
        target_pieces: Optional[int] = None,
        seed: Optional[int] = None,
        scatter: bool = True,
    ) -> PuzzleSession:
        """Start a new puzzle.

        Args:
            board_width: Width of the solved picture in pixels.
            board_height: Height of the solved picture in pixels.
            cols: Number of piece columns.
            rows: Number of piece rows.
            target_pieces: Approximate piece count, used when cols/rows are omitted.
            seed: Seed for piece shapes; the configured default when omitted.
            scatter: Lay the pieces out on the board below the picture.

        Returns:
            The new session.

        Raises:
            PuzzleGenerationError: On invalid dimensions.
        """
        if cols is None or rows is None:
            cols, rows = calculate_grid_dimensions(
                board_width, board_height, target_pieces or 4, max_dimension=settings.MAX_GRID_DIMENSION
            )
        if seed is None:
            seed = settings.DEFAULT_SEED

        grid_cols, grid_rows, puzzle_seed = cols, rows, seed
        session = self._register(
            lambda on_complete: PuzzleBoard.create(
                board_width,
                board_height,
                grid_cols,
                grid_rows,
                seed=puzzle_seed,
                snap_fraction=settings.SNAP_FRACTION,
                knob_scale=settings.KNOB_SCALE,
                on_complete=on_complete,
            )
        )

        if scatter:
            # Staging area directly below the picture, as wide as the board
            board = session.board
            board.scatter(0.0, board_height + board.layout.piece_height * 0.5, board_width, board_height, seed=seed)

        logger.info("Created puzzle %s: %dx%d, seed=%d", session.puzzle_id, cols, rows, seed)
        return session

    def restore(self, save: PuzzleSave, board_width: float, board_height: float) -> PuzzleSession:
        """Rebuild a saved game as a new session.

        Raises:
            PuzzleGenerationError: If the saved grid cannot be generated.
            PuzzleRestoreError: If the save does not fit its regenerated layout.
        """
        session = self._register(
            lambda on_complete: restore(
                save,
                board_width,
                board_height,
                snap_fraction=settings.SNAP_FRACTION,
                knob_scale=settings.KNOB_SCALE,
                on_complete=on_complete,
            )
        )
        if session.board.is_complete:
            session.completed_at = datetime.now(timezone.utc)
        logger.info("Restored puzzle %s from seed=%d", session.puzzle_id, save.seed)
        return session

    def get(self, puzzle_id: str) -> Optional[PuzzleSession]:
        return self._sessions.get(puzzle_id)

    def discard(self, puzzle_id: str) -> bool:
        return self._sessions.pop(puzzle_id, None) is not None


# Singleton instance
_session_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """Get the singleton SessionStore instance."""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore()
    return _session_store
