"""Errors raised by the board session."""

from typing import Iterable, List


class PuzzleRestoreError(ValueError):
    """A saved game does not fit the layout regenerated from its seed and grid."""

    def __init__(self, message: str, missing_ids: Iterable[str] = ()) -> None:
        self.missing_ids: List[str] = sorted(set(missing_ids))
        if self.missing_ids:
            message = f"{message}: {', '.join(self.missing_ids)}"
        super().__init__(message)
