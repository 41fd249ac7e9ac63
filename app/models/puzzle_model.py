"""Data models for puzzle-related operations."""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class Position(BaseModel):
    """Model representing a position in 2D space."""

    x: float
    y: float


class CreatePuzzleRequest(BaseModel):
    """Request model for starting a new puzzle."""

    board_width: float = Field(..., gt=0, description="Width of the solved picture in pixels")
    board_height: float = Field(..., gt=0, description="Height of the solved picture in pixels")
    cols: Optional[int] = Field(default=None, ge=1, description="Number of piece columns")
    rows: Optional[int] = Field(default=None, ge=1, description="Number of piece rows")
    target_pieces: Optional[int] = Field(
        default=None, ge=1, description="Approximate piece count, used when cols/rows are omitted"
    )
    seed: Optional[int] = Field(default=None, description="Seed for reproducible piece shapes")
    scatter: bool = Field(default=True, description="Lay the pieces out on the board instead of the tray")

    @model_validator(mode="after")
    def check_grid(self) -> "CreatePuzzleRequest":
        """Require either both grid dimensions or a target piece count."""
        if (self.cols is None) != (self.rows is None):
            raise ValueError("cols and rows must be given together")
        if self.cols is None and self.target_pieces is None:
            raise ValueError("Either cols/rows or target_pieces is required")
        return self


class EdgeModel(BaseModel):
    """One side of a piece as seen by that piece."""

    edge_type: str
    size: float
    offset: float
    tilt: float


class PieceModel(BaseModel):
    """Read-only projection of one piece for renderers."""

    id: str
    col: int
    row: int
    x: float
    y: float
    solved_x: float
    solved_y: float
    width: float
    height: float
    is_placed: bool
    in_tray: bool
    group_id: str
    z_index: int
    edges: List[EdgeModel]


class PuzzleStateResponse(BaseModel):
    """Response model describing a whole puzzle."""

    puzzle_id: str
    seed: int
    cols: int
    rows: int
    board_width: float
    board_height: float
    placed_count: int
    total: int
    is_completed: bool
    pieces: List[PieceModel]


class DragRequest(BaseModel):
    """Incremental displacement of the held piece since the last report."""

    dx: float
    dy: float


class ActionResponse(BaseModel):
    """Whether the board accepted a gesture."""

    accepted: bool


class SnapResponse(BaseModel):
    """Response model for a drag release."""

    snapped: bool
    kind: Optional[str] = None
    group_id: Optional[str] = None
    merged_with: List[str] = Field(default_factory=list)
    locked: bool = False
    completed: bool = False


class HitResponse(BaseModel):
    """Response model for a hit test."""

    piece_id: Optional[str] = None


class SnapPreviewResponse(BaseModel):
    """Snap target of a piece being dragged."""

    piece_id: str
    target: Optional[Position] = Field(default=None, description="Top-left corner the piece would snap to")


class ClearStraysResponse(BaseModel):
    """Result of sending loose pieces back to the tray."""

    returned: int


class OutlineResponse(BaseModel):
    """Sampled outline of a piece in board coordinates."""

    piece_id: str
    points: List[Position]


class MaskResponse(BaseModel):
    """Clip mask of a piece at its solved position."""

    piece_id: str
    mask_image: str = Field(..., description="Base64 encoded grayscale PNG")
    offset: Position = Field(..., description="Board position of the mask's top-left corner")


class SavedPieceModel(BaseModel):
    """Saved state of one piece."""

    id: str
    fx: float
    fy: float
    is_placed: bool
    group_id: str
    z_index: int
    in_tray: bool = False


class PuzzleSaveModel(BaseModel):
    """A saved game; geometry is regenerated from seed, cols and rows."""

    seed: int
    cols: int = Field(..., ge=1)
    rows: int = Field(..., ge=1)
    pieces: List[SavedPieceModel]
    locked_groups: List[str] = Field(default_factory=list)
    placed_count: int = 0
    total: int = 0
    is_completed: bool = False


class RestorePuzzleRequest(BaseModel):
    """Request model for restoring a saved game onto a board."""

    board_width: float = Field(..., gt=0)
    board_height: float = Field(..., gt=0)
    save: PuzzleSaveModel
