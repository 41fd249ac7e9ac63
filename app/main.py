"""Main FastAPI application module for the jigsaw board."""

import logging
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from puzzle_board import PuzzleRestoreError, PuzzleSave, snapshot
from puzzle_shapes import PieceRecord, PuzzleGenerationError, piece_polygon_on_board

from app.config import settings
from app.models.puzzle_model import (
    ActionResponse,
    ClearStraysResponse,
    CreatePuzzleRequest,
    DragRequest,
    EdgeModel,
    HitResponse,
    MaskResponse,
    OutlineResponse,
    PieceModel,
    Position,
    PuzzleSaveModel,
    PuzzleStateResponse,
    RestorePuzzleRequest,
    SnapPreviewResponse,
    SnapResponse,
)
from app.services.piece_masks import PieceMaskRenderer, get_mask_renderer
from app.services.session_store import PuzzleSession, SessionStore, get_session_store

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title=settings.PROJECT_NAME)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Store = Annotated[SessionStore, Depends(get_session_store)]

# Handlers are all ``async def`` so they run one at a time on the event loop:
# every board mutation finishes before the next request can read the board.


def _session_or_404(store: SessionStore, puzzle_id: str) -> PuzzleSession:
    session = store.get(puzzle_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Puzzle not found")
    return session


def _piece_or_404(session: PuzzleSession, piece_id: str) -> PieceRecord:
    piece = session.board.get_piece(piece_id)
    if piece is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Piece not found")
    return piece


def _state_response(session: PuzzleSession) -> PuzzleStateResponse:
    board = session.board
    pieces = [
        PieceModel(
            id=p.id,
            col=p.col,
            row=p.row,
            x=p.x,
            y=p.y,
            solved_x=p.solved_x,
            solved_y=p.solved_y,
            width=p.width,
            height=p.height,
            is_placed=p.is_placed,
            in_tray=p.in_tray,
            group_id=board.pieces[board.groups.find(p.index)].id,
            z_index=p.z_index,
            edges=[EdgeModel(**edge.to_dict()) for edge in p.edges],
        )
        for p in board.pieces
    ]
    return PuzzleStateResponse(
        puzzle_id=session.puzzle_id,
        seed=board.seed,
        cols=board.cols,
        rows=board.rows,
        board_width=board.board_width,
        board_height=board.board_height,
        placed_count=board.placed_count,
        total=board.total,
        is_completed=board.is_complete,
        pieces=pieces,
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post(f"{settings.API_V1_STR}/puzzle", response_model=PuzzleStateResponse)
async def create_puzzle(request: CreatePuzzleRequest, store: Store) -> PuzzleStateResponse:
    """Cut a board into a new puzzle.

    Args:
        request: Board size, grid (or target piece count) and seed.
        store: The session store.

    Returns:
        PuzzleStateResponse: The new puzzle.

    Raises:
        HTTPException: If the grid is too large or cannot be generated.
    """
    limit = settings.MAX_GRID_DIMENSION
    too_large = any(d is not None and d > limit for d in (request.cols, request.rows))
    if too_large or (request.target_pieces is not None and request.target_pieces > limit * limit):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Grid dimensions are limited to {limit}x{limit}",
        )

    try:
        session = store.create(
            request.board_width,
            request.board_height,
            cols=request.cols,
            rows=request.rows,
            target_pieces=request.target_pieces,
            seed=request.seed,
            scatter=request.scatter,
        )
    except PuzzleGenerationError as e:
        logger.warning("Rejected puzzle request: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return _state_response(session)


@app.get(f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}", response_model=PuzzleStateResponse)
async def get_puzzle(puzzle_id: str, store: Store) -> PuzzleStateResponse:
    """Read the current state of a puzzle."""
    return _state_response(_session_or_404(store, puzzle_id))


@app.get(f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/hit", response_model=HitResponse)
async def hit_test(puzzle_id: str, x: float, y: float, store: Store) -> HitResponse:
    """Find the piece under a board point, knobs included."""
    session = _session_or_404(store, puzzle_id)
    piece = session.board.hit_test(x, y)
    return HitResponse(piece_id=piece.id if piece else None)


@app.post(f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/pieces/{{piece_id}}/lift", response_model=ActionResponse)
async def lift_piece(puzzle_id: str, piece_id: str, position: Position, store: Store) -> ActionResponse:
    """Take a piece out of the tray and put it on the board under the pointer."""
    session = _session_or_404(store, puzzle_id)
    return ActionResponse(accepted=session.board.lift_from_tray(piece_id, position.x, position.y))


@app.post(f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/pieces/{{piece_id}}/tray", response_model=ActionResponse)
async def return_piece(puzzle_id: str, piece_id: str, store: Store) -> ActionResponse:
    """Send a loose piece back to the tray."""
    session = _session_or_404(store, puzzle_id)
    return ActionResponse(accepted=session.board.return_to_tray(piece_id))


@app.post(
    f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/pieces/{{piece_id}}/begin-drag",
    response_model=ActionResponse,
)
async def begin_drag(puzzle_id: str, piece_id: str, store: Store) -> ActionResponse:
    """Pick up a piece and raise its group."""
    session = _session_or_404(store, puzzle_id)
    return ActionResponse(accepted=session.board.begin_drag(piece_id))


@app.post(f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/pieces/{{piece_id}}/drag", response_model=ActionResponse)
async def drag_piece(puzzle_id: str, piece_id: str, request: DragRequest, store: Store) -> ActionResponse:
    """Move the held piece's group by an incremental displacement."""
    session = _session_or_404(store, puzzle_id)
    return ActionResponse(accepted=session.board.drag_to(piece_id, request.dx, request.dy))


@app.post(
    f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/pieces/{{piece_id}}/end-drag",
    response_model=SnapResponse,
)
async def end_drag(puzzle_id: str, piece_id: str, store: Store) -> SnapResponse:
    """Release a piece and report whether it snapped."""
    session = _session_or_404(store, puzzle_id)
    board = session.board
    result = board.end_drag(piece_id)
    return SnapResponse(
        snapped=result.snapped,
        kind=result.kind,
        group_id=board.pieces[result.root].id if result.root is not None else None,
        merged_with=result.merged_with,
        locked=result.locked,
        completed=result.completed,
    )


@app.get(
    f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/pieces/{{piece_id}}/snap-preview",
    response_model=SnapPreviewResponse,
)
async def snap_preview(puzzle_id: str, piece_id: str, store: Store) -> SnapPreviewResponse:
    """Where the held piece would snap if released close to its current position."""
    session = _session_or_404(store, puzzle_id)
    piece = _piece_or_404(session, piece_id)
    target = session.board.snap_preview(piece_id)
    return SnapPreviewResponse(
        piece_id=piece.id,
        target=Position(x=target[0], y=target[1]) if target is not None else None,
    )


@app.post(f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/clear-strays", response_model=ClearStraysResponse)
async def clear_strays(puzzle_id: str, store: Store) -> ClearStraysResponse:
    """Send every loose single piece back to the tray."""
    session = _session_or_404(store, puzzle_id)
    return ClearStraysResponse(returned=session.board.clear_strays())


@app.get(
    f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/pieces/{{piece_id}}/outline",
    response_model=OutlineResponse,
)
async def piece_outline(puzzle_id: str, piece_id: str, store: Store) -> OutlineResponse:
    """Sampled outline of a piece at its current position."""
    session = _session_or_404(store, puzzle_id)
    piece = _piece_or_404(session, piece_id)
    polygon = piece_polygon_on_board(
        piece,
        knob_scale=session.board.knob_scale,
        points_per_curve=settings.OUTLINE_POINTS_PER_CURVE,
    )
    return OutlineResponse(piece_id=piece.id, points=[Position(x=x, y=y) for x, y in polygon])


@app.get(f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/pieces/{{piece_id}}/mask", response_model=MaskResponse)
async def piece_mask(
    puzzle_id: str,
    piece_id: str,
    store: Store,
    renderer: Annotated[PieceMaskRenderer, Depends(get_mask_renderer)],
) -> MaskResponse:
    """Clip mask of a piece, positioned on the solved board."""
    session = _session_or_404(store, puzzle_id)
    piece = _piece_or_404(session, piece_id)
    mask_image, (offset_x, offset_y) = renderer.render(session.board, piece)
    return MaskResponse(piece_id=piece.id, mask_image=mask_image, offset=Position(x=offset_x, y=offset_y))


@app.get(f"{settings.API_V1_STR}/puzzle/{{puzzle_id}}/save", response_model=PuzzleSaveModel)
async def save_puzzle(puzzle_id: str, store: Store) -> PuzzleSaveModel:
    """Project a puzzle onto its saved form."""
    session = _session_or_404(store, puzzle_id)
    return PuzzleSaveModel(**snapshot(session.board).to_dict())


@app.post(f"{settings.API_V1_STR}/puzzle/restore", response_model=PuzzleStateResponse)
async def restore_puzzle(request: RestorePuzzleRequest, store: Store) -> PuzzleStateResponse:
    """Rebuild a saved game onto a board of the given size.

    Raises:
        HTTPException: 400 if the saved grid cannot be generated, 409 if the
            save references pieces its regenerated layout does not have.
    """
    save = PuzzleSave.from_dict(request.save.model_dump())
    try:
        session = store.restore(save, request.board_width, request.board_height)
    except PuzzleGenerationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except PuzzleRestoreError as e:
        logger.warning("Rejected saved game: %s", e)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return _state_response(session)
