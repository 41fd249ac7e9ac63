"""Tests for the board session: tray, drag gestures and hit testing."""

import pytest

from puzzle_board import PuzzleBoard
from puzzle_shapes import EdgeType, PuzzleGenerationError


@pytest.fixture
def board() -> PuzzleBoard:
    """A 4x4 puzzle of 100x100 pieces, every piece in the tray."""
    return PuzzleBoard.create(400, 400, 4, 4, seed=42)


class TestCreate:
    """Tests for creating a board."""

    def test_fresh_board(self, board: PuzzleBoard) -> None:
        assert board.total == 16
        assert (board.cols, board.rows, board.seed) == (4, 4, 42)
        assert (board.board_width, board.board_height) == (400, 400)
        assert board.placed_count == 0
        assert not board.is_complete
        assert len(board.tray_pieces()) == 16

    def test_invalid_grid(self) -> None:
        with pytest.raises(PuzzleGenerationError):
            PuzzleBoard.create(400, 400, 0, 4)

    def test_outline_is_cached(self, board: PuzzleBoard) -> None:
        piece = board.pieces[5]
        assert board.outline(piece) is board.outline(piece)


class TestTray:
    """Tests for moving pieces between the tray and the board."""

    def test_lift_centres_piece_on_point(self, board: PuzzleBoard) -> None:
        assert board.lift_from_tray("2-1", 150, 250)

        piece = board.get_piece("2-1")
        assert piece is not None
        assert not piece.in_tray
        assert (piece.x, piece.y) == (100, 200)
        assert piece.z_index == max(p.z_index for p in board.pieces)

    def test_lift_twice_is_refused(self, board: PuzzleBoard) -> None:
        assert board.lift_from_tray("2-1", 150, 250)
        assert not board.lift_from_tray("2-1", 0, 0)

    def test_lift_unknown_piece(self, board: PuzzleBoard) -> None:
        assert not board.lift_from_tray("9-9", 0, 0)

    def test_return_loose_piece(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("2-1", 600, 600)
        assert board.return_to_tray("2-1")

        piece = board.get_piece("2-1")
        assert piece is not None
        assert piece.in_tray
        assert len(board.tray_pieces()) == 16

    def test_joined_piece_cannot_return(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("0-0", 550, 550)
        board.lift_from_tray("1-0", 650, 550)
        assert board.end_drag("1-0").snapped

        assert not board.return_to_tray("1-0")
        assert not board.return_to_tray("0-0")

    def test_locked_piece_cannot_return(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("0-0", 52, 51)
        assert board.end_drag("0-0").locked
        assert not board.return_to_tray("0-0")

    def test_clear_strays_returns_loose_singles(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("0-0", 550, 550)
        board.lift_from_tray("1-0", 650, 550)
        assert board.end_drag("1-0").snapped
        board.lift_from_tray("1-1", 152, 151)
        assert board.end_drag("1-1").locked
        board.lift_from_tray("3-3", 800, 800)
        board.lift_from_tray("2-3", 900, 700)

        assert board.clear_strays() == 2

        assert {p.id for p in board.pieces if not p.in_tray} == {"0-0", "1-0", "1-1"}
        assert len(board.tray_pieces()) == 13
        assert board.clear_strays() == 0

    def test_tray_pieces_refuse_gestures(self, board: PuzzleBoard) -> None:
        assert not board.begin_drag("0-0")
        assert not board.drag_to("0-0", 10, 10)
        assert not board.end_drag("0-0").snapped
        assert not board.return_to_tray("0-0")

    def test_unknown_pieces_refuse_gestures(self, board: PuzzleBoard) -> None:
        assert not board.begin_drag("nope")
        assert not board.drag_to("nope", 1, 1)
        assert not board.end_drag("nope").snapped


class TestScatter:
    """Tests for laying the tray out on the board."""

    def test_scatter_places_every_tray_piece(self, board: PuzzleBoard) -> None:
        assert board.scatter(0, 500, 400, 400, seed=7) == 16
        assert board.tray_pieces() == []

        for piece in board.pieces:
            assert -8 <= piece.x <= 400
            assert piece.y >= 500 - 8

    def test_scatter_is_reproducible(self) -> None:
        first = PuzzleBoard.create(400, 400, 4, 4, seed=42)
        second = PuzzleBoard.create(400, 400, 4, 4, seed=42)
        first.scatter(0, 500, 400, 400, seed=7)
        second.scatter(0, 500, 400, 400, seed=7)

        assert [(p.x, p.y, p.z_index) for p in first.pieces] == [(p.x, p.y, p.z_index) for p in second.pieces]

    def test_scatter_leaves_board_pieces_alone(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("1-1", 150, 150)
        assert board.scatter(0, 500, 400, 400) == 15

        piece = board.get_piece("1-1")
        assert piece is not None
        assert (piece.x, piece.y) == (100, 100)

    def test_scatter_empty_tray(self, board: PuzzleBoard) -> None:
        board.scatter(0, 500, 400, 400)
        assert board.scatter(0, 500, 400, 400) == 0


class TestDrag:
    """Tests for the drag gesture."""

    def test_begin_drag_raises_group(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("0-0", 550, 550)
        board.lift_from_tray("3-3", 700, 700)

        assert board.begin_drag("0-0")

        first = board.get_piece("0-0")
        second = board.get_piece("3-3")
        assert first is not None and second is not None
        assert first.z_index > second.z_index

    def test_drag_moves_whole_group(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("0-0", 550, 550)
        board.lift_from_tray("1-0", 650, 550)
        board.end_drag("1-0")

        assert board.drag_to("0-0", 10, 20)

        first = board.get_piece("0-0")
        second = board.get_piece("1-0")
        assert first is not None and second is not None
        assert (first.x, first.y) == (510, 520)
        assert (second.x, second.y) == (610, 520)

    def test_drop_without_snap_stays_put(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("2-2", 900, 900)
        board.begin_drag("2-2")
        board.drag_to("2-2", 5, 5)

        assert not board.end_drag("2-2").snapped
        piece = board.get_piece("2-2")
        assert piece is not None
        assert (piece.x, piece.y) == (855, 855)


class TestHitTest:
    """Tests for finding the piece under the pointer."""

    def test_hit_inside_and_outside(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("1-1", 550, 550)

        hit = board.hit_test(550, 550)
        assert hit is not None and hit.id == "1-1"
        assert board.hit_test(900, 900) is None

    def test_tray_pieces_are_not_hit(self, board: PuzzleBoard) -> None:
        # Tray pieces keep their solved position but are not on the board
        assert board.hit_test(50, 50) is None

    def test_topmost_piece_wins(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("1-1", 550, 550)
        board.lift_from_tray("2-2", 550, 550)

        hit = board.hit_test(550, 550)
        assert hit is not None and hit.id == "2-2"

        board.begin_drag("1-1")
        hit = board.hit_test(550, 550)
        assert hit is not None and hit.id == "1-1"

    def test_locked_pieces_are_skipped_by_default(self, board: PuzzleBoard) -> None:
        board.lift_from_tray("0-0", 52, 51)
        assert board.end_drag("0-0").locked

        assert board.hit_test(50, 50) is None
        hit = board.hit_test(50, 50, include_locked=True)
        assert hit is not None and hit.id == "0-0"

    def test_knob_hits_its_piece(self, board: PuzzleBoard) -> None:
        """A point on a tab is found even though it lies outside the piece's cell."""
        left = board.get_piece("0-0")
        right = board.get_piece("1-0")
        assert left is not None and right is not None
        board.lift_from_tray("0-0", 550, 550)
        board.lift_from_tray("1-0", 650, 550)

        if left.right.edge_type is EdgeType.TAB:
            owner, side, base_x = left, board.outline(left).edges[1], left.x + left.width
        else:
            owner, side, base_x = right, board.outline(right).edges[3], right.x

        tip_x, tip_y = side[4].p0
        probe_x = (base_x + owner.x + tip_x) / 2
        probe_y = owner.y + tip_y

        hit = board.hit_test(probe_x, probe_y)
        assert hit is not None and hit.id == owner.id
