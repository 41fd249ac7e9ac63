"""Tests for union-find grouping and locking."""

from typing import List

import pytest

from puzzle_board import GroupEngine, snap_tolerance
from puzzle_shapes import PieceRecord, generate_puzzle


@pytest.fixture
def pieces() -> List[PieceRecord]:
    """A 4x4 puzzle of 100x100 pieces, every piece on its solved position."""
    return generate_puzzle(400, 400, 4, 4, seed=42).pieces


@pytest.fixture
def groups(pieces: List[PieceRecord]) -> GroupEngine:
    return GroupEngine(pieces)


class TestUnionFind:
    """Tests for merging groups."""

    def test_every_piece_starts_alone(self, groups: GroupEngine) -> None:
        assert len(groups) == 16
        assert groups.roots() == list(range(16))
        assert all(groups.find(i) == i for i in range(16))
        assert all(groups.size(i) == 1 for i in range(16))

    def test_union_joins_groups(self, groups: GroupEngine, pieces: List[PieceRecord]) -> None:
        root = groups.union(0, 1)

        assert groups.find(0) == groups.find(1) == root
        assert groups.size(0) == 2
        assert sorted(p.id for p in groups.members(1)) == ["0-0", "1-0"]
        assert pieces[0].group_id == pieces[1].group_id == root
        assert len(groups.roots()) == 15

    def test_union_is_idempotent(self, groups: GroupEngine) -> None:
        root = groups.union(0, 1)
        assert groups.union(1, 0) == root
        assert groups.size(0) == 2

    def test_smaller_group_joins_larger(self, groups: GroupEngine) -> None:
        big = groups.union(groups.union(4, 5), 6)
        merged = groups.union(0, 5)

        assert merged == big
        assert groups.find(0) == big
        assert sorted(groups.member_indices(0)) == [0, 4, 5, 6]

    def test_union_is_transitive(self, groups: GroupEngine, pieces: List[PieceRecord]) -> None:
        groups.union(0, 1)
        groups.union(2, 3)
        groups.union(1, 2)

        root = groups.find(3)
        assert all(groups.find(i) == root for i in range(4))
        assert all(p.group_id == root for p in pieces[:4])

    def test_partition(self, groups: GroupEngine) -> None:
        groups.union(0, 1)
        groups.union(14, 15)
        partition = groups.partition()

        assert frozenset({"0-0", "1-0"}) in partition
        assert frozenset({"2-3", "3-3"}) in partition
        assert len(partition) == 14


class TestMovement:
    """Tests for translating groups."""

    def test_move_group_moves_every_member(self, groups: GroupEngine, pieces: List[PieceRecord]) -> None:
        groups.union(0, 1)
        assert groups.move_group(0, 10, -5)

        assert (pieces[0].x, pieces[0].y) == (10, -5)
        assert (pieces[1].x, pieces[1].y) == (110, -5)
        assert (pieces[2].x, pieces[2].y) == (200, 0)

    def test_locked_group_does_not_move(self, groups: GroupEngine, pieces: List[PieceRecord]) -> None:
        groups.force_lock(0)
        assert not groups.move_group(0, 10, 10)
        assert (pieces[0].x, pieces[0].y) == (0, 0)

    def test_bring_to_front_raises_group_in_order(self, groups: GroupEngine, pieces: List[PieceRecord]) -> None:
        for i, piece in enumerate(pieces):
            piece.z_index = i
        pieces[0].z_index = 3
        pieces[5].z_index = 1
        groups.union(0, 5)

        groups.bring_to_front(5)

        others = max(p.z_index for p in pieces if p.index not in (0, 5))
        assert pieces[5].z_index > others
        assert pieces[0].z_index > pieces[5].z_index


class TestLocking:
    """Tests for locking aligned groups."""

    def test_tolerance_is_fraction_of_smaller_side(self, pieces: List[PieceRecord]) -> None:
        assert snap_tolerance(pieces[0]) == pytest.approx(22.0)
        assert snap_tolerance(pieces[0], 0.1) == pytest.approx(10.0)

    def test_aligned_group_locks_exactly(self, groups: GroupEngine, pieces: List[PieceRecord]) -> None:
        groups.union(0, 1)
        groups.move_group(0, 4, -3)

        assert groups.lock_if_aligned(1)
        assert groups.is_locked(0)
        for piece in pieces[:2]:
            assert (piece.x, piece.y) == (piece.solved_x, piece.solved_y)
            assert piece.is_placed

    def test_lock_is_all_or_nothing(self, groups: GroupEngine, pieces: List[PieceRecord]) -> None:
        groups.union(0, 1)
        pieces[0].x += 2
        pieces[1].x += 50

        assert not groups.lock_if_aligned(0)
        assert not groups.is_locked(1)
        assert pieces[0].x == 2
        assert not pieces[0].is_placed
        assert not pieces[1].is_placed

    def test_explicit_tolerance(self, groups: GroupEngine, pieces: List[PieceRecord]) -> None:
        pieces[0].x += 5
        assert not groups.lock_if_aligned(0, tolerance=4)
        assert groups.lock_if_aligned(0, tolerance=5)

    def test_lock_spreads_through_union(self, groups: GroupEngine) -> None:
        groups.force_lock(0)
        groups.union(1, 0)

        assert groups.is_locked(1)
        assert groups.is_locked(groups.find(0))

    def test_union_of_unlocked_groups_stays_unlocked(self, groups: GroupEngine) -> None:
        groups.union(0, 1)
        assert not groups.is_locked(0)
