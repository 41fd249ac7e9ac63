"""Union-find grouping of pieces into rigid clusters."""

import logging
import math
from typing import Dict, FrozenSet, List, Optional, Set

from puzzle_shapes import PieceRecord

logger = logging.getLogger(__name__)

# Snap and lock distance as a fraction of the piece's smaller dimension.
SNAP_FRACTION = 0.22


def snap_tolerance(piece: PieceRecord, snap_fraction: float = SNAP_FRACTION) -> float:
    """Largest distance at which ``piece`` still snaps or locks."""
    return min(piece.width, piece.height) * snap_fraction


class GroupEngine:
    """Disjoint sets over piece indices plus one locked flag per set.

    Pieces are identified by their arena index in the piece list. Groups only
    ever merge. A locked group has every member exactly on its solved
    position and can no longer be moved; it can still absorb other groups.
    """

    def __init__(self, pieces: List[PieceRecord], snap_fraction: float = SNAP_FRACTION) -> None:
        """Initialize every piece as its own group.

        Args:
            pieces: The piece arena, indexed by ``PieceRecord.index``.
            snap_fraction: Lock tolerance relative to the smaller piece dimension.
        """
        self._pieces = pieces
        self.snap_fraction = snap_fraction
        self._parent: List[int] = list(range(len(pieces)))
        self._members: Dict[int, List[int]] = {i: [i] for i in range(len(pieces))}
        self._locked: Set[int] = set()
        for piece in pieces:
            piece.group_id = piece.index

    def __len__(self) -> int:
        return len(self._pieces)

    def find(self, index: int) -> int:
        """Return the root of the group containing ``index``."""
        parent = self._parent
        while parent[index] != index:
            # Path halving
            parent[index] = parent[parent[index]]
            index = parent[index]
        return index

    def union(self, a: int, b: int) -> int:
        """Merge the groups of ``a`` and ``b`` and return the new root.

        The smaller group is attached below the larger one. The merged group
        is locked if either side was locked.
        """
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return root_a

        if len(self._members[root_a]) < len(self._members[root_b]):
            root_a, root_b = root_b, root_a

        self._parent[root_b] = root_a
        absorbed = self._members.pop(root_b)
        self._members[root_a].extend(absorbed)
        for i in absorbed:
            self._pieces[i].group_id = root_a

        if root_b in self._locked:
            self._locked.discard(root_b)
            self._locked.add(root_a)

        logger.debug("Merged group %d into %d (%d pieces)", root_b, root_a, len(self._members[root_a]))
        return root_a

    def member_indices(self, index: int) -> List[int]:
        return list(self._members[self.find(index)])

    def members(self, index: int) -> List[PieceRecord]:
        """Return every piece in the group containing ``index``."""
        return [self._pieces[i] for i in self._members[self.find(index)]]

    def size(self, index: int) -> int:
        return len(self._members[self.find(index)])

    def roots(self) -> List[int]:
        return sorted(self._members)

    def is_locked(self, index: int) -> bool:
        return self.find(index) in self._locked

    def partition(self) -> Set[FrozenSet[str]]:
        """The grouping as a set of piece-id sets, independent of root choice."""
        return {frozenset(self._pieces[i].id for i in members) for members in self._members.values()}

    def tolerance(self, piece: PieceRecord) -> float:
        return snap_tolerance(piece, self.snap_fraction)

    def move_group(self, index: int, dx: float, dy: float) -> bool:
        """Translate every member of the group by (dx, dy).

        Returns:
            False without moving anything when the group is locked.
        """
        root = self.find(index)
        if root in self._locked:
            logger.debug("Refused to move locked group %d", root)
            return False
        for i in self._members[root]:
            piece = self._pieces[i]
            piece.x += dx
            piece.y += dy
        return True

    def lock_if_aligned(self, index: int, tolerance: Optional[float] = None) -> bool:
        """Lock the group if every member sits on its solved position.

        Locking is all or nothing: if any member is further than the tolerance
        from its solved position, nothing changes. When the group locks (or was
        already locked) every member is put exactly on its solved position and
        marked placed.

        Args:
            index: Any member of the group.
            tolerance: Distance limit; defaults to the snap tolerance of each member.

        Returns:
            Whether the group is locked afterwards.
        """
        root = self.find(index)
        members = [self._pieces[i] for i in self._members[root]]

        if root not in self._locked:
            for piece in members:
                limit = self.tolerance(piece) if tolerance is None else tolerance
                if math.hypot(piece.x - piece.solved_x, piece.y - piece.solved_y) > limit:
                    return False
            self._locked.add(root)
            logger.info("Locked group %d (%d pieces)", root, len(members))

        for piece in members:
            piece.x = piece.solved_x
            piece.y = piece.solved_y
            piece.is_placed = True
        return True

    def force_lock(self, index: int) -> int:
        """Lock a group unconditionally, putting its members on their solved positions.

        Used when rebuilding a saved game whose lock state is already known.
        """
        root = self.find(index)
        self._locked.add(root)
        self.lock_if_aligned(root)
        return root

    def bring_to_front(self, index: int) -> None:
        """Raise the whole group above every other piece, keeping its internal order."""
        root = self.find(index)
        member_set = set(self._members[root])
        others = [p.z_index for p in self._pieces if p.index not in member_set]
        top = max(others, default=0)
        members = sorted((self._pieces[i] for i in member_set), key=lambda p: (p.z_index, p.index))
        for offset, piece in enumerate(members, start=1):
            piece.z_index = top + offset
