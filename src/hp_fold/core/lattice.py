"""
lattice.py
2D square lattice geometry for HP protein folding.

Direction codes (absolute, fixed for the whole package):
  1 → +x    2 → −x    3 → +y    4 → −y

The backbone can never immediately reverse, so each direction is followed by
exactly three permitted directions (straight, and the two perpendicular
turns). The first bond is always fixed along +x (bead 0 at the origin, bead 1
at (1, 0)), which removes the translational and one rotational degree of
freedom.

Rigid fragment moves (used by crossover and mutation) are built from three
coordinate transforms: swap x/y, negate x, negate y. Every ordered pair of
distinct directions maps onto a proper 90° or 180° rotation; equal directions
map onto the identity.
"""

from __future__ import annotations

import numpy as np
from types import MappingProxyType
from typing import Dict, Iterable, List, NamedTuple, Sequence, Tuple


class Point(NamedTuple):
    """Integer lattice coordinate. Hashes and compares as the ordered pair."""
    x: int
    y: int

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


ORIGIN = Point(0, 0)

# ---------------------------------------------------------------------------
# Direction vocabulary
# ---------------------------------------------------------------------------
POS_X, NEG_X, POS_Y, NEG_Y = 1, 2, 3, 4
DIRECTIONS: Tuple[int, ...] = (POS_X, NEG_X, POS_Y, NEG_Y)

DIRECTION_VECTORS: Dict[int, np.ndarray] = {
    POS_X: np.array([1, 0], dtype=np.int64),
    NEG_X: np.array([-1, 0], dtype=np.int64),
    POS_Y: np.array([0, 1], dtype=np.int64),
    NEG_Y: np.array([0, -1], dtype=np.int64),
}

_OFFSETS: Dict[int, Tuple[int, int]] = {
    POS_X: (1, 0),
    NEG_X: (-1, 0),
    POS_Y: (0, 1),
    NEG_Y: (0, -1),
}
_OFFSET_TO_DIRECTION = {offset: d for d, offset in _OFFSETS.items()}

REVERSE = MappingProxyType({POS_X: NEG_X, NEG_X: POS_X, POS_Y: NEG_Y, NEG_Y: POS_Y})

# Previous direction → directions allowed for the next bond (no reversal).
MOVE_TABLE = MappingProxyType({
    POS_X: (POS_X, POS_Y, NEG_Y),
    NEG_X: (NEG_X, POS_Y, NEG_Y),
    POS_Y: (POS_X, NEG_X, POS_Y),
    NEG_Y: (POS_X, NEG_X, NEG_Y),
})


# ═══════════════════════════════════════════════════════════════════════════
# Fragment rotation transforms
# ═══════════════════════════════════════════════════════════════════════════

# (old_direction, new_direction) → (swap_xy, negate_x, negate_y)
_TRANSFORM_FLAGS: Dict[Tuple[int, int], Tuple[bool, bool, bool]] = {
    (POS_X, NEG_X): (False, True, True),
    (POS_X, POS_Y): (True, True, False),
    (POS_X, NEG_Y): (True, False, True),
    (NEG_X, POS_X): (False, True, True),
    (NEG_X, POS_Y): (True, False, True),
    (NEG_X, NEG_Y): (True, True, False),
    (POS_Y, POS_X): (True, False, True),
    (POS_Y, NEG_X): (True, True, False),
    (POS_Y, NEG_Y): (False, True, True),
    (NEG_Y, POS_X): (True, True, False),
    (NEG_Y, NEG_X): (True, False, True),
    (NEG_Y, POS_Y): (False, True, True),
}
for _d in DIRECTIONS:
    _TRANSFORM_FLAGS[(_d, _d)] = (False, False, False)


def _flags_to_matrix(swap_xy: bool, negate_x: bool, negate_y: bool) -> np.ndarray:
    """Compose swap, then negations, into one 2×2 integer matrix."""
    swap = np.array([[0, 1], [1, 0]], dtype=np.int64) if swap_xy else np.eye(2, dtype=np.int64)
    negate = np.diag([-1 if negate_x else 1, -1 if negate_y else 1]).astype(np.int64)
    matrix = negate @ swap
    matrix.setflags(write=False)
    return matrix


ROTATION_MATRICES: Dict[Tuple[int, int], np.ndarray] = {
    pair: _flags_to_matrix(*flags) for pair, flags in _TRANSFORM_FLAGS.items()
}


def _check_direction(direction: int) -> None:
    if direction not in _OFFSETS:
        raise ValueError(f"Invalid direction {direction}; must be one of {DIRECTIONS}")


# ═══════════════════════════════════════════════════════════════════════════
# SquareLattice — main lattice class
# ═══════════════════════════════════════════════════════════════════════════

class SquareLattice:
    """
    2D square lattice utilities for HP protein folding.

    All methods are static: the lattice has no state beyond the module-level
    constants above, so the same helpers are shared by every chromosome.
    """

    N_DIRS = 4

    # --- Moves ------------------------------------------------------------

    @staticmethod
    def next_point(point: Tuple[int, int], direction: int) -> Point:
        """Return the point one lattice step from `point` in `direction`."""
        _check_direction(direction)
        dx, dy = _OFFSETS[direction]
        return Point(point[0] + dx, point[1] + dy)

    @staticmethod
    def direction_between(start: Tuple[int, int], end: Tuple[int, int]) -> int:
        """Direction code of the unit bond start → end."""
        offset = (end[0] - start[0], end[1] - start[1])
        direction = _OFFSET_TO_DIRECTION.get(offset)
        if direction is None:
            raise ValueError(f"Points {start} and {end} are not lattice neighbours")
        return direction

    @staticmethod
    def permitted_directions(previous: int) -> Tuple[int, ...]:
        """The three directions that may follow `previous` (never its reverse)."""
        _check_direction(previous)
        return MOVE_TABLE[previous]

    @staticmethod
    def neighbours(point: Tuple[int, int]) -> List[Point]:
        x, y = point
        return [Point(x + dx, y + dy) for dx, dy in _OFFSETS.values()]

    @staticmethod
    def are_adjacent(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
        return abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1

    # --- Validity checks --------------------------------------------------

    @staticmethod
    def is_self_avoiding(walk: Iterable[Tuple[int, int]]) -> bool:
        """Check that no two beads occupy the same lattice site."""
        seen = set()
        for p in walk:
            key = (p[0], p[1])
            if key in seen:
                return False
            seen.add(key)
        return True

    @staticmethod
    def is_connected(walk: Sequence[Tuple[int, int]]) -> bool:
        """Check that every consecutive pair of beads is lattice-adjacent."""
        return all(
            SquareLattice.are_adjacent(walk[i - 1], walk[i]) for i in range(1, len(walk))
        )

    # --- Rigid fragment transforms ---------------------------------------

    @staticmethod
    def rotation_matrix(old_direction: int, new_direction: int) -> np.ndarray:
        """
        Integer rotation taking the unit vector of `old_direction` onto
        `new_direction`.
        """
        _check_direction(old_direction)
        _check_direction(new_direction)
        return ROTATION_MATRICES[(old_direction, new_direction)]

    @staticmethod
    def rotate(
        points: Sequence[Tuple[int, int]],
        old_direction: int,
        new_direction: int,
    ) -> List[Point]:
        """
        Rotate a point sequence about the origin so that a fragment that
        proceeded in `old_direction` proceeds in `new_direction` instead.
        """
        if len(points) == 0:
            return []
        matrix = SquareLattice.rotation_matrix(old_direction, new_direction)
        arr = np.asarray(points, dtype=np.int64).reshape(-1, 2)
        rotated = arr @ matrix.T
        return [Point(int(x), int(y)) for x, y in rotated]

    @staticmethod
    def shift_to(points: Sequence[Tuple[int, int]], origin: Tuple[int, int]) -> List[Point]:
        """Translate `points` so that the first one lands on `origin`."""
        if len(points) == 0:
            return []
        dx = origin[0] - points[0][0]
        dy = origin[1] - points[0][1]
        return [Point(p[0] + dx, p[1] + dy) for p in points]

    @staticmethod
    def shift_and_rotate(
        points: Sequence[Tuple[int, int]],
        old_direction: int,
        new_direction: int,
        origin: Tuple[int, int],
    ) -> List[Point]:
        """
        Rigidly move a fragment: shift it to the origin, rotate it from
        `old_direction` to `new_direction`, and shift it to begin at `origin`.

        Pairwise distances (and therefore the fragment's own self-avoidance
        and connectivity) are preserved; only the junction with whatever the
        fragment is spliced onto can introduce a collision.
        """
        at_zero = SquareLattice.shift_to(points, ORIGIN)
        rotated = SquareLattice.rotate(at_zero, old_direction, new_direction)
        return SquareLattice.shift_to(rotated, origin)


# Module-level aliases for the most common calls.
next_point = SquareLattice.next_point
direction_between = SquareLattice.direction_between
is_self_avoiding = SquareLattice.is_self_avoiding
