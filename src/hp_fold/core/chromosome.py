"""
chromosome.py
Candidate foldings and the geometry-preserving genetic operators.

A Chromosome is one complete conformation: the HP sequence it folds, the
self-avoiding walk placing each residue on the square lattice, and the
fitness of that walk. Instances are never modified after construction;
crossover and mutation build new ones.

Both operators share one primitive. A tail fragment is cut off after a
pivot residue, rigidly rotated so that it leaves the pivot in a newly chosen
direction, re-anchored next to the pivot, and spliced back on. Only the
splice junction can create a collision, so each operator tries at most the
three directions permitted after the bond entering the pivot, in random
order, and reports failure with ``None`` if none of them validates.

References:
  [1] Unger & Moult, J. Mol. Biol. 231, 75 (1993) — GA for lattice folding
"""

from __future__ import annotations

import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple

from .lattice import ORIGIN, POS_X, Point, SquareLattice
from .protein import Protein, compute_fitness


def validate(walk: Sequence[Tuple[int, int]]) -> bool:
    """True iff `walk` is self-avoiding."""
    return SquareLattice.is_self_avoiding(walk)


def _generate_random_walk(n: int, rng: np.random.Generator) -> Tuple[Point, ...]:
    """
    Grow random non-reversing walks until one is self-avoiding.

    There is no attempt cap: for long sequences the expected number of
    restarts grows exponentially, which callers must keep in mind.
    """
    while True:
        walk = [ORIGIN, Point(1, 0)]
        previous = POS_X
        for _ in range(2, n):
            options = SquareLattice.permitted_directions(previous)
            direction = options[rng.integers(0, len(options))]
            walk.append(SquareLattice.next_point(walk[-1], direction))
            previous = direction
        if validate(walk):
            return tuple(walk)


class Chromosome:
    """
    One candidate folding of an HP sequence.

    The fitness is always computed from the walk on construction. Use
    :meth:`from_walk` for an untrusted walk (it checks the anchor,
    connectivity and self-avoidance); the operators :func:`crossover` and
    :func:`mutate` return new instances.
    """

    __slots__ = ("_protein", "_walk", "_fitness")

    def __init__(self, protein: Protein, walk: Sequence[Tuple[int, int]]):
        self._protein = protein
        self._walk: Tuple[Point, ...] = tuple(Point(int(p[0]), int(p[1])) for p in walk)
        self._fitness = compute_fitness(protein.is_hydrophobic, self._walk)

    # --- Construction -----------------------------------------------------

    @classmethod
    def random(cls, protein: Protein, rng: np.random.Generator) -> "Chromosome":
        """Randomly fold `protein` into a valid self-avoiding walk."""
        walk = _generate_random_walk(protein.n, rng)
        return cls(protein, walk)

    @classmethod
    def from_acid_string(cls, acid_string: str, rng: np.random.Generator) -> "Chromosome":
        return cls.random(Protein(acid_string), rng)

    @classmethod
    def from_walk(cls, protein: Protein, walk: Sequence[Tuple[int, int]]) -> "Chromosome":
        """
        Build a chromosome from an explicit conformation.

        Raises ValueError unless `walk` has one point per residue, starts
        with (0, 0), (1, 0), is connected, and is self-avoiding.
        """
        if len(walk) != protein.n:
            raise ValueError(f"Expected {protein.n} coordinates, got {len(walk)}")
        points = [Point(int(p[0]), int(p[1])) for p in walk]
        if points[0] != ORIGIN or points[1] != Point(1, 0):
            raise ValueError(
                f"Walk must start at (0, 0), (1, 0); got {points[0]}, {points[1]}"
            )
        if not SquareLattice.is_connected(points):
            raise ValueError("Consecutive residues must be lattice neighbours")
        if not validate(points):
            raise ValueError("Walk is not self-avoiding")
        return cls(protein, points)

    # --- Accessors --------------------------------------------------------

    @property
    def protein(self) -> Protein:
        return self._protein

    @property
    def is_hydrophobic(self) -> Tuple[bool, ...]:
        return self._protein.is_hydrophobic

    @property
    def sequence(self) -> str:
        return self._protein.sequence

    @property
    def walk(self) -> Tuple[Point, ...]:
        return self._walk

    @property
    def fitness(self) -> int:
        return self._fitness

    @property
    def n(self) -> int:
        return len(self._walk)

    def coords(self) -> np.ndarray:
        """Walk as an (N, 2) integer array."""
        return np.array(self._walk, dtype=np.int64).reshape(-1, 2)

    def to_dict(self) -> Dict:
        return {
            "sequence": self.sequence,
            "coords": [[p.x, p.y] for p in self._walk],
            "fitness": self._fitness,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chromosome):
            return NotImplemented
        return self._protein == other._protein and self._walk == other._walk

    def __hash__(self) -> int:
        return hash((self._protein.sequence, self._walk))

    def __str__(self) -> str:
        return "[" + ", ".join(str(p) for p in self._walk) + f"] {self._fitness}"

    def __repr__(self) -> str:
        return f"Chromosome('{self.sequence}', fitness={self._fitness})"


# ═══════════════════════════════════════════════════════════════════════════
# Genetic operators
# ═══════════════════════════════════════════════════════════════════════════

def _check_pivot(pivot: int, n: int) -> None:
    if not 1 <= pivot <= n - 2:
        raise ValueError(f"Pivot {pivot} out of range [1, {n - 2}]")


def _reattach_tail(
    prefix_source: Chromosome,
    tail_source: Chromosome,
    pivot: int,
    rng: np.random.Generator,
) -> Optional[Chromosome]:
    """
    Keep ``prefix_source.walk[:pivot + 1]`` and splice on a rigidly moved
    copy of ``tail_source.walk[pivot + 1:]``.

    The tail is rotated so that the bond entering it, which originally ran
    ``tail_source.walk[pivot] → walk[pivot + 1]``, now leaves the kept pivot
    in the candidate direction.
    """
    prefix = prefix_source.walk[: pivot + 1]
    tail = tail_source.walk[pivot + 1:]
    tail_direction = SquareLattice.direction_between(
        tail_source.walk[pivot], tail_source.walk[pivot + 1]
    )
    incoming = SquareLattice.direction_between(prefix[pivot - 1], prefix[pivot])

    for direction in rng.permutation(SquareLattice.permitted_directions(incoming)):
        direction = int(direction)
        anchor = SquareLattice.next_point(prefix[pivot], direction)
        moved = SquareLattice.shift_and_rotate(tail, tail_direction, direction, anchor)
        candidate: List[Point] = list(prefix) + moved
        if validate(candidate):
            return Chromosome(prefix_source.protein, candidate)
    return None


def crossover(
    left: Chromosome,
    right: Chromosome,
    pivot: int,
    rng: np.random.Generator,
) -> Optional[Chromosome]:
    """
    Join the head of `left` (residues 0..pivot) to the tail of `right`
    (residues pivot+1..N-1).

    Returns a new Chromosome with `left`'s sequence, or None if no permitted
    direction produces a self-avoiding splice.
    """
    if left.protein != right.protein:
        raise ValueError(
            f"Cannot cross {left.sequence} with a different sequence {right.sequence}"
        )
    _check_pivot(pivot, left.n)
    return _reattach_tail(left, right, pivot, rng)


def mutate(
    chromosome: Chromosome,
    pivot: int,
    rng: np.random.Generator,
) -> Optional[Chromosome]:
    """
    Bend `chromosome` at `pivot`: its own tail is re-attached in a newly
    chosen permitted direction.

    Returns a new Chromosome, or None if no direction validates.
    """
    _check_pivot(pivot, chromosome.n)
    return _reattach_tail(chromosome, chromosome, pivot, rng)
