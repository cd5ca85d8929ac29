"""
protein.py
HP sequence representation and the lattice contact fitness.

HP model (Dill, 1985): every amino acid is either hydrophobic (H) or polar
(P). A topological contact is a pair of H residues that sit on neighbouring
lattice sites without being covalently bonded (|i − j| ≥ 2). Fitness is the
negated contact count, so lower is better and 0 is the worst possible value.

References:
  [1] Dill, Biochemistry 24, 1501 (1985)
  [2] Unger & Moult, J. Mol. Biol. 231, 75 (1993)
"""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

from .lattice import SquareLattice

VALID_ACIDS = frozenset("HP")
MIN_LENGTH = 3


def parse_acid_string(acid_string: str) -> Tuple[bool, ...]:
    """
    Convert an acid string into hydrophobic flags.

    Parameters
    ----------
    acid_string : str
        Case-insensitive sequence over {h, H, p, P}.

    Returns
    -------
    is_hydrophobic : tuple of bool
        True for H, False for P.
    """
    if not isinstance(acid_string, str):
        raise ValueError(f"Acid sequence must be a string, got {type(acid_string).__name__}")
    sequence = acid_string.upper()
    invalid = sorted(set(sequence) - VALID_ACIDS)
    if invalid:
        raise ValueError(
            f"Invalid amino acid(s) {invalid} in '{acid_string}'; only 'H' and 'P' are allowed"
        )
    if len(sequence) < MIN_LENGTH:
        raise ValueError(
            f"Sequence length {len(sequence)} is too short (need at least {MIN_LENGTH} acids)"
        )
    return tuple(acid == "H" for acid in sequence)


def compute_fitness(
    is_hydrophobic: Sequence[bool],
    walk: Sequence[Tuple[int, int]],
) -> int:
    """
    Count non-covalent H–H lattice contacts, negated.

    Each hydrophobic residue i looks at its four lattice neighbours; a
    neighbour that is hydrophobic residue j with j > i + 1 is one contact.
    Counting only from the lower index side means each pair is seen once and
    covalent successors are never counted.
    """
    if len(is_hydrophobic) != len(walk):
        raise ValueError(
            f"Expected {len(is_hydrophobic)} coordinates, got {len(walk)}"
        )

    hydrophobic_lookup: Dict[Tuple[int, int], int] = {
        (p[0], p[1]): i for i, p in enumerate(walk) if is_hydrophobic[i]
    }

    contacts = 0
    for i, p in enumerate(walk):
        if not is_hydrophobic[i]:
            continue
        for neighbour in SquareLattice.neighbours(p):
            j = hydrophobic_lookup.get(neighbour)
            if j is not None and j > i + 1:
                contacts -= 1
    return contacts


# ═══════════════════════════════════════════════════════════════════════════
# Protein class
# ═══════════════════════════════════════════════════════════════════════════

class Protein:
    """
    An HP sequence shared by every chromosome folding it.

    Parameters
    ----------
    acid_string : str
        Residue sequence over {h, H, p, P}, at least 3 long.
    """

    def __init__(self, acid_string: str):
        self.is_hydrophobic: Tuple[bool, ...] = parse_acid_string(acid_string)
        self.sequence = acid_string.upper()
        self.n = len(self.sequence)

    @property
    def h_count(self) -> int:
        return sum(self.is_hydrophobic)

    def evaluate_fitness(self, walk: Sequence[Tuple[int, int]]) -> int:
        """Fitness of `walk` for this sequence (see :func:`compute_fitness`)."""
        return compute_fitness(self.is_hydrophobic, walk)

    def max_possible_contacts(self) -> int:
        """
        Upper bound on the number of H-H contacts on the square lattice.

        On a bipartite lattice a contact always joins an even-indexed and an
        odd-indexed residue. An interior residue has 2 free neighbour sites
        (4 minus its two bonds), a terminal residue has 3. The bound is the
        smaller of the two parity classes' total capacity.
        """
        capacity = [0, 0]
        last = self.n - 1
        for i, hydrophobic in enumerate(self.is_hydrophobic):
            if hydrophobic:
                capacity[i % 2] += 3 if i in (0, last) else 2
        return min(capacity)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Protein):
            return NotImplemented
        return self.sequence == other.sequence

    def __hash__(self) -> int:
        return hash(self.sequence)

    def __len__(self) -> int:
        return self.n

    def __repr__(self) -> str:
        return f"Protein('{self.sequence}')"
