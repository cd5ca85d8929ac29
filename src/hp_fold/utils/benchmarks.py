"""
benchmarks.py
Standard 2D HP benchmark sequences and a multi-seed benchmark runner.

The long sequences are the classic square-lattice test set with their
best known (optimal) energies; the short ones are small enough to verify
by hand and make fast smoke tests for the genetic search. Each entry also
reports the parity bound from :meth:`Protein.max_possible_contacts`, so a
run can be judged even where no optimum is known.

References:
  [1] Unger & Moult, J. Mol. Biol. 231, 75 (1993)
  [2] Dill, Biochemistry 24, 1501 (1985)
  [3] Lesh, Mitzenmacher & Whitesides, RECOMB 2003
"""

from __future__ import annotations

import time
import numpy as np
from typing import Callable, Dict, List, Optional
from dataclasses import dataclass

from ..core.protein import Protein


@dataclass
class BenchmarkSequence:
    """A benchmark HP sequence with its best known 2D energy."""
    name: str
    sequence: str
    optimal_energy_2d: Optional[int] = None
    source: str = ""
    notes: str = ""

    @property
    def length(self) -> int:
        return len(self.sequence)

    @property
    def h_count(self) -> int:
        return self.sequence.count("H")

    @property
    def p_count(self) -> int:
        return self.sequence.count("P")

    @property
    def contact_bound(self) -> int:
        """Square-lattice upper bound on H-H contacts (parity argument)."""
        return Protein(self.sequence).max_possible_contacts()

    @property
    def energy_floor(self) -> int:
        """Lowest energy any folding could reach: the known optimum, else −bound."""
        if self.optimal_energy_2d is not None:
            return self.optimal_energy_2d
        return -self.contact_bound


# ═══════════════════════════════════════════════════════════════════════════
# Standard benchmark sequences
# ═══════════════════════════════════════════════════════════════════════════

BENCHMARKS: Dict[str, BenchmarkSequence] = {}


def _register(name, seq, e2d=None, source="", notes=""):
    BENCHMARKS[name] = BenchmarkSequence(name, seq, e2d, source, notes)


# --- Very small (4–8 beads): hand-checkable -------------------------------
_register("S4a", "HPHP", e2d=0, source="Standard",
          notes="Both H on even indices; square-lattice contacts need opposite parity")
_register("S4b", "HHPP", e2d=0, source="Standard", notes="Only H-H pair is bonded")
_register("S4c", "HHHH", e2d=-1, source="Standard", notes="2x2 square")
_register("S6a", "HHPPHH", e2d=-2, source="Standard", notes="2x3 rectangle")
_register("S8a", "HPPHPPHP", e2d=-2, source="Standard", notes="Two squares sharing H3")

# --- Classic 2D test set ----------------------------------------------------
_register("S20", "HPHPPHHPHPPHPHHPPHPH", e2d=-9, source="Unger & Moult 1993")
_register("S24", "HHPPHPPHPPHPPHPPHPPHPPHH", e2d=-9, source="Unger & Moult 1993")
_register("S25", "PPHPPHHPPPPHHPPPPHHPPPPHH", e2d=-8, source="Unger & Moult 1993")
_register("S36", "PPPHHPPHHPPPPPHHHHHHHPPHHPPPPHHPPHPP", e2d=-14,
          source="Unger & Moult 1993")
_register("S48", "PPHPPHHPPHHPPPPPHHHHHHHHHHPPPPPPHHPPHHPPHPPHHHHH", e2d=-23,
          source="Unger & Moult 1993")
_register("S50", "HHPHPHPHPHHHHPHPPPHPPPHPPPPHPPPHPPPHPHHHHPHPHPHPHH", e2d=-21,
          source="Unger & Moult 1993")


# ═══════════════════════════════════════════════════════════════════════════
# Lookup and listing
# ═══════════════════════════════════════════════════════════════════════════

def get_benchmark(name: str) -> BenchmarkSequence:
    """Look up a benchmark by name (case-insensitive); KeyError if unknown."""
    for key, bench in BENCHMARKS.items():
        if key.lower() == name.lower():
            return bench
    raise KeyError(f"No benchmark named '{name}'; known: {', '.join(sorted(BENCHMARKS))}")


def list_benchmarks(
    max_length: Optional[int] = None,
    with_optimum: bool = False,
) -> List[BenchmarkSequence]:
    """
    Benchmarks ordered by length, then name.

    `max_length` drops longer sequences; `with_optimum` keeps only entries
    whose optimal 2D energy is known.
    """
    selected = [
        b for b in BENCHMARKS.values()
        if (max_length is None or b.length <= max_length)
        and (not with_optimum or b.optimal_energy_2d is not None)
    ]
    return sorted(selected, key=lambda b: (b.length, b.name))


def print_benchmark_table(max_length: Optional[int] = None):
    """Print name, length, H count, E*, contact bound and source per benchmark."""
    header = f"{'Name':<6} {'N':>3} {'nH':>3} {'E*(2D)':>7} {'Bound':>6}  {'Sequence':<40} Source"
    print(header)
    print("-" * len(header))
    for b in list_benchmarks(max_length):
        optimum = "?" if b.optimal_energy_2d is None else str(b.optimal_energy_2d)
        shown = b.sequence if b.length <= 40 else b.sequence[:37] + "..."
        print(f"{b.name:<6} {b.length:>3} {b.h_count:>3} {optimum:>7} "
              f"{-b.contact_bound:>6}  {shown:<40} {b.source}")


# ═══════════════════════════════════════════════════════════════════════════
# Multi-seed runner
# ═══════════════════════════════════════════════════════════════════════════

def ga_solver_factory(config=None) -> Callable:
    """
    Factory for :func:`run_benchmark_suite` building an EvolutionController
    whose target is the benchmark's energy floor.
    """
    from ..algorithms.evolution import EvolutionController

    def factory(bench: BenchmarkSequence, seed: int) -> EvolutionController:
        return EvolutionController(bench.sequence, bench.energy_floor, config=config, seed=seed)

    return factory


def run_benchmark_suite(
    solver_factory: Callable,
    benchmark_names: Optional[List[str]] = None,
    max_length: int = 12,
    n_seeds: int = 5,
    solve_kwargs: Optional[Dict] = None,
    verbose: bool = True,
) -> Dict[str, Dict]:
    """
    Fold each benchmark once per seed and summarise the energies reached.

    Parameters
    ----------
    solver_factory : callable
        ``solver_factory(benchmark, seed)`` returns an object whose
        ``solve(**solve_kwargs)`` yields a tuple starting with the energy
        (and, for the genetic search, ending with an info dict).
    benchmark_names : list of str, optional
        Benchmarks to run; by default every one no longer than `max_length`.
    n_seeds : int
        Independent runs per benchmark, seeded 0..n_seeds-1.
    solve_kwargs : dict, optional
        Passed to every ``solve`` call, e.g. ``{"max_generations": 200}``.
    verbose : bool
        Print one line per run and a summary per benchmark.

    Returns
    -------
    results : dict
        Benchmark name → summary with the per-seed ``energies`` and
        ``generations`` (None where the solver reports none), their
        best/mean/std, timings, ``success_rate`` against the known optimum,
        ``approx_ratio`` and ``contact_bound``.
    """
    if benchmark_names is None:
        benchmarks = list_benchmarks(max_length)
    else:
        benchmarks = [get_benchmark(name) for name in benchmark_names]
    solve_kwargs = solve_kwargs or {}

    results = {}
    for bench in benchmarks:
        if verbose:
            print(f"\n=== {bench.name}  N={bench.length}  E*={bench.optimal_energy_2d} ===")

        energies, times, generations = [], [], []
        for seed in range(n_seeds):
            solver = solver_factory(bench, seed)
            t_start = time.time()
            outcome = solver.solve(**solve_kwargs)
            times.append(time.time() - t_start)
            energies.append(float(outcome[0]))
            info = outcome[-1] if isinstance(outcome[-1], dict) else {}
            generations.append(info.get("generations"))
            if verbose:
                print(f"  seed {seed}: E={energies[-1]:.0f} "
                      f"gens={generations[-1]} t={times[-1]:.3f}s")

        e = np.array(energies)
        optimum = bench.optimal_energy_2d
        best = float(e.min())
        summary = {
            "sequence": bench.sequence,
            "length": bench.length,
            "energies": energies,
            "generations": generations,
            "best_energy": best,
            "mean_energy": float(e.mean()),
            "std_energy": float(e.std()),
            "best_time": float(np.min(times)),
            "mean_time": float(np.mean(times)),
            "optimal_energy": optimum,
            "success_rate": float(np.mean(e <= optimum)) if optimum is not None else 0.0,
            "approx_ratio": best / optimum if optimum else None,
            "contact_bound": bench.contact_bound,
        }
        results[bench.name] = summary

        if verbose:
            print(f"  best={best:.0f} mean={summary['mean_energy']:.2f}"
                  f"±{summary['std_energy']:.2f} "
                  f"hit optimum {summary['success_rate'] * 100:.0f}%")

    return results
