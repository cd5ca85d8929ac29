"""
evolution.py
Evolution controller: drives generations until the target fitness is met.

State machine:
  RUNNING   — best fitness so far is numerically above the target
  CONVERGED — best fitness ≤ target (terminal)
  CANCELLED — the stop hook was set before convergence (terminal)

Every generation the controller asks the current Generation for the next
one. When the best fitness has not improved for `stagnation_threshold`
generations, breeding escalates to double-point mutation until the next
improvement. Each improvement is reported to the optional listener as an
:class:`Improvement` record.

The loop is synchronous and owns a single numpy Generator, so a seeded run is
reproducible. Cancellation is only observed between generations.
"""

from __future__ import annotations

import enum
import threading
import time
import numpy as np
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..core.chromosome import Chromosome
from ..core.lattice import Point
from ..core.protein import Protein
from .config import GAConfig
from .generation import Generation


class EvolutionState(enum.Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Improvement:
    """A new best-so-far folding and the generation that produced it."""
    chromosome: Chromosome
    generation: int
    fitness: int

    @property
    def structure(self) -> Tuple[str, List[Point]]:
        """(acid kinds, coordinates) of the improved folding."""
        return self.chromosome.sequence, list(self.chromosome.walk)

    def to_dict(self) -> Dict:
        payload = self.chromosome.to_dict()
        payload["generation"] = self.generation
        return payload


Listener = Callable[[Improvement], None]


def _check_target(target_fitness) -> int:
    if isinstance(target_fitness, bool) or not isinstance(target_fitness, (int, np.integer)):
        raise ValueError(f"Target fitness must be an integer, got {target_fitness!r}")
    if target_fitness > 0:
        raise ValueError(f"Target fitness must be ≤ 0, got {target_fitness}")
    return int(target_fitness)


class EvolutionController:
    """
    Genetic search for a folding of `acid_string` with fitness ≤ target.

    Parameters
    ----------
    acid_string : str
        HP sequence over {h, H, p, P}, at least 3 long.
    target_fitness : int
        Non-positive goal; the search stops once the best fitness reaches it.
    config : GAConfig or dict, optional
        Population parameters (defaults to ``GAConfig()``).
    seed : int, optional
        Seed for a fresh ``np.random.default_rng``; ignored if `rng` is given.
    rng : np.random.Generator, optional
        Random source shared by every operator of this run.
    listener : callable, optional
        Called with an :class:`Improvement` whenever the best fitness improves.
    stop_event : threading.Event, optional
        Cancellation hook checked between generations.
    verbose : bool
        Print one progress line per generation.

    Notes
    -----
    The initial random generation (generation 0) is built here. Random
    foldings are regenerated until self-avoiding with no attempt cap, so
    very long sequences may take a long time to initialise.
    """

    def __init__(
        self,
        acid_string: str,
        target_fitness: int,
        config: GAConfig | Dict | None = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        listener: Optional[Listener] = None,
        stop_event: Optional[threading.Event] = None,
        verbose: bool = False,
    ):
        self.protein = Protein(acid_string)
        self.target_fitness = _check_target(target_fitness)
        if config is None or isinstance(config, dict):
            config = GAConfig.from_dict(config)
        self.config: GAConfig = config
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.listener = listener
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.verbose = verbose

        self.generation = Generation.random(self.protein, self.config.population_size, self.rng)
        self.best: Chromosome = self.generation.best
        self.generation_count = 0
        self.stagnant_generations = 0
        self.history: List[int] = [self.best.fitness]
        self.improvements: List[Improvement] = []

    # --- State ------------------------------------------------------------

    @property
    def converged(self) -> bool:
        return self.best.fitness <= self.target_fitness

    @property
    def cancelled(self) -> bool:
        return self.stop_event.is_set()

    @property
    def state(self) -> EvolutionState:
        if self.converged:
            return EvolutionState.CONVERGED
        if self.cancelled:
            return EvolutionState.CANCELLED
        return EvolutionState.RUNNING

    @property
    def double_point_mutation(self) -> bool:
        return self.stagnant_generations >= self.config.stagnation_threshold

    def cancel(self):
        """Ask the loop to stop before the next generation."""
        self.stop_event.set()

    # --- Main loop --------------------------------------------------------

    def step(self) -> Optional[Improvement]:
        """
        Breed one generation.

        Returns the Improvement it produced, or None if the best fitness did
        not change.
        """
        if self.converged:
            raise RuntimeError(
                f"Search already converged at generation {self.generation_count}"
            )

        self.generation = self.generation.produce_next(
            self.config, self.rng, self.double_point_mutation
        )
        self.generation_count += 1

        improvement = None
        candidate = self.generation.best
        if candidate.fitness < self.best.fitness:
            self.best = candidate
            self.stagnant_generations = 0
            improvement = Improvement(candidate, self.generation_count, candidate.fitness)
            self.improvements.append(improvement)
        else:
            self.stagnant_generations += 1

        self.history.append(self.best.fitness)
        if self.verbose:
            print(f"Generation {self.generation_count}\t"
                  f"{self.generation.report_fittest_and_volume()}")

        if improvement is not None and self.listener is not None:
            self.listener(improvement)
        return improvement

    def run(self, max_generations: Optional[int] = None) -> Chromosome:
        """
        Step until converged or cancelled (or `max_generations` more
        generations have been bred, if given). Returns the best chromosome.
        """
        bred = 0
        while self.state is EvolutionState.RUNNING:
            if max_generations is not None and bred >= max_generations:
                break
            self.step()
            bred += 1
        return self.best

    def solve(self, max_generations: Optional[int] = None) -> Tuple[int, List[Point], Dict]:
        """
        Run the search and return (best_fitness, best_walk, info_dict).
        """
        t_start = time.time()
        best = self.run(max_generations)
        elapsed = time.time() - t_start

        if self.verbose:
            print(f"  ✓ Best fitness: {best.fitness} (target {self.target_fitness})")
            print(f"  ✓ Generations: {self.generation_count}")
            print(f"  ✓ Time: {elapsed:.2f}s")

        return best.fitness, list(best.walk), {
            "history": list(self.history),
            "generations": self.generation_count,
            "converged": self.converged,
            "cancelled": self.cancelled and not self.converged,
            "time_seconds": elapsed,
            "improvements": [imp.to_dict() for imp in self.improvements],
        }
