"""
generation.py
One generation of the folding population and the rules that breed the next.

A Generation is built once, sorted best-first (most negative fitness first),
and indexed: every distinct fitness maps to the inclusive index range it
occupies. The index and the sum of distinct fitnesses drive roulette-wheel
selection. Generations are never modified after construction; breeding
always returns a fresh instance.

Next-generation recipe:
  1. elites      — best `elite_size` chromosomes copied unchanged
  2. crossover   — roulette-selected pairs crossed both ways at one pivot
  3. random fill — fresh random foldings up to the population size
  4. mutation    — `mutation_number` successful bends inside the crossover
                   pool (two bends each when double-point mutation is on)
"""

from __future__ import annotations

import numpy as np
from collections import OrderedDict
from typing import Iterator, List, NamedTuple, Sequence, Tuple

from ..core.chromosome import Chromosome, crossover, mutate
from ..core.protein import Protein
from .config import GAConfig


class MatingPair(NamedTuple):
    """Two chromosomes selected to cross over."""
    left: Chromosome
    right: Chromosome


def build_fitness_index(
    chromosomes: Sequence[Chromosome],
) -> Tuple["OrderedDict[int, Tuple[int, int]]", int]:
    """
    Group a best-first sorted population into fitness runs.

    Returns
    -------
    index : OrderedDict
        fitness → (start, end), inclusive, in best-first order.
    sum_of_fitnesses : int
        Sum of the distinct fitness values, each counted once.
    """
    index: "OrderedDict[int, Tuple[int, int]]" = OrderedDict()
    sum_of_fitnesses = 0
    start = 0
    for i in range(1, len(chromosomes) + 1):
        if i == len(chromosomes) or chromosomes[i].fitness != chromosomes[start].fitness:
            fitness = chromosomes[start].fitness
            if fitness in index:
                raise ValueError("Chromosomes must be sorted by fitness before indexing")
            index[fitness] = (start, i - 1)
            sum_of_fitnesses += fitness
            start = i
    return index, sum_of_fitnesses


def _random_pivot(n: int, rng: np.random.Generator) -> int:
    return int(rng.integers(1, n - 1))


class Generation:
    """
    An immutable, sorted and indexed population of chromosomes.

    Parameters
    ----------
    protein : Protein
        The HP sequence every member folds.
    chromosomes : sequence of Chromosome
        Members in any order; they are sorted on construction.
    """

    def __init__(self, protein: Protein, chromosomes: Sequence[Chromosome]):
        if len(chromosomes) == 0:
            raise ValueError("A generation needs at least one chromosome")
        for c in chromosomes:
            if c.protein != protein:
                raise ValueError(
                    f"Chromosome folds {c.sequence}, expected {protein.sequence}"
                )
        self.protein = protein
        order = np.argsort([c.fitness for c in chromosomes], kind="stable")
        self._chromosomes: Tuple[Chromosome, ...] = tuple(chromosomes[int(i)] for i in order)
        self._fitness_index, self._sum_of_fitnesses = build_fitness_index(self._chromosomes)

    @classmethod
    def random(cls, protein: Protein, size: int, rng: np.random.Generator) -> "Generation":
        """A population of `size` independently random foldings."""
        return cls(protein, [Chromosome.random(protein, rng) for _ in range(size)])

    # --- Statistics -------------------------------------------------------

    @property
    def best(self) -> Chromosome:
        return self._chromosomes[0]

    @property
    def size(self) -> int:
        return len(self._chromosomes)

    @property
    def fitness_index(self) -> "OrderedDict[int, Tuple[int, int]]":
        return OrderedDict(self._fitness_index)

    @property
    def sum_of_fitnesses(self) -> int:
        return self._sum_of_fitnesses

    @property
    def fitnesses(self) -> List[int]:
        """Distinct fitness values, best first."""
        return list(self._fitness_index)

    def count_with_fitness(self, fitness: int) -> int:
        start, end = self._fitness_index.get(fitness, (0, -1))
        return end - start + 1

    def report_fittest_and_volume(self) -> str:
        """Progress line: ``<best fitness>: <count at best> / <population size>``."""
        best_fitness = self.best.fitness
        return f"{best_fitness}: {self.count_with_fitness(best_fitness)} / {self.size}"

    # --- Selection --------------------------------------------------------

    def spin_roulette_wheel(self, rng: np.random.Generator) -> Tuple[int, int]:
        """
        Pick two fitness values, each with probability |f| / |sum_of_fitnesses|.

        A uniform draw in [1, |sum|] is reduced by each distinct fitness in
        best-first order; the value that takes it to zero or below wins.
        """
        total = abs(self._sum_of_fitnesses)
        if total == 0:
            # Every member has fitness 0; that is the only value to pick.
            only = self.best.fitness
            return only, only
        return self._spin_once(rng, total), self._spin_once(rng, total)

    def _spin_once(self, rng: np.random.Generator, total: int) -> int:
        remaining = int(rng.integers(1, total + 1))
        for fitness in self._fitness_index:
            remaining += fitness
            if remaining <= 0:
                return fitness
        raise RuntimeError("Roulette wheel did not select a fitness")

    def chromosome_with_fitness(self, fitness: int, rng: np.random.Generator) -> Chromosome:
        """A uniformly random member with the given fitness."""
        if fitness not in self._fitness_index:
            raise KeyError(f"No chromosome with fitness {fitness}")
        start, end = self._fitness_index[fitness]
        return self._chromosomes[int(rng.integers(start, end + 1))]

    def select_mating_pair(self, rng: np.random.Generator) -> MatingPair:
        left_fitness, right_fitness = self.spin_roulette_wheel(rng)
        return MatingPair(
            self.chromosome_with_fitness(left_fitness, rng),
            self.chromosome_with_fitness(right_fitness, rng),
        )

    # --- Breeding ---------------------------------------------------------

    def produce_next(
        self,
        config: GAConfig,
        rng: np.random.Generator,
        apply_double_point_mutation: bool = False,
    ) -> "Generation":
        """
        Breed the next generation (elites, crossover pool, random fill,
        then mutations on the crossover pool) and return it sorted.
        """
        n = self.protein.n
        elite_size = min(config.elite_size, self.size)

        members: List[Chromosome] = list(self._chromosomes[:elite_size])
        members.extend(self._crossover_pool(config.crossover_size, rng))
        while len(members) < config.population_size:
            members.append(Chromosome.random(self.protein, rng))

        pool_start = elite_size
        pool_end = elite_size + config.crossover_size
        mutated = 0
        while mutated < config.mutation_number:
            target = int(rng.integers(pool_start, pool_end))
            result = mutate(members[target], _random_pivot(n, rng), rng)
            if result is not None and apply_double_point_mutation:
                result = mutate(result, _random_pivot(n, rng), rng)
            if result is not None:
                members[target] = result
                mutated += 1

        return Generation(self.protein, members)

    def _crossover_pool(self, size: int, rng: np.random.Generator) -> List[Chromosome]:
        """Offspring of roulette-selected pairs; both crosses must succeed."""
        n = self.protein.n
        offspring: List[Chromosome] = []
        while len(offspring) < size:
            pair = self.select_mating_pair(rng)
            pivot = _random_pivot(n, rng)
            new_left = crossover(pair.left, pair.right, pivot, rng)
            new_right = crossover(pair.right, pair.left, pivot, rng)
            if new_left is None or new_right is None:
                continue
            offspring.append(new_left)
            if len(offspring) < size:
                offspring.append(new_right)
        return offspring

    # --- Sequence protocol ------------------------------------------------

    def __len__(self) -> int:
        return len(self._chromosomes)

    def __getitem__(self, index: int) -> Chromosome:
        return self._chromosomes[index]

    def __iter__(self) -> Iterator[Chromosome]:
        return iter(self._chromosomes)

    def __str__(self) -> str:
        return "\n".join(str(c) for c in self._chromosomes)

    def __repr__(self) -> str:
        return (
            f"Generation('{self.protein.sequence}', size={self.size}, "
            f"best={self.best.fitness})"
        )
