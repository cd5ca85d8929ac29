"""
config.py
Population constants for the folding genetic algorithm.

The defaults reproduce the historical setup: 500 chromosomes, of which 5 %
are elites, 20 % are refilled at random every generation, and the rest come
from crossover; a quarter of the population size is the number of mutations
applied to the crossover pool per generation.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Dict, Optional


@dataclass(frozen=True)
class GAConfig:
    """Genetic algorithm parameters."""
    population_size: int = 500
    elite_fraction: float = 0.05
    fill_fraction: float = 0.20
    mutation_fraction: float = 0.25
    stagnation_threshold: int = 150

    def __post_init__(self):
        if self.population_size < 1:
            raise ValueError(f"population_size must be ≥ 1, got {self.population_size}")
        for name in ("elite_fraction", "fill_fraction", "mutation_fraction"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must lie in [0, 1], got {value}")
        if self.crossover_size < 0:
            raise ValueError(
                f"elite_fraction + fill_fraction leave no room in a population of "
                f"{self.population_size}"
            )
        if self.mutation_number > 0 and self.crossover_size == 0:
            raise ValueError("Mutations requested but the crossover pool is empty")
        if self.stagnation_threshold < 1:
            raise ValueError(
                f"stagnation_threshold must be ≥ 1, got {self.stagnation_threshold}"
            )

    @property
    def elite_size(self) -> int:
        return int(round(self.population_size * self.elite_fraction))

    @property
    def fill_size(self) -> int:
        return int(round(self.population_size * self.fill_fraction))

    @property
    def crossover_size(self) -> int:
        return self.population_size - self.elite_size - self.fill_size

    @property
    def mutation_number(self) -> int:
        return int(round(self.population_size * self.mutation_fraction))

    @classmethod
    def from_dict(cls, params: Optional[Dict]) -> "GAConfig":
        """
        Build a config from a params dict; missing keys keep their defaults.

        Keys: population_size, elite_fraction, fill_fraction,
        mutation_fraction, stagnation_threshold.
        """
        params = dict(params or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise ValueError(f"Unknown GA parameter(s) {unknown}. Choose from {sorted(known)}")
        return cls(**params)
