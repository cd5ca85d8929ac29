"""
hp_fold — HP Lattice Protein Folding by Genetic Search

Folds hydrophobic/polar sequences on the 2D square lattice with a
roulette-wheel genetic algorithm: geometry-preserving crossover and
mutation, elitism, random refill, and a stagnation-triggered switch to
double-point mutation.
"""

__version__ = "1.0.0"
__author__ = "HP Fold Research"

from .core.lattice import Point, SquareLattice
from .core.protein import Protein, compute_fitness
from .core.chromosome import Chromosome, crossover, mutate
from .algorithms.config import GAConfig
from .algorithms.generation import Generation, MatingPair
from .algorithms.evolution import EvolutionController, EvolutionState, Improvement
from .algorithms.search import Search

__all__ = [
    "Point",
    "SquareLattice",
    "Protein",
    "compute_fitness",
    "Chromosome",
    "crossover",
    "mutate",
    "GAConfig",
    "Generation",
    "MatingPair",
    "EvolutionController",
    "EvolutionState",
    "Improvement",
    "Search",
]
