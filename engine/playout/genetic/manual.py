"""
Population whose individuals and fitness values are managed by the caller.

Used when fitness can only be observed from outside, e.g. by playing a game
with an individual and scoring the outcome afterwards.
"""

from __future__ import annotations
from typing import Callable, Iterable, Optional
import logging

import numpy as np

from .operators import Crossover, GaussianMutator, Mutator, UniformCrossover, as_genes
from .population import BasePopulation

logger = logging.getLogger(__name__)


class ManualPopulation(BasePopulation):
    """
    Population with explicitly recorded fitness values.

    Fitness is looked up by gene content; genes nobody scored yet count as 0.
    """

    def __init__(
        self,
        crossover: Optional[Crossover] = None,
        mutator: Optional[Mutator] = None,
        individuals: Optional[Iterable[np.ndarray]] = None,
        mutation_chance: float = 0.1,
        rng: Optional[np.random.Generator] = None,
        max_selection_attempts: int = 1000,
    ):
        rng = rng if rng is not None else np.random.default_rng()
        super().__init__(
            crossover=crossover or UniformCrossover(rng=rng),
            mutator=mutator or GaussianMutator(rng=rng),
            individuals=individuals,
            mutation_chance=mutation_chance,
            rng=rng,
            max_selection_attempts=max_selection_attempts,
        )
        self._fitness: dict[bytes, float] = {}

    @staticmethod
    def _key(genes: np.ndarray) -> bytes:
        return as_genes(genes).tobytes()

    def add_genes(self, genes: np.ndarray, fitness: Optional[float] = None) -> None:
        genes = as_genes(genes)
        self.individuals.append(genes)
        if fitness is not None:
            self.set_fitness(genes, fitness)

    def remove_genes(self, genes: np.ndarray) -> bool:
        """Remove the first individual equal to `genes`. Returns False if absent."""
        genes = as_genes(genes)
        for i, candidate in enumerate(self.individuals):
            if np.array_equal(candidate, genes):
                del self.individuals[i]
                self._forget_if_absent(genes)
                return True
        return False

    def _replace(self, index: int, genes: np.ndarray) -> None:
        replaced = self.individuals[index]
        super()._replace(index, genes)
        self._forget_if_absent(replaced)

    def _forget_if_absent(self, genes: np.ndarray) -> None:
        """Drop the fitness record of genes no individual carries any more."""
        if not any(np.array_equal(g, genes) for g in self.individuals):
            self._fitness.pop(self._key(genes), None)

    def clear(self) -> None:
        self.individuals.clear()
        self._fitness.clear()

    def spawn(self, count: int, supplier: Callable[[], np.ndarray]) -> None:
        """Append `count` individuals produced by `supplier`."""
        for _ in range(count):
            self.add_genes(supplier())

    def set_fitness(self, genes: np.ndarray, fitness: float) -> None:
        self._fitness[self._key(genes)] = float(fitness)
        logger.debug("Recorded fitness %.2f for a %d-gene individual", fitness, len(genes))

    def get_fitness(self, genes: np.ndarray) -> float:
        return self._fitness.get(self._key(genes), 0.0)

    def fitness_values(self) -> list[float]:
        """Fitness of every individual, in population order."""
        return [self.get_fitness(g) for g in self.individuals]

    def load_from(self, stream) -> None:
        super().load_from(stream)
        self._fitness.clear()

    def load(self, path) -> None:
        super().load(path)
        self._fitness.clear()
