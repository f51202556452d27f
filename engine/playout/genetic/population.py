"""
Fixed-size populations of integer genotypes.

Evolution step: fitness-proportionate selection of two distinct parents,
two children from the same parent pair replacing the parents in place,
then per-individual mutation with probability mutation_chance.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Iterator, Optional, TypeVar
import logging

import numpy as np

from ..errors import ConfigurationError, EmptyPopulationError
from .operators import (
    Crossover, Decoder, Encoder, FitnessFunction, GaussianMutator, Mutator,
    UniformCrossover, as_genes,
)
from .persistence import load_genotype, read_genotype, save_genotype, write_genotype

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BasePopulation(ABC):
    """
    Shared machinery for populations; subclasses decide where fitness comes from.
    """

    def __init__(
        self,
        crossover: Crossover,
        mutator: Mutator,
        individuals: Optional[Iterable[np.ndarray]] = None,
        mutation_chance: float = 0.1,
        rng: Optional[np.random.Generator] = None,
        max_selection_attempts: int = 1000,
    ):
        self.crossover = crossover
        self.mutator = mutator
        self.individuals: list[np.ndarray] = [as_genes(g) for g in individuals or []]
        self.mutation_chance = mutation_chance
        self.rng = rng if rng is not None else np.random.default_rng()
        self.max_selection_attempts = max_selection_attempts
        self.generation = 0

    @abstractmethod
    def get_fitness(self, genes: np.ndarray) -> float:
        """Fitness of a genotype (higher is better)."""

    def set_mutation_chance(self, chance: float) -> None:
        self.mutation_chance = chance

    def size(self) -> int:
        """The amount of individuals."""
        return len(self.individuals)

    def __len__(self) -> int:
        return len(self.individuals)

    def get_genes(self, index: int) -> np.ndarray:
        return self.individuals[index]

    def get_all_genes(self) -> list[np.ndarray]:
        return self.individuals

    def set_all_genes(self, individuals: Iterable[np.ndarray]) -> None:
        self.individuals = [as_genes(g) for g in individuals]

    def iter_genes(self) -> Iterator[np.ndarray]:
        return iter(self.individuals)

    def iter_phenes(self, decoder: Decoder[T]) -> Iterator[T]:
        return (decoder(genes) for genes in self.individuals)

    def get_individual_phenes(self, decoder: Decoder[T], index: int) -> T:
        return decoder(self.individuals[index])

    # Selection

    def _selection_weights(self) -> np.ndarray:
        if not self.individuals:
            raise EmptyPopulationError("Can't select from an empty population")

        weights = np.array([self.get_fitness(g) for g in self.individuals], dtype=np.float64)
        if np.any(weights < 0) or not np.all(np.isfinite(weights)):
            raise ConfigurationError(
                "Fitness-proportionate selection needs finite, non-negative fitness values"
            )
        return weights

    def _draw(self, weights: np.ndarray) -> int:
        total = weights.sum()
        if total == 0:
            return int(self.rng.integers(len(weights)))
        return int(self.rng.choice(len(weights), p=weights / total))

    def select(self) -> int:
        """
        Select an individual stochastically, weighted by fitness.

        Returns:
            The index of the individual
        """
        return self._draw(self._selection_weights())

    def _select_parents(self) -> tuple[int, int]:
        if len(self.individuals) < 2:
            raise ConfigurationError(
                f"Evolution needs at least two individuals, population has {len(self.individuals)}"
            )

        weights = self._selection_weights()
        parent_a = self._draw(weights)

        # With fewer than two candidates that can be drawn, a distinct second
        # parent only comes from the rest of the population
        if np.count_nonzero(weights) == 1:
            others = [i for i in range(len(weights)) if i != parent_a]
            return parent_a, others[int(self.rng.integers(len(others)))]

        for _ in range(self.max_selection_attempts):
            parent_b = self._draw(weights)
            if parent_b != parent_a:
                return parent_a, parent_b

        raise ConfigurationError(
            f"No second parent distinct from #{parent_a} after {self.max_selection_attempts} draws"
        )

    # Evolution

    def _replace(self, index: int, genes: np.ndarray) -> None:
        self.individuals[index] = genes

    def mutate(self) -> None:
        """Mutate every individual with probability mutation_chance."""
        for i, genes in enumerate(self.individuals):
            if self.rng.random() < self.mutation_chance:
                self._replace(i, as_genes(self.mutator.mutate(genes)))

    def evolve(self, generations: int = 1) -> None:
        """Advance the given number of generations."""
        for _ in range(generations):
            self._evolve_once()

    def _evolve_once(self) -> None:
        parent_a, parent_b = self._select_parents()
        genes_a = self.individuals[parent_a]
        genes_b = self.individuals[parent_b]

        child_a = as_genes(self.crossover.crossover(genes_a, genes_b))
        child_b = as_genes(self.crossover.crossover(genes_a, genes_b))

        self._replace(parent_a, child_a)
        self._replace(parent_b, child_b)

        self.mutate()
        self.generation += 1
        logger.debug(
            "Generation %d: crossed #%d and #%d", self.generation, parent_a, parent_b
        )

    # Queries

    def get_fittest_genes(self) -> np.ndarray:
        """The genotype with the strictly greatest fitness (first one on ties)."""
        if not self.individuals:
            raise EmptyPopulationError("Can't fetch the fittest genes of an empty population")

        best_genes = self.individuals[0]
        max_fitness = float('-inf')
        for genes in self.individuals:
            fitness = self.get_fitness(genes)
            if fitness > max_fitness:
                max_fitness = fitness
                best_genes = genes
        return best_genes

    def select_best_genes(self) -> np.ndarray:
        return self.get_fittest_genes()

    def get_fittest_phenes(self, decoder: Decoder[T]) -> T:
        return decoder(self.get_fittest_genes())

    # Persistence

    def save_to(self, stream: BinaryIO) -> None:
        write_genotype(stream, self.individuals)

    def load_from(self, stream: BinaryIO) -> None:
        self.individuals = read_genotype(stream)

    def save(self, path: Path) -> None:
        save_genotype(path, self.individuals)

    def load(self, path: Path) -> None:
        self.individuals = load_genotype(path)

    def __repr__(self) -> str:
        lines = [f"{type(self).__name__} (generation {self.generation}):"]
        lines.extend(np.array2string(genes, separator=', ') for genes in self.individuals)
        return "\n".join(lines)


class Population(BasePopulation):
    """Population whose fitness is computed by a function of the genes."""

    def __init__(
        self,
        crossover: Crossover,
        fitness_func: FitnessFunction,
        mutator: Mutator,
        genotype: Iterable[np.ndarray],
        mutation_chance: float = 0.1,
        rng: Optional[np.random.Generator] = None,
        max_selection_attempts: int = 1000,
    ):
        super().__init__(
            crossover=crossover,
            mutator=mutator,
            individuals=genotype,
            mutation_chance=mutation_chance,
            rng=rng,
            max_selection_attempts=max_selection_attempts,
        )
        self.fitness_func = fitness_func

    def get_fitness(self, genes: np.ndarray) -> float:
        if self.fitness_func is None:
            raise ConfigurationError("No fitness function provided")
        return float(self.fitness_func(genes))

    @staticmethod
    def builder(rng: Optional[np.random.Generator] = None) -> PopulationBuilder:
        return PopulationBuilder(rng)


class PopulationBuilder:
    """
    Step-by-step construction of a Population.

    Crossover and mutator default to UniformCrossover and GaussianMutator
    sharing the builder's random generator; the fitness function is required.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self._rng = rng if rng is not None else np.random.default_rng()
        self._crossover: Optional[Crossover] = UniformCrossover(rng=self._rng)
        self._mutator: Optional[Mutator] = GaussianMutator(rng=self._rng)
        self._fitness_func: Optional[FitnessFunction] = None
        self._mutation_chance = 0.1
        self._max_selection_attempts = 1000
        # Keyed by gene bytes: set semantics, insertion order kept
        self._genotype: dict[bytes, np.ndarray] = {}

    def crossover(self, crossover: Optional[Crossover]) -> PopulationBuilder:
        self._crossover = crossover
        return self

    def mutator(self, mutator: Optional[Mutator]) -> PopulationBuilder:
        self._mutator = mutator
        return self

    def fitness_func(
        self,
        fitness_func: Optional[FitnessFunction] = None,
        decoder: Optional[Decoder[T]] = None,
        decoded: Optional[Callable[[T], float]] = None,
    ) -> PopulationBuilder:
        """Set the fitness function, either on genes or on decoded phenes."""
        if decoder is not None and decoded is not None:
            self._fitness_func = lambda genes: decoded(decoder(genes))
        else:
            self._fitness_func = fitness_func
        return self

    def mutation_chance(self, chance: float) -> PopulationBuilder:
        self._mutation_chance = chance
        return self

    def max_selection_attempts(self, attempts: int) -> PopulationBuilder:
        self._max_selection_attempts = attempts
        return self

    def spawn_individuals(
        self,
        encoder: Encoder[T],
        supplier: Callable[[], T],
        count: int,
    ) -> PopulationBuilder:
        """Encode `count` supplied values; duplicates collapse into one individual."""
        for _ in range(count):
            self._add(as_genes(encoder(supplier())))
        return self

    def genotype(self, matrix: Iterable[Iterable[int]]) -> PopulationBuilder:
        """Add explicit genotypes."""
        for row in matrix:
            self._add(as_genes(row))
        return self

    def _add(self, genes: np.ndarray) -> None:
        self._genotype.setdefault(genes.tobytes(), genes)

    def build(self) -> Population:
        if self._crossover is None:
            raise ConfigurationError("Missing crossover function")
        elif self._fitness_func is None:
            raise ConfigurationError("Missing fitness function")
        elif self._mutator is None:
            raise ConfigurationError("Missing mutator function")

        return Population(
            crossover=self._crossover,
            fitness_func=self._fitness_func,
            mutator=self._mutator,
            genotype=list(self._genotype.values()),
            mutation_chance=self._mutation_chance,
            rng=self._rng,
            max_selection_attempts=self._max_selection_attempts,
        )
