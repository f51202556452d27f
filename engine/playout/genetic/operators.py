"""
Genetic operators on integer genotypes.

A genotype is a 1-D int64 numpy array. Operators never modify their inputs.
"""

from __future__ import annotations
from typing import Callable, Optional, Protocol, TypeVar

import numpy as np

from ..errors import InvalidIndividualError

T = TypeVar("T")

FitnessFunction = Callable[[np.ndarray], float]
Encoder = Callable[[T], np.ndarray]  # Domain value -> genes
Decoder = Callable[[np.ndarray], T]  # Genes -> domain value

GENE_DTYPE = np.int64


def as_genes(values) -> np.ndarray:
    """Convert a sequence of integers to a genotype, rejecting empty ones."""
    genes = np.asarray(values, dtype=GENE_DTYPE).reshape(-1)
    if genes.size == 0:
        raise InvalidIndividualError("Individual can't have a gene sequence length of 0")
    return genes


class Crossover(Protocol):
    def crossover(self, genes_a: np.ndarray, genes_b: np.ndarray) -> np.ndarray:
        ...


class Mutator(Protocol):
    def mutate(self, genes: np.ndarray) -> np.ndarray:
        ...


class UniformCrossover:
    """
    Picks every gene independently from either parent.

    Position i comes from parent A with probability mixing_ratio, otherwise
    from parent B. Parents of different lengths yield a child as long as the
    shorter one.
    """

    def __init__(self, mixing_ratio: float = 0.5, rng: Optional[np.random.Generator] = None):
        if not 0.0 <= mixing_ratio <= 1.0:
            raise ValueError(f"mixing_ratio must be in [0, 1], got {mixing_ratio}")
        self.mixing_ratio = mixing_ratio
        self.rng = rng if rng is not None else np.random.default_rng()

    def crossover(self, genes_a: np.ndarray, genes_b: np.ndarray) -> np.ndarray:
        genes_a = np.asarray(genes_a, dtype=GENE_DTYPE)
        genes_b = np.asarray(genes_b, dtype=GENE_DTYPE)
        length = min(len(genes_a), len(genes_b))

        keep_a = self.rng.random(length) < self.mixing_ratio
        return np.where(keep_a, genes_a[:length], genes_b[:length])


class GaussianMutator:
    """Adds rounded zero-mean Gaussian noise to every gene."""

    def __init__(self, stddev: float = 1.0, rng: Optional[np.random.Generator] = None):
        if stddev < 0:
            raise ValueError(f"stddev must be non-negative, got {stddev}")
        self.stddev = stddev
        self.rng = rng if rng is not None else np.random.default_rng()

    def mutate(self, genes: np.ndarray) -> np.ndarray:
        genes = np.asarray(genes, dtype=GENE_DTYPE)
        noise = np.rint(self.rng.normal(0.0, self.stddev, size=genes.shape)).astype(GENE_DTYPE)
        return genes + noise
