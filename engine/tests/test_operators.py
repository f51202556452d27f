"""Tests for genetic operators."""

import pytest
import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from playout.errors import InvalidIndividualError
from playout.genetic.operators import GaussianMutator, UniformCrossover, as_genes


class TestAsGenes:
    def test_converts_to_int64(self):
        genes = as_genes([1, 2, 3])
        assert genes.dtype == np.int64
        assert genes.tolist() == [1, 2, 3]

    def test_rejects_empty(self):
        with pytest.raises(InvalidIndividualError):
            as_genes([])


class TestUniformCrossover:
    def test_genes_come_from_parents(self):
        crossover = UniformCrossover(rng=np.random.default_rng(0))
        a = np.zeros(50, dtype=np.int64)
        b = np.ones(50, dtype=np.int64)
        child = crossover.crossover(a, b)
        assert child.shape == (50,)
        assert set(child.tolist()) <= {0, 1}

    def test_mixing_ratio_is_half_on_average(self):
        crossover = UniformCrossover(rng=np.random.default_rng(1))
        a = np.zeros(10, dtype=np.int64)
        b = np.ones(10, dtype=np.int64)

        from_b = sum(crossover.crossover(a, b).sum() for _ in range(10_000))
        assert from_b / 100_000 == pytest.approx(0.5, abs=0.01)

    def test_extreme_ratios(self):
        a = np.array([1, 2, 3])
        b = np.array([4, 5, 6])
        assert UniformCrossover(1.0).crossover(a, b).tolist() == [1, 2, 3]
        assert UniformCrossover(0.0).crossover(a, b).tolist() == [4, 5, 6]

    def test_truncates_to_shorter_parent(self):
        crossover = UniformCrossover(rng=np.random.default_rng(2))
        child = crossover.crossover(np.arange(5), np.arange(3))
        assert len(child) == 3

    def test_inputs_unchanged(self):
        a = np.array([1, 1, 1])
        b = np.array([2, 2, 2])
        UniformCrossover(rng=np.random.default_rng(3)).crossover(a, b)
        assert a.tolist() == [1, 1, 1]
        assert b.tolist() == [2, 2, 2]

    def test_invalid_ratio(self):
        with pytest.raises(ValueError):
            UniformCrossover(1.5)


class TestGaussianMutator:
    def test_zero_stddev_is_identity(self):
        genes = np.array([5, -3, 7])
        assert GaussianMutator(0.0).mutate(genes).tolist() == [5, -3, 7]

    def test_mutation_changes_genes(self):
        mutator = GaussianMutator(stddev=100.0, rng=np.random.default_rng(4))
        genes = np.zeros(100, dtype=np.int64)
        mutated = mutator.mutate(genes)
        assert mutated.dtype == np.int64
        assert np.count_nonzero(mutated) > 50
        assert np.count_nonzero(genes) == 0

    def test_negative_stddev(self):
        with pytest.raises(ValueError):
            GaussianMutator(-1.0)
