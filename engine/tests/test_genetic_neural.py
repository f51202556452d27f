"""Tests for the genetically evolved neural player."""

import pytest
import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from playout.errors import EvaluationError
from playout.core.tictactoe import TicTacToe, encode_for_last_mover
from playout.ai.genetic_neural import (
    GeneticNeuralPlayer, WIN_FITNESS, genes_to_weights, weights_to_genes
)
from playout.ai.network import Perceptron, PerceptronConfig
from playout.ai.time_manager import SearchTimer
from playout.genetic.manual import ManualPopulation

LAYERS = (9, 4, 1)


class RecordingPopulation(ManualPopulation):
    """Remembers every fitness value recorded against it."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.recorded = []

    def set_fitness(self, genes, fitness):
        self.recorded.append((np.array(genes, copy=True), fitness))
        super().set_fitness(genes, fitness)


def random_population(size=4, seed=0) -> RecordingPopulation:
    rng = np.random.default_rng(seed)
    config = PerceptronConfig(layer_sizes=LAYERS)
    population = RecordingPopulation(rng=rng)
    population.spawn(size, lambda: weights_to_genes(Perceptron.random_weights(config, rng)))
    return population


def make_player(population=None, encoder=encode_for_last_mover, seed=0) -> GeneticNeuralPlayer:
    return GeneticNeuralPlayer(
        layer_sizes=LAYERS,
        encoder=encoder,
        decoder=lambda output: float(output[0]),
        population=population,
        rng=np.random.default_rng(seed),
    )


def x_wins_bottom_row() -> TicTacToe:
    state = TicTacToe.new_game()
    for move in (0, 3, 1, 4, 2):
        state.perform(move)
    return state


class TestGeneEncoding:
    def test_fixed_point_round_trip(self):
        weights = np.array([0.1234, -0.9876, 0.0], dtype=np.float32)
        genes = weights_to_genes(weights)
        assert genes.tolist() == [123, -988, 0]
        np.testing.assert_allclose(genes_to_weights(genes), weights, atol=5e-4)


class TestGeneticNeuralPlayer:
    def test_default_population(self):
        player = make_player()
        assert player.population.size() == 20
        assert len(player.current_genes) == player.network.num_parameters()

    def test_best_genome_is_loaded(self):
        population = random_population()
        population.set_fitness(population.get_genes(2), 50)
        player = make_player(population)

        np.testing.assert_array_equal(player.current_genes, population.get_genes(2))
        np.testing.assert_allclose(
            player.network.get_weights(), genes_to_weights(population.get_genes(2)), atol=1e-6
        )

    def test_win_fitness_recorded_against_played_genome(self):
        population = random_population()
        player = make_player(population)
        player.on_game_start(TicTacToe.new_game(), 0)
        played = player.current_genes.copy()

        player.on_game_end(x_wins_bottom_row(), 0)

        genes, fitness = population.recorded[-1]
        np.testing.assert_array_equal(genes, played)
        assert fitness == WIN_FITNESS - 5
        assert population.generation == 1

    def test_loss_scores_zero(self):
        population = random_population()
        player = make_player(population)
        player.on_game_start(TicTacToe.new_game(), 1)
        player.on_game_end(x_wins_bottom_row(), 1)

        assert population.recorded[-1][1] == 0
        assert population.generation == 1

    def test_population_size_constant_over_games(self):
        population = random_population(size=5)
        player = make_player(population)
        for role in (0, 1, 0):
            player.on_game_start(TicTacToe.new_game(), role)
            player.on_game_end(x_wins_bottom_row(), role)
        assert population.size() == 5
        assert population.generation == 3

    def test_choose_move_is_legal(self):
        player = make_player(random_population())
        state = TicTacToe.new_game().spawn_child(4)
        assert player.choose_move(state) in state.legal_moves()
        assert player.time_manager.fallback_count == 0

    def test_rating_failure_propagates(self):
        def broken_encoder(state):
            raise RuntimeError("cannot encode")

        player = make_player(random_population(), encoder=broken_encoder)
        state = TicTacToe.new_game()
        with pytest.raises(EvaluationError):
            player.rate_move(state, 0, SearchTimer())
        with pytest.raises(EvaluationError):
            player.select_move(state, SearchTimer())

    def test_rating_failure_in_harness_uses_fallback(self):
        def wrong_size_encoder(state):
            return np.zeros(3)

        player = make_player(random_population(), encoder=wrong_size_encoder)
        state = TicTacToe.new_game()
        assert player.choose_move(state) in state.legal_moves()
        assert player.time_manager.failure_count == 1

    def test_load_population_keeps_mutator(self, tmp_path):
        saved = random_population(size=3, seed=9)
        path = tmp_path / "genotype.bin"
        saved.save(path)

        player = make_player()
        stddev = player.population.mutator.stddev
        player.load_population(path)

        assert player.population.size() == 3
        assert player.population.mutator.stddev == stddev == 50.0
        np.testing.assert_array_equal(player.current_genes, saved.get_genes(0))
