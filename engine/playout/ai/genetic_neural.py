"""
Move evaluation by a neural network whose weights are evolved genetically.

Each game is played with the currently fittest weight vector. When the game
ends, that genome is scored (faster wins score higher, anything else scores
zero) and the population advances one generation.

Genomes are integer vectors holding the network weights in fixed point:
gene = round(weight * weight_scale).
"""

from __future__ import annotations
from pathlib import Path
from typing import Callable, Optional, Sequence
import logging

import numpy as np

from ..core.game import GameState, Move, MoveChooser, Role
from ..errors import EvaluationError
from ..genetic.manual import ManualPopulation
from ..genetic.operators import GaussianMutator
from .evaluating import EvaluatingPlayer
from .network import Perceptron, PerceptronConfig
from .time_manager import SearchTimer, TimeConfig

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT_SCALE = 1000
WIN_FITNESS = 100


def weights_to_genes(weights: np.ndarray, scale: float = DEFAULT_WEIGHT_SCALE) -> np.ndarray:
    """Quantize float weights to an integer genome."""
    return np.rint(np.asarray(weights, dtype=np.float64) * scale).astype(np.int64)


def genes_to_weights(genes: np.ndarray, scale: float = DEFAULT_WEIGHT_SCALE) -> np.ndarray:
    """Inverse of weights_to_genes (up to quantization)."""
    return (np.asarray(genes, dtype=np.float64) / scale).astype(np.float32)


class GeneticNeuralPlayer(EvaluatingPlayer):
    """
    Greedy player rating moves with a genetically evolved perceptron.

    The first layer size must match the length of the encoder's output and
    the last layer size must match what the decoder expects.
    """

    def __init__(
        self,
        layer_sizes: Sequence[int],
        encoder: Callable[[GameState], np.ndarray],
        decoder: Callable[[np.ndarray], float],
        population_size: int = 20,
        population: Optional[ManualPopulation] = None,
        weight_scale: float = DEFAULT_WEIGHT_SCALE,
        activation: str = 'tanh',
        time_config: Optional[TimeConfig] = None,
        timeout_move_chooser: Optional[MoveChooser] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(
            evaluator=None,
            time_config=time_config,
            timeout_move_chooser=timeout_move_chooser,
            rng=rng,
        )
        self.encoder = encoder
        self.decoder = decoder
        self.weight_scale = weight_scale

        config = PerceptronConfig(layer_sizes=tuple(layer_sizes), activation=activation)
        self.network = Perceptron(config)

        if population is None:
            population = ManualPopulation(
                mutator=GaussianMutator(stddev=0.05 * weight_scale, rng=self.rng),
                rng=self.rng,
            )
            population.spawn(
                population_size,
                lambda: weights_to_genes(Perceptron.random_weights(config, self.rng), weight_scale),
            )
        self.population = population

        self.current_genes: Optional[np.ndarray] = None
        self.sample_network()

    def sample_network(self) -> None:
        """Load the fittest genome into the network."""
        genes = self.population.select_best_genes()
        self.network.set_weights(genes_to_weights(genes, self.weight_scale))
        self.current_genes = genes.copy()

    def load_population(self, path: Path) -> None:
        """
        Replace the genomes with a saved genotype list and load the fittest.

        The population keeps its own crossover, mutator and generator, so a
        resumed session evolves exactly like a fresh one.
        """
        self.population.load(path)
        self.sample_network()
        logger.info("Loaded %d genomes from %s", self.population.size(), path)

    def on_game_start(self, initial_state: GameState, role: Role) -> None:
        self.sample_network()

    def on_game_end(self, final_state: GameState, role: Role) -> None:
        if role in final_state.winners():
            fitness = WIN_FITNESS - final_state.move_count()
        else:
            fitness = 0

        self.population.set_fitness(self.current_genes, fitness)
        self.population.evolve()
        logger.info(
            "Game over after %d moves: fitness %d, population now at generation %d",
            final_state.move_count(), fitness, self.population.generation
        )

    def rate(
        self,
        role: Role,
        state_before: GameState,
        state_after: GameState,
        move: Move,
        incremental_depth: float,
    ) -> float:
        """Network rating of the position after `move`."""
        try:
            return float(self.decoder(self.network.compute(self.encoder(state_after))))
        except Exception as e:
            raise EvaluationError(f"An error occurred while rating move {move!r}") from e

    def rate_move(self, state: GameState, move: Move, timer: SearchTimer) -> float:
        try:
            state_after = state.spawn_child(move)
        except Exception as e:
            raise EvaluationError(f"Could not apply move {move!r} for rating") from e
        return self.rate(state.current_role(), state, state_after, move, self.incremental_depth)
