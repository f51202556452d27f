"""AI components: timed players, MCTS, and the genetic neural evaluator."""

from .time_manager import TimeConfig, TimeManager, SearchTimer
from .player import TimedPlayer
from .mcts import MCTS, MCTSConfig, Node, SearchTree
from .evaluating import EvaluatingPlayer
from .network import Perceptron, PerceptronConfig
from .genetic_neural import GeneticNeuralPlayer
