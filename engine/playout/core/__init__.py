"""Game contract and the reference k-in-a-row game."""

from .game import GameState, MoveChooser, MoveEvaluator, RandomMoveChooser
from .tictactoe import TicTacToe
