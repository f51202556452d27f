"""
Greedy move selection driven by a move evaluator.
"""

from __future__ import annotations
from typing import Optional
import logging

import numpy as np

from ..core.game import GameState, Move, MoveChooser, MoveEvaluator
from .player import TimedPlayer
from .time_manager import SearchTimer, TimeConfig

logger = logging.getLogger(__name__)


class EvaluatingPlayer(TimedPlayer):
    """
    Rates every legal move and plays the highest rated one.

    Ties keep the first move in legal-move order. If the soft deadline
    elapses mid-way, the best move rated so far is returned.
    """

    def __init__(
        self,
        evaluator: Optional[MoveEvaluator] = None,
        time_config: Optional[TimeConfig] = None,
        timeout_move_chooser: Optional[MoveChooser] = None,
        incremental_depth: float = 0.0,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(time_config, timeout_move_chooser, rng)
        self.evaluator = evaluator
        self.incremental_depth = incremental_depth

    def rate_move(self, state: GameState, move: Move, timer: SearchTimer) -> float:
        """Rate `move` in favour of the role to move in `state`."""
        if self.evaluator is None:
            raise NotImplementedError(f"{type(self).__name__} needs an evaluator or a rate_move override")
        return self.evaluator.rate(
            state.current_role(),
            state,
            state.spawn_child(move),
            move,
            self.incremental_depth,
        )

    def select_move(self, state: GameState, timer: SearchTimer) -> Move:
        moves = state.legal_moves()
        if not moves:
            raise ValueError("No legal moves")

        best_move = moves[0]
        best_rating = float('-inf')

        for move in moves:
            if not timer.is_running() and best_rating > float('-inf'):
                logger.debug("Soft deadline reached after rating %d/%d moves", timer.iterations, len(moves))
                break
            rating = self.rate_move(state, move, timer)
            timer.tick()
            if rating > best_rating:
                best_rating = rating
                best_move = move

        return best_move
