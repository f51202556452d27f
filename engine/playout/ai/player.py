"""
Bounded-time move selection.

TimedPlayer runs a strategy on a worker thread with a cooperative soft
deadline, waits for it up to the hard deadline minus a safety buffer, and
otherwise answers with a fast fallback move chooser. A player always returns
a legal move when one exists: strategy failures are logged and resolved by
the fallback as well.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import Optional
import logging
import threading

import numpy as np

from ..core.game import GameState, Move, MoveChooser, RandomMoveChooser, Role
from .time_manager import SearchTimer, TimeConfig, TimeManager

logger = logging.getLogger(__name__)


class TimedPlayer(ABC):
    """
    Base class for players that think within a time budget.

    Subclasses implement select_move(), which must poll timer.is_running()
    regularly and return promptly once it turns False.
    """

    def __init__(
        self,
        time_config: Optional[TimeConfig] = None,
        timeout_move_chooser: Optional[MoveChooser] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.time_manager = TimeManager(config=time_config or TimeConfig())
        self.timeout_move_chooser = timeout_move_chooser or RandomMoveChooser(self.rng)

    @property
    def time_config(self) -> TimeConfig:
        return self.time_manager.config

    def set_soft_max_time(self, seconds: Optional[float]) -> None:
        self.time_config.soft_max_time = seconds

    def set_hard_max_time(self, seconds: Optional[float]) -> None:
        self.time_config.hard_max_time = seconds

    def set_timeout_move_chooser(self, chooser: MoveChooser, max_time: float) -> None:
        """
        Set the chooser used once the hard time limit has passed.

        Args:
            chooser: Must return very quickly
            max_time: Upper bound in seconds on how long the chooser needs;
                      reserved at the end of the hard budget
        """
        self.timeout_move_chooser = chooser
        self.time_config.hard_max_buffer = max_time

    def choose_move(self, state: GameState) -> Move:
        """Select a move for `state` within the configured time budget."""
        timer = self.time_manager.new_timer()
        # Copied here so an abandoned worker never reads the caller's state
        private_state = state.copy()
        future: Future = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self.select_move(private_state, timer))
            except BaseException as e:
                future.set_exception(e)

        # Daemon so an abandoned search does not block interpreter exit
        worker = threading.Thread(target=run, name=f"{type(self).__name__}-search", daemon=True)
        worker.start()

        try:
            move = future.result(timeout=self.time_config.hard_wait())
        except FutureTimeoutError:
            timer.cancel()
            logger.warning(
                "%s exceeded hard deadline after %.3fs, using fallback move",
                type(self).__name__, timer.elapsed()
            )
            return self._fallback(state, timer, failed=False)
        except Exception:
            timer.cancel()
            logger.exception("%s failed to select a move, using fallback move", type(self).__name__)
            return self._fallback(state, timer, failed=True)

        self.time_manager.update(timer.elapsed(), timer.iterations)
        logger.debug(
            "%s chose %r after %d iterations in %.3fs",
            type(self).__name__, move, timer.iterations, timer.elapsed()
        )
        return move

    def _fallback(self, state: GameState, timer: SearchTimer, failed: bool) -> Move:
        move = self.timeout_move_chooser.choose_move(state)
        self.time_manager.update(timer.elapsed(), timer.iterations, used_fallback=True, failed=failed)
        return move

    @abstractmethod
    def select_move(self, state: GameState, timer: SearchTimer) -> Move:
        """Search for a move. `state` is a private copy owned by the search."""

    def on_game_start(self, initial_state: GameState, role: Role) -> None:
        """Called once before the first move of a game."""

    def on_game_end(self, final_state: GameState, role: Role) -> None:
        """Called once after the game is over."""
