"""
Playing full games between timed players.

Drives the player lifecycle (on_game_start, choose_move per turn,
on_game_end) and records what happened, so that learning players such as
GeneticNeuralPlayer evolve once per completed game.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Hashable, Mapping, Optional
import logging
import time

from ..ai.player import TimedPlayer
from ..core.game import GameState
from .logger import SessionLogger

logger = logging.getLogger(__name__)


@dataclass
class GameRecord:
    """Record of a finished (or move-capped) game."""
    moves: list = field(default_factory=list)
    roles: list = field(default_factory=list)  # Role that played each move
    decision_times: list[float] = field(default_factory=list)  # Seconds per move
    winners: set = field(default_factory=set)
    finished: bool = False  # False if the move cap stopped the game

    @property
    def move_count(self) -> int:
        return len(self.moves)

    def result(self, role: Hashable) -> float:
        """Result from role's perspective: 1.0 = win, 0.0 = loss, 0.5 = draw/unfinished."""
        if not self.winners:
            return 0.5
        return 1.0 if role in self.winners else 0.0


def play_match(
    players: Mapping[Hashable, TimedPlayer],
    initial_state: GameState,
    max_moves: Optional[int] = None,
    verbose: bool = False,
) -> tuple[GameRecord, GameState]:
    """
    Play one game.

    Args:
        players: Player for every role. Use distinct player objects per role,
                 since lifecycle hooks are called once per role.
        initial_state: Starting position (not modified)
        max_moves: Optional safety limit on the number of moves
        verbose: Print the board after every move

    Returns (record, final_state).
    """
    state = initial_state.copy()
    record = GameRecord()

    for role, player in players.items():
        player.on_game_start(state, role)

    while not state.is_game_over():
        if max_moves is not None and record.move_count >= max_moves:
            logger.warning("Stopping game at move cap %d", max_moves)
            break

        role = state.current_role()
        if role not in players:
            raise KeyError(f"No player for role {role!r}")

        start = time.monotonic()
        move = players[role].choose_move(state)
        record.decision_times.append(time.monotonic() - start)
        record.moves.append(move)
        record.roles.append(role)

        state = state.spawn_child(move)

        if verbose:
            print(f"Move {record.move_count}: {role!r} plays {move!r}")
            print(state)

    record.finished = state.is_game_over()
    record.winners = set(state.winners())

    for role, player in players.items():
        player.on_game_end(state, role)

    logger.info(
        "Game finished after %d moves, winners: %s",
        record.move_count, sorted(map(str, record.winners)) or "none"
    )
    return record, state


class MatchRunner:
    """
    Plays a series of games between the same players.
    """

    def __init__(
        self,
        players: Mapping[Hashable, TimedPlayer],
        new_state: Callable[[], GameState],
        session_logger: Optional[SessionLogger] = None,
        max_moves: Optional[int] = None,
    ):
        self.players = dict(players)
        self.new_state = new_state
        self.session_logger = session_logger
        self.max_moves = max_moves

    def play_game(self, verbose: bool = False) -> GameRecord:
        record, _ = play_match(self.players, self.new_state(), self.max_moves, verbose)

        if self.session_logger is not None:
            self.session_logger.log_game(record, self._population_stats())

        return record

    def generate_games(self, num_games: int, verbose: bool = False) -> list[GameRecord]:
        """Play `num_games` games in sequence."""
        games = []
        for i in range(num_games):
            if verbose:
                print(f"\n=== Game {i + 1}/{num_games} ===")
            games.append(self.play_game(verbose=verbose))
        return games

    def _population_stats(self) -> dict:
        """Generation and best fitness of every player that owns a population."""
        stats = {}
        for role, player in self.players.items():
            population = getattr(player, 'population', None)
            if population is None:
                continue
            fitness = population.fitness_values() if hasattr(population, 'fitness_values') else []
            stats[str(role)] = {
                'generation': population.generation,
                'best_fitness': max(fitness) if fitness else 0.0,
            }
        return stats
