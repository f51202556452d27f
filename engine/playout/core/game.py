"""
Game contract consumed by the search engines.

Concrete games live outside this package; anything that satisfies the
GameState protocol below can be searched. Roles and moves are opaque
hashable values.
"""

from __future__ import annotations
from typing import Hashable, Optional, Protocol, Sequence, runtime_checkable
import numpy as np

# Opaque identifiers supplied by the game.
Move = Hashable
Role = Hashable


@runtime_checkable
class GameState(Protocol):
    """Capabilities a game state must offer to be searched."""

    def current_role(self) -> Role:
        """Role that moves next."""
        ...

    def legal_moves(self) -> Sequence[Move]:
        """Ordered legal moves. Non-empty unless the game is over."""
        ...

    def copy(self) -> GameState:
        """Deep, independent copy."""
        ...

    def spawn_child(self, move: Move) -> GameState:
        """Return the state after `move`. Never mutates the receiver."""
        ...

    def perform(self, move: Move) -> None:
        """Apply `move` in place. Only used on private simulation copies."""
        ...

    def is_game_over(self) -> bool:
        ...

    def winners(self) -> set[Role]:
        """Roles that have won. Empty for ongoing games and draws."""
        ...

    def move_count(self) -> int:
        """Number of moves played so far."""
        ...


class MoveChooser(Protocol):
    """Picks a move for a state. Used as rollout policy and as timeout fallback."""

    def choose_move(self, state: GameState) -> Move:
        ...


class MoveEvaluator(Protocol):
    """Rates a move in favour of `role`. Higher is better."""

    def rate(
        self,
        role: Role,
        state_before: GameState,
        state_after: GameState,
        move: Move,
        incremental_depth: float,
    ) -> float:
        ...


class RandomMoveChooser:
    """Uniform-random legal move. Fast enough to be a hard-deadline fallback."""

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def choose_move(self, state: GameState) -> Move:
        moves = state.legal_moves()
        if not moves:
            raise ValueError("No legal moves")
        return moves[int(self.rng.integers(len(moves)))]
