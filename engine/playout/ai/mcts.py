"""
Monte Carlo Tree Search.

Needs no domain knowledge: positions are judged purely by random (or
policy-driven) playouts. Nodes live in an arena (SearchTree.nodes) and refer
to their parent and children by index.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional
import logging
import math

import numpy as np

from ..core.game import GameState, Move, MoveChooser, RandomMoveChooser, Role
from .player import TimedPlayer
from .time_manager import SearchTimer, TimeConfig

logger = logging.getLogger(__name__)

EPSILON = 1e-8  # Keeps UCT finite for unvisited nodes
ROOT = 0


@dataclass
class MCTSConfig:
    """Configuration for MCTS."""
    exploration_weight: float = 2.0  # C in the UCT exploration term
    max_simulation_depth: int = 36  # Playout plies before calling it undetermined
    max_iterations: Optional[int] = None  # Optional hard cap, mostly for tests


@dataclass
class Node:
    """A node in the search tree."""
    state: GameState
    parent: Optional[int] = None
    move: Optional[Move] = None

    # Indices of explored children (None until expanded)
    children: Optional[list[int]] = None

    # Statistics
    wins: int = 0
    simulations: int = 0

    @property
    def is_expanded(self) -> bool:
        return self.children is not None

    @property
    def is_leaf(self) -> bool:
        """True if the node has no explored children."""
        return not self.children

    @property
    def win_rate(self) -> float:
        return self.wins / (self.simulations + EPSILON) + EPSILON

    def label(self) -> str:
        return f"{self.wins}/{self.simulations}"


class SearchTree:
    """
    Tree of simulated outcomes for one decision.

    Owned by a single search; never shared between threads.
    """

    def __init__(
        self,
        role: Role,
        state: GameState,
        config: Optional[MCTSConfig] = None,
        move_chooser: Optional[MoveChooser] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.role = role
        self.config = config or MCTSConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.move_chooser = move_chooser or RandomMoveChooser(self.rng)
        self.nodes: list[Node] = [Node(state=state)]

    @property
    def root(self) -> Node:
        return self.nodes[ROOT]

    def children(self, index: int = ROOT) -> list[Node]:
        """Explored children of a node, in legal-move order."""
        return [self.nodes[i] for i in self.nodes[index].children or []]

    def total_node_count(self) -> int:
        return len(self.nodes)

    def expand(self, index: int) -> None:
        """Create one child per legal move. Expanding twice is a no-op."""
        node = self.nodes[index]
        if node.is_expanded:
            return

        node.children = []
        for move in node.state.legal_moves():
            node.children.append(len(self.nodes))
            self.nodes.append(Node(
                state=node.state.spawn_child(move),
                parent=index,
                move=move,
            ))

    def uct(self, index: int) -> float:
        """
        Upper confidence bound of a non-root node.

        UCT = win_rate + eps * U + C * sqrt(ln(parent_sims + 1) / (sims + eps))

        U is uniform noise that only breaks exact ties.
        """
        node = self.nodes[index]
        parent = self.nodes[node.parent]
        exploration = math.sqrt(math.log(parent.simulations + 1) / (node.simulations + EPSILON))
        return (
            node.win_rate
            + self.rng.random() * EPSILON
            + self.config.exploration_weight * exploration
        )

    def select(self) -> int:
        """Descend from the root along maximal UCT to a node without explored children."""
        index = ROOT
        while not self.nodes[index].is_leaf:
            index = max(self.nodes[index].children, key=self.uct)
        return index

    def simulate(self, index: int) -> int:
        """
        Play out a private copy of the node's state.

        Returns:
            1 if our role won, -1 if another role won, 0 if undetermined
            (draw or depth limit reached).
        """
        simulation = self.nodes[index].state.copy()

        depth = 0
        while not simulation.is_game_over() and depth < self.config.max_simulation_depth:
            simulation.perform(self.move_chooser.choose_move(simulation))
            depth += 1

        winners = simulation.winners()
        if self.role in winners:
            return 1
        elif winners:
            return -1
        return 0

    def backpropagate(self, index: Optional[int], wins_delta: int) -> None:
        """Count one simulation with `wins_delta` wins on the node and all its ancestors."""
        while index is not None:
            node = self.nodes[index]
            node.simulations += 1
            node.wins += wins_delta
            index = node.parent

    def perform_iteration(self) -> None:
        """One pass of select, expand, simulate and backpropagate."""
        self.expand(ROOT)

        leaf = self.select()
        self.expand(leaf)

        result = self.simulate(leaf)

        # Undetermined playouts carry no information and are dropped
        if result > 0:
            self.backpropagate(leaf, 1)
        elif result < 0:
            self.backpropagate(leaf, 0)

    def most_explored_child(self, index: int = ROOT) -> Node:
        """The explored child with the most simulations (first one on ties)."""
        children = self.children(index)
        if not children:
            raise ValueError("No legal moves")
        return max(children, key=lambda c: c.simulations)

    def analyze(self, top_k: int = 5) -> list[dict]:
        """
        Analyze search results.

        Returns list of top root moves with statistics.
        """
        moves = []
        for child in self.children(ROOT):
            moves.append({
                'move': child.move,
                'wins': child.wins,
                'simulations': child.simulations,
                'win_rate': child.wins / child.simulations if child.simulations else 0.0,
            })

        moves.sort(key=lambda m: m['simulations'], reverse=True)
        return moves[:top_k]

    def __repr__(self) -> str:
        def render(index: int) -> str:
            node = self.nodes[index]
            if not node.is_expanded:
                return node.label()
            return node.label() + " -> [" + ", ".join(render(i) for i in node.children) + "]"
        return render(ROOT)


class MCTS(TimedPlayer):
    """
    Timed Monte Carlo Tree Search player.

    Iterates until the soft deadline elapses (or the player cancels the
    search), then plays the most explored root move.
    """

    def __init__(
        self,
        config: Optional[MCTSConfig] = None,
        time_config: Optional[TimeConfig] = None,
        move_chooser: Optional[MoveChooser] = None,
        timeout_move_chooser: Optional[MoveChooser] = None,
        observer: Optional[Callable[[SearchTree], None]] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(
            time_config=time_config or TimeConfig(soft_max_time=1.0),
            timeout_move_chooser=timeout_move_chooser,
            rng=rng,
        )
        self.config = config or MCTSConfig()
        self.move_chooser = move_chooser
        self.observer = observer

    def set_observer(self, observer: Optional[Callable[[SearchTree], None]]) -> None:
        """Attach a sink that receives every finished search tree."""
        self.observer = observer

    def search(self, state: GameState, timer: Optional[SearchTimer] = None) -> SearchTree:
        """
        Run MCTS from given state.

        Returns the search tree with simulation statistics.
        """
        timer = timer or self.time_manager.new_timer()
        tree = SearchTree(
            role=state.current_role(),
            state=state,
            config=self.config,
            move_chooser=self.move_chooser,
            rng=self.rng,
        )
        tree.expand(ROOT)

        max_iterations = self.config.max_iterations
        while timer.is_running() and (max_iterations is None or timer.iterations < max_iterations):
            tree.perform_iteration()
            timer.tick()

        logger.debug(
            "MCTS ran %d iterations in %.3fs, tree has %d nodes",
            timer.iterations, timer.elapsed(), tree.total_node_count()
        )
        return tree

    def select_move(self, state: GameState, timer: SearchTimer) -> Move:
        tree = self.search(state, timer)

        if self.observer is not None:
            self.observer(tree)

        return tree.most_explored_child().move
