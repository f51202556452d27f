"""Tests for greedy evaluator-driven move selection."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from playout.core.tictactoe import TicTacToe
from playout.ai.evaluating import EvaluatingPlayer
from playout.ai.time_manager import SearchTimer, TimeConfig


class TableEvaluator:
    """Rates moves from a lookup table (0 for anything not listed)."""

    def __init__(self, ratings):
        self.ratings = ratings
        self.calls = []

    def rate(self, role, state_before, state_after, move, incremental_depth):
        self.calls.append((role, move, state_after.move_count()))
        return self.ratings.get(move, 0.0)


class TestEvaluatingPlayer:
    def test_plays_highest_rated_move(self):
        evaluator = TableEvaluator({5: 0.9, 2: 0.4})
        player = EvaluatingPlayer(evaluator)
        assert player.choose_move(TicTacToe.new_game()) == 5
        assert len(evaluator.calls) == 9

    def test_ties_keep_first_move(self):
        player = EvaluatingPlayer(TableEvaluator({3: 1.0, 7: 1.0}))
        assert player.choose_move(TicTacToe.new_game()) == 3

    def test_evaluator_sees_post_move_state(self):
        evaluator = TableEvaluator({})
        state = TicTacToe.new_game().spawn_child(0)
        EvaluatingPlayer(evaluator).choose_move(state)
        assert all(role == 1 and count == 2 for role, _, count in evaluator.calls)

    def test_soft_deadline_keeps_best_so_far(self):
        evaluator = TableEvaluator({8: 5.0})
        player = EvaluatingPlayer(evaluator, time_config=TimeConfig(soft_max_time=0.0))
        # Only the first move gets rated before the deadline is noticed
        assert player.choose_move(TicTacToe.new_game()) == 0
        assert len(evaluator.calls) == 1

    def test_without_evaluator(self):
        player = EvaluatingPlayer()
        with pytest.raises(NotImplementedError):
            player.select_move(TicTacToe.new_game(), SearchTimer())

    def test_no_moves(self):
        state = TicTacToe.from_string("""
            XOX
            XOO
            OXX
        """)
        with pytest.raises(ValueError):
            EvaluatingPlayer(TableEvaluator({})).select_move(state, SearchTimer())

    def test_rate_move_override(self):
        class PreferCenter(EvaluatingPlayer):
            def rate_move(self, state, move, timer):
                return 1.0 if move == 4 else 0.0

        assert PreferCenter().choose_move(TicTacToe.new_game()) == 4
