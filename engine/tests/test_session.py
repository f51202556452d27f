"""Tests for match play and the session logger."""

import json
import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from playout.core.tictactoe import TicTacToe, encode_for_last_mover
from playout.ai.evaluating import EvaluatingPlayer
from playout.ai.genetic_neural import GeneticNeuralPlayer
from playout.session import GameRecord, MatchRunner, SessionLogger, play_match


class LowestSquarePlayer(EvaluatingPlayer):
    """Always claims the lowest free square and records lifecycle calls."""

    def __init__(self):
        super().__init__()
        self.events = []

    def rate_move(self, state, move, timer):
        return -float(move)

    def on_game_start(self, initial_state, role):
        self.events.append(('start', role, initial_state.move_count()))

    def on_game_end(self, final_state, role):
        self.events.append(('end', role, final_state.move_count()))


class TestGameRecord:
    def test_result(self):
        record = GameRecord(winners={0})
        assert record.result(0) == 1.0
        assert record.result(1) == 0.0
        assert GameRecord().result(0) == 0.5


class TestPlayMatch:
    def test_full_game(self):
        x, o = LowestSquarePlayer(), LowestSquarePlayer()
        initial = TicTacToe.new_game()
        record, final = play_match({0: x, 1: o}, initial)

        # X takes 0, 2, 4, 6 and completes the anti-diagonal
        assert record.moves == [0, 1, 2, 3, 4, 5, 6]
        assert record.roles == [0, 1, 0, 1, 0, 1, 0]
        assert record.finished
        assert record.winners == {0}
        assert final.winners() == {0}
        assert len(record.decision_times) == 7
        assert initial.move_count() == 0

    def test_lifecycle_hooks(self):
        x, o = LowestSquarePlayer(), LowestSquarePlayer()
        play_match({0: x, 1: o}, TicTacToe.new_game())
        assert x.events == [('start', 0, 0), ('end', 0, 7)]
        assert o.events == [('start', 1, 0), ('end', 1, 7)]

    def test_move_cap(self):
        record, final = play_match(
            {0: LowestSquarePlayer(), 1: LowestSquarePlayer()},
            TicTacToe.new_game(),
            max_moves=3,
        )
        assert record.move_count == 3
        assert not record.finished
        assert record.winners == set()
        assert final.move_count() == 3


class TestMatchRunner:
    def test_logs_games_and_population_stats(self, tmp_path):
        learner = GeneticNeuralPlayer(
            layer_sizes=(9, 4, 1),
            encoder=encode_for_last_mover,
            decoder=lambda output: float(output[0]),
            population_size=4,
            rng=np.random.default_rng(0),
        )
        session_logger = SessionLogger(tmp_path, config={'num_games': 2})
        runner = MatchRunner({0: learner, 1: LowestSquarePlayer()}, TicTacToe.new_game, session_logger)

        records = runner.generate_games(2)

        assert len(records) == 2
        assert learner.population.generation == 2

        data = json.loads((tmp_path / "session_log.json").read_text())
        assert data['total_games'] == 2
        assert data['config'] == {'num_games': 2}
        assert len(data['games']) == 2
        assert data['games'][1]['populations']['0']['generation'] == 2
        assert sum(data['wins'].values()) + data['draws'] == 2


class TestSessionLogger:
    def test_no_data(self, tmp_path):
        assert SessionLogger(tmp_path).get_summary()['status'] == 'no_data'

    def test_log_game_and_resume(self, tmp_path):
        session_logger = SessionLogger(tmp_path)
        session_logger.log_game(GameRecord(moves=[0, 1, 2], decision_times=[0.1, 0.3, 0.2],
                                           winners={1}, finished=True))
        session_logger.log_game(GameRecord(moves=[0], decision_times=[0.5]))

        summary = session_logger.get_summary()
        assert summary['status'] == 'running'
        assert summary['total_games'] == 2
        assert summary['wins'] == {'1': 1}
        assert summary['draws'] == 1
        assert summary['avg_game_length'] == 2.0

        resumed = SessionLogger(tmp_path)
        assert resumed.log.total_games == 2
        assert resumed.log.games[0].max_decision_time == 0.3
        assert resumed.log.run_id == session_logger.log.run_id

    def test_print_status(self, tmp_path, capsys):
        session_logger = SessionLogger(tmp_path)
        session_logger.log_game(GameRecord(moves=[4], winners={0}, finished=True),
                                populations={'0': {'generation': 3, 'best_fitness': 95.0}})
        session_logger.print_status()

        out = capsys.readouterr().out
        assert "Games: 1" in out
        assert "generation 3" in out
