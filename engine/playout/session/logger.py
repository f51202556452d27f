"""
Session metrics logger.

Writes a JSON log of played games and population progress, updated after
every game so it can be read while a session is still running.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional
import json

if TYPE_CHECKING:
    from .match import GameRecord


@dataclass
class GameMetrics:
    """Metrics for a single game."""
    game_id: int
    timestamp: str
    winners: list[str]  # Empty for draws and move-capped games
    length: int  # Number of moves
    finished: bool
    avg_decision_time: float
    max_decision_time: float
    populations: dict = field(default_factory=dict)  # role -> {'generation', 'best_fitness'}


@dataclass
class SessionLog:
    """Complete session log."""
    run_id: str
    start_time: str
    config: dict
    games: list[GameMetrics] = field(default_factory=list)

    # Running totals
    total_games: int = 0
    wins: dict = field(default_factory=dict)  # role -> wins
    draws: int = 0


class SessionLogger:
    """
    Logs session metrics to a JSON file.
    """

    def __init__(self, output_dir: Path, config: Optional[dict] = None):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.log_path = self.output_dir / "session_log.json"

        # Resume an existing log or start a new one
        if self.log_path.exists():
            self.log = self._load()
        else:
            self.log = SessionLog(
                run_id=datetime.now().strftime("%Y%m%d_%H%M%S"),
                start_time=datetime.now().isoformat(),
                config=config or {}
            )

    def _load(self) -> SessionLog:
        """Load existing log from file."""
        with open(self.log_path, 'r') as f:
            data = json.load(f)

        return SessionLog(
            run_id=data.get('run_id', 'unknown'),
            start_time=data.get('start_time', ''),
            config=data.get('config', {}),
            games=[GameMetrics(**g) for g in data.get('games', [])],
            total_games=data.get('total_games', 0),
            wins=data.get('wins', {}),
            draws=data.get('draws', 0),
        )

    def save(self) -> None:
        """Save log to file."""
        data = asdict(self.log)

        # Write atomically
        tmp_path = self.log_path.with_suffix('.tmp')
        with open(tmp_path, 'w') as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self.log_path)

    def log_game(self, record: GameRecord, populations: Optional[dict] = None) -> GameMetrics:
        """
        Record one finished game and save.

        Args:
            record: The game record from play_match()
            populations: Optional per-role population stats
        """
        times = record.decision_times
        metrics = GameMetrics(
            game_id=len(self.log.games),
            timestamp=datetime.now().isoformat(),
            winners=sorted(str(w) for w in record.winners),
            length=record.move_count,
            finished=record.finished,
            avg_decision_time=sum(times) / len(times) if times else 0.0,
            max_decision_time=max(times) if times else 0.0,
            populations=populations or {},
        )

        self.log.games.append(metrics)
        self.log.total_games += 1
        if metrics.winners:
            for winner in metrics.winners:
                self.log.wins[winner] = self.log.wins.get(winner, 0) + 1
        else:
            self.log.draws += 1

        self.save()
        return metrics

    def get_summary(self) -> dict:
        """Get summary statistics for monitoring."""
        if not self.log.games:
            return {
                'status': 'no_data',
                'message': 'No games played yet'
            }

        lengths = [g.length for g in self.log.games]
        latest = self.log.games[-1]

        return {
            'status': 'running',
            'run_id': self.log.run_id,
            'total_games': self.log.total_games,
            'wins': dict(self.log.wins),
            'draws': self.log.draws,
            'avg_game_length': sum(lengths) / len(lengths),
            'latest_game': {
                'game_id': latest.game_id,
                'winners': latest.winners,
                'length': latest.length,
                'populations': latest.populations,
            }
        }

    def print_status(self) -> None:
        """Print human-readable status to console."""
        summary = self.get_summary()

        if summary['status'] == 'no_data':
            print(summary['message'])
            return

        print(f"\n{'='*60}")
        print(f"Session: {summary['run_id']}")
        print(f"{'='*60}")
        print(f"Games: {summary['total_games']}")
        wins = ", ".join(f"{role}: {n}" for role, n in sorted(summary['wins'].items()))
        print(f"Wins: {wins or 'none'} / Draws: {summary['draws']}")
        print(f"Avg length: {summary['avg_game_length']:.1f} moves")

        for role, stats in sorted(summary['latest_game']['populations'].items()):
            print(f"  Role {role}: generation {stats['generation']}, best fitness {stats['best_fitness']:.1f}")
