"""
Time management for timed move selection.

A decision has two budgets:
- soft: advisory, polled by the strategy once per iteration
- hard: enforced by the player, which stops waiting at
  hard_max_time - hard_max_buffer and falls back to a quick move chooser

TimeManager keeps per-game statistics about how the budgets were used.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import threading
import time


@dataclass
class TimeConfig:
    """Configuration for timed move selection (all times in seconds)."""

    # None = unlimited
    soft_max_time: Optional[float] = None
    hard_max_time: Optional[float] = None

    # Reserved at the end of the hard budget for the fallback chooser
    hard_max_buffer: float = 0.05

    def hard_wait(self) -> Optional[float]:
        """How long the player may wait for the strategy, or None for no limit."""
        if self.hard_max_time is None:
            return None
        return max(0.0, self.hard_max_time - self.hard_max_buffer)


class SearchTimer:
    """
    Soft deadline plus cancellation signal handed to a running strategy.

    The strategy polls is_running() once per iteration. The player calls
    cancel() when it abandons the strategy so background work stops early.
    """

    def __init__(self, soft_max_time: Optional[float] = None):
        self.soft_max_time = soft_max_time
        self.start_time = time.monotonic()
        self.iterations = 0
        self._cancelled = threading.Event()

    def elapsed(self) -> float:
        """Seconds since the timer was started."""
        return time.monotonic() - self.start_time

    def remaining(self) -> float:
        """Seconds until the soft deadline (inf if unlimited)."""
        if self.soft_max_time is None:
            return float('inf')
        return max(0.0, self.soft_max_time - self.elapsed())

    def tick(self) -> None:
        """Count one finished search iteration."""
        self.iterations += 1

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def is_running(self) -> bool:
        """True while the soft deadline has not elapsed and nobody cancelled."""
        if self._cancelled.is_set():
            return False
        if self.soft_max_time is None:
            return True
        return self.elapsed() < self.soft_max_time


@dataclass
class TimeManager:
    """
    Tracks how timed decisions used their budget over a game.
    """

    config: TimeConfig = field(default_factory=TimeConfig)

    # Statistics for analysis
    decisions: int = 0
    total_time_used: float = 0.0
    total_iterations: int = 0
    fallback_count: int = 0
    failure_count: int = 0
    last_elapsed: float = 0.0

    def new_timer(self) -> SearchTimer:
        """Start a soft-deadline timer for one decision."""
        return SearchTimer(self.config.soft_max_time)

    def update(
        self,
        elapsed_time: float,
        iterations: int = 0,
        used_fallback: bool = False,
        failed: bool = False,
    ) -> None:
        """
        Record one finished decision.

        Args:
            elapsed_time: Wall time spent on the decision (seconds)
            iterations: Search iterations the strategy reported
            used_fallback: True if the fallback chooser produced the move
            failed: True if the strategy raised
        """
        self.decisions += 1
        self.total_time_used += elapsed_time
        self.total_iterations += iterations
        self.last_elapsed = elapsed_time
        if used_fallback:
            self.fallback_count += 1
        if failed:
            self.failure_count += 1

    def reset(self) -> None:
        """Clear statistics, e.g. at the start of a new game."""
        self.decisions = 0
        self.total_time_used = 0.0
        self.total_iterations = 0
        self.fallback_count = 0
        self.failure_count = 0
        self.last_elapsed = 0.0

    @property
    def avg_time_per_move(self) -> float:
        """Average time per decision so far (seconds)."""
        if self.decisions == 0:
            return 0.0
        return self.total_time_used / self.decisions

    @property
    def avg_iterations_per_move(self) -> float:
        if self.decisions == 0:
            return 0.0
        return self.total_iterations / self.decisions

    def stats(self) -> dict:
        """Return statistics about time management."""
        return {
            'decisions': self.decisions,
            'total_time_used': self.total_time_used,
            'total_iterations': self.total_iterations,
            'fallback_count': self.fallback_count,
            'failure_count': self.failure_count,
            'avg_time_per_move': self.avg_time_per_move,
            'avg_iterations_per_move': self.avg_iterations_per_move,
        }


def create_time_manager(
    soft_max_time: Optional[float] = None,
    hard_max_time: Optional[float] = None,
    hard_max_buffer: float = 0.05,
) -> TimeManager:
    """
    Create a time manager with given settings.

    Args:
        soft_max_time: Advisory budget per move in seconds, or None for unlimited
        hard_max_time: Enforced budget per move in seconds, or None for unlimited
        hard_max_buffer: Time reserved for the fallback chooser

    Returns:
        Configured TimeManager instance.
    """
    config = TimeConfig(
        soft_max_time=soft_max_time,
        hard_max_time=hard_max_time,
        hard_max_buffer=hard_max_buffer,
    )
    return TimeManager(config=config)
