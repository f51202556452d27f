"""Time-bounded game-playing engines: MCTS and genetically evolved neural evaluators."""

__version__ = "0.1.0"
