#!/usr/bin/env python3
"""
Terminal tic-tac-toe client.

Play against MCTS, watch MCTS play itself, or train a genetic neural
player against a random opponent.
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from playout.core.tictactoe import (
    TicTacToe, SYMBOLS, algebraic_to_sq, sq_to_algebraic, encode_for_last_mover
)
from playout.ai.mcts import MCTS, SearchTree
from playout.ai.evaluating import EvaluatingPlayer
from playout.ai.time_manager import TimeConfig
from playout.ai.genetic_neural import GeneticNeuralPlayer
from playout.session.logger import SessionLogger
from playout.session.match import MatchRunner


class RandomPlayer(EvaluatingPlayer):
    """Opponent for training sessions: rates every move with noise."""

    def rate_move(self, state, move, timer) -> float:
        return float(self.rng.random())


def parse_user_move(state: TicTacToe, input_str: str) -> int | str | None:
    """Parse user input into a move."""
    input_str = input_str.strip().lower()

    # Check for special commands
    if input_str in ['q', 'quit', 'exit']:
        return 'quit'
    if input_str in ['h', 'help', '?']:
        return 'help'
    if input_str in ['m', 'moves']:
        return 'show_moves'

    try:
        move = algebraic_to_sq(input_str, state.cols)
        if move in state.legal_moves():
            return move
        else:
            print(f"Illegal move: {input_str}")
            return None
    except ValueError:
        print(f"Invalid format: {input_str}. Use notation like 'b2'")
        return None


def print_analysis(tree: SearchTree, cols: int) -> None:
    for m in tree.analyze(top_k=3):
        print(f"  {sq_to_algebraic(m['move'], cols)}: {m['simulations']} simulations, "
              f"win rate={m['win_rate']:.2f}")


def play_human_vs_ai(human_player: int = 0, think_time: float = 1.0) -> None:
    """Play a game: human vs MCTS."""
    state = TicTacToe.new_game()
    trees: list[SearchTree] = []
    ai = MCTS(
        time_config=TimeConfig(soft_max_time=think_time, hard_max_time=think_time * 2),
        observer=trees.append,
    )

    print("\n=== Tic-tac-toe ===")
    print("You are", SYMBOLS[human_player])
    print("Commands: move (e.g., 'b2'), 'm' for moves, 'q' quit")

    while not state.is_game_over():
        print(state)

        if state.current_player == human_player:
            while True:
                try:
                    user_input = input("> ").strip()
                except EOFError:
                    return

                result = parse_user_move(state, user_input)

                if result == 'quit':
                    print("Thanks for playing!")
                    return
                elif result == 'help':
                    print("Enter a square like 'b2', 'm' to see legal moves, 'q' to quit")
                elif result == 'show_moves':
                    print("Legal moves:", ", ".join(sq_to_algebraic(m, state.cols) for m in state.legal_moves()))
                elif result is not None:
                    state.perform(result)
                    break
        else:
            print(f"AI thinking ({think_time:.1f}s)...")
            move = ai.choose_move(state)
            if trees:
                print_analysis(trees.pop(), state.cols)
            state.perform(move)
            print(f"AI plays: {sq_to_algebraic(move, state.cols)}")

    print(state)
    if state.winners():
        print("Congratulations! You win!" if human_player in state.winners() else "AI wins. Better luck next time!")
    else:
        print("Game drawn.")


def watch_ai_vs_ai(think_time: float = 0.5, delay: float = 1.0) -> None:
    """Watch MCTS play against itself."""
    state = TicTacToe.new_game()
    trees: list[SearchTree] = []
    ai = MCTS(time_config=TimeConfig(soft_max_time=think_time), observer=trees.append)

    print("\n=== AI vs AI ===")
    while not state.is_game_over():
        print(state)
        move = ai.choose_move(state)
        if trees:
            print_analysis(trees.pop(), state.cols)
        state.perform(move)
        print(f"Plays: {sq_to_algebraic(move, state.cols)}\n")
        time.sleep(delay)

    print(state)
    winners = state.winners()
    print(f"Game over after {state.move_count()} moves. Winner: "
          f"{SYMBOLS[next(iter(winners))] if winners else 'None (draw)'}")


def train_genetic(num_games: int, output_dir: Path, population_path: Path | None) -> None:
    """Evolve a genetic neural player against a random opponent."""
    learner = GeneticNeuralPlayer(
        layer_sizes=(9, 18, 1),
        encoder=encode_for_last_mover,
        decoder=lambda output: float(output[0]),
    )
    if population_path is not None and population_path.exists():
        learner.load_population(population_path)
        print(f"Loaded {learner.population.size()} individuals from {population_path}")
    opponent = RandomPlayer()

    session_logger = SessionLogger(output_dir, config={'num_games': num_games})
    runner = MatchRunner({0: learner, 1: opponent}, TicTacToe.new_game, session_logger)
    runner.generate_games(num_games)
    session_logger.print_status()

    if population_path is not None:
        learner.population.save(population_path)
        print(f"Saved population to {population_path}")


def main():
    parser = argparse.ArgumentParser(description='Tic-tac-toe Terminal Client')
    parser.add_argument('--think-time', type=float, default=1.0, help='Soft time limit per AI move (seconds)')
    parser.add_argument('--watch', action='store_true', help='Watch AI vs AI')
    parser.add_argument('--play-as', type=int, choices=[1, 2], default=1,
                        help='Play as player 1 (X) or 2 (O)')
    parser.add_argument('--train', type=int, metavar='GAMES', help='Train a genetic neural player')
    parser.add_argument('--output-dir', type=Path, default=Path('output/session'), help='Session log directory')
    parser.add_argument('--population', type=Path, help='Genotype file to resume from and save to')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.train:
        train_genetic(args.train, args.output_dir, args.population)
    elif args.watch:
        watch_ai_vs_ai(args.think_time)
    else:
        play_human_vs_ai(args.play_as - 1, args.think_time)


if __name__ == '__main__':
    main()
