"""
Reference k-in-a-row game (tic-tac-toe on the default 3x3 board).

Small enough to search exhaustively, used by the test-suite and the terminal
client to exercise the engines. Squares are numbered row-major from the
bottom-left corner; a move is the index of the square to claim.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import numpy as np

EMPTY = -1
SYMBOLS = {0: 'X', 1: 'O', EMPTY: '.'}


@dataclass
class TicTacToe:
    """
    State of a k-in-a-row game between roles 0 and 1.

    Attributes:
        rows: Board height
        cols: Board width
        k: Number of marks in a line needed to win
        board: Flat list of square owners (EMPTY, 0 or 1)
        current_player: Role to move next
        ply: Number of moves played
    """
    rows: int = 3
    cols: int = 3
    k: int = 3
    board: list[int] = field(default=None)
    current_player: int = 0
    ply: int = 0
    _winner: Optional[int] = field(default=None, repr=False)

    def __post_init__(self):
        if self.board is None:
            self.board = [EMPTY] * (self.rows * self.cols)
        elif len(self.board) != self.rows * self.cols:
            raise ValueError(f"Board needs {self.rows * self.cols} squares, got {len(self.board)}")
        if self._winner is None:
            self._winner = self._find_winner()

    @classmethod
    def new_game(cls, rows: int = 3, cols: int = 3, k: int = 3) -> TicTacToe:
        """Create an empty board."""
        return cls(rows=rows, cols=cols, k=k)

    @classmethod
    def from_string(cls, layout: str, k: int = 3) -> TicTacToe:
        """
        Build a position from rows of 'X', 'O' and '.', top row first.

        The role to move is derived from the mark counts (X moves first).
        """
        lines = [line.strip() for line in layout.strip().splitlines() if line.strip()]
        rows, cols = len(lines), len(lines[0])
        board = [EMPTY] * (rows * cols)
        reverse = {'X': 0, 'O': 1, '.': EMPTY}
        for r, line in enumerate(reversed(lines)):
            if len(line) != cols:
                raise ValueError(f"Ragged board row: {line!r}")
            for c, ch in enumerate(line):
                board[r * cols + c] = reverse[ch.upper()]
        x_count = board.count(0)
        o_count = board.count(1)
        return cls(
            rows=rows, cols=cols, k=k, board=board,
            current_player=0 if x_count == o_count else 1,
            ply=x_count + o_count,
        )

    # Game contract

    def current_role(self) -> int:
        return self.current_player

    def legal_moves(self) -> list[int]:
        if self.is_game_over():
            return []
        return [sq for sq, owner in enumerate(self.board) if owner == EMPTY]

    def copy(self) -> TicTacToe:
        return TicTacToe(
            rows=self.rows,
            cols=self.cols,
            k=self.k,
            board=list(self.board),
            current_player=self.current_player,
            ply=self.ply,
            _winner=self._winner,
        )

    def spawn_child(self, move: int) -> TicTacToe:
        child = self.copy()
        child.perform(move)
        return child

    def perform(self, move: int) -> None:
        """Claim square `move` for the current player. Modifies state in-place."""
        if not 0 <= move < len(self.board) or self.board[move] != EMPTY:
            raise ValueError(f"Illegal move: {move}")
        if self._winner is not None:
            raise ValueError("Game is already over")

        self.board[move] = self.current_player
        if self._completes_line(move):
            self._winner = self.current_player
        self.current_player = 1 - self.current_player
        self.ply += 1

    def is_game_over(self) -> bool:
        return self._winner is not None or EMPTY not in self.board

    def winners(self) -> set[int]:
        return set() if self._winner is None else {self._winner}

    def move_count(self) -> int:
        return self.ply

    # Helpers

    def _completes_line(self, sq: int) -> bool:
        """Check whether the mark on `sq` is part of k in a row."""
        owner = self.board[sq]
        row, col = divmod(sq, self.cols)

        for dr, dc in ((0, 1), (1, 0), (1, 1), (1, -1)):
            count = 1
            for sign in (1, -1):
                r, c = row + sign * dr, col + sign * dc
                while 0 <= r < self.rows and 0 <= c < self.cols and self.board[r * self.cols + c] == owner:
                    count += 1
                    r += sign * dr
                    c += sign * dc
            if count >= self.k:
                return True
        return False

    def _find_winner(self) -> Optional[int]:
        for sq, owner in enumerate(self.board):
            if owner != EMPTY and self._completes_line(sq):
                return owner
        return None

    def to_array(self) -> np.ndarray:
        """
        Encode the board for a neural network, from the mover's perspective.

        Returns a float32 vector of length rows*cols: +1 for the current
        player's marks, -1 for the opponent's, 0 for empty squares.
        """
        planes = np.zeros(len(self.board), dtype=np.float32)
        for sq, owner in enumerate(self.board):
            if owner == self.current_player:
                planes[sq] = 1.0
            elif owner != EMPTY:
                planes[sq] = -1.0
        return planes

    def __hash__(self) -> int:
        return hash((tuple(self.board), self.current_player, self.k))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TicTacToe):
            return False
        return (
            self.board == other.board and
            self.current_player == other.current_player and
            (self.rows, self.cols, self.k) == (other.rows, other.cols, other.k)
        )

    def __repr__(self) -> str:
        """Pretty print the board."""
        lines = []
        for row in range(self.rows - 1, -1, -1):
            rank = f"{row + 1} |"
            for col in range(self.cols):
                rank += " " + SYMBOLS[self.board[row * self.cols + col]]
            lines.append(rank)

        lines.append("   +" + "-" * (self.cols * 2))
        lines.append("    " + " ".join("abcdefghij"[:self.cols]))
        lines.append(f"\n{SYMBOLS[self.current_player]} to move (ply {self.ply})")

        return "\n".join(lines)


def sq_to_algebraic(sq: int, cols: int = 3) -> str:
    """Convert square index to algebraic notation (e.g. 0 -> 'a1')."""
    row, col = divmod(sq, cols)
    return f"{'abcdefghij'[col]}{row + 1}"


def algebraic_to_sq(s: str, cols: int = 3) -> int:
    """Parse algebraic notation to square index."""
    s = s.strip().lower()
    if len(s) < 2 or s[0] not in 'abcdefghij'[:cols] or not s[1:].isdigit():
        raise ValueError(f"Invalid square: {s}")
    return (int(s[1:]) - 1) * cols + 'abcdefghij'.index(s[0])


def encode_for_last_mover(state: TicTacToe) -> np.ndarray:
    """Network input seen from the role that just moved (+1 = own marks)."""
    return -state.to_array()
