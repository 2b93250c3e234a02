"""Board model for the 3x3 grid and three-in-a-row evaluation."""

from typing import List, Mapping, NamedTuple, Optional, Sequence

BOARD_SIZE = 9
EMPTY = ''

# First joiner plays X, second joiner plays O
SYMBOL_FIRST = 'X'
SYMBOL_SECOND = 'O'

WIN_LINES = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
)


class Outcome(NamedTuple):
    winner: Optional[str]
    is_draw: bool

    @property
    def concluded(self) -> bool:
        return self.winner is not None or self.is_draw


def new_board() -> List[str]:
    return [EMPTY] * BOARD_SIZE


def occupied_count(board: Sequence[str]) -> int:
    return sum(1 for cell in board if cell != EMPTY)


def first_empty(board: Sequence[str]) -> Optional[int]:
    for index, cell in enumerate(board):
        if cell == EMPTY:
            return index
    return None


def evaluate(board: Sequence[str], players: Mapping[str, object]) -> Outcome:
    """Return the outcome of ``board``.

    Lines are checked in ``WIN_LINES`` order and the first complete line
    decides the winner, resolved to a player id through the players' symbols.
    A full board without a complete line is a draw; anything else is still
    in progress.
    """
    for a, b, c in WIN_LINES:
        symbol = board[a]
        if symbol != EMPTY and symbol == board[b] == board[c]:
            for user_id, player in players.items():
                if player.symbol == symbol:
                    return Outcome(user_id, False)

    if occupied_count(board) == BOARD_SIZE:
        return Outcome(None, True)
    return Outcome(None, False)
