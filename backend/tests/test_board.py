import pytest

from tictactoe.services.match.board import (
    BOARD_SIZE,
    EMPTY,
    WIN_LINES,
    evaluate,
    first_empty,
    new_board,
    occupied_count,
)
from tictactoe.services.match.state import PlayerData


PLAYERS = {
    'alice': PlayerData(user_id='alice', username='Alice', symbol='X'),
    'bob': PlayerData(user_id='bob', username='Bob', symbol='O'),
}


def board_from(text):
    """Build a board from a 9-char string, '.' for empty."""
    return [EMPTY if ch == '.' else ch for ch in text]


def test_new_board_is_empty():
    board = new_board()
    assert len(board) == BOARD_SIZE
    assert occupied_count(board) == 0
    assert first_empty(board) == 0


@pytest.mark.parametrize('line', WIN_LINES)
@pytest.mark.parametrize('symbol,owner', [('X', 'alice'), ('O', 'bob')])
def test_every_line_wins_for_its_owner(line, symbol, owner):
    board = new_board()
    for index in line:
        board[index] = symbol
    outcome = evaluate(board, PLAYERS)
    assert outcome.winner == owner
    assert outcome.is_draw is False
    assert outcome.concluded


def test_two_of_three_is_not_a_win():
    outcome = evaluate(board_from('XX.OO....'), PLAYERS)
    assert outcome.winner is None
    assert outcome.is_draw is False
    assert not outcome.concluded


def test_full_board_without_line_is_draw():
    outcome = evaluate(board_from('XOOOXXXXO'), PLAYERS)
    assert outcome.winner is None
    assert outcome.is_draw is True


def test_full_board_with_line_is_a_win_not_a_draw():
    # Top row and a diagonal both belong to X on the last move
    outcome = evaluate(board_from('XXXOXOOOX'), PLAYERS)
    assert outcome.winner == 'alice'
    assert outcome.is_draw is False


def test_mixed_line_does_not_win():
    outcome = evaluate(board_from('XOX......'), PLAYERS)
    assert not outcome.concluded


def test_first_empty_scans_from_zero():
    assert first_empty(board_from('XO.X.....')) == 2
    assert first_empty(board_from('XOXOXOOXO')) is None


def test_evaluate_does_not_modify_board():
    board = board_from('XX.OO....')
    before = list(board)
    evaluate(board, PLAYERS)
    assert board == before
