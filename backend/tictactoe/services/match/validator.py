from typing import Optional

from .board import BOARD_SIZE, EMPTY
from .state import MatchState


def validate_move(state: MatchState, user_id: str, position: int) -> Optional[str]:
    """Return why the move is illegal, or None when it may be applied.

    Checks run in a fixed order so clients always see the same reason for
    the same situation. The state is never modified.
    """
    if state.game_over:
        return 'game has already ended'
    if state.current_turn_id != user_id:
        return 'not your turn'
    if user_id not in state.players:
        return 'player not in match'
    if position < 0 or position >= BOARD_SIZE:
        return f'position out of bounds: {position}'
    if state.board[position] != EMPTY:
        return 'position already occupied'
    return None
