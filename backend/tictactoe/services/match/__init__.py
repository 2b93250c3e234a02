"""Tic-tac-toe match session: board, state, validation, service and hooks."""

from .board import Outcome, evaluate
from .controller import MatchController, Presence
from .errors import MatchError, MoveRejected, SignalRejected
from .messages import MatchData
from .service import GameService
from .state import MODE_CLASSIC, MODE_TIMED, MatchState, PlayerData
from .validator import validate_move

__all__ = [
    'GameService',
    'MatchController',
    'MatchData',
    'MatchError',
    'MatchState',
    'MODE_CLASSIC',
    'MODE_TIMED',
    'MoveRejected',
    'Outcome',
    'PlayerData',
    'Presence',
    'SignalRejected',
    'evaluate',
    'validate_move',
]
