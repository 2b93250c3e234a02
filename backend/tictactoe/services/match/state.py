"""Per-match session state.

One ``MatchState`` exists per live match. It is created by the controller's
``init`` hook and mutated only from hook invocations, which the host runs one
at a time for a given match.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .board import new_board

MODE_CLASSIC = 'classic'
MODE_TIMED = 'timed'
MODES = (MODE_CLASSIC, MODE_TIMED)

MAX_PLAYERS = 2
DEFAULT_TURN_TIMEOUT_SEC = 30


@dataclass
class PlayerData:
    user_id: str
    username: str
    symbol: str
    is_connected: bool = True
    wins: int = 0
    losses: int = 0
    streak: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'username': self.username,
            'symbol': self.symbol,
            'is_connected': self.is_connected,
            'wins': self.wins,
            'losses': self.losses,
            'streak': self.streak,
        }


@dataclass
class MatchState:
    match_id: str
    mode: str = MODE_CLASSIC
    turn_timeout_secs: int = 0
    board: List[str] = field(default_factory=new_board)
    players: Dict[str, PlayerData] = field(default_factory=dict)
    current_turn_id: Optional[str] = None
    turn_start_time: int = 0
    move_count: int = 0
    game_over: bool = False
    winner: Optional[str] = None
    is_draw: bool = False
    rematch_requests: Set[str] = field(default_factory=set)
    metadata: Dict[str, Any] = field(default_factory=dict)
    starter_id: Optional[str] = None
    game_number: int = 1
    game_started_at: int = 0

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    def connected_ids(self) -> List[str]:
        return [uid for uid, p in self.players.items() if p.is_connected]

    def opponent_of(self, user_id: str) -> Optional[str]:
        for uid in self.players:
            if uid != user_id:
                return uid
        return None

    def is_timed_out(self, now: int) -> bool:
        if self.mode != MODE_TIMED or self.turn_start_time == 0:
            return False
        return now - self.turn_start_time > self.turn_timeout_secs

    def switch_turn(self, now: int) -> None:
        opponent = self.opponent_of(self.current_turn_id)
        if opponent is not None:
            self.current_turn_id = opponent
            self.turn_start_time = now

    def reset_game(self, starter_id: str, now: int) -> None:
        """Clear the board and outcome for a new game between the same players."""
        self.board = new_board()
        self.move_count = 0
        self.game_over = False
        self.winner = None
        self.is_draw = False
        self.rematch_requests = set()
        self.current_turn_id = starter_id
        self.starter_id = starter_id
        self.turn_start_time = now
        self.game_started_at = now
        self.game_number += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'match_id': self.match_id,
            'board': list(self.board),
            'players': {uid: p.to_dict() for uid, p in self.players.items()},
            'current_turn_id': self.current_turn_id,
            'winner': self.winner,
            'game_over': self.game_over,
            'is_draw': self.is_draw,
            'mode': self.mode,
            'turn_start_time': self.turn_start_time,
            'turn_timeout_secs': self.turn_timeout_secs,
            'move_count': self.move_count,
            'rematch_requests': sorted(self.rematch_requests),
            'game_number': self.game_number,
            'metadata': dict(self.metadata),
        }


def new_match_state(match_id: str, mode: str, turn_timeout_secs: int = DEFAULT_TURN_TIMEOUT_SEC,
                    metadata: Optional[Dict[str, Any]] = None) -> MatchState:
    if mode not in MODES:
        mode = MODE_CLASSIC
    return MatchState(
        match_id=match_id,
        mode=mode,
        turn_timeout_secs=turn_timeout_secs if mode == MODE_TIMED else 0,
        metadata=dict(metadata or {}),
    )
