"""Interfaces of the collaborators the match services talk to.

Concrete implementations live in ``tictactoe.services.stores`` (database)
and ``tictactoe.runtime`` (Socket.IO broadcast); tests use in-memory fakes.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

RESULT_WIN = 'win'
RESULT_LOSS = 'loss'
RESULT_DRAW = 'draw'


@dataclass(frozen=True)
class MatchRecord:
    match_id: str
    winner_id: Optional[str]
    loser_id: Optional[str]
    mode: str
    duration_seconds: int


class Broadcaster(Protocol):
    def broadcast(self, op_code: int, payload: Mapping[str, Any]) -> None:
        ...


class BanStore(Protocol):
    def is_banned(self, user_id: str) -> bool:
        ...


class Leaderboard(Protocol):
    def increment(self, leaderboard_id: str, owner_id: str, username: str, amount: int) -> int:
        ...

    def set_score(self, leaderboard_id: str, owner_id: str, username: str, score: int) -> int:
        ...


class HistoryStore(Protocol):
    def record_match(self, record: MatchRecord) -> bool:
        ...

    def record_player_result(self, user_id: str, username: str, result: str) -> None:
        ...

    def record_chat(self, user_id: str, username: str, message: str, timestamp: int) -> None:
        ...
