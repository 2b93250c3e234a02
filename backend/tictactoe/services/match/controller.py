"""Lifecycle-hook adapter between the match host and the game service.

The host calls these hooks one at a time per match and hands back the state
returned by the previous hook.
"""

import logging
import time
from typing import Any, Callable, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from .errors import MoveRejected, SignalRejected
from .messages import OP_MOVE, MatchData, parse_move, parse_signal
from .service import GameService
from .state import DEFAULT_TURN_TIMEOUT_SEC, MODE_CLASSIC, MODE_TIMED, MatchState, new_match_state

logger = logging.getLogger(__name__)

TICK_RATE = 1


class Presence(NamedTuple):
    user_id: str
    username: str


def _unix_now() -> int:
    return int(time.time())


class MatchController:
    def __init__(self, service: GameService, turn_timeout_secs: int = DEFAULT_TURN_TIMEOUT_SEC,
                 tick_rate: int = TICK_RATE, clock: Optional[Callable[[], int]] = None):
        self.service = service
        self.turn_timeout_secs = turn_timeout_secs
        self.tick_rate = tick_rate
        self.clock = clock or _unix_now

    def init(self, match_id: str, params: Optional[Mapping[str, Any]] = None) -> Tuple[MatchState, int, str]:
        params = params or {}
        mode = MODE_TIMED if params.get('mode') == MODE_TIMED else MODE_CLASSIC
        metadata = dict(params.get('metadata') or {})
        if params.get('skill_level') is not None:
            metadata.setdefault('skill_level', params['skill_level'])

        state = new_match_state(match_id, mode, self.turn_timeout_secs, metadata)
        label = f"mode:{mode}"
        logger.info(f"[init] match={match_id} mode={mode} timeout={state.turn_timeout_secs}s")
        return state, self.tick_rate, label

    def join_attempt(self, state: MatchState, user_id: str,
                     metadata: Optional[Mapping[str, Any]] = None) -> Tuple[MatchState, bool, str]:
        reason = self.service.admit_join(state, user_id, metadata)
        if reason is not None:
            logger.info(f"[join-attempt] match={state.match_id} user={user_id} rejected: {reason}")
            return state, False, reason
        return state, True, ''

    def join(self, state: MatchState, presences: Iterable[Presence]) -> MatchState:
        for presence in presences:
            self.service.player_join(state, presence.user_id, presence.username, self.clock())
        return state

    def leave(self, state: MatchState, presences: Iterable[Presence]) -> MatchState:
        for presence in presences:
            self.service.player_leave(state, presence.user_id, self.clock())
        return state

    def tick(self, state: MatchState, now: int, messages: Optional[List[MatchData]] = None) -> MatchState:
        messages = messages or []
        if self.service.check_timeout(state, now):
            # Moves queued before the automatic move were aimed at the old turn
            if messages:
                logger.info(f"[tick] match={state.match_id} dropped {len(messages)} message(s) after timeout")
            return state

        for message in messages:
            if message.op_code != OP_MOVE:
                logger.debug(f"[tick] match={state.match_id} ignoring op_code={message.op_code}")
                continue
            try:
                position = parse_move(message.data)
            except ValueError as exc:
                logger.warning(f"[move-rejected] match={state.match_id} user={message.user_id} {exc}")
                continue
            try:
                self.service.process_move(state, message.user_id, position, now)
            except MoveRejected as exc:
                logger.warning(
                    f"[move-rejected] match={state.match_id} user={exc.user_id} position={exc.position} {exc.reason}"
                )
        return state

    def signal(self, state: MatchState, raw: Any) -> Tuple[MatchState, str]:
        try:
            parsed = parse_signal(raw)
            result = self.service.handle_signal(state, parsed, self.clock())
        except SignalRejected as exc:
            logger.warning(f"[signal-rejected] match={state.match_id} {exc}")
            return state, f"error: {exc}"
        return state, result

    def terminate(self, state: MatchState, grace_seconds: int) -> MatchState:
        logger.info(f"[terminate] match={state.match_id} grace={grace_seconds}s game_over={state.game_over}")
        return state
