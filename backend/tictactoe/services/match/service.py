"""Game service: every state transition of a match session.

The service is stateless apart from its collaborators; the ``MatchState`` it
operates on is passed in by the controller that owns it.
"""

import logging
from typing import Any, Mapping, Optional

from .board import SYMBOL_FIRST, SYMBOL_SECOND, evaluate, first_empty
from .collaborators import BanStore, Broadcaster, HistoryStore, Leaderboard
from .effects import SideEffects
from .errors import MoveRejected, SignalRejected
from .messages import (
    OP_CHAT,
    OP_GAME_END,
    OP_STATE,
    OP_TIMEOUT,
    SIGNAL_CHAT,
    SIGNAL_REMATCH,
    ChatMessage,
    RematchRequest,
    Signal,
)
from .outcome import OutcomeRecorder
from .state import MAX_PLAYERS, MODE_TIMED, MatchState, PlayerData
from .validator import validate_move

logger = logging.getLogger(__name__)

DEFAULT_MAX_SKILL_DIFF = 20
DEFAULT_CHAT_MAX_LENGTH = 500

REMATCH_REQUESTED = 'rematch_requested'
REMATCH_WAITING = 'waiting_for_players'
REMATCH_ACCEPTED = 'rematch_accepted'
CHAT_SENT = 'message_sent'


def _parse_skill(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class GameService:
    def __init__(self, broadcaster: Broadcaster, bans: BanStore, leaderboard: Leaderboard,
                 history: HistoryStore, effects: Optional[SideEffects] = None,
                 max_skill_diff: int = DEFAULT_MAX_SKILL_DIFF,
                 chat_max_length: int = DEFAULT_CHAT_MAX_LENGTH,
                 ban_fail_open: bool = True):
        self.broadcaster = broadcaster
        self.bans = bans
        self.history = history
        self.effects = effects or SideEffects()
        self.outcomes = OutcomeRecorder(leaderboard, history, self.effects)
        self.max_skill_diff = max_skill_diff
        self.chat_max_length = chat_max_length
        self.ban_fail_open = ban_fail_open

    # ---- Admission ----

    def admit_join(self, state: MatchState, user_id: str, metadata: Optional[Mapping[str, Any]]) -> Optional[str]:
        """Return the rejection reason for a join attempt, or None to admit."""
        metadata = metadata or {}
        if state.is_full:
            return 'match is full'

        if self._is_banned(user_id):
            return 'player is banned'

        player_skill = _parse_skill(metadata.get('skill_level'))
        match_skill = _parse_skill(state.metadata.get('skill_level'))
        if player_skill is not None and match_skill is not None:
            diff = abs(player_skill - match_skill)
            if diff > self.max_skill_diff:
                return f'skill difference too high: {diff}'

        player_mode = metadata.get('mode')
        if player_mode and state.mode and player_mode != state.mode:
            return 'game mode mismatch'

        if state.move_count > 0:
            return 'game in progress'
        return None

    def _is_banned(self, user_id: str) -> bool:
        try:
            return bool(self.bans.is_banned(user_id))
        except Exception:
            # Lookup failures follow the configured policy instead of propagating
            logger.exception(f"[ban-check] lookup failed user={user_id} fail_open={self.ban_fail_open}")
            return not self.ban_fail_open

    # ---- Presence ----

    def player_join(self, state: MatchState, user_id: str, username: str, now: int) -> None:
        existing = state.players.get(user_id)
        if existing is not None:
            existing.is_connected = True
            logger.info(f"[join] match={state.match_id} user={user_id} rejoined as {existing.symbol}")
            self.broadcast_state(state, OP_STATE)
            return

        if state.is_full:
            logger.error(f"[join] match={state.match_id} user={user_id} rejected: match is full")
            return

        symbol = SYMBOL_FIRST if not state.players else SYMBOL_SECOND
        state.players[user_id] = PlayerData(user_id=user_id, username=username, symbol=symbol)
        logger.info(f"[join] match={state.match_id} user={user_id} name={username} symbol={symbol}")

        if len(state.players) == 1:
            # First turn belongs to the first joiner; the clock starts with the game
            state.current_turn_id = user_id
            state.starter_id = user_id

        if len(state.players) == MAX_PLAYERS:
            state.turn_start_time = now
            state.game_started_at = now
            logger.info(f"[start] match={state.match_id} first_turn={state.current_turn_id}")
            self.broadcast_state(state, OP_STATE)

    def player_leave(self, state: MatchState, user_id: str, now: int) -> None:
        player = state.players.get(user_id)
        if player is None:
            logger.warning(f"[leave] match={state.match_id} unknown user={user_id}")
            return

        player.is_connected = False
        logger.info(f"[leave] match={state.match_id} user={user_id}")

        if state.game_over or len(state.players) < MAX_PLAYERS:
            self.broadcast_state(state, OP_STATE)
            return

        # Forfeit: whoever is still connected takes the game
        state.game_over = True
        state.is_draw = False
        for uid, p in state.players.items():
            if p.is_connected:
                state.winner = uid
        for uid, p in state.players.items():
            self.outcomes.apply_result(state, uid, won=(uid == state.winner))
        self.outcomes.record_game(state, now)
        logger.info(f"[forfeit] match={state.match_id} leaver={user_id} winner={state.winner}")
        self.broadcast_state(state, OP_GAME_END)

    # ---- Moves ----

    def process_move(self, state: MatchState, user_id: str, position: int, now: int) -> None:
        reason = validate_move(state, user_id, position)
        if reason is not None:
            raise MoveRejected(user_id, position, reason)
        self._apply_move(state, user_id, position, now, OP_STATE)

    def check_timeout(self, state: MatchState, now: int) -> bool:
        """Play the automatic move if the current turn has run out."""
        if state.mode != MODE_TIMED or state.game_over or len(state.players) < MAX_PLAYERS:
            return False
        if not state.is_timed_out(now):
            return False
        self.handle_timeout(state, now)
        return True

    def handle_timeout(self, state: MatchState, now: int) -> None:
        user_id = state.current_turn_id
        position = first_empty(state.board)
        if position is None or user_id not in state.players:
            # A full board should already have ended the game
            logger.error(
                f"[timeout] match={state.match_id} inconsistent state: no automatic move for "
                f"user={user_id} move_count={state.move_count}"
            )
            return

        logger.info(f"[timeout] match={state.match_id} user={user_id} auto position={position}")
        self._apply_move(state, user_id, position, now, OP_TIMEOUT)

    def _apply_move(self, state: MatchState, user_id: str, position: int, now: int, continue_op: int) -> None:
        player = state.players[user_id]
        state.board[position] = player.symbol
        state.move_count += 1
        logger.info(f"[move] match={state.match_id} user={user_id} symbol={player.symbol} position={position}")

        outcome = evaluate(state.board, state.players)
        if outcome.concluded:
            state.game_over = True
            state.winner = outcome.winner
            state.is_draw = outcome.is_draw
            for uid in state.players:
                self.outcomes.apply_result(state, uid, won=(uid == outcome.winner))
            self.outcomes.record_game(state, now)
            logger.info(f"[game-end] match={state.match_id} winner={outcome.winner} draw={outcome.is_draw}")
            self.broadcast_state(state, OP_GAME_END)
            return

        state.switch_turn(now)
        self.broadcast_state(state, continue_op)

    # ---- Signals ----

    def handle_signal(self, state: MatchState, signal: Signal, now: int) -> str:
        if isinstance(signal, RematchRequest):
            return self.request_rematch(state, signal.user_id, now)
        if isinstance(signal, ChatMessage):
            return self.send_chat(state, signal.user_id, signal.message, now)
        raise SignalRejected(f'unsupported signal: {signal!r}')

    def request_rematch(self, state: MatchState, user_id: str, now: int) -> str:
        if not state.game_over:
            raise SignalRejected('game is still in progress', SIGNAL_REMATCH)
        player = state.players.get(user_id)
        if player is None:
            raise SignalRejected('player not in match', SIGNAL_REMATCH)
        if not player.is_connected:
            raise SignalRejected('player is not connected', SIGNAL_REMATCH)

        state.rematch_requests.add(user_id)
        connected = state.connected_ids()
        requested = [uid for uid in connected if uid in state.rematch_requests]
        logger.info(f"[rematch] match={state.match_id} user={user_id} requests={len(requested)}/{len(connected)}")

        if len(requested) < len(connected):
            self.broadcast_state(state, OP_STATE)
            return REMATCH_REQUESTED

        if len(connected) < MAX_PLAYERS:
            self.broadcast_state(state, OP_STATE)
            return REMATCH_WAITING

        starter = state.opponent_of(state.starter_id) if state.starter_id else None
        state.reset_game(starter or state.current_turn_id, now)
        logger.info(f"[rematch] match={state.match_id} game={state.game_number} starter={state.starter_id}")
        self.broadcast_state(state, OP_STATE)
        return REMATCH_ACCEPTED

    def send_chat(self, state: MatchState, user_id: str, message: str, now: int) -> str:
        if not message or len(message) > self.chat_max_length:
            raise SignalRejected(f'message must be between 1-{self.chat_max_length} characters', SIGNAL_CHAT)
        player = state.players.get(user_id)
        if player is None:
            raise SignalRejected('player not found', SIGNAL_CHAT)

        self.broadcaster.broadcast(OP_CHAT, {
            'type': 'chat',
            'sender': player.username,
            'message': message,
            'timestamp': now,
        })
        self.effects.submit('chat', self.history.record_chat, user_id, player.username, message, now)
        return CHAT_SENT

    def broadcast_state(self, state: MatchState, op_code: int) -> None:
        self.broadcaster.broadcast(op_code, state.to_dict())
