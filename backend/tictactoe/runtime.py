"""In-process match host.

Keeps one controller and state per live match, serializes every hook for a
match behind that match's lock and ticks all matches from a single
background task.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from tictactoe import socketio
from tictactoe.services.match import GameService, MatchController, MatchData, MatchState, Presence
from tictactoe.services.match.effects import SideEffects
from tictactoe.services.match.messages import BROADCAST_EVENTS, OP_MOVE, OP_STATE
from tictactoe.services.stores import SqlBanStore, SqlHistoryStore, SqlLeaderboard

logger = logging.getLogger(__name__)

NAMESPACE = '/ws'


def match_room(match_id: str) -> str:
    return f"match:{match_id}"


class SocketBroadcaster:
    def __init__(self, match_id: str):
        self.room = match_room(match_id)

    def broadcast(self, op_code, payload):
        event = BROADCAST_EVENTS.get(op_code, BROADCAST_EVENTS[OP_STATE])
        socketio.emit(event, payload, to=self.room, namespace=NAMESPACE)


@dataclass
class MatchHandle:
    match_id: str
    controller: MatchController
    state: MatchState
    label: str
    tick_rate: int
    lock: threading.Lock = field(default_factory=threading.Lock)
    queue: List[MatchData] = field(default_factory=list)


class MatchRegistry:
    def __init__(self):
        self.app = None
        self._matches: Dict[str, MatchHandle] = {}
        self._guard = threading.Lock()
        self._loop_started = False

    def init_app(self, app) -> None:
        self.app = app
        with self._guard:
            self._matches = {}
        app.extensions['match_registry'] = self

    def clock(self) -> int:
        return int(time.time())

    # ---- Wiring ----

    def _spawn(self, fn, *args) -> None:
        app = self.app
        if app.config.get('TESTING'):
            fn(*args)
            return

        def _runner():
            with app.app_context():
                fn(*args)

        socketio.start_background_task(_runner)

    def _build_controller(self, match_id: str) -> MatchController:
        cfg = self.app.config
        service = GameService(
            SocketBroadcaster(match_id),
            SqlBanStore(),
            SqlLeaderboard(),
            SqlHistoryStore(),
            SideEffects(spawn=self._spawn),
            max_skill_diff=int(cfg.get('MAX_SKILL_DIFF', 20)),
            chat_max_length=int(cfg.get('CHAT_MAX_LENGTH', 500)),
            ban_fail_open=bool(cfg.get('BAN_CHECK_FAIL_OPEN', True)),
        )
        return MatchController(
            service,
            turn_timeout_secs=int(cfg.get('TURN_TIMEOUT_SEC', 30)),
            tick_rate=int(cfg.get('TICK_INTERVAL_SEC', 1)),
            clock=self.clock,
        )

    # ---- Lifecycle ----

    def create_match(self, params: Optional[Dict[str, Any]] = None) -> MatchHandle:
        match_id = uuid4().hex
        controller = self._build_controller(match_id)
        state, tick_rate, label = controller.init(match_id, params)
        handle = MatchHandle(match_id=match_id, controller=controller, state=state, label=label, tick_rate=tick_rate)
        with self._guard:
            self._matches[match_id] = handle
        self._ensure_loop()
        return handle

    def get(self, match_id: str) -> Optional[MatchHandle]:
        with self._guard:
            return self._matches.get(match_id)

    def snapshot(self, match_id: str) -> Optional[Dict[str, Any]]:
        handle = self.get(match_id)
        if handle is None:
            return None
        with handle.lock:
            return handle.state.to_dict()

    def join(self, match_id: str, user_id: str, username: str,
             metadata: Optional[Dict[str, Any]] = None) -> Tuple[bool, str]:
        handle = self.get(match_id)
        if handle is None:
            return False, 'match not found'
        with handle.lock:
            handle.state, accepted, reason = handle.controller.join_attempt(handle.state, user_id, metadata)
            if not accepted:
                return False, reason
            handle.state = handle.controller.join(handle.state, [Presence(user_id, username)])
        return True, ''

    def leave(self, match_id: str, user_id: str, username: str = '') -> None:
        handle = self.get(match_id)
        if handle is None:
            return
        with handle.lock:
            handle.state = handle.controller.leave(handle.state, [Presence(user_id, username)])
            abandoned = not handle.state.connected_ids()
        if abandoned:
            self.terminate(match_id)

    def queue_move(self, match_id: str, user_id: str, data: Any) -> bool:
        handle = self.get(match_id)
        if handle is None:
            return False
        with handle.lock:
            handle.queue.append(MatchData(OP_MOVE, user_id, data))
        return True

    def signal(self, match_id: str, raw: Any) -> str:
        handle = self.get(match_id)
        if handle is None:
            return 'error: match not found'
        with handle.lock:
            handle.state, result = handle.controller.signal(handle.state, raw)
        return result

    def tick(self, match_id: str, now: Optional[int] = None) -> None:
        handle = self.get(match_id)
        if handle is None:
            return
        with handle.lock:
            messages, handle.queue = handle.queue, []
            handle.state = handle.controller.tick(handle.state, now if now is not None else self.clock(), messages)

    def tick_all(self, now: Optional[int] = None) -> None:
        with self._guard:
            match_ids = list(self._matches)
        for match_id in match_ids:
            try:
                self.tick(match_id, now)
            except Exception:
                # One broken match must not stall the others
                logger.exception(f"[tick-failed] match={match_id}")

    def terminate(self, match_id: str, grace_seconds: int = 0) -> None:
        with self._guard:
            handle = self._matches.pop(match_id, None)
        if handle is None:
            return
        with handle.lock:
            handle.controller.terminate(handle.state, grace_seconds)
        socketio.emit('session_ended', {'match_id': match_id}, to=match_room(match_id), namespace=NAMESPACE)

    # ---- Tick loop ----

    def _ensure_loop(self) -> None:
        # Tests drive ticks explicitly
        if self.app.config.get('TESTING'):
            return
        with self._guard:
            if self._loop_started:
                return
            self._loop_started = True
        socketio.start_background_task(self._run_loop, self.app)

    def _run_loop(self, app) -> None:
        interval = int(app.config.get('TICK_INTERVAL_SEC', 1))
        logger.info(f"[tick-loop] started interval={interval}s")
        while True:
            socketio.sleep(interval)
            with app.app_context():
                self.tick_all()


registry = MatchRegistry()
