"""Wire shapes for match traffic: op codes, queued client data and signals.

Signals are a tagged union keyed by ``type``; each recognized type parses into
its own dataclass and anything else is rejected rather than ignored.
"""

import json
from dataclasses import dataclass
from typing import Any, Mapping, NamedTuple, Union

from .errors import SignalRejected

OP_MOVE = 1
OP_STATE = 2
OP_GAME_END = 3
OP_TIMEOUT = 4
OP_CHAT = 5

# Broadcast event names, by op code
BROADCAST_EVENTS = {
    OP_STATE: 'state_update',
    OP_GAME_END: 'game_end',
    OP_TIMEOUT: 'timeout',
    OP_CHAT: 'chat',
}

SIGNAL_REMATCH = 'rematch_request'
SIGNAL_CHAT = 'chat_message'


class MatchData(NamedTuple):
    """One client message queued for the next tick."""
    op_code: int
    user_id: str
    data: Any


@dataclass(frozen=True)
class RematchRequest:
    user_id: str


@dataclass(frozen=True)
class ChatMessage:
    user_id: str
    message: str


Signal = Union[RematchRequest, ChatMessage]


def _load(raw: Any) -> Any:
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8')
    return json.loads(raw)


def parse_signal(raw: Any) -> Signal:
    try:
        data = _load(raw)
    except (TypeError, ValueError) as exc:
        raise SignalRejected(f'invalid signal data: {exc}')
    if not isinstance(data, Mapping):
        raise SignalRejected('invalid signal data: expected an object')

    user_id = data.get('userId')
    if not isinstance(user_id, str) or not user_id:
        raise SignalRejected('missing userId')

    signal_type = data.get('type')
    if not isinstance(signal_type, str) or not signal_type:
        raise SignalRejected('missing signal type')

    if signal_type == SIGNAL_REMATCH:
        return RematchRequest(user_id=user_id)
    if signal_type == SIGNAL_CHAT:
        message = data.get('message')
        if not isinstance(message, str):
            raise SignalRejected('missing message content', signal_type)
        return ChatMessage(user_id=user_id, message=message)
    raise SignalRejected(f'unknown signal type: {signal_type}', signal_type)


def parse_move(raw: Any) -> int:
    """Extract the board position from a move payload ``{"position": int}``."""
    try:
        data = _load(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f'invalid move data: {exc}')
    position = data.get('position') if isinstance(data, Mapping) else None
    # bool is an int subclass but never a position
    if isinstance(position, bool) or not isinstance(position, int):
        raise ValueError(f'invalid move position: {position!r}')
    return position
