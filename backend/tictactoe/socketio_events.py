from flask import request
from flask_socketio import join_room, leave_room, emit
from tictactoe import socketio
from tictactoe.runtime import NAMESPACE, match_room, registry
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)

# Socket id -> the match and player identity it joined with
_sid_to_ctx: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    return request.sid  # type: ignore[attr-defined]


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(*args):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    registry.leave(ctx['match_id'], ctx['user_id'], ctx.get('username', ''))


def _payload(data):
    """Return the event payload as a dict, or None when it is not a JSON object."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        emit('error', {'message': 'invalid payload'})
        return None
    return data


def handle_join_match(data):
    data = _payload(data)
    if data is None:
        return
    match_id = data.get('match_id')
    user_id = data.get('user_id')
    if not match_id or not user_id:
        emit('error', {'message': 'match_id and user_id are required'})
        return
    username = data.get('username') or user_id
    metadata = data.get('metadata') or {}

    room = match_room(match_id)
    # Join the room first so the start-of-game broadcast reaches this socket
    join_room(room)
    accepted, reason = registry.join(match_id, user_id, username, metadata)
    if not accepted:
        leave_room(room)
        emit('join_rejected', {'match_id': match_id, 'reason': reason})
        return

    _sid_to_ctx[_get_sid()] = {'match_id': match_id, 'user_id': user_id, 'username': username}
    emit('joined', {'room': room, 'state': registry.snapshot(match_id)})


def handle_leave_match(data):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        emit('error', {'message': 'not in a match'})
        return
    leave_room(match_room(ctx['match_id']))
    emit('left', {'match_id': ctx['match_id']})
    registry.leave(ctx['match_id'], ctx['user_id'], ctx.get('username', ''))


def handle_move(data):
    ctx = _sid_to_ctx.get(_get_sid())
    if not ctx:
        emit('error', {'message': 'join a match before moving'})
        return
    data = _payload(data)
    if data is None:
        return
    # Applied on the next tick of the match loop
    if not registry.queue_move(ctx['match_id'], ctx['user_id'], {'position': data.get('position')}):
        emit('error', {'message': 'match not found'})


def handle_signal(data):
    ctx = _sid_to_ctx.get(_get_sid())
    if not ctx:
        emit('error', {'message': 'join a match before signalling'})
        return
    data = _payload(data)
    if data is None:
        return
    payload = dict(data)
    payload.pop('match_id', None)
    payload['userId'] = ctx['user_id']
    result = registry.signal(ctx['match_id'], payload)
    emit('signal_result', {'type': payload.get('type'), 'result': result})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers on namespace '/ws'.

    When testing is True, also mirror handlers on the default namespace '/'
    to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_match', handle_join_match, namespace=namespace)
        socketio.on_event('leave_match', handle_leave_match, namespace=namespace)
        socketio.on_event('move', handle_move, namespace=namespace)
        socketio.on_event('signal', handle_signal, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
