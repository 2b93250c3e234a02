"""Structured exceptions raised by the match session services."""

from typing import Any, Dict, Optional


class MatchError(Exception):
    """Base class for rejected match input."""

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.__class__.__name__, 'message': str(self)}


class MoveRejected(MatchError):
    """Raised when a move fails validation; the state is left untouched."""

    def __init__(self, user_id: str, position: Any, reason: str):
        self.user_id = user_id
        self.position = position
        self.reason = reason
        super().__init__(reason)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({'user_id': self.user_id, 'position': self.position})
        return payload


class SignalRejected(MatchError):
    """Raised for malformed, unknown or currently disallowed signals."""

    def __init__(self, message: str, signal_type: Optional[str] = None):
        self.signal_type = signal_type
        super().__init__(message)
