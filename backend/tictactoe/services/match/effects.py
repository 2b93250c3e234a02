import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

Spawner = Callable[..., Any]


def run_inline(fn: Callable[..., Any], *args: Any) -> None:
    fn(*args)


class SideEffects:
    """Runs best-effort writes (leaderboard, history, chat) off the game path.

    ``spawn`` decides where the work runs: inline by default, or a background
    task when the host provides one. A failing write is logged and dropped;
    the in-memory game state is never rolled back because of it.
    """

    def __init__(self, spawn: Optional[Spawner] = None):
        self._spawn = spawn or run_inline
        self.failures = 0

    def submit(self, label: str, fn: Callable[..., Any], *args: Any) -> None:
        self._spawn(self._guarded, label, fn, args)

    def _guarded(self, label: str, fn: Callable[..., Any], args: tuple) -> None:
        try:
            fn(*args)
        except Exception:
            self.failures += 1
            logger.exception(f"[side-effect-failed] {label}")
