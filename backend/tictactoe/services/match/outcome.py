import logging
from typing import Optional

from .collaborators import (
    RESULT_DRAW,
    RESULT_LOSS,
    RESULT_WIN,
    HistoryStore,
    Leaderboard,
    MatchRecord,
)
from .effects import SideEffects
from .state import MatchState

logger = logging.getLogger(__name__)

LEADERBOARD_WINS = 'global_wins'
LEADERBOARD_STREAKS = 'win_streaks'


def history_key(state: MatchState) -> str:
    # Rematches reuse the match instance, so later games get a numbered key
    if state.game_number <= 1:
        return state.match_id
    return f"{state.match_id}:{state.game_number}"


class OutcomeRecorder:
    """Applies a concluded game to player counters and external records.

    Counters on ``PlayerData`` are authoritative and updated immediately.
    Leaderboard, stats and history writes go through ``SideEffects`` and may
    fail without affecting them.
    """

    def __init__(self, leaderboard: Leaderboard, history: HistoryStore, effects: SideEffects):
        self.leaderboard = leaderboard
        self.history = history
        self.effects = effects

    def apply_result(self, state: MatchState, user_id: str, won: bool) -> None:
        player = state.players.get(user_id)
        if player is None:
            logger.error(f"[stats] match={state.match_id} unknown player={user_id}")
            return

        if won:
            player.wins += 1
            player.streak += 1
            self.effects.submit('leaderboard:wins', self.leaderboard.increment,
                                LEADERBOARD_WINS, user_id, player.username, 1)
            self.effects.submit('leaderboard:streak', self.leaderboard.set_score,
                                LEADERBOARD_STREAKS, user_id, player.username, player.streak)
            result = RESULT_WIN
        elif state.is_draw:
            result = RESULT_DRAW
        else:
            player.losses += 1
            player.streak = 0
            result = RESULT_LOSS

        logger.info(
            f"[stats] match={state.match_id} user={user_id} result={result} "
            f"wins={player.wins} losses={player.losses} streak={player.streak}"
        )
        self.effects.submit('stats', self.history.record_player_result, user_id, player.username, result)

    def record_game(self, state: MatchState, now: int) -> Optional[MatchRecord]:
        """Append the history row for the game that just ended."""
        if not state.game_over:
            return None

        loser_id = None
        if state.winner is not None:
            loser_id = state.opponent_of(state.winner)

        record = MatchRecord(
            match_id=history_key(state),
            winner_id=state.winner,
            loser_id=loser_id,
            mode=state.mode,
            duration_seconds=max(0, int(now - state.game_started_at)) if state.game_started_at else 0,
        )
        self.effects.submit('history', self.history.record_match, record)
        return record
