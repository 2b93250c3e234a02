"""Database-backed collaborators for the match services."""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tictactoe import db
from tictactoe.models import (
    LeaderboardRecord,
    MatchChat,
    MatchHistory,
    PlayerStats,
    PlayerStatus,
)
from tictactoe.services.match.collaborators import RESULT_DRAW, RESULT_LOSS, RESULT_WIN

logger = logging.getLogger(__name__)

_RESULT_COUNTERS = {
    RESULT_WIN: 'total_wins',
    RESULT_LOSS: 'total_losses',
    RESULT_DRAW: 'total_draws',
}


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


def _upsert(model, filters, values, build, attempts=3):
    """Apply ``values`` to the matching row in one UPDATE, inserting ``build()`` if none exists.

    Values may be SQL expressions (``Model.col + 1``) so concurrent writers never
    overwrite each other. A duplicate insert means another writer created the row
    first; the update is retried against it.
    """
    for _ in range(attempts):
        try:
            updated = model.query.filter_by(**filters).update(values, synchronize_session=False)
            if not updated:
                db.session.add(build())
            db.session.commit()
            return
        except IntegrityError:
            db.session.rollback()
            logger.info(f"[upsert] {model.__tablename__} {filters} created concurrently, retrying update")
        except SQLAlchemyError:
            db.session.rollback()
            raise
    raise RuntimeError(f"could not write {model.__tablename__} row {filters}")


class SqlBanStore:
    def is_banned(self, user_id):
        status = db.session.get(PlayerStatus, user_id)
        return bool(status and status.is_banned)

    def ban(self, user_id, reason=None):
        status = db.session.get(PlayerStatus, user_id) or PlayerStatus(user_id=user_id)
        status.is_banned = True
        status.ban_reason = reason
        db.session.add(status)
        _commit()
        logger.info(f"[ban] user={user_id} reason={reason}")

    def unban(self, user_id):
        status = db.session.get(PlayerStatus, user_id)
        if status is None:
            return False
        status.is_banned = False
        status.ban_reason = None
        db.session.add(status)
        _commit()
        logger.info(f"[unban] user={user_id}")
        return True


class SqlLeaderboard:
    def _write(self, leaderboard_id, owner_id, username, score_expr, initial):
        filters = {'leaderboard_id': leaderboard_id, 'owner_id': owner_id}
        values = {LeaderboardRecord.score: score_expr}
        if username:
            values[LeaderboardRecord.username] = username
        _upsert(LeaderboardRecord, filters, values, lambda: LeaderboardRecord(
            leaderboard_id=leaderboard_id, owner_id=owner_id, username=username or None, score=initial))
        score = db.session.query(LeaderboardRecord.score).filter_by(**filters).scalar()
        logger.info(f"[leaderboard] board={leaderboard_id} user={owner_id} score={score}")
        return score

    def increment(self, leaderboard_id, owner_id, username, amount):
        return self._write(leaderboard_id, owner_id, username, LeaderboardRecord.score + amount, amount)

    def set_score(self, leaderboard_id, owner_id, username, score):
        return self._write(leaderboard_id, owner_id, username, score, score)

    def top(self, leaderboard_id, limit=10):
        records = (
            LeaderboardRecord.query
            .filter_by(leaderboard_id=leaderboard_id)
            .order_by(LeaderboardRecord.score.desc(), LeaderboardRecord.updated_at.asc(), LeaderboardRecord.id.asc())
            .limit(limit)
            .all()
        )
        return [r.to_dict(rank=i + 1) for i, r in enumerate(records)]


class SqlHistoryStore:
    def record_match(self, record):
        """Insert the history row; an existing row for the same key is kept."""
        if db.session.get(MatchHistory, record.match_id) is not None:
            logger.info(f"[history] match={record.match_id} already recorded")
            return False
        db.session.add(MatchHistory(
            match_id=record.match_id,
            winner_id=record.winner_id,
            loser_id=record.loser_id,
            mode=record.mode,
            duration_seconds=record.duration_seconds,
        ))
        try:
            db.session.commit()
        except IntegrityError:
            # Lost a race with another insert for the same key
            db.session.rollback()
            return False
        except SQLAlchemyError:
            db.session.rollback()
            raise
        logger.info(f"[history] match={record.match_id} winner={record.winner_id} loser={record.loser_id}")
        return True

    def record_player_result(self, user_id, username, result):
        counter = _RESULT_COUNTERS.get(result)
        values = {PlayerStats.username: username}
        initial = {'total_wins': 0, 'total_losses': 0, 'total_draws': 0}
        if counter is not None:
            column = getattr(PlayerStats, counter)
            values[column] = column + 1
            initial[counter] = 1
        _upsert(PlayerStats, {'user_id': user_id}, values,
                lambda: PlayerStats(user_id=user_id, username=username, **initial))

    def record_chat(self, user_id, username, message, timestamp):
        db.session.add(MatchChat(user_id=user_id, username=username, message=message, created_at=timestamp))
        _commit()

    def get_match(self, match_id):
        row = db.session.get(MatchHistory, match_id)
        return row.to_dict() if row else None
