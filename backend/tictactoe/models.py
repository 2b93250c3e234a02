from tictactoe import db
import random
import time


def _now():
    return int(time.time())


class PlayerStatus(db.Model):
    __tablename__ = 'player_status'
    user_id = db.Column(db.String(255), primary_key=True)
    is_banned = db.Column(db.Boolean, default=False, nullable=False)
    ban_reason = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.Integer, default=_now)

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'is_banned': self.is_banned,
            'ban_reason': self.ban_reason,
        }


class PlayerStats(db.Model):
    __tablename__ = 'player_stats'
    user_id = db.Column(db.String(255), primary_key=True)
    username = db.Column(db.String(255), nullable=True)
    total_wins = db.Column(db.Integer, default=0, nullable=False)
    total_losses = db.Column(db.Integer, default=0, nullable=False)
    total_draws = db.Column(db.Integer, default=0, nullable=False)
    skill_rating = db.Column(db.Integer, default=1000, nullable=False)
    updated_at = db.Column(db.Integer, default=_now, onupdate=_now)

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'username': self.username,
            'total_wins': self.total_wins,
            'total_losses': self.total_losses,
            'total_draws': self.total_draws,
            'skill_rating': self.skill_rating,
        }


class MatchHistory(db.Model):
    __tablename__ = 'match_history'
    match_id = db.Column(db.String(255), primary_key=True)
    winner_id = db.Column(db.String(255), nullable=True)
    loser_id = db.Column(db.String(255), nullable=True)
    mode = db.Column(db.String(20), nullable=False)
    duration_seconds = db.Column(db.Integer, default=0, nullable=False)
    completed_at = db.Column(db.Integer, default=_now)

    def to_dict(self):
        return {
            'match_id': self.match_id,
            'winner_id': self.winner_id,
            'loser_id': self.loser_id,
            'mode': self.mode,
            'duration_seconds': self.duration_seconds,
            'completed_at': self.completed_at,
        }


class MatchChat(db.Model):
    __tablename__ = 'match_chat'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(255), nullable=False, index=True)
    username = db.Column(db.String(255), nullable=True)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.Integer, default=_now)


class LeaderboardRecord(db.Model):
    __tablename__ = 'leaderboard_record'
    __table_args__ = (
        db.UniqueConstraint('leaderboard_id', 'owner_id', name='uq_leaderboard_owner'),
    )
    id = db.Column(db.Integer, primary_key=True)
    leaderboard_id = db.Column(db.String(64), nullable=False, index=True)
    owner_id = db.Column(db.String(255), nullable=False)
    username = db.Column(db.String(255), nullable=True)
    score = db.Column(db.Integer, default=0, nullable=False)
    updated_at = db.Column(db.Integer, default=_now, onupdate=_now)

    def to_dict(self, rank=None):
        return {
            'user_id': self.owner_id,
            'username': self.username,
            'score': self.score,
            'rank': rank,
        }


def generate_short_code(length=6):
    """Generate a unique numeric short code for sharing a match."""
    for _ in range(10):
        code = ''.join(random.choices('0123456789', k=length))
        if not MatchCode.query.filter_by(code=code).first():
            return code
    return None


class MatchCode(db.Model):
    __tablename__ = 'match_code'
    code = db.Column(db.String(6), primary_key=True)
    match_id = db.Column(db.String(255), nullable=False, index=True)
    mode = db.Column(db.String(20), nullable=False)
    created_at = db.Column(db.Integer, default=_now)

    def to_dict(self):
        return {
            'code': self.code,
            'match_id': self.match_id,
            'mode': self.mode,
        }
