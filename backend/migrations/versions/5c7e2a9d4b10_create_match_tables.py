"""create player_status, player_stats, match_history, match_chat, leaderboard_record, match_code

Revision ID: 5c7e2a9d4b10
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c7e2a9d4b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'player_status' not in existing_tables:
        op.create_table(
            'player_status',
            sa.Column('user_id', sa.String(length=255), primary_key=True),
            sa.Column('is_banned', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('ban_reason', sa.String(length=255), nullable=True),
            sa.Column('created_at', sa.Integer(), nullable=True),
        )

    if 'player_stats' not in existing_tables:
        op.create_table(
            'player_stats',
            sa.Column('user_id', sa.String(length=255), primary_key=True),
            sa.Column('username', sa.String(length=255), nullable=True),
            sa.Column('total_wins', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_losses', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('total_draws', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('skill_rating', sa.Integer(), nullable=False, server_default='1000'),
            sa.Column('updated_at', sa.Integer(), nullable=True),
        )

    if 'match_history' not in existing_tables:
        op.create_table(
            'match_history',
            sa.Column('match_id', sa.String(length=255), primary_key=True),
            sa.Column('winner_id', sa.String(length=255), nullable=True),
            sa.Column('loser_id', sa.String(length=255), nullable=True),
            sa.Column('mode', sa.String(length=20), nullable=False),
            sa.Column('duration_seconds', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('completed_at', sa.Integer(), nullable=True),
        )

    if 'match_chat' not in existing_tables:
        op.create_table(
            'match_chat',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.String(length=255), nullable=False),
            sa.Column('username', sa.String(length=255), nullable=True),
            sa.Column('message', sa.Text(), nullable=False),
            sa.Column('created_at', sa.Integer(), nullable=True),
        )
        op.create_index('ix_match_chat_user_id', 'match_chat', ['user_id'])

    if 'leaderboard_record' not in existing_tables:
        op.create_table(
            'leaderboard_record',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('leaderboard_id', sa.String(length=64), nullable=False),
            sa.Column('owner_id', sa.String(length=255), nullable=False),
            sa.Column('username', sa.String(length=255), nullable=True),
            sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('updated_at', sa.Integer(), nullable=True),
            sa.UniqueConstraint('leaderboard_id', 'owner_id', name='uq_leaderboard_owner'),
        )
        op.create_index('ix_leaderboard_record_leaderboard_id', 'leaderboard_record', ['leaderboard_id'])

    if 'match_code' not in existing_tables:
        op.create_table(
            'match_code',
            sa.Column('code', sa.String(length=6), primary_key=True),
            sa.Column('match_id', sa.String(length=255), nullable=False),
            sa.Column('mode', sa.String(length=20), nullable=False),
            sa.Column('created_at', sa.Integer(), nullable=True),
        )
        op.create_index('ix_match_code_match_id', 'match_code', ['match_id'])


def downgrade():
    op.drop_index('ix_match_code_match_id', table_name='match_code')
    op.drop_table('match_code')
    op.drop_index('ix_leaderboard_record_leaderboard_id', table_name='leaderboard_record')
    op.drop_table('leaderboard_record')
    op.drop_index('ix_match_chat_user_id', table_name='match_chat')
    op.drop_table('match_chat')
    op.drop_table('match_history')
    op.drop_table('player_stats')
    op.drop_table('player_status')
