"""create game_record and game_record_entry

Revision ID: 3c7a9e1d52f0
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7a9e1d52f0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'game_record' not in existing_tables:
        op.create_table(
            'game_record',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('room_name', sa.String(length=128), nullable=False),
            sa.Column('finished_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('winner_id', sa.String(length=64), nullable=True),
            sa.Column('winner_name', sa.String(length=64), nullable=True),
            sa.Column('winner_worms', sa.Integer(), nullable=False, server_default='0'),
        )
        op.create_index('ix_game_record_finished_at', 'game_record', ['finished_at'])

    if 'game_record_entry' not in existing_tables:
        op.create_table(
            'game_record_entry',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('record_id', sa.Integer(), sa.ForeignKey('game_record.id'), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False),
            sa.Column('participant_id', sa.String(length=64), nullable=False),
            sa.Column('name', sa.String(length=64), nullable=True),
            sa.Column('worm_total', sa.Integer(), nullable=False, server_default='0'),
        )


def downgrade():
    op.drop_table('game_record_entry')
    op.drop_index('ix_game_record_finished_at', table_name='game_record')
    op.drop_table('game_record')
