"""create users with token hashes

Revision ID: 4b1d9e2a7c31
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '4b1d9e2a7c31'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=254), nullable=False),
        sa.Column('full_name', sa.String(length=100), nullable=True),
        sa.Column('password_hash', sa.String(length=254), nullable=False),
        sa.Column('access_token_hash', sa.String(length=64), nullable=True),
        sa.Column('refresh_token_hash', sa.String(length=64), nullable=True),
        sa.Column('previous_refresh_token_hash', sa.String(length=64), nullable=True),
        sa.Column('access_token_expires_at', sa.BigInteger(), nullable=True),
        sa.Column('refresh_token_expires_at', sa.BigInteger(), nullable=True),
        sa.Column(
            'created_at', sa.DateTime(timezone=True), server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            'updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('username', name='uq_users_username'),
    )


def downgrade():
    op.drop_table('users')
