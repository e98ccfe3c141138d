"""keep the access token issued with the superseded refresh token

Revision ID: 9c3e51a0d2f4
Revises: 4b1d9e2a7c31
Create Date: 2026-10-20 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '9c3e51a0d2f4'
down_revision = '4b1d9e2a7c31'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('users') as batch_op:
        batch_op.add_column(
            sa.Column('previous_access_token_hash', sa.String(length=64), nullable=True)
        )
        batch_op.add_column(
            sa.Column('previous_access_token_expires_at', sa.BigInteger(), nullable=True)
        )


def downgrade():
    with op.batch_alter_table('users') as batch_op:
        batch_op.drop_column('previous_access_token_expires_at')
        batch_op.drop_column('previous_access_token_hash')
