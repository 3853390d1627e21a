"""alumni verification requests

Revision ID: 0002_alumni_verification
Revises: 0001_biodata_initial
Create Date: 2026-10-19 15:40:02.518337

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_alumni_verification'
down_revision: Union[str, Sequence[str], None] = '0001_biodata_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - add the verification flags to users."""
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.add_column(sa.Column('alumni_verified', sa.Boolean(), server_default='0', nullable=False))
        batch_op.add_column(sa.Column('verification_requested', sa.Boolean(), server_default='0', nullable=False))
        batch_op.create_index('ix_users_verification_requested', ['verification_requested'], unique=False)


def downgrade() -> None:
    """Downgrade schema - drop the verification flags."""
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index('ix_users_verification_requested')
        batch_op.drop_column('verification_requested')
        batch_op.drop_column('alumni_verified')
