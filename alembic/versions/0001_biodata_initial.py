"""biodata initial schema

Revision ID: 0001_biodata_initial
Revises:
Create Date: 2026-10-19 10:12:44.213871

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_biodata_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema - create users, drafts, profiles, moderation, reports and credit tables."""
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=5), server_default='USER', nullable=False),
        sa.Column('contact_info', sa.String(length=255), nullable=True),
        sa.Column('is_restricted', sa.Boolean(), server_default='0', nullable=False),
        sa.Column('is_banned', sa.Boolean(), server_default='0', nullable=False),
        sa.Column('has_profile', sa.Boolean(), server_default='0', nullable=False),
        sa.Column('credits', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index('ix_users_username', ['username'], unique=True)
        batch_op.create_index('ix_users_is_restricted', ['is_restricted'], unique=False)
        batch_op.create_index('ix_users_is_banned', ['is_banned'], unique=False)

    op.create_table('drafts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('current_step', sa.Integer(), nullable=False),
        sa.Column('draft_data', sa.JSON(), nullable=False),
        sa.Column('revision', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('current_step >= 1 AND current_step <= 4', name='ck_drafts_current_step_range'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_drafts_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_drafts'),
    )
    with op.batch_alter_table('drafts', schema=None) as batch_op:
        batch_op.create_index('ix_drafts_user_id', ['user_id'], unique=True)

    op.create_table('profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('profile_id', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('edit_count', sa.Integer(), nullable=False),
        sa.Column('edited_fields', sa.JSON(), nullable=False),
        sa.Column('last_edit_date', sa.DateTime(), nullable=True),
        sa.Column('gender', sa.String(length=16), nullable=False),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('religion', sa.String(length=32), nullable=True),
        sa.Column('marital_status', sa.String(length=32), nullable=True),
        sa.Column('present_address_district', sa.String(length=100), nullable=True),
        sa.Column('permanent_address_district', sa.String(length=100), nullable=True),
        sa.Column('guardian_knowledge', sa.String(length=8), nullable=False),
        sa.Column('information_truthfulness', sa.String(length=8), nullable=False),
        sa.Column('false_information_agreement', sa.String(length=8), nullable=False),
        sa.Column('contact_information', sa.Text(), nullable=False),
        sa.Column('personal_contact_info', sa.Text(), nullable=False),
        sa.Column('biodata', sa.JSON(), nullable=False),
        sa.Column('view_count', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status != 'rejected' OR (rejection_reason IS NOT NULL AND length(trim(rejection_reason)) > 0)",
            name='ck_profiles_rejected_has_reason',
        ),
        sa.CheckConstraint('edit_count >= 0', name='ck_profiles_edit_count_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_profiles_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_profiles'),
        sa.UniqueConstraint('user_id', name='uq_profiles_user_id'),
    )
    with op.batch_alter_table('profiles', schema=None) as batch_op:
        batch_op.create_index('ix_profiles_profile_id', ['profile_id'], unique=True)
        batch_op.create_index('ix_profiles_status', ['status'], unique=False)
        batch_op.create_index('idx_profiles_status_created', ['status', 'created_at'], unique=False)
        batch_op.create_index('idx_profiles_status_gender', ['status', 'gender'], unique=False)

    op.create_table('moderation_actions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('target_type', sa.String(length=11), nullable=False),
        sa.Column('target_id', sa.String(length=64), nullable=False),
        sa.Column('action', sa.String(length=11), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id'], name='fk_moderation_actions_actor_id_users', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_moderation_actions'),
    )
    with op.batch_alter_table('moderation_actions', schema=None) as batch_op:
        batch_op.create_index('idx_moderation_actions_target', ['target_type', 'target_id'], unique=False)

    op.create_table('reports',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('reported_profile_id', sa.Integer(), nullable=False),
        sa.Column('reported_by', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('status', sa.String(length=12), nullable=False),
        sa.Column('priority', sa.String(length=6), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('action_taken', sa.String(length=17), nullable=False),
        sa.Column('reviewed_by', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['reported_profile_id'], ['profiles.id'], name='fk_reports_reported_profile_id_profiles', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reported_by'], ['users.id'], name='fk_reports_reported_by_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], name='fk_reports_reviewed_by_users', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_reports'),
    )
    with op.batch_alter_table('reports', schema=None) as batch_op:
        batch_op.create_index('ix_reports_reported_profile_id', ['reported_profile_id'], unique=False)
        batch_op.create_index('idx_reports_status_priority', ['status', 'priority'], unique=False)

    op.create_table('credit_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=15), nullable=False),
        sa.Column('status', sa.String(length=8), server_default='pending', nullable=False),
        sa.Column('credits', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('payment_reference', sa.String(length=100), nullable=True),
        sa.Column('phone_number', sa.String(length=32), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('credits > 0', name='ck_credit_transactions_credits_positive'),
        sa.CheckConstraint('price >= 0', name='ck_credit_transactions_price_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_credit_transactions_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['processed_by'], ['users.id'], name='fk_credit_transactions_processed_by_users', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_credit_transactions'),
    )
    with op.batch_alter_table('credit_transactions', schema=None) as batch_op:
        batch_op.create_index('idx_credit_transaction_user_id', ['user_id'], unique=False)
        batch_op.create_index('idx_credit_transaction_type_status', ['type', 'status'], unique=False)


def downgrade() -> None:
    """Downgrade schema - drop every table, dependents first."""
    op.drop_table('credit_transactions')
    op.drop_table('reports')
    op.drop_table('moderation_actions')
    op.drop_table('profiles')
    op.drop_table('drafts')
    op.drop_table('users')
