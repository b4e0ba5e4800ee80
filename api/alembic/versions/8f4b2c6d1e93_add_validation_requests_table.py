"""add_validation_requests_table

Revision ID: 8f4b2c6d1e93
Revises: 3c1e7a9b2d40
Create Date: 2026-09-02 09:30:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8f4b2c6d1e93'
down_revision: Union[str, None] = '3c1e7a9b2d40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'validation_requests',
        sa.Column('id', sa.String(32), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('project_id', sa.String(32), nullable=False),
        sa.Column('requester_id', sa.String(32), nullable=False),
        sa.Column('approver_id', sa.String(32), nullable=True),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('response_comment', sa.Text(), nullable=True),
        # JSON payload serialized as text; shape depends on type
        sa.Column('metadata', sa.Text(), nullable=True),
        sa.Column('effect_applied', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['requester_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['approver_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "(status = 'PENDING' AND approver_id IS NULL AND responded_at IS NULL) OR "
            "(status != 'PENDING' AND responded_at IS NOT NULL)",
            name='chk_validation_decision_fields'
        ),
    )
    op.create_index('ix_validation_requests_project_id', 'validation_requests', ['project_id'])
    op.create_index('ix_validation_requests_requester_id', 'validation_requests', ['requester_id'])
    op.create_index(
        'ix_validation_requests_status_created', 'validation_requests', ['status', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_validation_requests_status_created', 'validation_requests')
    op.drop_index('ix_validation_requests_requester_id', 'validation_requests')
    op.drop_index('ix_validation_requests_project_id', 'validation_requests')
    op.drop_table('validation_requests')
