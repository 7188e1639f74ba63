"""create employees table

Revision ID: 001
Revises:
Create Date: 2026-10-19

Adds:
- employees table holding canonical records from every provider
- unique email and unique (provider, external_id)
- lookup indexes on provider, downstream_id and updated_at
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.String(50), nullable=False),
        sa.Column('last_name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone_number', sa.String(20), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('hire_date', sa.Date(), nullable=True),
        sa.Column('department', sa.String(100), nullable=True),
        sa.Column('position', sa.String(100), nullable=True),
        sa.Column('provider', sa.String(50), nullable=False),
        sa.Column('external_id', sa.String(255), nullable=False),
        sa.Column('raw_payload', sa.JSON(), nullable=True),
        sa.Column('downstream_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('provider', 'external_id', name='uq_employees_provider_external_id'),
    )

    op.create_index('idx_employees_provider', 'employees', ['provider'])
    op.create_index('idx_employees_downstream_id', 'employees', ['downstream_id'])
    op.create_index('idx_employees_updated_at', 'employees', ['updated_at'])


def downgrade() -> None:
    op.drop_index('idx_employees_updated_at', table_name='employees')
    op.drop_index('idx_employees_downstream_id', table_name='employees')
    op.drop_index('idx_employees_provider', table_name='employees')
    op.drop_table('employees')
