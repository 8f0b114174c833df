"""Create Samples and sync_runs tables

Revision ID: 001
Revises:
Create Date: 2026-10-17

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
        'Samples',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('barcode', sa.String(100), nullable=False),
        sa.Column('results', sa.Text(), nullable=True),
        sa.Column('created_time', sa.DateTime(), nullable=True),
        sa.Column('updated_time', sa.DateTime(), nullable=True),
        sa.Column('sample_date', sa.Text(), nullable=True),
    )
    # Deliberately not unique; see Reconciler.commit_result
    op.create_index('ix_samples_barcode', 'Samples', ['barcode'])
    op.create_index('ix_samples_updated_time', 'Samples', ['updated_time'])

    op.create_table(
        'sync_runs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('trigger', sa.String(30), nullable=False),
        sa.Column(
            'status',
            sa.Enum('SUCCESS', 'FAILED', 'PARTIAL', name='syncstatus'),
            nullable=False,
        ),
        sa.Column('samples_checked', sa.Integer(), nullable=True),
        sa.Column('samples_resolved', sa.Integer(), nullable=True),
        sa.Column('errors', sa.JSON(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('sync_runs')
    op.drop_index('ix_samples_updated_time', table_name='Samples')
    op.drop_index('ix_samples_barcode', table_name='Samples')
    op.drop_table('Samples')
