"""Add outreach tracking columns to contact

Revision ID: 002
Revises: 001
Create Date: 2026-10-18 14:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    # Batch mode: SQLite cannot ADD COLUMN with a non-constant default, so the
    # table is rebuilt there; PostgreSQL gets plain ALTER TABLE statements.
    with op.batch_alter_table('contact') as batch_op:
        batch_op.add_column(sa.Column('status', sa.Text(), server_default='NEW', nullable=False))
        batch_op.add_column(sa.Column('sequence_day', sa.Integer(), server_default='0', nullable=False))
        batch_op.add_column(sa.Column('last_contacted_at', sa.DateTime(timezone=True), nullable=True))
        batch_op.add_column(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        )

    op.create_index('idx_contact_status', 'contact', ['status'])


def downgrade():
    op.drop_index('idx_contact_status', table_name='contact')

    with op.batch_alter_table('contact') as batch_op:
        batch_op.drop_column('updated_at')
        batch_op.drop_column('last_contacted_at')
        batch_op.drop_column('sequence_day')
        batch_op.drop_column('status')
