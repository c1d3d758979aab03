"""Create contact and inbound_email tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'contact',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('phone', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        # Natural key: at most one contact per email, enforced by the database
        sa.UniqueConstraint('email', name='uq_contact_email'),
    )

    op.create_table(
        'inbound_email',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('subject', sa.Text(), server_default='', nullable=False),
        sa.Column('raw_text', sa.Text(), nullable=False),
        sa.Column('processed', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('received_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_index(
        'idx_inbound_email_processed_received',
        'inbound_email',
        ['processed', 'received_at']
    )


def downgrade():
    op.drop_index('idx_inbound_email_processed_received', table_name='inbound_email')
    op.drop_table('inbound_email')
    op.drop_table('contact')
