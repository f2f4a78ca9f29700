"""create calendar tables

Revision ID: 5c1f2a9d7e40
Revises:
Create Date: 2025-12-02 10:14:52.318406

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1f2a9d7e40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('idx_profiles_role', 'profiles', ['role'], unique=False)

    op.create_table(
        'categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('icon', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_categories_name'), 'categories', ['name'], unique=True)

    op.create_table(
        'recurrence_rules',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('frequency', sa.String(length=20), nullable=False),
        sa.Column('interval', sa.Integer(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('max_occurrences', sa.Integer(), nullable=True),
        sa.Column('days_of_week', sa.JSON(), nullable=True),
        sa.Column('day_of_month', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('"interval" > 0', name='ck_recurrence_rules_interval_positive'),
        sa.CheckConstraint(
            'max_occurrences IS NULL OR max_occurrences BETWEEN 1 AND 365',
            name='ck_recurrence_rules_max_occurrences',
        ),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'events',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('all_day', sa.Boolean(), nullable=False),
        sa.Column('location', sa.String(length=500), nullable=True),
        sa.Column('visibility', sa.String(length=20), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=True),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('recurrence_rule_id', sa.Uuid(), nullable=True),
        sa.Column('series_id', sa.Uuid(), nullable=True),
        sa.Column('original_start_date', sa.Date(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['owner_id'], ['profiles.id'], ),
        sa.ForeignKeyConstraint(['recurrence_rule_id'], ['recurrence_rules.id'], ),
        sa.ForeignKeyConstraint(['series_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('series_id', 'original_start_date', name='uq_events_series_original_date')
    )
    op.create_index('idx_events_start_time', 'events', ['start_time'], unique=False)
    op.create_index('idx_events_owner_id', 'events', ['owner_id'], unique=False)
    op.create_index('idx_events_series_id', 'events', ['series_id'], unique=False)

    op.create_table(
        'event_exceptions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('event_id', sa.Uuid(), nullable=False),
        sa.Column('exception_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'exception_date', name='uq_event_exceptions_event_date')
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('event_exceptions')
    op.drop_index('idx_events_series_id', table_name='events')
    op.drop_index('idx_events_owner_id', table_name='events')
    op.drop_index('idx_events_start_time', table_name='events')
    op.drop_table('events')
    op.drop_table('recurrence_rules')
    op.drop_index(op.f('ix_categories_name'), table_name='categories')
    op.drop_table('categories')
    op.drop_index('idx_profiles_role', table_name='profiles')
    op.drop_table('profiles')
