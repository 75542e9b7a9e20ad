"""initial schema

Revision ID: 5c1e7a9b2d40
Revises:
Create Date: 2026-10-17 09:12:44.180233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e7a9b2d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('idx_users_role', 'users', ['role'], unique=False)

    # audit_events table
    op.create_table(
        'audit_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('request_id', sa.String(length=64), nullable=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('actor_user_email', sa.String(length=255), nullable=True),
        sa.Column('action', sa.String(length=128), nullable=False),
        sa.Column('entity_type', sa.String(length=128), nullable=True),
        sa.Column('entity_id', sa.String(length=128), nullable=True),
        sa.Column('reason', sa.String(length=512), nullable=True),
        sa.Column('metadata_json', sa.Text(), nullable=True),
        sa.Column('client_ip', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['actor_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_audit_created_at', 'audit_events', ['created_at'], unique=False)
    op.create_index('idx_audit_action', 'audit_events', ['action'], unique=False)

    # app_settings table
    op.create_table(
        'app_settings',
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('key')
    )

    # alumni_profiles table
    op.create_table(
        'alumni_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('matric_no', sa.String(length=60), nullable=False),
        sa.Column('department', sa.String(length=120), nullable=False),
        sa.Column('graduation_year', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('employer', sa.String(length=160), nullable=True),
        sa.Column('job_title', sa.String(length=160), nullable=True),
        sa.Column('current_city', sa.String(length=120), nullable=True),
        sa.Column('skills', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sa.UniqueConstraint('matric_no')
    )
    op.create_index('idx_alumni_department', 'alumni_profiles', ['department'], unique=False)
    op.create_index('idx_alumni_graduation_year', 'alumni_profiles', ['graduation_year'], unique=False)
    op.create_index('idx_alumni_status', 'alumni_profiles', ['status'], unique=False)

    # jobs table
    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('poster_id', sa.Integer(), nullable=False),
        sa.Column('company', sa.String(length=120), nullable=True),
        sa.Column('title', sa.String(length=180), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('requirements', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=180), nullable=True),
        sa.Column('salary_range', sa.String(length=120), nullable=True),
        sa.Column('deadline', sa.Date(), nullable=True),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('approved_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['poster_id'], ['alumni_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_jobs_moderation', 'jobs', ['is_approved', 'is_active'], unique=False)
    op.create_index('idx_jobs_created_at', 'jobs', ['created_at'], unique=False)
    op.create_index('idx_jobs_poster', 'jobs', ['poster_id'], unique=False)

    # accomplishments table
    op.create_table(
        'accomplishments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('alumni_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=180), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=1000), nullable=True),
        sa.Column('date', sa.Date(), nullable=True),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        sa.Column('approved_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['alumni_id'], ['alumni_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_accomplishments_approved', 'accomplishments', ['is_approved'], unique=False)
    op.create_index('idx_accomplishments_alumni', 'accomplishments', ['alumni_id'], unique=False)

    # events table
    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=180), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=180), nullable=True),
        sa.Column('city', sa.String(length=120), nullable=True),
        sa.Column('start_at', sa.DateTime(), nullable=False),
        sa.Column('end_at', sa.DateTime(), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_events_start_at', 'events', ['start_at'], unique=False)
    op.create_index('idx_events_city', 'events', ['city'], unique=False)

    # event_rsvps table
    op.create_table(
        'event_rsvps',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('alumni_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['alumni_id'], ['alumni_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'alumni_id', name='uq_event_rsvps_event_alumni')
    )
    op.create_index('idx_event_rsvps_event_id', 'event_rsvps', ['event_id'], unique=False)
    op.create_index('idx_event_rsvps_alumni_id', 'event_rsvps', ['alumni_id'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_event_rsvps_alumni_id', table_name='event_rsvps')
    op.drop_index('idx_event_rsvps_event_id', table_name='event_rsvps')
    op.drop_table('event_rsvps')
    op.drop_index('idx_events_city', table_name='events')
    op.drop_index('idx_events_start_at', table_name='events')
    op.drop_table('events')
    op.drop_index('idx_accomplishments_alumni', table_name='accomplishments')
    op.drop_index('idx_accomplishments_approved', table_name='accomplishments')
    op.drop_table('accomplishments')
    op.drop_index('idx_jobs_poster', table_name='jobs')
    op.drop_index('idx_jobs_created_at', table_name='jobs')
    op.drop_index('idx_jobs_moderation', table_name='jobs')
    op.drop_table('jobs')
    op.drop_index('idx_alumni_status', table_name='alumni_profiles')
    op.drop_index('idx_alumni_graduation_year', table_name='alumni_profiles')
    op.drop_index('idx_alumni_department', table_name='alumni_profiles')
    op.drop_table('alumni_profiles')
    op.drop_table('app_settings')
    op.drop_index('idx_audit_action', table_name='audit_events')
    op.drop_index('idx_audit_created_at', table_name='audit_events')
    op.drop_table('audit_events')
    op.drop_index('idx_users_role', table_name='users')
    op.drop_table('users')
