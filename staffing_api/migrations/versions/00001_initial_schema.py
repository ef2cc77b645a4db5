"""Initial schema - projects, assignments, candidates, notifications, audit.

Revision ID: 00001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '00001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # =====================
    # Independent tables (no foreign keys)
    # =====================

    # projects
    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_projects_owner', 'projects', ['owner_id'])
    op.create_index('ix_projects_status', 'projects', ['status'])

    # candidate_profiles
    op.create_table(
        'candidate_profiles',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('profile_id', sa.String(100), nullable=False),
        sa.Column('seniority', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='qualification'),
        sa.Column('qualification_status', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_candidate_profiles_match', 'candidate_profiles', ['profile_id', 'seniority'])

    # =====================
    # Dependent tables
    # =====================

    # resource_assignments
    op.create_table(
        'resource_assignments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('profile_id', sa.String(100), nullable=False),
        sa.Column('seniority', sa.String(20), nullable=False),
        sa.Column('calculated_price', sa.Float(), nullable=True),
        sa.Column('booking_status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('candidate_id', sa.String(36), nullable=True),
        sa.Column('booked_at', sa.DateTime(), nullable=True),
        sa.Column('replaced_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidate_profiles.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['replaced_by_id'], ['resource_assignments.id'], ondelete='SET NULL'),
        sa.CheckConstraint(
            "booking_status NOT IN ('accepted', 'booké') OR candidate_id IS NOT NULL",
            name='ck_resource_assignments_accepted_has_candidate',
        ),
    )
    op.create_index('ix_resource_assignments_project', 'resource_assignments', ['project_id'])
    op.create_index('ix_resource_assignments_status', 'resource_assignments', ['booking_status'])
    op.create_index('ix_resource_assignments_candidate', 'resource_assignments', ['candidate_id'])

    # assignment_requirements
    op.create_table(
        'assignment_requirements',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('assignment_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(20), nullable=False),
        sa.Column('value', sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['assignment_id'], ['resource_assignments.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('assignment_id', 'kind', 'value', name='uq_assignment_requirements'),
    )
    op.create_index('ix_assignment_requirements_assignment_id', 'assignment_requirements', ['assignment_id'])

    # candidate_skills
    op.create_table(
        'candidate_skills',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('candidate_id', sa.String(36), nullable=False),
        sa.Column('kind', sa.String(20), nullable=False),
        sa.Column('value', sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidate_profiles.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('candidate_id', 'kind', 'value', name='uq_candidate_skills'),
    )
    op.create_index('ix_candidate_skills_candidate_id', 'candidate_skills', ['candidate_id'])

    # candidate_notifications
    op.create_table(
        'candidate_notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('candidate_id', sa.String(36), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('assignment_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='unread'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidate_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assignment_id'], ['resource_assignments.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_candidate_notifications_candidate', 'candidate_notifications', ['candidate_id', 'status'])
    op.create_index('ix_candidate_notifications_assignment', 'candidate_notifications', ['assignment_id', 'status'])

    # booking_events
    op.create_table(
        'booking_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('assignment_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('from_status', sa.String(20), nullable=False),
        sa.Column('to_status', sa.String(20), nullable=False),
        sa.Column('candidate_id', sa.String(36), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('actor_id', sa.String(36), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['assignment_id'], ['resource_assignments.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_booking_events_assignment', 'booking_events', ['assignment_id'])
    op.create_index('ix_booking_events_created', 'booking_events', ['created_at'])


def downgrade() -> None:
    # Drop in reverse order of dependencies
    op.drop_table('booking_events')
    op.drop_table('candidate_notifications')
    op.drop_table('candidate_skills')
    op.drop_table('assignment_requirements')
    op.drop_table('resource_assignments')
    op.drop_table('candidate_profiles')
    op.drop_table('projects')
