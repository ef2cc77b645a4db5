"""Row-level security on resource_assignments for candidate sessions.

Candidates connecting with app.current_candidate_id set only see the
assignments the visibility rule grants them. The policy function is
generated from the same criteria the API uses, so both layers agree.
PostgreSQL only; other backends rely on the API filter alone.

Revision ID: 00002
Revises: 00001
Create Date: 2026-10-19
"""

from alembic import op

from staffing_api.services.access_policy import drop_policy_sql, render_policy_sql

# revision identifiers, used by Alembic.
revision = "00002"
down_revision = "00001"
branch_labels = None
depends_on = None


def is_postgresql() -> bool:
    """Check if the migration runs against PostgreSQL."""
    return op.get_bind().dialect.name == "postgresql"


def upgrade() -> None:
    """Create the visibility function and the SELECT policy."""
    if not is_postgresql():
        return
    for statement in render_policy_sql():
        op.execute(statement)


def downgrade() -> None:
    """Drop the policy and the function."""
    if not is_postgresql():
        return
    for statement in drop_policy_sql():
        op.execute(statement)
