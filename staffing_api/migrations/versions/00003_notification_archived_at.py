"""Add archived_at to candidate_notifications.

Archiving becomes a flag so the notification keeps its status. A declined
mission request stays declined after the candidate archives it.

Revision ID: 00003
Revises: 00002
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '00003'
down_revision = '00002'
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Add archived_at and move archived rows onto it."""
    op.add_column(
        'candidate_notifications',
        sa.Column('archived_at', sa.DateTime(), nullable=True)
    )
    # The status before archiving is lost, read is the closest answer
    op.execute(
        "UPDATE candidate_notifications "
        "SET archived_at = COALESCE(updated_at, created_at), status = 'read' "
        "WHERE status = 'archived'"
    )


def downgrade() -> None:
    """Fold archived_at back into the status column."""
    op.execute(
        "UPDATE candidate_notifications SET status = 'archived' "
        "WHERE archived_at IS NOT NULL AND status <> 'declined'"
    )
    with op.batch_alter_table('candidate_notifications') as batch_op:
        batch_op.drop_column('archived_at')
