"""Create leaderboard_documents table

Revision ID: 20261017_documents
Revises:
Create Date: 2026-10-17

This migration creates the key/value table the SQL document store keeps
leaderboard documents in. Payloads are stored verbatim as JSON text.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261017_documents"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create leaderboard_documents."""
    op.create_table(
        "leaderboard_documents",
        sa.Column("key", sa.String(length=255), primary_key=True),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    """Drop leaderboard_documents."""
    op.drop_table("leaderboard_documents")
