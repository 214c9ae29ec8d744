"""Initial schema - collection catalog and the replication job collection.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JOB_INDEXES = [{"name": "state", "field": "state"}]


def upgrade() -> None:
    op.create_table(
        "_collections",
        sa.Column("name", sa.String(63), primary_key=True),
        sa.Column("indexes", JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )

    # Same layout as tables created at runtime for collections.
    op.create_table(
        "_replicator",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("seq", sa.BigInteger(), nullable=False),
        sa.Column("body", JSONB(), nullable=False),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("idx", JSONB(), nullable=False),
        sa.Column("cluster_id", sa.String(255), nullable=False, server_default=""),
    )
    op.create_index("ix__replicator_seq", "_replicator", ["seq"], unique=True)
    op.execute(
        'CREATE INDEX ix__replicator_state ON "_replicator" '
        "((idx ->> 'state') COLLATE \"C\", id)"
    )

    catalog = sa.table(
        "_collections",
        sa.column("name", sa.String),
        sa.column("indexes", JSONB),
    )
    op.bulk_insert(catalog, [{"name": "_replicator", "indexes": JOB_INDEXES}])


def downgrade() -> None:
    op.drop_table("_replicator")
    op.drop_table("_collections")
