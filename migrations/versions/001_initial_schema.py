"""Initial schema: the key-value table backing every entity.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── kv_store ──────────────────────────────────────────────────────
    op.create_table(
        "kv_store",
        sa.Column("key", sa.Text, primary_key=True),
        sa.Column(
            "value",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # text_pattern_ops lets LIKE 'prefix%' use the index under any collation
    op.create_index(
        "idx_kv_store_key_prefix",
        "kv_store",
        ["key"],
        postgresql_ops={"key": "text_pattern_ops"},
    )


def downgrade() -> None:
    op.drop_index("idx_kv_store_key_prefix", table_name="kv_store")
    op.drop_table("kv_store")
