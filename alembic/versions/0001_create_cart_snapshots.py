from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_cart_snapshots"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "cart_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tenant_slug", sa.String(120), nullable=False),
        sa.Column("session_id", sa.String(120), nullable=False),
        sa.Column("storage_key", sa.String(64), nullable=False, server_default="cartItems"),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("tenant_slug", "session_id", name="uq_cart_snapshots_tenant_session"),
    )
    op.create_index("ix_cart_snapshots_tenant_slug", "cart_snapshots", ["tenant_slug"])


def downgrade() -> None:
    op.drop_index("ix_cart_snapshots_tenant_slug", table_name="cart_snapshots")
    op.drop_table("cart_snapshots")
