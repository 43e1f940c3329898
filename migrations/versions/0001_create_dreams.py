"""create dreams table

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Single-table schema: one row per submitted dream, interpretation fields
filled in later by an admin. `tags` is a JSON array stored as Text.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


gender_enum = sa.Enum("male", "female", name="gender_enum")
marital_status_enum = sa.Enum("single", "married", name="marital_status_enum")
dream_status_enum = sa.Enum("pending", "interpreted", "archived", name="dream_status_enum")


def upgrade() -> None:
    op.create_table(
        "dreams",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("gender", gender_enum, nullable=False),
        sa.Column("marital_status", marital_status_enum, nullable=False),
        sa.Column("dream", sa.Text(), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=False, server_default="unknown"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("interpretation", sa.Text(), nullable=True),
        sa.Column("interpreted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("interpreted_by", sa.String(100), nullable=True),
        sa.Column("status", dream_status_enum, nullable=False, server_default="pending"),
        sa.Column(
            "tags", sa.Text(), nullable=False, server_default="[]",
            comment="JSON array of tag strings",
        ),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_dreams_submitted_at", "dreams", ["submitted_at"])
    op.create_index("ix_dreams_status_submitted_at", "dreams", ["status", "submitted_at"])
    op.create_index("ix_dreams_gender_marital_status", "dreams", ["gender", "marital_status"])
    op.create_index("ix_dreams_is_public_status", "dreams", ["is_public", "status"])


def downgrade() -> None:
    op.drop_index("ix_dreams_is_public_status", table_name="dreams")
    op.drop_index("ix_dreams_gender_marital_status", table_name="dreams")
    op.drop_index("ix_dreams_status_submitted_at", table_name="dreams")
    op.drop_index("ix_dreams_submitted_at", table_name="dreams")
    op.drop_table("dreams")
    dream_status_enum.drop(op.get_bind(), checkfirst=True)
    marital_status_enum.drop(op.get_bind(), checkfirst=True)
    gender_enum.drop(op.get_bind(), checkfirst=True)
