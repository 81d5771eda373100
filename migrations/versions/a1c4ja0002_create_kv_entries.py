"""create kv_entries

Revision ID: a1c4ja0002
Revises: a1c4ja0001
Create Date: 2026-02-02

"""

from alembic import op
import sqlalchemy as sa


revision = "a1c4ja0002"
down_revision = "a1c4ja0001"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "kv_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("value_json", sa.Text(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("kv_entries") as batch_op:
        batch_op.create_index(batch_op.f("ix_kv_entries_key"), ["key"], unique=True)
        batch_op.create_index(batch_op.f("ix_kv_entries_updated_at"), ["updated_at"], unique=False)


def downgrade():
    op.drop_index("ix_kv_entries_updated_at", table_name="kv_entries")
    op.drop_index("ix_kv_entries_key", table_name="kv_entries")
    op.drop_table("kv_entries")
