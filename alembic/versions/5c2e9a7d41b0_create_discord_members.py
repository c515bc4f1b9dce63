"""Create discord_members table

Revision ID: 5c2e9a7d41b0
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "5c2e9a7d41b0"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "discord_members",
        sa.Column("discord_id", sa.String(32), primary_key=True),
        sa.Column("birthday", sa.Date(), nullable=True),
        sa.Column("has_birth_year", sa.Boolean(), nullable=False, server_default=sa.false()),
    )


def downgrade() -> None:
    op.drop_table("discord_members")
