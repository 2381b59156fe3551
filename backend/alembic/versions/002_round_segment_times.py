"""Per-round segment minutes

Revision ID: 002_round_segment_times
Revises: 001_initial
Create Date: 2026-10-19 12:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "002_round_segment_times"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "roundsegmenttime",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("dial_in_minutes", sa.Integer(), nullable=False),
        sa.Column("cappuccino_minutes", sa.Integer(), nullable=False),
        sa.Column("espresso_minutes", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "round_number", name="uq_tournament_round_times"),
    )
    op.create_index("ix_roundsegmenttime_tournament_id", "roundsegmenttime", ["tournament_id"])


def downgrade() -> None:
    op.drop_index("ix_roundsegmenttime_tournament_id", table_name="roundsegmenttime")
    op.drop_table("roundsegmenttime")
