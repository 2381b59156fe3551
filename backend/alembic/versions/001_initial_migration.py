"""Initial migration: tournament, participant, bracket heats, segments, judges, scores

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="SETUP"),
        sa.Column("current_round", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_rounds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("dial_in_minutes", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("cappuccino_minutes", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("espresso_minutes", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("winner_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "participant",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("signup_order", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("cup_code", sa.String(), nullable=True),
        sa.Column("eliminated_round", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "signup_order", name="uq_tournament_signup_order"),
    )
    op.create_index("ix_participant_tournament_id", "participant", ["tournament_id"])

    op.create_table(
        "bracketheat",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("heat_code", sa.String(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("slot", sa.Integer(), nullable=False),
        sa.Column("competitor_a", sa.JSON(), nullable=True),
        sa.Column("competitor_b", sa.JSON(), nullable=True),
        sa.Column("winner_id", sa.String(), nullable=True),
        sa.Column("note", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
        sa.Column("score_a", sa.Integer(), nullable=True),
        sa.Column("score_b", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "heat_code", name="uq_tournament_heat_code"),
    )
    op.create_index("ix_bracketheat_tournament_id", "bracketheat", ["tournament_id"])

    op.create_table(
        "heatsegment",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("heat_id", sa.Integer(), nullable=False),
        sa.Column("segment", sa.String(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="NOT_STARTED"),
        sa.Column("planned_minutes", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("ended_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["heat_id"], ["bracketheat.id"]),
        sa.UniqueConstraint("heat_id", "segment", name="uq_heat_segment"),
    )
    op.create_index("ix_heatsegment_heat_id", "heatsegment", ["heat_id"])

    op.create_table(
        "heatjudge",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("heat_id", sa.Integer(), nullable=False),
        sa.Column("judge_name", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["heat_id"], ["bracketheat.id"]),
        sa.UniqueConstraint("heat_id", "judge_name", name="uq_heat_judge"),
    )
    op.create_index("ix_heatjudge_heat_id", "heatjudge", ["heat_id"])

    op.create_table(
        "judgescore",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("heat_id", sa.Integer(), nullable=False),
        sa.Column("judge_name", sa.String(), nullable=False),
        sa.Column("sensory_beverage", sa.String(), nullable=False),
        sa.Column("left_cup_code", sa.String(), nullable=True),
        sa.Column("right_cup_code", sa.String(), nullable=True),
        sa.Column("visual", sa.String(), nullable=True),
        sa.Column("taste", sa.String(), nullable=True),
        sa.Column("tactile", sa.String(), nullable=True),
        sa.Column("flavour", sa.String(), nullable=True),
        sa.Column("overall", sa.String(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["heat_id"], ["bracketheat.id"]),
        sa.UniqueConstraint("heat_id", "judge_name", "sensory_beverage", name="uq_heat_judge_beverage"),
    )
    op.create_index("ix_judgescore_heat_id", "judgescore", ["heat_id"])


def downgrade() -> None:
    op.drop_index("ix_judgescore_heat_id", table_name="judgescore")
    op.drop_table("judgescore")
    op.drop_index("ix_heatjudge_heat_id", table_name="heatjudge")
    op.drop_table("heatjudge")
    op.drop_index("ix_heatsegment_heat_id", table_name="heatsegment")
    op.drop_table("heatsegment")
    op.drop_index("ix_bracketheat_tournament_id", table_name="bracketheat")
    op.drop_table("bracketheat")
    op.drop_index("ix_participant_tournament_id", table_name="participant")
    op.drop_table("participant")
    op.drop_table("tournament")
