from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class RoundSegmentTime(SQLModel, table=True):
    """Planned segment minutes for one round, overriding the tournament defaults."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "round_number", name="uq_tournament_round_times"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round_number: int
    dial_in_minutes: int
    cappuccino_minutes: int
    espresso_minutes: int
