from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from coffee_bracket.models.bracket_heat import BracketHeat


class HeatSegment(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("heat_id", "segment", name="uq_heat_segment"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    heat_id: int = Field(foreign_key="bracketheat.id", index=True)
    segment: str  # DIAL_IN | CAPPUCCINO | ESPRESSO
    sequence: int
    status: str = Field(default="NOT_STARTED")  # NOT_STARTED | RUNNING | ENDED
    planned_minutes: int
    started_at: Optional[datetime] = Field(default=None)
    ended_at: Optional[datetime] = Field(default=None)

    heat: "BracketHeat" = Relationship(back_populates="segments")
