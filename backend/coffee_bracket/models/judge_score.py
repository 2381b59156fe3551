from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from coffee_bracket.models.bracket_heat import BracketHeat


class JudgeScore(SQLModel, table=True):
    """One judge's blind scorecard for one beverage of a heat."""

    __table_args__ = (
        SAUniqueConstraint("heat_id", "judge_name", "sensory_beverage", name="uq_heat_judge_beverage"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    heat_id: int = Field(foreign_key="bracketheat.id", index=True)
    judge_name: str
    sensory_beverage: str  # "Cappuccino" | "Espresso"

    # Which cup code this judge had on each side
    left_cup_code: Optional[str] = Field(default=None)
    right_cup_code: Optional[str] = Field(default=None)

    # Category picks: "left" | "right"
    visual: Optional[str] = Field(default=None)
    taste: Optional[str] = Field(default=None)
    tactile: Optional[str] = Field(default=None)
    flavour: Optional[str] = Field(default=None)
    overall: Optional[str] = Field(default=None)

    submitted_at: datetime = Field(default_factory=datetime.utcnow)

    heat: "BracketHeat" = Relationship(back_populates="scores")
