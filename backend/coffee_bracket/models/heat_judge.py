from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from coffee_bracket.models.bracket_heat import BracketHeat


class HeatJudge(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("heat_id", "judge_name", name="uq_heat_judge"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    heat_id: int = Field(foreign_key="bracketheat.id", index=True)
    judge_name: str
    role: str  # ESPRESSO | CAPPUCCINO

    heat: "BracketHeat" = Relationship(back_populates="judges")
