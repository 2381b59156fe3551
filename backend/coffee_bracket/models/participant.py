from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from coffee_bracket.models.tournament import Tournament


class Participant(SQLModel, table=True):
    __table_args__ = (
        # Signup order seeds the bracket, so it must be unique within a tournament
        SAUniqueConstraint("tournament_id", "signup_order", name="uq_tournament_signup_order"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    name: str
    signup_order: int  # 1-based; earliest signups receive Round 1 byes
    status: str = Field(default="active")  # "active" | "no-show" | "bye"
    cup_code: Optional[str] = Field(default=None)  # blind cup label used by judges
    eliminated_round: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="participants")
