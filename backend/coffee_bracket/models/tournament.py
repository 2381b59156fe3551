from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from coffee_bracket.models.bracket_heat import BracketHeat
    from coffee_bracket.models.participant import Participant


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    location: Optional[str] = None
    status: str = Field(default="SETUP")  # SETUP | ACTIVE | COMPLETED
    current_round: int = Field(default=0)
    total_rounds: int = Field(default=0)

    # Planned segment durations, fixed when a heat's segments are created
    dial_in_minutes: int = Field(default=2)
    cappuccino_minutes: int = Field(default=2)
    espresso_minutes: int = Field(default=1)

    winner_id: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    participants: List["Participant"] = Relationship(back_populates="tournament")
    heats: List["BracketHeat"] = Relationship(back_populates="tournament")
