from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from coffee_bracket.models.heat_judge import HeatJudge
    from coffee_bracket.models.heat_segment import HeatSegment
    from coffee_bracket.models.judge_score import JudgeScore
    from coffee_bracket.models.tournament import Tournament


class BracketHeat(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "heat_code", name="uq_tournament_heat_code"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    heat_code: str  # "R{round}-H{slot}"
    round_number: int
    slot: int  # 0-based position within the round

    # Side snapshots: {"id", "name", "signup_order", "status"}; null when the side is empty.
    # Frozen once the heat is resolved so the record keeps the status it was decided on.
    competitor_a: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    competitor_b: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))

    winner_id: Optional[str] = Field(default=None)
    note: Optional[str] = Field(default=None)

    status: str = Field(default="PENDING")  # PENDING | RUNNING | DONE
    score_a: Optional[int] = Field(default=None)
    score_b: Optional[int] = Field(default=None)
    started_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="heats")
    segments: List["HeatSegment"] = Relationship(back_populates="heat")
    judges: List["HeatJudge"] = Relationship(back_populates="heat")
    scores: List["JudgeScore"] = Relationship(back_populates="heat")
