from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

from boxleague.utils.clock import utcnow

if TYPE_CHECKING:
    from boxleague.models.membership import BoxMembership


def new_id() -> str:
    return str(uuid4())


class Season(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    start_date: date
    end_date: date
    weeks_count: int = Field(default=0)
    status: str = Field(default="upcoming")  # "upcoming" | "running" | "finished"
    created_at: datetime = Field(default_factory=utcnow)

    # Relationships
    boxes: List["Box"] = Relationship(back_populates="season")


class Box(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    season_id: str = Field(foreign_key="season.id", index=True)
    level: int  # 1 = top box
    name: str

    # Relationships
    season: Season = Relationship(back_populates="boxes")
    memberships: List["BoxMembership"] = Relationship(back_populates="box")
