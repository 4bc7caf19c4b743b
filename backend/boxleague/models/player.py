from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

from boxleague.models.season import new_id
from boxleague.utils.clock import utcnow

if TYPE_CHECKING:
    from boxleague.models.membership import BoxMembership


class Player(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    first_name: str
    last_name: str
    email: Optional[str] = Field(default=None, index=True)
    picture: Optional[str] = Field(default=None)  # profile picture URL
    active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)

    # Relationships
    memberships: List["BoxMembership"] = Relationship(back_populates="player")
