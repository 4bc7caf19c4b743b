from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from boxleague.models.player import Player
    from boxleague.models.season import Box


class BoxMembership(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("player_id", "season_id", name="uq_membership_player_season"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    player_id: str = Field(foreign_key="player.id", index=True)
    box_id: str = Field(foreign_key="box.id", index=True)
    season_id: str = Field(foreign_key="season.id", index=True)
    rank: Optional[int] = Field(default=None)  # seeding inside the box
    next_box_status: Optional[str] = Field(default=None)  # "continue" | "stop" | None (undecided)

    # Relationships
    player: "Player" = Relationship(back_populates="memberships")
    box: "Box" = Relationship(back_populates="memberships")
