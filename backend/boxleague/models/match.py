from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from boxleague.models.season import new_id
from boxleague.utils.clock import utcnow


class Match(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    season_id: str = Field(foreign_key="season.id", index=True)
    box_id: str = Field(foreign_key="box.id", index=True)
    week_number: Optional[int] = Field(default=None)
    player_a_id: str = Field(foreign_key="player.id", index=True)
    player_b_id: str = Field(foreign_key="player.id", index=True)

    scheduled_at: Optional[datetime] = Field(default=None)
    played_at: Optional[datetime] = Field(default=None)
    score_a: Optional[int] = Field(default=None)  # sets won by A
    score_b: Optional[int] = Field(default=None)  # sets won by B

    # Special cases (at most one is set by the result entry)
    no_show_player_id: Optional[str] = Field(default=None, foreign_key="player.id")
    retired_player_id: Optional[str] = Field(default=None, foreign_key="player.id")
    delayed_player_id: Optional[str] = Field(default=None, foreign_key="player.id")  # set once a delay is accepted and the slot closed

    # Delay negotiation
    delayed_requested_by: Optional[str] = Field(default=None, foreign_key="player.id")
    delayed_status: Optional[str] = Field(default=None)  # "pending" | "accepted" | "rejected" | "cancelled"
    delayed_requested_at: Optional[datetime] = Field(default=None)
    delayed_resolved_at: Optional[datetime] = Field(default=None)

    # Live referee scoring
    running: bool = Field(default=False)
    running_since: Optional[datetime] = Field(default=None)
    live_score: Optional[str] = Field(default=None)  # "11-9;7-11;3-2"
    fullscore: Optional[str] = Field(default=None)  # point by point, games separated by "|"

    created_at: datetime = Field(default_factory=utcnow)
