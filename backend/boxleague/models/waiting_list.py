from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from boxleague.models.season import new_id
from boxleague.utils.clock import utcnow


class WaitingListEntry(SQLModel, table=True):
    """A player waiting for a box place."""

    __tablename__ = "waiting_list_entry"

    id: str = Field(default_factory=new_id, primary_key=True)
    player_id: str = Field(foreign_key="player.id", index=True)
    target_box_number: Optional[int] = Field(default=None)  # box level asked for; None = any box
    order_no: Optional[int] = Field(default=None)  # queue position
    processed: bool = Field(default=False)  # placed in a box (or declined) by the organiser
    created_at: datetime = Field(default_factory=utcnow)
