"""
Point-in-time record shapes consumed by the match/player analytics engine.

Records are frozen: the engine borrows them read-only and always returns
freshly built result structures.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

DELAY_PENDING = "pending"
DELAY_ACCEPTED = "accepted"
DELAY_REJECTED = "rejected"
DELAY_CANCELLED = "cancelled"
DELAY_STATUSES = (DELAY_PENDING, DELAY_ACCEPTED, DELAY_REJECTED, DELAY_CANCELLED)

NEXT_BOX_CONTINUE = "continue"
NEXT_BOX_STOP = "stop"
NEXT_BOX_STATUSES = (NEXT_BOX_CONTINUE, NEXT_BOX_STOP)

SEASON_RUNNING = "running"


@dataclass(frozen=True)
class MatchRecord:
    id: str
    box_id: Optional[str]
    player_a_id: str
    player_b_id: str
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    scheduled_at: Optional[datetime] = None
    played_at: Optional[datetime] = None
    no_show_player_id: Optional[str] = None
    retired_player_id: Optional[str] = None
    delayed_player_id: Optional[str] = None
    delayed_requested_by: Optional[str] = None
    delayed_status: Optional[str] = None  # pending | accepted | rejected | cancelled
    delayed_requested_at: Optional[datetime] = None
    delayed_resolved_at: Optional[datetime] = None
    season_id: Optional[str] = None
    week_number: Optional[int] = None
    running: bool = False  # live scoring in progress
    live_score: Optional[str] = None

    def involves(self, player_id: str) -> bool:
        return player_id in (self.player_a_id, self.player_b_id)

    def opponent_of(self, player_id: str) -> Optional[str]:
        if player_id == self.player_a_id:
            return self.player_b_id
        if player_id == self.player_b_id:
            return self.player_a_id
        return None

    @property
    def event_time(self) -> Optional[datetime]:
        """When the match happened: played_at, falling back to scheduled_at."""
        return self.played_at or self.scheduled_at


@dataclass(frozen=True)
class BoxMembershipInfo:
    box_id: str
    box_name: str
    season_id: str
    next_box_status: Optional[str] = None  # continue | stop | None


@dataclass(frozen=True)
class PlayerRecord:
    id: str
    first_name: str
    last_name: str
    current_box: Optional[BoxMembershipInfo] = None
    active: bool = True

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class SeasonRecord:
    id: str
    name: str
    start_date: date
    end_date: date
    status: str = SEASON_RUNNING
