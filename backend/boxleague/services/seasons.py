"""Season lookups shared by the ranking and analytics services."""
from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Optional

from boxleague.services.records import SEASON_RUNNING, PlayerRecord, SeasonRecord


def active_seasons(seasons: Iterable[SeasonRecord]) -> List[SeasonRecord]:
    return [s for s in seasons if s.status == SEASON_RUNNING]


def default_season(seasons: List[SeasonRecord]) -> Optional[SeasonRecord]:
    """First running season, else the first season at all."""
    active = active_seasons(seasons)
    if active:
        return active[0]
    return seasons[0] if seasons else None


def season_for_membership(player: Optional[PlayerRecord], seasons: Iterable[SeasonRecord]) -> Optional[SeasonRecord]:
    if player is None or player.current_box is None:
        return None
    for season in seasons:
        if season.id == player.current_box.season_id:
            return season
    return None


def seasons_for_year(seasons: Iterable[SeasonRecord], year: int) -> List[SeasonRecord]:
    """Seasons tagged for *year*: a season belongs to the year it starts in."""
    return [s for s in seasons if s.start_date.year == year]


def _as_date(when) -> date:
    return when.date() if isinstance(when, datetime) else when


def season_containing(seasons: Iterable[SeasonRecord], when) -> Optional[SeasonRecord]:
    if when is None:
        return None
    day = _as_date(when)
    for season in seasons:
        if season.start_date <= day <= season.end_date:
            return season
    return None
