"""
Box standings API Routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session

from boxleague.database import get_session
from boxleague.models.season import Box
from boxleague.services.box_standings import compute_box_standings
from boxleague.services.reference_cache import ReferenceDataCache, get_reference_cache

router = APIRouter()


class StandingRowResponse(BaseModel):
    position: int
    player_id: str
    display_name: str
    points: int
    wins: int
    losses: int
    matches_played: int


class BoxStandingsResponse(BaseModel):
    box_id: str
    box_name: str
    season_id: str
    rows: List[StandingRowResponse]


@router.get("/boxes/{box_id}/standings", response_model=BoxStandingsResponse)
def get_box_standings(
    box_id: str,
    limit: Optional[int] = Query(default=None, ge=1),
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    """
    Ranked table of one box.

    The full table is computed; `limit` only truncates the response
    (the home screen shows the top of the box).
    """
    box = session.get(Box, box_id)
    if not box:
        raise HTTPException(status_code=404, detail="Box not found")

    players = cache.fetch_players(session)
    names = {p.id: p.display_name for p in players}
    matches = cache.fetch_matches(session, box_id=box_id)

    table = compute_box_standings(matches, known_player_ids=names.keys())
    if limit is not None:
        table = table[:limit]

    return BoxStandingsResponse(
        box_id=box.id,
        box_name=box.name,
        season_id=box.season_id,
        rows=[
            StandingRowResponse(
                position=row.position,
                player_id=row.player_id,
                display_name=names[row.player_id],
                points=row.points,
                wins=row.wins,
                losses=row.losses,
                matches_played=row.matches_played,
            )
            for row in table
        ],
    )
