"""
Player API Routes
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from boxleague.database import get_session
from boxleague.models.player import Player
from boxleague.services.records import PlayerRecord
from boxleague.services.reference_cache import SCOPE_ALL_PLAYERS, ReferenceDataCache, get_reference_cache

router = APIRouter()


class PlayerCreateRequest(BaseModel):
    first_name: str
    last_name: str
    email: Optional[str] = None
    picture: Optional[str] = None


class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    picture: Optional[str] = None
    active: bool
    created_at: datetime


class CurrentBoxResponse(BaseModel):
    box_id: str
    box_name: str
    season_id: str
    next_box_status: Optional[str] = None


class RosterEntryResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    display_name: str
    active: bool
    current_box: Optional[CurrentBoxResponse] = None


def _roster_entry(player: PlayerRecord) -> RosterEntryResponse:
    box = player.current_box
    return RosterEntryResponse(
        id=player.id,
        first_name=player.first_name,
        last_name=player.last_name,
        display_name=player.display_name,
        active=player.active,
        current_box=CurrentBoxResponse(
            box_id=box.box_id,
            box_name=box.box_name,
            season_id=box.season_id,
            next_box_status=box.next_box_status,
        ) if box else None,
    )


@router.post("/players", response_model=PlayerResponse, status_code=201)
def create_player(
    request: PlayerCreateRequest,
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    player = Player(**request.model_dump())
    session.add(player)
    session.commit()
    session.refresh(player)
    cache.invalidate(SCOPE_ALL_PLAYERS)
    return player


@router.get("/players", response_model=List[RosterEntryResponse])
def list_players(
    box_id: Optional[str] = Query(default=None),
    force_refresh: bool = Query(default=False),
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    """Roster with each player's current box, optionally scoped to one box."""
    players = cache.fetch_players(session, force_refresh=force_refresh, box_id=box_id)
    return [_roster_entry(p) for p in players]


@router.get("/players/{player_id}", response_model=PlayerResponse)
def get_player(player_id: str, session: Session = Depends(get_session)):
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return player
