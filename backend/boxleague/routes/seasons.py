"""
Season / Box / Membership API Routes
Seasons contain boxes; a membership places a player in one box for one season.
Players without a box queue on the waiting list.
"""
import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from boxleague.database import get_session
from boxleague.models.membership import BoxMembership
from boxleague.models.player import Player
from boxleague.models.season import Box, Season
from boxleague.models.waiting_list import WaitingListEntry
from boxleague.services.records import NEXT_BOX_STATUSES
from boxleague.services.reference_cache import (
    SCOPE_ALL_PLAYERS,
    SCOPE_SEASONS,
    ReferenceDataCache,
    get_reference_cache,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SEASON_STATUSES = ("upcoming", "running", "finished")


# ============================================================================
# Request/Response Models
# ============================================================================


class SeasonCreateRequest(BaseModel):
    name: str
    start_date: date
    end_date: date
    weeks_count: int = 0
    status: str = "upcoming"


class SeasonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    start_date: date
    end_date: date
    weeks_count: int
    status: str


class BoxCreateRequest(BaseModel):
    level: int
    name: str


class BoxResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    season_id: str
    level: int
    name: str


class MembershipCreateRequest(BaseModel):
    player_id: str
    rank: Optional[int] = None


class MembershipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    player_id: str
    box_id: str
    season_id: str
    rank: Optional[int] = None
    next_box_status: Optional[str] = None


class NextBoxStatusRequest(BaseModel):
    next_box_status: Optional[str] = None  # "continue" | "stop" | None


class WaitingListJoinRequest(BaseModel):
    player_id: str
    target_box_number: Optional[int] = None  # None = any box


class WaitingListProcessedRequest(BaseModel):
    processed: bool = True


class WaitingListEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    player_id: str
    target_box_number: Optional[int] = None
    order_no: Optional[int] = None
    processed: bool
    created_at: datetime


# ============================================================================
# Seasons
# ============================================================================


@router.get("/seasons", response_model=List[SeasonResponse])
def list_seasons(session: Session = Depends(get_session)):
    """All seasons, most recent start first."""
    return session.exec(select(Season).order_by(Season.start_date.desc())).all()


@router.post("/seasons", response_model=SeasonResponse, status_code=201)
def create_season(
    request: SeasonCreateRequest,
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    if request.status not in SEASON_STATUSES:
        raise HTTPException(status_code=422, detail=f"Invalid season status: {request.status}")
    if request.end_date < request.start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")

    season = Season(**request.model_dump())
    session.add(season)
    session.commit()
    session.refresh(season)
    cache.invalidate(SCOPE_SEASONS)
    return season


# ============================================================================
# Boxes
# ============================================================================


@router.get("/seasons/{season_id}/boxes", response_model=List[BoxResponse])
def list_boxes(season_id: str, session: Session = Depends(get_session)):
    if not session.get(Season, season_id):
        raise HTTPException(status_code=404, detail="Season not found")
    return session.exec(select(Box).where(Box.season_id == season_id).order_by(Box.level)).all()


@router.post("/seasons/{season_id}/boxes", response_model=BoxResponse, status_code=201)
def create_box(season_id: str, request: BoxCreateRequest, session: Session = Depends(get_session)):
    if not session.get(Season, season_id):
        raise HTTPException(status_code=404, detail="Season not found")

    box = Box(season_id=season_id, level=request.level, name=request.name)
    session.add(box)
    session.commit()
    session.refresh(box)
    return box


# ============================================================================
# Memberships
# ============================================================================


@router.post("/boxes/{box_id}/members", response_model=MembershipResponse, status_code=201)
def add_member(
    box_id: str,
    request: MembershipCreateRequest,
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    """Place a player in a box. A player has at most one box per season."""
    box = session.get(Box, box_id)
    if not box:
        raise HTTPException(status_code=404, detail="Box not found")
    if not session.get(Player, request.player_id):
        raise HTTPException(status_code=404, detail="Player not found")

    membership = BoxMembership(
        player_id=request.player_id,
        box_id=box.id,
        season_id=box.season_id,
        rank=request.rank,
    )
    try:
        session.add(membership)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Player already has a box for this season")
    session.refresh(membership)
    cache.invalidate(SCOPE_ALL_PLAYERS)
    logger.info("Player %s joined box %s (season %s)", request.player_id, box.id, box.season_id)
    return membership


@router.get("/boxes/{box_id}/members", response_model=List[MembershipResponse])
def list_members(box_id: str, session: Session = Depends(get_session)):
    if not session.get(Box, box_id):
        raise HTTPException(status_code=404, detail="Box not found")
    query = select(BoxMembership).where(BoxMembership.box_id == box_id).order_by(BoxMembership.rank, BoxMembership.id)
    return session.exec(query).all()


@router.put("/memberships/{membership_id}/next-box-status", response_model=MembershipResponse)
def set_next_box_status(
    membership_id: int,
    request: NextBoxStatusRequest,
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    """Record whether the player continues next season (null = undecided)."""
    membership = session.get(BoxMembership, membership_id)
    if not membership:
        raise HTTPException(status_code=404, detail="Membership not found")
    if request.next_box_status is not None and request.next_box_status not in NEXT_BOX_STATUSES:
        raise HTTPException(status_code=422, detail=f"Invalid next_box_status: {request.next_box_status}")

    membership.next_box_status = request.next_box_status
    session.add(membership)
    session.commit()
    session.refresh(membership)
    cache.invalidate(SCOPE_ALL_PLAYERS)
    return membership


# ============================================================================
# Waiting list
# ============================================================================


@router.get("/waiting-list", response_model=List[WaitingListEntryResponse])
def list_waiting_list(
    include_processed: bool = Query(default=False),
    session: Session = Depends(get_session),
):
    """Queue order: order_no first (unnumbered entries last), then arrival."""
    query = select(WaitingListEntry)
    if not include_processed:
        query = query.where(WaitingListEntry.processed == False)  # noqa: E712
    query = query.order_by(
        WaitingListEntry.order_no.is_(None),
        WaitingListEntry.order_no,
        WaitingListEntry.created_at,
    )
    return session.exec(query).all()


@router.post("/waiting-list/join", response_model=WaitingListEntryResponse, status_code=201)
def join_waiting_list(request: WaitingListJoinRequest, session: Session = Depends(get_session)):
    if not session.get(Player, request.player_id):
        raise HTTPException(status_code=404, detail="Player not found")
    if request.target_box_number is not None and request.target_box_number < 1:
        raise HTTPException(status_code=422, detail="target_box_number must be 1 or more")

    waiting = session.exec(
        select(WaitingListEntry).where(
            WaitingListEntry.player_id == request.player_id,
            WaitingListEntry.processed == False,  # noqa: E712
        )
    ).first()
    if waiting:
        raise HTTPException(status_code=409, detail="Player is already on the waiting list")

    last = session.exec(select(func.max(WaitingListEntry.order_no))).first()
    entry = WaitingListEntry(
        player_id=request.player_id,
        target_box_number=request.target_box_number,
        order_no=(last or 0) + 1,
    )
    session.add(entry)
    session.commit()
    session.refresh(entry)
    logger.info("Player %s joined the waiting list at %s", request.player_id, entry.order_no)
    return entry


@router.put("/waiting-list/{entry_id}/processed", response_model=WaitingListEntryResponse)
def set_waiting_list_processed(
    entry_id: str,
    request: WaitingListProcessedRequest,
    session: Session = Depends(get_session),
):
    entry = session.get(WaitingListEntry, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Waiting list entry not found")
    entry.processed = request.processed
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


@router.delete("/waiting-list/{entry_id}", status_code=204)
def remove_from_waiting_list(entry_id: str, session: Session = Depends(get_session)):
    entry = session.get(WaitingListEntry, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Waiting list entry not found")
    session.delete(entry)
    session.commit()
    logger.info("Waiting list entry %s removed", entry_id)
