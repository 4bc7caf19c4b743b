"""
Match API Routes
Create and list box matches, record results, and read the resolved outcome
of a match from one player's side.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session

from boxleague.database import get_session
from boxleague.models.match import Match
from boxleague.models.player import Player
from boxleague.models.season import Box
from boxleague.services.delay_negotiation import negotiation_state
from boxleague.services.match_outcome import (
    counts_as_completed,
    format_score,
    resolve_outcome,
    short_label,
)
from boxleague.services.reference_cache import ReferenceDataCache, get_reference_cache, match_record
from boxleague.utils.clock import as_utc, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class MatchCreateRequest(BaseModel):
    box_id: str
    player_a_id: str
    player_b_id: str
    scheduled_at: Optional[datetime] = None
    week_number: Optional[int] = None

    @field_validator("scheduled_at")
    @classmethod
    def scheduled_at_utc(cls, v):
        return as_utc(v)


class MatchResultRequest(BaseModel):
    """Either both scores, or exactly one special-case marker."""

    score_a: Optional[int] = None
    score_b: Optional[int] = None
    played_at: Optional[datetime] = None
    no_show_player_id: Optional[str] = None
    retired_player_id: Optional[str] = None
    delayed_player_id: Optional[str] = None

    @field_validator("played_at")
    @classmethod
    def played_at_utc(cls, v):
        return as_utc(v)


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    season_id: str
    box_id: str
    week_number: Optional[int] = None
    player_a_id: str
    player_b_id: str
    scheduled_at: Optional[datetime] = None
    played_at: Optional[datetime] = None
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    no_show_player_id: Optional[str] = None
    retired_player_id: Optional[str] = None
    delayed_player_id: Optional[str] = None
    delayed_requested_by: Optional[str] = None
    delayed_status: Optional[str] = None
    delayed_requested_at: Optional[datetime] = None
    delayed_resolved_at: Optional[datetime] = None
    running: bool = False
    live_score: Optional[str] = None


class MatchOutcomeResponse(BaseModel):
    match_id: str
    player_id: Optional[str] = None
    category: str
    subtype: Optional[str] = None
    score_for: Optional[int] = None
    score_against: Optional[int] = None
    won: Optional[bool] = None
    at_fault: Optional[bool] = None
    scheduled_at: Optional[datetime] = None
    completed: bool
    score_label: Optional[str] = None
    short_label: Optional[str] = None
    delay_state: str


# ============================================================================
# Helpers
# ============================================================================


def get_match_or_404(session: Session, match_id: str) -> Match:
    match = session.get(Match, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


def _validate_result(match: Match, request: MatchResultRequest) -> None:
    markers = [
        m for m in (request.no_show_player_id, request.retired_player_id, request.delayed_player_id)
        if m is not None
    ]
    has_scores = request.score_a is not None or request.score_b is not None

    if has_scores and markers:
        raise HTTPException(status_code=422, detail="A result is either a score or a special case, not both")
    if len(markers) > 1:
        raise HTTPException(status_code=422, detail="At most one special-case marker per match")
    if markers:
        if markers[0] not in (match.player_a_id, match.player_b_id):
            raise HTTPException(status_code=422, detail="Special-case player must be a participant")
        return
    if request.score_a is None or request.score_b is None:
        raise HTTPException(status_code=422, detail="Both score_a and score_b are required")
    if request.score_a < 0 or request.score_b < 0:
        raise HTTPException(status_code=422, detail="Scores must not be negative")
    if request.score_a == 0 and request.score_b == 0:
        raise HTTPException(status_code=422, detail="0-0 is not a result")


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/matches", response_model=MatchResponse, status_code=201)
def create_match(request: MatchCreateRequest, session: Session = Depends(get_session)):
    box = session.get(Box, request.box_id)
    if not box:
        raise HTTPException(status_code=404, detail="Box not found")
    if request.player_a_id == request.player_b_id:
        raise HTTPException(status_code=422, detail="A player cannot play against themselves")
    for player_id in (request.player_a_id, request.player_b_id):
        if not session.get(Player, player_id):
            raise HTTPException(status_code=404, detail=f"Player {player_id} not found")

    match = Match(season_id=box.season_id, **request.model_dump())
    session.add(match)
    session.commit()
    session.refresh(match)
    return match


@router.get("/matches", response_model=List[MatchResponse])
def list_matches(
    season_id: Optional[str] = Query(default=None),
    box_id: Optional[str] = Query(default=None),
    player_id: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    matches = cache.fetch_matches(session, season_id=season_id, box_id=box_id, player_id=player_id)
    return [MatchResponse.model_validate(m) for m in matches]


@router.get("/matches/{match_id}", response_model=MatchResponse)
def get_match(match_id: str, session: Session = Depends(get_session)):
    return get_match_or_404(session, match_id)


@router.put("/matches/{match_id}/result", response_model=MatchResponse)
def record_result(match_id: str, request: MatchResultRequest, session: Session = Depends(get_session)):
    """Record a played score or a special case. Replaces any previous result."""
    match = get_match_or_404(session, match_id)
    _validate_result(match, request)

    match.score_a = request.score_a
    match.score_b = request.score_b
    match.no_show_player_id = request.no_show_player_id
    match.retired_player_id = request.retired_player_id
    match.delayed_player_id = request.delayed_player_id
    match.played_at = request.played_at or match.played_at or utcnow()
    match.running = False

    session.add(match)
    session.commit()
    session.refresh(match)
    logger.info("Result recorded for match %s", match_id)
    return match


@router.get("/matches/{match_id}/outcome", response_model=MatchOutcomeResponse)
def get_outcome(
    match_id: str,
    player_id: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
):
    """Resolved display state of a match, from *player_id*'s side when given."""
    record = match_record(get_match_or_404(session, match_id))
    if player_id is not None and not record.involves(player_id):
        raise HTTPException(status_code=422, detail="player_id is not a participant of this match")

    outcome = resolve_outcome(record, player_id)
    return MatchOutcomeResponse(
        match_id=record.id,
        player_id=player_id,
        category=outcome.category,
        subtype=outcome.subtype,
        score_for=outcome.score_for,
        score_against=outcome.score_against,
        won=outcome.won,
        at_fault=outcome.at_fault,
        scheduled_at=outcome.scheduled_at,
        completed=counts_as_completed(record),
        score_label=format_score(record, player_id) if player_id else None,
        short_label=short_label(record, player_id) if player_id else None,
        delay_state=negotiation_state(record),
    )
