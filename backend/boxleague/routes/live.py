"""
Live scoring API Routes
A referee scores a match rally by rally. The rally log lives in
Match.fullscore; every request replays it through services.live_scoring and
writes back live_score, fullscore and, once three games are won, the result.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from boxleague.database import get_session
from boxleague.models.match import Match
from boxleague.routes.matches import get_match_or_404
from boxleague.services.live_scoring import (
    SIDE_A,
    SIDE_B,
    LiveMatchState,
    LiveScoringError,
    parse_fullscore,
    parse_live_score,
    reconstruct_fullscore,
    replay,
    score_point,
    undo_point,
)
from boxleague.services.match_outcome import counts_as_completed
from boxleague.services.reference_cache import match_record
from boxleague.utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class LivePointRequest(BaseModel):
    player_id: str  # the rally winner


class LiveRallyResponse(BaseModel):
    winner_id: str
    score: str
    server_id: str
    service_side: str  # "R" | "L"


class LiveStateResponse(BaseModel):
    match_id: str
    running: bool
    running_since: Optional[datetime] = None
    finished: bool
    winner_id: Optional[str] = None
    games_a: int
    games_b: int
    points_a: int
    points_b: int
    completed_games: List[str] = []
    live_score: Optional[str] = None
    fullscore: Optional[str] = None
    server_id: Optional[str] = None
    service_side: str
    current_game: List[LiveRallyResponse] = []


# ============================================================================
# Helpers
# ============================================================================


def _player_for(match: Match, side: Optional[str]) -> Optional[str]:
    if side is None:
        return None
    return match.player_a_id if side == SIDE_A else match.player_b_id


def _side_of(match: Match, player_id: str) -> str:
    if player_id == match.player_a_id:
        return SIDE_A
    if player_id == match.player_b_id:
        return SIDE_B
    raise HTTPException(status_code=422, detail="player_id is not a participant of this match")


def _rally_log(match: Match) -> List[str]:
    """Stored rallies; matches with only a live_score get a reconstructed log."""
    if match.fullscore:
        return parse_fullscore(match.fullscore)
    if match.live_score:
        completed, current = parse_live_score(match.live_score, match.score_a or 0, match.score_b or 0)
        return parse_fullscore(reconstruct_fullscore(completed, current))
    return []


def _conflict(e: LiveScoringError) -> HTTPException:
    return HTTPException(status_code=409, detail={"code": e.code, "message": e.message})


def _state_response(match: Match, state: LiveMatchState) -> LiveStateResponse:
    current_rallies = state.rallies[-1] if state.rallies and not state.is_finished else []
    return LiveStateResponse(
        match_id=match.id,
        running=match.running,
        running_since=match.running_since,
        finished=state.is_finished,
        winner_id=_player_for(match, state.winner),
        games_a=state.games_a,
        games_b=state.games_b,
        points_a=state.current.a,
        points_b=state.current.b,
        completed_games=[str(g) for g in state.completed_games],
        live_score=match.live_score,
        fullscore=match.fullscore,
        server_id=_player_for(match, state.server),
        service_side=state.service_side,
        current_game=[
            LiveRallyResponse(
                winner_id=_player_for(match, r.winner),
                score=str(r.score),
                server_id=_player_for(match, r.server),
                service_side=r.service_side,
            )
            for r in current_rallies
        ],
    )


def _persist(session: Session, match: Match, points: List[str]) -> LiveStateResponse:
    state = replay(points)

    match.fullscore = state.fullscore or None
    match.live_score = state.live_score if points else None
    if state.is_finished:
        match.score_a = state.games_a
        match.score_b = state.games_b
        match.played_at = match.played_at or utcnow()
        match.running = False
    else:
        # Undo may reopen a finished match.
        match.score_a = None
        match.score_b = None
        match.played_at = None
        match.running = bool(points)
        if match.running and match.running_since is None:
            match.running_since = utcnow()
        if not points:
            match.running_since = None

    session.add(match)
    session.commit()
    session.refresh(match)
    return _state_response(match, state)


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/matches/{match_id}/live", response_model=LiveStateResponse)
def get_live_state(match_id: str, session: Session = Depends(get_session)):
    match = get_match_or_404(session, match_id)
    try:
        state = replay(_rally_log(match))
    except LiveScoringError as e:
        raise _conflict(e)
    return _state_response(match, state)


@router.post("/matches/{match_id}/live/point", response_model=LiveStateResponse)
def add_point(match_id: str, request: LivePointRequest, session: Session = Depends(get_session)):
    """Score one rally for *player_id*. The third game won records the result."""
    match = get_match_or_404(session, match_id)
    side = _side_of(match, request.player_id)
    if counts_as_completed(match_record(match)) and not match.fullscore:
        raise HTTPException(
            status_code=409,
            detail={"code": "already_played", "message": "This match already has a result"},
        )

    try:
        points = score_point(_rally_log(match), side)
    except LiveScoringError as e:
        logger.info("Live point refused on match %s: %s", match_id, e.code)
        raise _conflict(e)

    response = _persist(session, match, points)
    if response.finished:
        logger.info("Match %s finished live %d-%d", match_id, response.games_a, response.games_b)
    return response


@router.post("/matches/{match_id}/live/undo", response_model=LiveStateResponse)
def undo_last_point(match_id: str, session: Session = Depends(get_session)):
    """Take back the last rally, across a game boundary if needed."""
    match = get_match_or_404(session, match_id)
    try:
        points = undo_point(_rally_log(match))
    except LiveScoringError as e:
        raise _conflict(e)
    return _persist(session, match, points)
