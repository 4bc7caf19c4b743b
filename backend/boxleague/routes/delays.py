"""
Delay negotiation API Routes
Request / accept / reject / cancel a reschedule on a not-yet-played match.

The decision is made by services.delay_negotiation; this module only loads
the match, persists the returned DelayState and maps InvalidTransition to 409.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session

from boxleague.database import get_session
from boxleague.models.match import Match
from boxleague.routes.matches import get_match_or_404
from boxleague.services.delay_negotiation import (
    ACTION_ACCEPT,
    ACTION_CANCEL,
    ACTION_REJECT,
    ACTION_REQUEST,
    InvalidTransition,
    allowed_actions,
    apply_action,
    negotiation_state,
)
from boxleague.services.reference_cache import match_record
from boxleague.utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


class DelayActionRequest(BaseModel):
    player_id: str


class DelayStateResponse(BaseModel):
    match_id: str
    state: str  # none | pending | accepted | rejected | cancelled
    requested_by: Optional[str] = None
    requested_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    allowed_actions: List[str] = []


def _state_response(match: Match, player_id: Optional[str] = None) -> DelayStateResponse:
    record = match_record(match)
    return DelayStateResponse(
        match_id=match.id,
        state=negotiation_state(record),
        requested_by=match.delayed_requested_by,
        requested_at=match.delayed_requested_at,
        resolved_at=match.delayed_resolved_at,
        allowed_actions=allowed_actions(record, player_id) if player_id else [],
    )


def _transition(session: Session, match_id: str, action: str, player_id: str) -> DelayStateResponse:
    match = get_match_or_404(session, match_id)
    try:
        new_state = apply_action(match_record(match), action, player_id, now=utcnow())
    except InvalidTransition as e:
        logger.info("Delay %s refused on match %s for %s: %s", action, match_id, player_id, e.code)
        raise HTTPException(status_code=409, detail={"code": e.code, "message": e.user_message})

    match.delayed_requested_by = new_state.requested_by
    match.delayed_status = new_state.status
    match.delayed_requested_at = new_state.requested_at
    match.delayed_resolved_at = new_state.resolved_at
    session.add(match)
    session.commit()
    session.refresh(match)

    logger.info("Delay %s on match %s by %s -> %s", action, match_id, player_id, new_state.status)
    return _state_response(match, player_id)


@router.get("/matches/{match_id}/delay", response_model=DelayStateResponse)
def get_delay_state(
    match_id: str,
    player_id: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
):
    """Negotiation state plus the actions *player_id* may take right now."""
    return _state_response(get_match_or_404(session, match_id), player_id)


@router.post("/matches/{match_id}/request-delay", response_model=DelayStateResponse)
def request_delay(match_id: str, request: DelayActionRequest, session: Session = Depends(get_session)):
    return _transition(session, match_id, ACTION_REQUEST, request.player_id)


@router.post("/matches/{match_id}/accept-delay", response_model=DelayStateResponse)
def accept_delay(match_id: str, request: DelayActionRequest, session: Session = Depends(get_session)):
    return _transition(session, match_id, ACTION_ACCEPT, request.player_id)


@router.post("/matches/{match_id}/reject-delay", response_model=DelayStateResponse)
def reject_delay(match_id: str, request: DelayActionRequest, session: Session = Depends(get_session)):
    return _transition(session, match_id, ACTION_REJECT, request.player_id)


@router.post("/matches/{match_id}/cancel-delay", response_model=DelayStateResponse)
def cancel_delay(match_id: str, request: DelayActionRequest, session: Session = Depends(get_session)):
    return _transition(session, match_id, ACTION_CANCEL, request.player_id)
