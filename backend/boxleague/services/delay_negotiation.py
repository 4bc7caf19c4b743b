"""
Delay negotiation — two-party reschedule requests on a not-yet-played match.

States:
  none -> pending -> accepted | rejected | cancelled

accepted/rejected/cancelled close the request instance; a fresh request can
be opened from none, rejected or cancelled (never from accepted).

Actors:
  request  either participant, match not played
  accept   the participant who did NOT request
  reject   the participant who did NOT request
  cancel   the requester

Functions here only decide. They return the DelayState the match should
carry after the transition; persisting it is the caller's job. An illegal
attempt raises InvalidTransition and the input is left untouched.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from boxleague.services.match_outcome import has_valid_score
from boxleague.services.records import (
    DELAY_ACCEPTED,
    DELAY_CANCELLED,
    DELAY_PENDING,
    DELAY_REJECTED,
    MatchRecord,
)
from boxleague.utils.clock import utcnow

DELAY_NONE = "none"

ACTION_REQUEST = "request"
ACTION_ACCEPT = "accept"
ACTION_REJECT = "reject"
ACTION_CANCEL = "cancel"
ACTIONS = (ACTION_REQUEST, ACTION_ACCEPT, ACTION_REJECT, ACTION_CANCEL)

_REQUESTABLE_FROM = (DELAY_NONE, DELAY_REJECTED, DELAY_CANCELLED)


class InvalidTransition(Exception):
    """A delay transition was attempted by the wrong actor or from the wrong state."""

    def __init__(self, code: str, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.user_message = user_message or message


@dataclass(frozen=True)
class DelayState:
    requested_by: Optional[str]
    status: Optional[str]
    requested_at: Optional[datetime]
    resolved_at: Optional[datetime]


def delay_state_of(match: MatchRecord) -> DelayState:
    return DelayState(
        requested_by=match.delayed_requested_by,
        status=match.delayed_status,
        requested_at=match.delayed_requested_at,
        resolved_at=match.delayed_resolved_at,
    )


def negotiation_state(match: MatchRecord) -> str:
    """Current negotiation state, including the legacy pending shape.

    Legacy records carry no status but have a request timestamp and no
    resolution timestamp; those count as pending.
    """
    if match.delayed_status == DELAY_PENDING:
        return DELAY_PENDING
    if match.delayed_status is None:
        if match.delayed_requested_at is not None and match.delayed_resolved_at is None:
            return DELAY_PENDING
        return DELAY_NONE
    return match.delayed_status


def is_pending(match: MatchRecord) -> bool:
    return negotiation_state(match) == DELAY_PENDING


def _require_participant(match: MatchRecord, by: str) -> None:
    if not match.involves(by):
        raise InvalidTransition(
            "not_a_participant",
            f"Player {by} is not a participant of match {match.id}",
            "Only the two players of this match can negotiate a delay.",
        )


def _require_pending(match: MatchRecord, action: str) -> None:
    state = negotiation_state(match)
    if state != DELAY_PENDING:
        raise InvalidTransition(
            "not_pending",
            f"Cannot {action} delay on match {match.id}: state is {state}",
            "There is no pending delay request on this match.",
        )


def request_delay(match: MatchRecord, by: str, now: Optional[datetime] = None) -> DelayState:
    _require_participant(match, by)
    state = negotiation_state(match)
    if state not in _REQUESTABLE_FROM:
        raise InvalidTransition(
            "already_requested" if state == DELAY_PENDING else "already_accepted",
            f"Cannot request delay on match {match.id}: state is {state}",
            "A delay has already been requested for this match."
            if state == DELAY_PENDING
            else "A delay has already been accepted for this match.",
        )
    if has_valid_score(match):
        raise InvalidTransition(
            "already_played",
            f"Cannot request delay on match {match.id}: match already played",
            "This match has already been played.",
        )
    return DelayState(
        requested_by=by,
        status=DELAY_PENDING,
        requested_at=now or utcnow(),
        resolved_at=None,
    )


def _resolve_as_opponent(match: MatchRecord, by: str, action: str, status: str, now: Optional[datetime]) -> DelayState:
    _require_participant(match, by)
    _require_pending(match, action)
    if by == match.delayed_requested_by:
        raise InvalidTransition(
            "requester_cannot_answer",
            f"Player {by} requested the delay on match {match.id} and cannot {action} it",
            "Only your opponent can answer your delay request.",
        )
    return DelayState(
        requested_by=match.delayed_requested_by,
        status=status,
        requested_at=match.delayed_requested_at,
        resolved_at=now or utcnow(),
    )


def accept_delay(match: MatchRecord, by: str, now: Optional[datetime] = None) -> DelayState:
    return _resolve_as_opponent(match, by, ACTION_ACCEPT, DELAY_ACCEPTED, now)


def reject_delay(match: MatchRecord, by: str, now: Optional[datetime] = None) -> DelayState:
    return _resolve_as_opponent(match, by, ACTION_REJECT, DELAY_REJECTED, now)


def cancel_delay(match: MatchRecord, by: str, now: Optional[datetime] = None) -> DelayState:
    _require_participant(match, by)
    _require_pending(match, ACTION_CANCEL)
    if by != match.delayed_requested_by:
        raise InvalidTransition(
            "not_requester",
            f"Player {by} did not request the delay on match {match.id}",
            "Only the player who asked for the delay can cancel it.",
        )
    return DelayState(
        requested_by=match.delayed_requested_by,
        status=DELAY_CANCELLED,
        requested_at=match.delayed_requested_at,
        resolved_at=now or utcnow(),
    )


TRANSITIONS = {
    ACTION_REQUEST: request_delay,
    ACTION_ACCEPT: accept_delay,
    ACTION_REJECT: reject_delay,
    ACTION_CANCEL: cancel_delay,
}


def apply_action(match: MatchRecord, action: str, by: str, now: Optional[datetime] = None) -> DelayState:
    try:
        transition = TRANSITIONS[action]
    except KeyError:
        raise InvalidTransition("unknown_action", f"Unknown delay action: {action}")
    return transition(match, by, now)


def allowed_actions(match: MatchRecord, player_id: str) -> List[str]:
    """Actions *player_id* may legally attempt right now, in ACTIONS order."""
    allowed = []
    for action in ACTIONS:
        try:
            TRANSITIONS[action](match, player_id)
        except InvalidTransition:
            continue
        allowed.append(action)
    return allowed
