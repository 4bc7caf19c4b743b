"""
Tests for the delay negotiation state machine.
"""
from dataclasses import replace
from datetime import datetime

import pytest

from boxleague.services.delay_negotiation import (
    ACTION_ACCEPT,
    ACTION_CANCEL,
    ACTION_REJECT,
    ACTION_REQUEST,
    DELAY_NONE,
    InvalidTransition,
    accept_delay,
    allowed_actions,
    apply_action,
    cancel_delay,
    is_pending,
    negotiation_state,
    reject_delay,
    request_delay,
)
from boxleague.services.records import MatchRecord

A, B, C = "alice", "bob", "carol"
T0 = datetime(2024, 5, 1, 10, 0)
T1 = datetime(2024, 5, 2, 10, 0)


def make_match(**kwargs) -> MatchRecord:
    kwargs.setdefault("id", "m1")
    kwargs.setdefault("box_id", "box1")
    kwargs.setdefault("player_a_id", A)
    kwargs.setdefault("player_b_id", B)
    kwargs.setdefault("scheduled_at", datetime(2024, 5, 10, 18, 0))
    return MatchRecord(**kwargs)


def with_state(match: MatchRecord, state) -> MatchRecord:
    return replace(
        match,
        delayed_requested_by=state.requested_by,
        delayed_status=state.status,
        delayed_requested_at=state.requested_at,
        delayed_resolved_at=state.resolved_at,
    )


def pending_match(requested_by=A) -> MatchRecord:
    return make_match(delayed_requested_by=requested_by, delayed_status="pending", delayed_requested_at=T0)


class TestNegotiationState:
    def test_no_request_is_none(self):
        assert negotiation_state(make_match()) == DELAY_NONE

    def test_legacy_shape_is_pending(self):
        match = make_match(delayed_requested_by=A, delayed_requested_at=T0)
        assert negotiation_state(match) == "pending"
        assert is_pending(match) is True

    def test_legacy_shape_resolved_is_not_pending(self):
        match = make_match(delayed_requested_by=A, delayed_requested_at=T0, delayed_resolved_at=T1)
        assert is_pending(match) is False


class TestRequest:
    def test_request_opens_pending(self):
        state = request_delay(make_match(), A, now=T0)
        assert state.status == "pending"
        assert state.requested_by == A
        assert state.requested_at == T0
        assert state.resolved_at is None

    def test_request_after_rejection_clears_resolution(self):
        match = make_match(delayed_requested_by=B, delayed_status="rejected", delayed_requested_at=T0, delayed_resolved_at=T0)
        state = request_delay(match, A, now=T1)
        assert state.status == "pending"
        assert state.resolved_at is None

    def test_request_while_pending_fails(self):
        with pytest.raises(InvalidTransition) as exc:
            request_delay(pending_match(), B, now=T1)
        assert exc.value.code == "already_requested"

    def test_request_after_accept_fails(self):
        match = replace(pending_match(), delayed_status="accepted", delayed_resolved_at=T1)
        with pytest.raises(InvalidTransition) as exc:
            request_delay(match, A)
        assert exc.value.code == "already_accepted"

    def test_request_on_played_match_fails(self):
        with pytest.raises(InvalidTransition) as exc:
            request_delay(make_match(score_a=3, score_b=1), A)
        assert exc.value.code == "already_played"

    def test_outsider_cannot_request(self):
        with pytest.raises(InvalidTransition) as exc:
            request_delay(make_match(), C)
        assert exc.value.code == "not_a_participant"
        assert exc.value.user_message


class TestAnswer:
    def test_opponent_accepts(self):
        state = accept_delay(pending_match(A), B, now=T1)
        assert state.status == "accepted"
        assert state.requested_by == A
        assert state.requested_at == T0
        assert state.resolved_at == T1

    def test_opponent_rejects(self):
        state = reject_delay(pending_match(A), B, now=T1)
        assert state.status == "rejected"
        assert state.resolved_at == T1

    def test_requester_cannot_accept_own_request(self):
        with pytest.raises(InvalidTransition) as exc:
            accept_delay(pending_match(A), A)
        assert exc.value.code == "requester_cannot_answer"

    def test_accept_without_pending_fails(self):
        with pytest.raises(InvalidTransition) as exc:
            accept_delay(make_match(), B)
        assert exc.value.code == "not_pending"

    def test_requester_cancels(self):
        state = cancel_delay(pending_match(A), A, now=T1)
        assert state.status == "cancelled"
        assert state.resolved_at == T1

    def test_opponent_cannot_cancel(self):
        with pytest.raises(InvalidTransition) as exc:
            cancel_delay(pending_match(A), B)
        assert exc.value.code == "not_requester"

    def test_legacy_pending_can_be_accepted(self):
        match = make_match(delayed_requested_by=A, delayed_requested_at=T0)
        assert accept_delay(match, B, now=T1).status == "accepted"


class TestProtocol:
    def test_full_cycle_request_reject_request_accept(self):
        match = make_match()
        match = with_state(match, apply_action(match, ACTION_REQUEST, A, now=T0))
        match = with_state(match, apply_action(match, ACTION_REJECT, B, now=T1))
        match = with_state(match, apply_action(match, ACTION_REQUEST, B, now=T1))
        match = with_state(match, apply_action(match, ACTION_ACCEPT, A, now=T1))
        assert match.delayed_status == "accepted"
        assert match.delayed_requested_by == B

    def test_failed_transition_does_not_mutate(self):
        match = pending_match(A)
        before = replace(match)
        with pytest.raises(InvalidTransition):
            cancel_delay(match, B)
        assert match == before

    def test_unknown_action(self):
        with pytest.raises(InvalidTransition) as exc:
            apply_action(make_match(), "postpone", A)
        assert exc.value.code == "unknown_action"

    def test_allowed_actions_per_actor(self):
        assert allowed_actions(make_match(), A) == [ACTION_REQUEST]
        assert allowed_actions(pending_match(A), A) == [ACTION_CANCEL]
        assert allowed_actions(pending_match(A), B) == [ACTION_ACCEPT, ACTION_REJECT]
        assert allowed_actions(pending_match(A), C) == []
        assert allowed_actions(make_match(score_a=3, score_b=0), A) == []
