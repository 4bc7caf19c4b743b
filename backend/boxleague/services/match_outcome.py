"""
Match Outcome Resolver — classify one match record into a display state.

Precedence (first match wins):
  PLAYED            both scores present and not simultaneously zero
  SPECIAL_CASE      no-show, retired or delayed marker present
  SCHEDULED_PENDING scheduled_at present
  INDETERMINATE     nothing to show

Every consumer that separates "to play" from "history" goes through
counts_as_completed(); every win/loss statistic goes through is_clean().
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from boxleague.services.records import MatchRecord

PLAYED = "played"
SPECIAL_CASE = "special_case"
SCHEDULED_PENDING = "scheduled_pending"
INDETERMINATE = "indeterminate"

NO_SHOW = "no_show"
RETIRED = "retired"
DELAYED_RESOLVED = "delayed_resolved"

# (own fault, opponent's fault)
SHORT_LABELS = {
    NO_SHOW: ("NS", "NS opp"),
    RETIRED: ("RET", "RET opp"),
    DELAYED_RESOLVED: ("D", "D opp"),
}

LONG_LABELS = {
    NO_SHOW: ("Absent", "Opp. absent"),
    RETIRED: ("Retired", "Opp. retired"),
    DELAYED_RESOLVED: ("Postponed", "Opp. postponed"),
}


@dataclass(frozen=True)
class MatchOutcome:
    category: str  # played | special_case | scheduled_pending | indeterminate
    subtype: Optional[str] = None  # no_show | retired | delayed_resolved
    score_for: Optional[int] = None
    score_against: Optional[int] = None
    won: Optional[bool] = None  # None: no winner (delayed) or no perspective
    at_fault: Optional[bool] = None  # perspective player is the marked player
    scheduled_at: Optional[datetime] = None


def has_valid_score(match: MatchRecord) -> bool:
    """Both scores present and not a 0-0 placeholder."""
    if match.score_a is None or match.score_b is None:
        return False
    return not (match.score_a == 0 and match.score_b == 0)


def special_case_subtype(match: MatchRecord) -> Optional[str]:
    if match.no_show_player_id:
        return NO_SHOW
    if match.retired_player_id:
        return RETIRED
    if match.delayed_player_id:
        return DELAYED_RESOLVED
    return None


def is_special_case(match: MatchRecord) -> bool:
    return special_case_subtype(match) is not None


def _marked_player(match: MatchRecord, subtype: str) -> Optional[str]:
    return {
        NO_SHOW: match.no_show_player_id,
        RETIRED: match.retired_player_id,
        DELAYED_RESOLVED: match.delayed_player_id,
    }[subtype]


def resolve_outcome(
    match: MatchRecord,
    player_id: Optional[str] = None,
    viewer_is_a: Optional[bool] = None,
) -> MatchOutcome:
    """Classify *match* from the perspective of *player_id*.

    ``viewer_is_a`` may be passed when the caller already knows which side
    the viewer sits on; otherwise it is derived from *player_id*, and
    defaults to side A when no perspective is given at all.
    """
    if viewer_is_a is None:
        viewer_is_a = player_id != match.player_b_id if player_id else True
    viewer_id = player_id or (match.player_a_id if viewer_is_a else match.player_b_id)

    if has_valid_score(match):
        score_for = match.score_a if viewer_is_a else match.score_b
        score_against = match.score_b if viewer_is_a else match.score_a
        return MatchOutcome(
            category=PLAYED,
            score_for=score_for,
            score_against=score_against,
            won=score_for > score_against,
        )

    subtype = special_case_subtype(match)
    if subtype is not None:
        at_fault = _marked_player(match, subtype) == viewer_id
        # The non-faulting player is awarded the win; a delayed match has no winner.
        won = None if subtype == DELAYED_RESOLVED else not at_fault
        return MatchOutcome(category=SPECIAL_CASE, subtype=subtype, won=won, at_fault=at_fault)

    if match.scheduled_at is not None:
        return MatchOutcome(category=SCHEDULED_PENDING, scheduled_at=match.scheduled_at)

    return MatchOutcome(category=INDETERMINATE)


def counts_as_completed(match: MatchRecord) -> bool:
    """Separates 'history' from 'to play'."""
    return resolve_outcome(match).category in (PLAYED, SPECIAL_CASE)


def is_clean(match: MatchRecord) -> bool:
    """Played with a nonzero score and no special-case marker at all."""
    return has_valid_score(match) and not is_special_case(match)


def short_label(match: MatchRecord, player_id: str) -> Optional[str]:
    """Compact box-grid label for a special case, None otherwise."""
    subtype = special_case_subtype(match)
    if subtype is None:
        return None
    own, other = SHORT_LABELS[subtype]
    return own if _marked_player(match, subtype) == player_id else other


def format_score(match: MatchRecord, player_id: str) -> str:
    """Score from the player's side ("3-1"), or the special-case label."""
    subtype = special_case_subtype(match)
    if subtype is not None:
        own, other = LONG_LABELS[subtype]
        return own if _marked_player(match, subtype) == player_id else other

    outcome = resolve_outcome(match, player_id)
    if outcome.category == PLAYED:
        return f"{outcome.score_for}-{outcome.score_against}"
    return "-"
