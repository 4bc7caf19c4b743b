"""
Per-player match lists: what is left to play, what is history, and the
filtered/sorted history table of the profile screen.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from boxleague.services.match_outcome import (
    PLAYED,
    counts_as_completed,
    format_score,
    is_special_case,
    resolve_outcome,
)
from boxleague.services.player_analytics import (
    WIN,
    chronological_key,
    clean_matches_for,
    result_for,
    rounded_percentage,
)
from boxleague.services.records import DELAY_ACCEPTED, MatchRecord, PlayerRecord

FILTER_ALL = "all"
FILTER_WON = "won"
FILTER_LOST = "lost"
RESULT_FILTERS = (FILTER_ALL, FILTER_WON, FILTER_LOST)

SORT_DATE = "date"
SORT_OPPONENT = "opponent"
SORT_SCORE = "score"
SORT_OPTIONS = (SORT_DATE, SORT_OPPONENT, SORT_SCORE)


@dataclass
class PlayerMatchSplit:
    to_play: List[MatchRecord]
    history: List[MatchRecord]


@dataclass
class HistoryRow:
    match: MatchRecord
    opponent_id: str
    opponent_name: str
    score: str
    won: bool
    special: bool
    played_on: Optional[datetime]
    margin: int = 0


@dataclass
class PlayerRecordSummary:
    wins: int
    losses: int
    win_rate: int


def split_player_matches(matches: Iterable[MatchRecord], player_id: str) -> PlayerMatchSplit:
    to_play, history = [], []
    for match in matches:
        if not match.involves(player_id):
            continue
        if counts_as_completed(match):
            history.append(match)
        else:
            to_play.append(match)

    # Unscheduled matches go last.
    to_play.sort(key=lambda m: (m.scheduled_at is None, chronological_key(m)))
    history.sort(key=chronological_key, reverse=True)
    return PlayerMatchSplit(to_play=to_play, history=history)


def next_match(matches: Iterable[MatchRecord], player_id: str) -> Optional[MatchRecord]:
    """Earliest scheduled, unfinished match, skipping accepted delays."""
    candidates = [
        m for m in split_player_matches(matches, player_id).to_play
        if m.scheduled_at is not None and m.delayed_status != DELAY_ACCEPTED
    ]
    return candidates[0] if candidates else None


def match_history(
    matches: Iterable[MatchRecord],
    players: Sequence[PlayerRecord],
    player_id: str,
    result_filter: str = FILTER_ALL,
    sort_by: str = SORT_DATE,
    search: Optional[str] = None,
) -> List[HistoryRow]:
    names: Dict[str, str] = {p.id: p.display_name for p in players}
    needle = search.strip().lower() if search else ""

    rows = []
    for match in split_player_matches(matches, player_id).history:
        opponent_id = match.opponent_of(player_id)
        if opponent_id not in names:
            continue
        outcome = resolve_outcome(match, player_id)
        special = is_special_case(match)
        row = HistoryRow(
            match=match,
            opponent_id=opponent_id,
            opponent_name=names[opponent_id],
            score=format_score(match, player_id),
            won=bool(outcome.won),
            special=special,
            played_on=match.event_time,
            margin=(outcome.score_for - outcome.score_against) if outcome.category == PLAYED else 0,
        )
        if needle and needle not in row.opponent_name.lower():
            continue
        if result_filter == FILTER_WON and (special or not row.won):
            continue
        if result_filter == FILTER_LOST and (special or row.won):
            continue
        rows.append(row)

    if sort_by == SORT_OPPONENT:
        rows.sort(key=lambda r: r.opponent_name.lower())
    elif sort_by == SORT_SCORE:
        rows.sort(key=lambda r: r.margin, reverse=True)
    return rows


def player_record(matches: Iterable[MatchRecord], player_id: str) -> PlayerRecordSummary:
    clean = clean_matches_for(matches, player_id)
    wins = sum(1 for m in clean if result_for(m, player_id) == WIN)
    losses = len(clean) - wins
    return PlayerRecordSummary(wins=wins, losses=losses, win_rate=rounded_percentage(wins, len(clean)))
