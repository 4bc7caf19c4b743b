"""
Player analytics — streaks, rivalries, form, season points and golden
ranking position for one player across the whole league.

Every statistic here is computed over *clean* matches only: a valid nonzero
score and no special-case marker (no-show, retired, delayed). Matches are
ordered by played_at, falling back to scheduled_at; equal times keep input
order. A drawn clean match (not expected with set scores) counts as a loss
for win/loss statistics and as a draw for season points.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from boxleague.services.golden_ranking import golden_ranking, ranking_position, season_points
from boxleague.services.match_outcome import is_clean, resolve_outcome
from boxleague.services.records import MatchRecord, PlayerRecord, SeasonRecord

logger = logging.getLogger(__name__)

WIN = "win"
LOSS = "loss"

RECENT_FORM_SIZE = 5
MIN_OPPONENT_MATCHES = 2


@dataclass
class Streak:
    type: Optional[str] = None  # win | loss | None when no clean match
    count: int = 0


@dataclass
class StreakRun:
    count: int = 0
    matches: List[MatchRecord] = field(default_factory=list)  # chronological


@dataclass
class OpponentRecord:
    opponent_id: str
    wins: int = 0
    losses: int = 0
    matches: List[MatchRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.matches)

    @property
    def win_rate(self) -> float:
        decided = self.wins + self.losses
        return self.wins / decided if decided else 0.0


@dataclass
class PlayerAnalyticsSnapshot:
    player_id: str
    current_streak: Streak
    best_win_streak: StreakRun
    worst_loss_streak: StreakRun
    rival: Optional[OpponentRecord]
    best_opponent: Optional[OpponentRecord]
    worst_opponent: Optional[OpponentRecord]
    recent_form: List[str]  # most recent first
    total_points_this_year: int
    global_ranking_position: int
    wins: int = 0
    losses: int = 0
    total_matches: int = 0
    win_rate: int = 0  # rounded percentage


def chronological_key(match: MatchRecord) -> datetime:
    when = match.event_time
    if when is None:
        return datetime.min
    if when.tzinfo is not None:
        return when.astimezone(timezone.utc).replace(tzinfo=None)
    return when


def clean_matches_for(matches: Iterable[MatchRecord], player_id: str) -> List[MatchRecord]:
    """The player's clean matches, oldest first."""
    own = [m for m in matches if m.involves(player_id) and is_clean(m)]
    return sorted(own, key=chronological_key)


def result_for(match: MatchRecord, player_id: str) -> str:
    return WIN if resolve_outcome(match, player_id).won else LOSS


def recent_form(chronological: Sequence[MatchRecord], player_id: str, size: int = RECENT_FORM_SIZE) -> List[str]:
    latest = list(reversed(chronological))[:size]
    return [result_for(m, player_id) for m in latest]


def current_streak(chronological: Sequence[MatchRecord], player_id: str) -> Streak:
    streak = Streak()
    for match in reversed(chronological):
        result = result_for(match, player_id)
        if streak.type is None:
            streak.type = result
        elif result != streak.type:
            break
        streak.count += 1
    return streak


def longest_streaks(chronological: Sequence[MatchRecord], player_id: str) -> Tuple[StreakRun, StreakRun]:
    """Longest win run and longest loss run over the full history.

    On equal length the earlier run is kept.
    """
    best_win, worst_loss = StreakRun(), StreakRun()
    win_run: List[MatchRecord] = []
    loss_run: List[MatchRecord] = []

    for match in chronological:
        if result_for(match, player_id) == WIN:
            win_run.append(match)
            loss_run = []
            if len(win_run) > best_win.count:
                best_win = StreakRun(count=len(win_run), matches=list(win_run))
        else:
            loss_run.append(match)
            win_run = []
            if len(loss_run) > worst_loss.count:
                worst_loss = StreakRun(count=len(loss_run), matches=list(loss_run))

    return best_win, worst_loss


def opponent_records(
    chronological: Sequence[MatchRecord],
    player_id: str,
    roster_ids: Optional[Iterable[str]] = None,
) -> Dict[str, OpponentRecord]:
    """Head-to-head records keyed by opponent, in order of first meeting."""
    roster = set(roster_ids) if roster_ids is not None else None
    records: Dict[str, OpponentRecord] = {}
    for match in chronological:
        opponent_id = match.opponent_of(player_id)
        if roster is not None and opponent_id not in roster:
            logger.debug("Opponent %s of match %s not in roster; skipped", opponent_id, match.id)
            continue
        record = records.setdefault(opponent_id, OpponentRecord(opponent_id=opponent_id))
        record.matches.append(match)
        if result_for(match, player_id) == WIN:
            record.wins += 1
        else:
            record.losses += 1
    return records


def pick_rival(records: Dict[str, OpponentRecord]) -> Optional[OpponentRecord]:
    """Most-faced opponent, regardless of results."""
    rival = None
    for record in records.values():
        if rival is None or record.total > rival.total:
            rival = record
    return rival


def _qualifying(records: Dict[str, OpponentRecord]) -> List[OpponentRecord]:
    return [r for r in records.values() if r.total >= MIN_OPPONENT_MATCHES]


def pick_best_opponent(records: Dict[str, OpponentRecord]) -> Optional[OpponentRecord]:
    best = None
    for record in _qualifying(records):
        if best is None or record.win_rate > best.win_rate:
            best = record
    return best


def pick_worst_opponent(records: Dict[str, OpponentRecord]) -> Optional[OpponentRecord]:
    """Most losses, then lowest win rate, then most matches."""
    worst = None
    for record in _qualifying(records):
        if worst is None or _worse_than(record, worst):
            worst = record
    return worst


def _worse_than(candidate: OpponentRecord, current: OpponentRecord) -> bool:
    if candidate.losses != current.losses:
        return candidate.losses > current.losses
    if candidate.win_rate != current.win_rate:
        return candidate.win_rate < current.win_rate
    return candidate.total > current.total


def compute_player_analytics(
    player_id: str,
    matches: Sequence[MatchRecord],
    players: Sequence[PlayerRecord],
    seasons: Sequence[SeasonRecord],
    now: Optional[datetime] = None,
) -> PlayerAnalyticsSnapshot:
    """Full statistical profile of *player_id*.

    *matches* is the league-wide snapshot: the golden ranking position needs
    every player's season points, not only the target player's.
    """
    year = (now or datetime.now()).year
    chronological = clean_matches_for(matches, player_id)

    best_win, worst_loss = longest_streaks(chronological, player_id)
    records = opponent_records(chronological, player_id, [p.id for p in players])
    ranking = golden_ranking(players, matches, seasons, year)

    wins = sum(1 for m in chronological if result_for(m, player_id) == WIN)
    total = len(chronological)
    losses = total - wins

    return PlayerAnalyticsSnapshot(
        player_id=player_id,
        current_streak=current_streak(chronological, player_id),
        best_win_streak=best_win,
        worst_loss_streak=worst_loss,
        rival=pick_rival(records),
        best_opponent=pick_best_opponent(records),
        worst_opponent=pick_worst_opponent(records),
        recent_form=recent_form(chronological, player_id),
        total_points_this_year=season_points(ranking, player_id),
        global_ranking_position=ranking_position(ranking, player_id),
        wins=wins,
        losses=losses,
        total_matches=total,
        win_rate=rounded_percentage(wins, total),
    )


def rounded_percentage(part: int, whole: int) -> int:
    if not whole:
        return 0
    return int(part * 100 / whole + 0.5)
