"""
Golden ranking — club-wide, season-scoped point ranking across all boxes.

Season points: 3 per win, 1 per drawn clean match, over clean matches dated
inside one of the seasons that start in the ranking year. Matches with a
participant outside the roster are ignored. Rows are sorted by points
descending; equal points keep roster order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from boxleague.services.match_outcome import is_clean
from boxleague.services.records import MatchRecord, PlayerRecord, SeasonRecord
from boxleague.services.seasons import season_containing, seasons_for_year

logger = logging.getLogger(__name__)

POINTS_PER_WIN = 3
POINTS_PER_DRAW = 1
YEARS_BACK = 5
YEARS_AHEAD = 1


@dataclass
class GoldenRankingRow:
    player_id: str
    display_name: str
    box_name: Optional[str] = None
    points: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    matches_played: int = 0
    position: int = 0


def matches_in_year(
    matches: Iterable[MatchRecord],
    seasons: Iterable[SeasonRecord],
    year: int,
) -> List[MatchRecord]:
    """Clean matches whose played/scheduled date falls inside a season of *year*."""
    year_seasons = seasons_for_year(seasons, year)
    return [
        m for m in matches
        if is_clean(m) and season_containing(year_seasons, m.event_time) is not None
    ]


def golden_ranking(
    players: Sequence[PlayerRecord],
    matches: Iterable[MatchRecord],
    seasons: Iterable[SeasonRecord],
    year: int,
) -> List[GoldenRankingRow]:
    rows: Dict[str, GoldenRankingRow] = {
        p.id: GoldenRankingRow(
            player_id=p.id,
            display_name=p.display_name,
            box_name=p.current_box.box_name if p.current_box else None,
        )
        for p in players
    }

    for match in matches_in_year(matches, seasons, year):
        row_a = rows.get(match.player_a_id)
        row_b = rows.get(match.player_b_id)
        if row_a is None or row_b is None:
            logger.debug("Golden ranking skips match %s: participant missing from roster", match.id)
            continue

        row_a.matches_played += 1
        row_b.matches_played += 1
        if match.score_a > match.score_b:
            _record_win(row_a, row_b)
        elif match.score_b > match.score_a:
            _record_win(row_b, row_a)
        else:
            for row in (row_a, row_b):
                row.draws += 1
                row.points += POINTS_PER_DRAW

    ranked = sorted((r for r in rows.values() if r.points > 0), key=lambda r: -r.points)
    for index, row in enumerate(ranked, start=1):
        row.position = index
    return ranked


def _record_win(winner: GoldenRankingRow, loser: GoldenRankingRow) -> None:
    winner.wins += 1
    winner.points += POINTS_PER_WIN
    loser.losses += 1


def ranking_position(ranking: List[GoldenRankingRow], player_id: str) -> int:
    """1-based position of *player_id*, 0 when absent (no points)."""
    for row in ranking:
        if row.player_id == player_id:
            return row.position
    return 0


def season_points(ranking: List[GoldenRankingRow], player_id: str) -> int:
    for row in ranking:
        if row.player_id == player_id:
            return row.points
    return 0


def available_years(today: Optional[date] = None) -> List[int]:
    """Selectable ranking years, newest first."""
    year = (today or date.today()).year
    return list(range(year + YEARS_AHEAD, year - YEARS_BACK - 1, -1))
