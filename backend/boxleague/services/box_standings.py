"""
Box standings — aggregate every played match of one box into a ranked table.

Points: 2 per set won (each side gets 2 x its own score).
Only PLAYED matches count; special cases and pending matches do not.
Sort: points descending, stable over first appearance in the input.
The full table is returned; top-N truncation belongs to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from boxleague.services.match_outcome import PLAYED, resolve_outcome
from boxleague.services.records import MatchRecord

logger = logging.getLogger(__name__)

POINTS_PER_SET = 2


@dataclass
class BoxStanding:
    player_id: str
    points: int = 0
    wins: int = 0
    losses: int = 0
    matches_played: int = 0
    position: int = 0


def compute_box_standings(
    matches: Iterable[MatchRecord],
    known_player_ids: Optional[Iterable[str]] = None,
) -> List[BoxStanding]:
    """Build the standings table for the matches of a single box.

    When *known_player_ids* is given, matches involving a player outside
    that roster are skipped entirely.
    """
    roster = set(known_player_ids) if known_player_ids is not None else None
    rows: Dict[str, BoxStanding] = {}

    for match in matches:
        if roster is not None and (match.player_a_id not in roster or match.player_b_id not in roster):
            logger.debug("Skipping match %s: participant missing from roster", match.id)
            continue

        # Every participant gets a row, even with no played match yet.
        row_a = rows.setdefault(match.player_a_id, BoxStanding(player_id=match.player_a_id))
        row_b = rows.setdefault(match.player_b_id, BoxStanding(player_id=match.player_b_id))

        if resolve_outcome(match).category != PLAYED:
            continue

        row_a.points += POINTS_PER_SET * match.score_a
        row_b.points += POINTS_PER_SET * match.score_b
        row_a.matches_played += 1
        row_b.matches_played += 1

        if match.score_a > match.score_b:
            row_a.wins += 1
            row_b.losses += 1
        elif match.score_b > match.score_a:
            row_b.wins += 1
            row_a.losses += 1

    table = sorted(rows.values(), key=lambda r: -r.points)
    for index, row in enumerate(table, start=1):
        row.position = index
    return table
