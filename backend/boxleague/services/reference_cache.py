"""
Read-through cache for league reference data (players, seasons).

Contract:
  - fetch_* returns cached records while they are fresh; force_refresh=True
    reloads and replaces the entry.
  - Entries are keyed by scope ("players:<box_id>", "players:all",
    "seasons") and expire after REFERENCE_CACHE_TTL_SECONDS.
  - invalidate(scope) drops one scope, or every entry when scope is None.
    Write paths call it; there is no other invalidation.
  - Matches are never cached: they change with every result entry.

Rows are converted to frozen records here, so the engine never holds ORM
instances bound to a session.
"""
import logging
import os
import threading
import time
from typing import Dict, List, Optional

from dotenv import load_dotenv
from sqlalchemy import or_
from sqlmodel import Session, select

from boxleague.models.match import Match
from boxleague.models.membership import BoxMembership
from boxleague.models.player import Player
from boxleague.models.season import Box, Season
from boxleague.services.records import BoxMembershipInfo, MatchRecord, PlayerRecord, SeasonRecord

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = int(os.getenv("REFERENCE_CACHE_TTL_SECONDS", "60"))
MAX_ENTRIES = 256

SCOPE_SEASONS = "seasons"
SCOPE_ALL_PLAYERS = "players:all"


def players_scope(box_id: Optional[str] = None) -> str:
    return f"players:{box_id}" if box_id else SCOPE_ALL_PLAYERS


class ReferenceDataCache:
    """TTL-bounded cache of player and season records.

    Every access to the two dicts happens under ``_lock``; loads run outside it.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, max_entries: int = MAX_ENTRIES):
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._cache: Dict[str, list] = {}
        self._cache_timestamps: Dict[str, float] = {}
        self._lock = threading.Lock()

    # ── Reads ────────────────────────────────────────────────────────────

    def fetch_players(
        self,
        session: Session,
        force_refresh: bool = False,
        box_id: Optional[str] = None,
    ) -> List[PlayerRecord]:
        scope = players_scope(box_id)
        if not force_refresh:
            cached = self._get(scope)
            if cached is not None:
                return cached
        players = load_players(session, box_id)
        self._store(scope, players)
        return players

    def fetch_seasons(self, session: Session, force_refresh: bool = False) -> List[SeasonRecord]:
        if not force_refresh:
            cached = self._get(SCOPE_SEASONS)
            if cached is not None:
                return cached
        seasons = load_seasons(session)
        self._store(SCOPE_SEASONS, seasons)
        return seasons

    def fetch_matches(
        self,
        session: Session,
        season_id: Optional[str] = None,
        box_id: Optional[str] = None,
        player_id: Optional[str] = None,
    ) -> List[MatchRecord]:
        return load_matches(session, season_id=season_id, box_id=box_id, player_id=player_id)

    # ── Invalidation ─────────────────────────────────────────────────────

    def invalidate(self, scope: Optional[str] = None) -> None:
        with self._lock:
            if scope is None:
                self._cache.clear()
                self._cache_timestamps.clear()
                return
            if scope == SCOPE_ALL_PLAYERS:
                # Box-scoped player lists are views of the same rows.
                for key in [k for k in self._cache if k.startswith("players:")]:
                    self._drop(key)
                return
            self._drop(scope)

    # ── Internals ────────────────────────────────────────────────────────

    def _get(self, key: str) -> Optional[list]:
        with self._lock:
            if not self._is_cache_valid(key):
                return None
            return self._cache.get(key)

    def _drop(self, key: str) -> None:
        self._cache.pop(key, None)
        self._cache_timestamps.pop(key, None)

    def _is_cache_valid(self, key: str) -> bool:
        if key not in self._cache_timestamps:
            return False
        return time.time() - self._cache_timestamps[key] < self._ttl

    def _store(self, key: str, records: list) -> None:
        with self._lock:
            self._cleanup_cache(key)
            self._cache[key] = records
            self._cache_timestamps[key] = time.time()

    def _cleanup_cache(self, incoming: str) -> None:
        """Remove expired entries and make room for *incoming*."""
        now = time.time()
        for key in [k for k, ts in self._cache_timestamps.items() if now - ts >= self._ttl]:
            self._drop(key)

        if incoming in self._cache:
            return
        overflow = len(self._cache) - self._max_entries + 1
        if overflow > 0:
            oldest = sorted(self._cache_timestamps.items(), key=lambda item: item[1])[:overflow]
            for key, _ in oldest:
                logger.debug("Reference cache full; evicting %s", key)
                self._drop(key)


# ── Row → record conversion ──────────────────────────────────────────────

def season_record(season: Season) -> SeasonRecord:
    return SeasonRecord(
        id=season.id,
        name=season.name,
        start_date=season.start_date,
        end_date=season.end_date,
        status=season.status,
    )


def match_record(match: Match) -> MatchRecord:
    return MatchRecord(
        id=match.id,
        box_id=match.box_id,
        player_a_id=match.player_a_id,
        player_b_id=match.player_b_id,
        score_a=match.score_a,
        score_b=match.score_b,
        scheduled_at=match.scheduled_at,
        played_at=match.played_at,
        no_show_player_id=match.no_show_player_id,
        retired_player_id=match.retired_player_id,
        delayed_player_id=match.delayed_player_id,
        delayed_requested_by=match.delayed_requested_by,
        delayed_status=match.delayed_status,
        delayed_requested_at=match.delayed_requested_at,
        delayed_resolved_at=match.delayed_resolved_at,
        season_id=match.season_id,
        week_number=match.week_number,
        running=match.running,
        live_score=match.live_score,
    )


def load_seasons(session: Session) -> List[SeasonRecord]:
    seasons = session.exec(select(Season).order_by(Season.start_date.desc(), Season.id)).all()
    return [season_record(s) for s in seasons]


def load_players(session: Session, box_id: Optional[str] = None) -> List[PlayerRecord]:
    """Players with their current box (the membership of their latest season).

    With *box_id*, only that box's members, each carrying that membership.
    """
    memberships = session.exec(
        select(BoxMembership, Box, Season)
        .join(Box, BoxMembership.box_id == Box.id)
        .join(Season, BoxMembership.season_id == Season.id)
        .order_by(Season.start_date)
    ).all()

    current: Dict[str, BoxMembershipInfo] = {}
    for membership, box, season in memberships:
        if box_id and box.id != box_id:
            continue
        # Later seasons overwrite earlier ones.
        current[membership.player_id] = BoxMembershipInfo(
            box_id=box.id,
            box_name=box.name,
            season_id=season.id,
            next_box_status=membership.next_box_status,
        )

    players = session.exec(select(Player).order_by(Player.last_name, Player.first_name, Player.id)).all()
    records = []
    for player in players:
        if box_id and player.id not in current:
            continue
        records.append(PlayerRecord(
            id=player.id,
            first_name=player.first_name,
            last_name=player.last_name,
            current_box=current.get(player.id),
            active=player.active,
        ))
    return records


def load_matches(
    session: Session,
    season_id: Optional[str] = None,
    box_id: Optional[str] = None,
    player_id: Optional[str] = None,
) -> List[MatchRecord]:
    query = select(Match)
    if season_id:
        query = query.where(Match.season_id == season_id)
    if box_id:
        query = query.where(Match.box_id == box_id)
    if player_id:
        query = query.where(or_(Match.player_a_id == player_id, Match.player_b_id == player_id))
    matches = session.exec(query.order_by(Match.created_at, Match.id)).all()
    return [match_record(m) for m in matches]


reference_cache = ReferenceDataCache()


def get_reference_cache() -> ReferenceDataCache:
    """FastAPI dependency for the process-wide reference cache."""
    return reference_cache
