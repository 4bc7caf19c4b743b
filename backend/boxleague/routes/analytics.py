"""
Player analytics API Routes
Profile statistics, achievements, per-player match lists and the golden ranking.

All numbers are computed on request from a league-wide snapshot: players and
seasons come from the reference cache, matches are always read fresh.
"""
from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session

from boxleague.database import get_session
from boxleague.models.player import Player
from boxleague.routes.matches import MatchResponse
from boxleague.services.achievements import Achievement, stats_from_analytics, summarize_achievements
from boxleague.services.golden_ranking import available_years, golden_ranking
from boxleague.services.match_views import (
    FILTER_ALL,
    RESULT_FILTERS,
    SORT_DATE,
    SORT_OPTIONS,
    match_history,
    next_match,
    split_player_matches,
)
from boxleague.services.player_analytics import OpponentRecord, StreakRun, compute_player_analytics
from boxleague.services.reference_cache import ReferenceDataCache, get_reference_cache

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class StreakResponse(BaseModel):
    type: Optional[str] = None
    count: int = 0


class StreakRunResponse(BaseModel):
    count: int
    match_ids: List[str]


class OpponentResponse(BaseModel):
    opponent_id: str
    opponent_name: str
    wins: int
    losses: int
    total: int
    win_rate: float
    match_ids: List[str]


class PlayerAnalyticsResponse(BaseModel):
    player_id: str
    wins: int
    losses: int
    total_matches: int
    win_rate: int
    current_streak: StreakResponse
    best_win_streak: StreakRunResponse
    worst_loss_streak: StreakRunResponse
    rival: Optional[OpponentResponse] = None
    best_opponent: Optional[OpponentResponse] = None
    worst_opponent: Optional[OpponentResponse] = None
    recent_form: List[str]
    total_points_this_year: int
    global_ranking_position: int


class AchievementResponse(BaseModel):
    id: str
    name: str
    description: str
    unlocked: bool
    progress: Optional[int] = None
    max_progress: Optional[int] = None
    group: Optional[str] = None
    tier: Optional[int] = None


class AchievementGroupResponse(BaseModel):
    id: str
    name: str
    unlocked: bool
    display: AchievementResponse
    achievements: List[AchievementResponse]


class AchievementsResponse(BaseModel):
    player_id: str
    unlocked_count: int
    total_count: int
    standalone: List[AchievementResponse]
    groups: List[AchievementGroupResponse]


class PlayerMatchesResponse(BaseModel):
    player_id: str
    next_match: Optional[MatchResponse] = None
    to_play: List[MatchResponse]
    history: List[MatchResponse]


class HistoryRowResponse(BaseModel):
    match_id: str
    opponent_id: str
    opponent_name: str
    score: str
    won: bool
    special: bool
    played_on: Optional[datetime] = None


class GoldenRankingRowResponse(BaseModel):
    position: int
    player_id: str
    display_name: str
    box_name: Optional[str] = None
    points: int
    wins: int
    losses: int
    draws: int
    matches_played: int


class GoldenRankingResponse(BaseModel):
    year: int
    available_years: List[int]
    rows: List[GoldenRankingRowResponse]


# ============================================================================
# Helpers
# ============================================================================


def _require_player(session: Session, player_id: str) -> Player:
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return player


def _run(run: StreakRun) -> StreakRunResponse:
    return StreakRunResponse(count=run.count, match_ids=[m.id for m in run.matches])


def _opponent(record: Optional[OpponentRecord], names: Dict[str, str]) -> Optional[OpponentResponse]:
    if record is None:
        return None
    return OpponentResponse(
        opponent_id=record.opponent_id,
        opponent_name=names.get(record.opponent_id, ""),
        wins=record.wins,
        losses=record.losses,
        total=record.total,
        win_rate=record.win_rate,
        match_ids=[m.id for m in record.matches],
    )


def _achievement(a: Achievement) -> AchievementResponse:
    return AchievementResponse(**a.__dict__)


def _snapshot(session: Session, cache: ReferenceDataCache, player_id: str):
    players = cache.fetch_players(session)
    seasons = cache.fetch_seasons(session)
    matches = cache.fetch_matches(session)
    snapshot = compute_player_analytics(player_id, matches, players, seasons, now=datetime.now())
    return snapshot, {p.id: p.display_name for p in players}


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/players/{player_id}/analytics", response_model=PlayerAnalyticsResponse)
def get_player_analytics(
    player_id: str,
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    _require_player(session, player_id)
    snapshot, names = _snapshot(session, cache, player_id)

    return PlayerAnalyticsResponse(
        player_id=player_id,
        wins=snapshot.wins,
        losses=snapshot.losses,
        total_matches=snapshot.total_matches,
        win_rate=snapshot.win_rate,
        current_streak=StreakResponse(type=snapshot.current_streak.type, count=snapshot.current_streak.count),
        best_win_streak=_run(snapshot.best_win_streak),
        worst_loss_streak=_run(snapshot.worst_loss_streak),
        rival=_opponent(snapshot.rival, names),
        best_opponent=_opponent(snapshot.best_opponent, names),
        worst_opponent=_opponent(snapshot.worst_opponent, names),
        recent_form=snapshot.recent_form,
        total_points_this_year=snapshot.total_points_this_year,
        global_ranking_position=snapshot.global_ranking_position,
    )


@router.get("/players/{player_id}/achievements", response_model=AchievementsResponse)
def get_player_achievements(
    player_id: str,
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    player = _require_player(session, player_id)
    snapshot, _ = _snapshot(session, cache, player_id)
    summary = summarize_achievements(stats_from_analytics(snapshot), has_picture=bool(player.picture))

    return AchievementsResponse(
        player_id=player_id,
        unlocked_count=summary.unlocked_count,
        total_count=summary.total_count,
        standalone=[_achievement(a) for a in summary.standalone],
        groups=[
            AchievementGroupResponse(
                id=g.id,
                name=g.name,
                unlocked=g.unlocked,
                display=_achievement(g.display),
                achievements=[_achievement(a) for a in g.achievements],
            )
            for g in summary.groups
        ],
    )


@router.get("/players/{player_id}/matches", response_model=PlayerMatchesResponse)
def get_player_matches(
    player_id: str,
    season_id: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    """Matches still to play (earliest first) and history (latest first)."""
    _require_player(session, player_id)
    matches = cache.fetch_matches(session, season_id=season_id, player_id=player_id)
    split = split_player_matches(matches, player_id)

    upcoming = next_match(matches, player_id)
    return PlayerMatchesResponse(
        player_id=player_id,
        next_match=MatchResponse.model_validate(upcoming) if upcoming else None,
        to_play=[MatchResponse.model_validate(m) for m in split.to_play],
        history=[MatchResponse.model_validate(m) for m in split.history],
    )


@router.get("/players/{player_id}/history", response_model=List[HistoryRowResponse])
def get_player_history(
    player_id: str,
    result: str = Query(default=FILTER_ALL),
    sort: str = Query(default=SORT_DATE),
    search: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    _require_player(session, player_id)
    if result not in RESULT_FILTERS:
        raise HTTPException(status_code=422, detail=f"Invalid result filter: {result}")
    if sort not in SORT_OPTIONS:
        raise HTTPException(status_code=422, detail=f"Invalid sort: {sort}")

    players = cache.fetch_players(session)
    matches = cache.fetch_matches(session, player_id=player_id)
    rows = match_history(matches, players, player_id, result_filter=result, sort_by=sort, search=search)

    return [
        HistoryRowResponse(
            match_id=row.match.id,
            opponent_id=row.opponent_id,
            opponent_name=row.opponent_name,
            score=row.score,
            won=row.won,
            special=row.special,
            played_on=row.played_on,
        )
        for row in rows
    ]


@router.get("/ranking/golden", response_model=GoldenRankingResponse)
def get_golden_ranking(
    year: Optional[int] = Query(default=None),
    session: Session = Depends(get_session),
    cache: ReferenceDataCache = Depends(get_reference_cache),
):
    """Club-wide season points ranking for one calendar year (default: this year)."""
    today = date.today()
    year = year or today.year

    players = cache.fetch_players(session)
    seasons = cache.fetch_seasons(session)
    matches = cache.fetch_matches(session)
    ranking = golden_ranking(players, matches, seasons, year)

    return GoldenRankingResponse(
        year=year,
        available_years=available_years(today),
        rows=[
            GoldenRankingRowResponse(
                position=row.position,
                player_id=row.player_id,
                display_name=row.display_name,
                box_name=row.box_name,
                points=row.points,
                wins=row.wins,
                losses=row.losses,
                draws=row.draws,
                matches_played=row.matches_played,
            )
            for row in ranking
        ],
    )
