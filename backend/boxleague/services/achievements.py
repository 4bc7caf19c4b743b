"""
Achievements derived from a player's analytics.

Standalone achievements unlock on their own; tiered ones are grouped
(wins, matches, streak, winrate, points) and each group shows its highest
unlocked tier, or the next one to unlock.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from boxleague.services.player_analytics import PlayerAnalyticsSnapshot

GROUP_NAMES = {
    "wins": "Wins",
    "matches": "Matches played",
    "streak": "Win streaks",
    "winrate": "Win rate",
    "points": "Points",
}


@dataclass
class AchievementStats:
    wins: int = 0
    losses: int = 0
    win_rate: int = 0
    total_matches: int = 0
    best_streak: int = 0
    current_streak: int = 0
    total_points: int = 0
    ranking_position: int = 0


@dataclass
class Achievement:
    id: str
    name: str
    description: str
    unlocked: bool
    progress: Optional[int] = None
    max_progress: Optional[int] = None
    group: Optional[str] = None
    tier: Optional[int] = None


@dataclass
class AchievementGroup:
    id: str
    name: str
    achievements: List[Achievement]
    display: Achievement

    @property
    def unlocked(self) -> bool:
        return self.display.unlocked


@dataclass
class AchievementSummary:
    standalone: List[Achievement] = field(default_factory=list)
    groups: List[AchievementGroup] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.standalone) + len(self.groups)

    @property
    def unlocked_count(self) -> int:
        return sum(1 for a in self.standalone if a.unlocked) + sum(1 for g in self.groups if g.unlocked)


def stats_from_analytics(snapshot: PlayerAnalyticsSnapshot) -> AchievementStats:
    current = snapshot.current_streak.count if snapshot.current_streak.type == "win" else 0
    return AchievementStats(
        wins=snapshot.wins,
        losses=snapshot.losses,
        win_rate=snapshot.win_rate,
        total_matches=snapshot.total_matches,
        best_streak=snapshot.best_win_streak.count,
        current_streak=current,
        total_points=snapshot.total_points_this_year,
        ranking_position=snapshot.global_ranking_position,
    )


def _tiers(group: str, value: int, thresholds, name, description) -> List[Achievement]:
    return [
        Achievement(
            id=f"{group}_{threshold}",
            name=name(threshold),
            description=description(threshold),
            unlocked=value >= threshold,
            progress=value,
            max_progress=threshold,
            group=group,
            tier=tier,
        )
        for tier, threshold in enumerate(thresholds, start=1)
    ]


# (percentage, minimum matches)
WIN_RATE_TIERS = ((50, 10), (55, 15), (60, 20), (70, 30))


def all_achievements(stats: AchievementStats, has_picture: bool = False) -> List[Achievement]:
    achievements = [
        Achievement(
            id="first_win",
            name="First win",
            description="Win your first match",
            unlocked=stats.wins >= 1,
        ),
        Achievement(
            id="best_winstreak",
            name="Best streak",
            description=f"Best win streak: {stats.best_streak}",
            unlocked=stats.best_streak > 0,
            progress=stats.best_streak,
            max_progress=max(stats.best_streak, 10),
        ),
        Achievement(
            id="profile_picture",
            name="Say cheese",
            description="Add a profile picture",
            unlocked=has_picture,
        ),
    ]
    achievements += _tiers(
        "wins", stats.wins, (10, 25, 50, 100),
        lambda n: f"{n} wins", lambda n: f"Win {n} matches",
    )
    achievements += _tiers(
        "matches", stats.total_matches, (10, 25, 50, 100),
        lambda n: f"{n} matches", lambda n: f"Play {n} matches",
    )
    achievements += _tiers(
        "streak", stats.best_streak, (3, 5, 7, 10),
        lambda n: f"{n} in a row", lambda n: f"Win {n} matches in a row",
    )
    for tier, (rate, minimum) in enumerate(WIN_RATE_TIERS, start=1):
        achievements.append(Achievement(
            id=f"winrate_{rate}",
            name=f"{rate}% club",
            description=f"Keep a {rate}% win rate over at least {minimum} matches",
            unlocked=stats.total_matches >= minimum and stats.win_rate >= rate,
            progress=stats.win_rate,
            max_progress=rate,
            group="winrate",
            tier=tier,
        ))
    achievements += _tiers(
        "points", stats.total_points, (50, 150, 300, 500),
        lambda n: f"{n} points", lambda n: f"Collect {n} points",
    )
    return achievements


def summarize_achievements(stats: AchievementStats, has_picture: bool = False) -> AchievementSummary:
    summary = AchievementSummary()
    grouped: Dict[str, List[Achievement]] = {}
    for achievement in all_achievements(stats, has_picture):
        if achievement.group:
            grouped.setdefault(achievement.group, []).append(achievement)
        else:
            summary.standalone.append(achievement)

    for group_id, members in grouped.items():
        members.sort(key=lambda a: a.tier or 0)
        unlocked = [a for a in members if a.unlocked]
        locked = [a for a in members if not a.unlocked]
        display = unlocked[-1] if unlocked else (locked[0] if locked else members[0])
        summary.groups.append(AchievementGroup(
            id=group_id,
            name=GROUP_NAMES.get(group_id, group_id),
            achievements=members,
            display=display,
        ))
    return summary
