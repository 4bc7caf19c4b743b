"""
Tests for the golden ranking and the season lookups it relies on.
"""
from datetime import date, datetime

from boxleague.services.golden_ranking import (
    available_years,
    golden_ranking,
    matches_in_year,
    ranking_position,
)
from boxleague.services.records import BoxMembershipInfo, MatchRecord, PlayerRecord, SeasonRecord
from boxleague.services.seasons import (
    active_seasons,
    default_season,
    season_containing,
    season_for_membership,
    seasons_for_year,
)

SPRING = SeasonRecord(id="s1", name="Spring", start_date=date(2024, 1, 1), end_date=date(2024, 4, 30), status="finished")
AUTUMN = SeasonRecord(id="s2", name="Autumn", start_date=date(2024, 9, 1), end_date=date(2025, 1, 31))
NEXT = SeasonRecord(id="s3", name="Spring 25", start_date=date(2025, 2, 1), end_date=date(2025, 5, 31), status="upcoming")
SEASONS = [SPRING, AUTUMN, NEXT]


def player(pid: str, box_name=None) -> PlayerRecord:
    box = BoxMembershipInfo(box_id="b-" + box_name, box_name=box_name, season_id="s2") if box_name else None
    return PlayerRecord(id=pid, first_name=pid.title(), last_name="Test", current_box=box)


def played(mid, a, b, score_a, score_b, when, **kwargs) -> MatchRecord:
    return MatchRecord(id=mid, box_id="box", player_a_id=a, player_b_id=b,
                       score_a=score_a, score_b=score_b, played_at=when, **kwargs)


class TestSeasons:
    def test_active_and_default(self):
        assert active_seasons(SEASONS) == [AUTUMN]
        assert default_season(SEASONS) == AUTUMN
        assert default_season([SPRING, NEXT]) == SPRING
        assert default_season([]) is None

    def test_season_for_membership(self):
        assert season_for_membership(player("p", "Box 1"), SEASONS) == AUTUMN
        assert season_for_membership(player("p"), SEASONS) is None

    def test_year_uses_start_date(self):
        assert seasons_for_year(SEASONS, 2024) == [SPRING, AUTUMN]
        assert seasons_for_year(SEASONS, 2025) == [NEXT]

    def test_season_containing_accepts_datetimes(self):
        assert season_containing(SEASONS, datetime(2025, 1, 15, 20, 0)) == AUTUMN
        assert season_containing(SEASONS, date(2024, 6, 1)) is None
        assert season_containing(SEASONS, None) is None


class TestGoldenRanking:
    def test_points_and_order(self):
        players = [player("ann", "Box 1"), player("ben", "Box 2"), player("cid")]
        matches = [
            played("m1", "ann", "ben", 3, 1, datetime(2024, 2, 1)),
            played("m2", "cid", "ben", 3, 2, datetime(2024, 10, 1)),
            played("m3", "cid", "ann", 3, 0, datetime(2025, 1, 10)),  # autumn season, still 2024
        ]
        ranking = golden_ranking(players, matches, SEASONS, 2024)

        assert [(r.player_id, r.points) for r in ranking] == [("cid", 6), ("ann", 3)]
        assert [r.position for r in ranking] == [1, 2]
        assert ranking[1].box_name == "Box 1"
        assert ranking[1].wins == 1
        assert ranking[1].losses == 1
        assert ranking[1].matches_played == 2
        assert ranking_position(ranking, "ben") == 0

    def test_matches_outside_seasons_and_special_cases_ignored(self):
        matches = [
            played("gap", "ann", "ben", 3, 0, datetime(2024, 6, 15)),
            played("ns", "ann", "ben", 3, 0, datetime(2024, 2, 1), no_show_player_id="ben"),
            MatchRecord(id="forfeit", box_id="box", player_a_id="ann", player_b_id="ben",
                        no_show_player_id="ben", scheduled_at=datetime(2024, 2, 2)),
        ]
        assert matches_in_year(matches, SEASONS, 2024) == []
        assert golden_ranking([player("ann"), player("ben")], matches, SEASONS, 2024) == []

    def test_draw_gives_one_point_each(self):
        ranking = golden_ranking([player("ann"), player("ben")],
                                 [played("m1", "ann", "ben", 2, 2, datetime(2024, 3, 1))], SEASONS, 2024)
        assert [(r.player_id, r.points, r.draws) for r in ranking] == [("ann", 1, 1), ("ben", 1, 1)]

    def test_unknown_participant_ignored(self):
        ranking = golden_ranking([player("ann")],
                                 [played("m1", "ann", "ghost", 3, 0, datetime(2024, 3, 1))], SEASONS, 2024)
        assert ranking == []

    def test_ties_keep_roster_order(self):
        players = [player("zed"), player("amy"), player("bob"), player("cat")]
        matches = [
            played("m1", "amy", "bob", 3, 0, datetime(2024, 3, 1)),
            played("m2", "zed", "cat", 3, 0, datetime(2024, 3, 2)),
        ]
        assert [r.player_id for r in golden_ranking(players, matches, SEASONS, 2024)] == ["zed", "amy"]


def test_available_years_newest_first():
    assert available_years(date(2024, 5, 1)) == [2025, 2024, 2023, 2022, 2021, 2020, 2019]
