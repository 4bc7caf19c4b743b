"""
Tests for the read-through reference data cache.
"""
import threading
import time
from datetime import date, datetime, timezone

from sqlmodel import Session

from boxleague.models.match import Match
from boxleague.models.membership import BoxMembership
from boxleague.models.player import Player
from boxleague.models.season import Box, Season
from boxleague.services.reference_cache import SCOPE_ALL_PLAYERS, SCOPE_SEASONS, ReferenceDataCache


def seed(session: Session):
    old = Season(name="2023", start_date=date(2023, 1, 1), end_date=date(2023, 6, 30), status="finished")
    new = Season(name="2024", start_date=date(2024, 1, 1), end_date=date(2024, 6, 30), status="running")
    session.add_all([old, new])
    session.commit()

    old_box = Box(season_id=old.id, level=2, name="Box 2")
    new_box = Box(season_id=new.id, level=1, name="Box 1")
    ann = Player(first_name="Ann", last_name="Archer")
    ben = Player(first_name="Ben", last_name="Baker")
    session.add_all([old_box, new_box, ann, ben])
    session.commit()

    session.add_all([
        BoxMembership(player_id=ann.id, box_id=old_box.id, season_id=old.id),
        BoxMembership(player_id=ann.id, box_id=new_box.id, season_id=new.id, next_box_status="continue"),
        BoxMembership(player_id=ben.id, box_id=old_box.id, season_id=old.id),
    ])
    session.add(Match(season_id=new.id, box_id=new_box.id, player_a_id=ann.id, player_b_id=ben.id,
                      score_a=3, score_b=1, played_at=datetime(2024, 2, 1, tzinfo=timezone.utc)))
    session.commit()
    return {"old_box": old_box.id, "new_box": new_box.id, "ann": ann.id, "ben": ben.id, "new": new.id}


class TestPlayers:
    def test_current_box_is_latest_season(self, session: Session):
        ids = seed(session)
        players = {p.id: p for p in ReferenceDataCache().fetch_players(session)}

        assert players[ids["ann"]].current_box.box_id == ids["new_box"]
        assert players[ids["ann"]].current_box.box_name == "Box 1"
        assert players[ids["ann"]].current_box.next_box_status == "continue"
        assert players[ids["ben"]].current_box.box_id == ids["old_box"]

    def test_box_scope(self, session: Session):
        ids = seed(session)
        scoped = ReferenceDataCache().fetch_players(session, box_id=ids["old_box"])
        assert {p.id for p in scoped} == {ids["ann"], ids["ben"]}
        assert all(p.current_box.box_id == ids["old_box"] for p in scoped)

    def test_cached_until_refresh(self, session: Session):
        seed(session)
        cache = ReferenceDataCache()
        assert len(cache.fetch_players(session)) == 2

        session.add(Player(first_name="Cid", last_name="Cole"))
        session.commit()
        assert len(cache.fetch_players(session)) == 2
        assert len(cache.fetch_players(session, force_refresh=True)) == 3

    def test_invalidate_all_players_drops_box_scopes(self, session: Session):
        ids = seed(session)
        cache = ReferenceDataCache()
        cache.fetch_players(session, box_id=ids["new_box"])
        cache.fetch_seasons(session)

        session.add(BoxMembership(player_id=ids["ben"], box_id=ids["new_box"], season_id=ids["new"]))
        session.commit()
        cache.invalidate(SCOPE_ALL_PLAYERS)

        assert len(cache.fetch_players(session, box_id=ids["new_box"])) == 2
        assert cache._is_cache_valid(SCOPE_SEASONS)

    def test_expired_entries_reload(self, session: Session):
        seed(session)
        cache = ReferenceDataCache(ttl_seconds=0)
        cache.fetch_players(session)
        session.add(Player(first_name="Cid", last_name="Cole"))
        session.commit()
        assert len(cache.fetch_players(session)) == 3


class TestSeasonsAndMatches:
    def test_seasons_newest_first(self, session: Session):
        seed(session)
        seasons = ReferenceDataCache().fetch_seasons(session)
        assert [s.name for s in seasons] == ["2024", "2023"]

    def test_matches_are_records_and_filtered(self, session: Session):
        ids = seed(session)
        cache = ReferenceDataCache()
        assert len(cache.fetch_matches(session, player_id=ids["ben"])) == 1
        assert cache.fetch_matches(session, box_id=ids["old_box"]) == []
        record = cache.fetch_matches(session)[0]
        assert record.score_a == 3
        assert record.involves(ids["ann"])

    def test_size_bound_evicts_oldest(self, session: Session):
        ids = seed(session)
        cache = ReferenceDataCache(max_entries=2)
        cache.fetch_seasons(session)
        cache.fetch_players(session)
        cache.fetch_players(session, box_id=ids["old_box"])
        assert len(cache._cache) == 2
        assert not cache._is_cache_valid(SCOPE_SEASONS)

    def test_refreshing_a_stored_scope_keeps_the_others(self, session: Session):
        seed(session)
        cache = ReferenceDataCache(max_entries=2)
        cache.fetch_players(session)
        cache.fetch_seasons(session)

        cache.fetch_seasons(session, force_refresh=True)
        assert cache._is_cache_valid(SCOPE_ALL_PLAYERS)
        assert cache._is_cache_valid(SCOPE_SEASONS)


class TestConsistency:
    def test_timestamp_without_entry_reloads(self, session: Session):
        # An invalidate landing between the freshness check and the read.
        seed(session)
        cache = ReferenceDataCache()
        cache._cache_timestamps[SCOPE_SEASONS] = time.time()

        assert [s.name for s in cache.fetch_seasons(session)] == ["2024", "2023"]
        assert SCOPE_SEASONS in cache._cache

    def test_concurrent_fetch_and_invalidate(self, session: Session):
        seed(session)
        records = ReferenceDataCache().fetch_players(session)
        cache = ReferenceDataCache()
        errors = []

        def reader():
            try:
                for _ in range(200):
                    cache._store(SCOPE_ALL_PLAYERS, records)
                    cache._get(SCOPE_ALL_PLAYERS)
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        def writer():
            for _ in range(200):
                cache.invalidate(SCOPE_ALL_PLAYERS)

        threads = [threading.Thread(target=reader), threading.Thread(target=writer)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
