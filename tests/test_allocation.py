"""
Unit tests for the LiveScheduler running-order projection.
"""
import pytest
import datetime
import logging
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.allocation import LiveScheduler, project_schedule, PLAYING, UP_NEXT, LATER
from core.models import Match, Team, Discipline, DISCIPLINES, FINAL
from core.formats import generate_round_robin
from conftest import played

BASE_DATE = datetime.date(2026, 6, 14)


def at(hour, minute):
    return datetime.datetime.combine(BASE_DATE, datetime.time(hour, minute))


def rr(match_id, discipline_id, p1, p2):
    return Match(id=match_id, discipline_id=discipline_id, player1_id=p1, player2_id=p2)


@pytest.fixture
def two_fields():
    return [Discipline("D1", "Field 1", True), Discipline("D2", "Field 2", True)]


@pytest.fixture
def small_teams():
    return [
        Team(id="T1", name="T1", player_ids=["a1", "a2"]),
        Team(id="T2", name="T2", player_ids=["b1", "b2"]),
        Team(id="T3", name="T3", player_ids=["c1", "c2"]),
        Team(id="T4", name="T4", player_ids=["d1", "d2"]),
    ]


def assert_no_conflicts(running, teams):
    """No field and no participant (or underlying player) in two overlapping matches."""
    members = {t.id: t.player_ids for t in teams}
    busy = {}
    for item in running:
        keys = {"field:" + item.match.discipline_id}
        for pid in item.match.participant_ids:
            keys.add(pid)
            keys.update(members.get(pid, []))
        for key in keys:
            for start, end in busy.get(key, []):
                assert not (max(start, item.start_time) < min(end, item.end_time)), \
                    f"{key} double booked at {item.start_time}"
            busy.setdefault(key, []).append((item.start_time, item.end_time))


class TestSchedulerHelpers:
    def test_parse_time(self, small_teams):
        scheduler = LiveScheduler(small_teams)
        time_obj = scheduler._parse_time("09:00")
        assert (time_obj.hour, time_obj.minute) == (9, 0)

    def test_datetime_from_time(self, small_teams):
        scheduler = LiveScheduler(small_teams)
        dt = scheduler._datetime_from_time(scheduler._parse_time("10:30"), BASE_DATE)
        assert dt == at(10, 30)

    def test_busy_keys_include_team_members(self, small_teams):
        scheduler = LiveScheduler(small_teams)
        keys = scheduler._busy_keys(rr("m", "D1", "T1", "T2"))
        assert keys == {"T1", "T2", "a1", "a2", "b1", "b2"}

    def test_defaults(self, small_teams):
        scheduler = LiveScheduler(small_teams)
        assert scheduler._match_duration() == datetime.timedelta(minutes=10)
        assert [d.id for d in scheduler.disciplines] == [d.id for d in DISCIPLINES]


class TestProjection:
    """Tests for the greedy time-slot simulation."""

    def test_first_match_starts_at_nine(self, small_teams, two_fields):
        running = project_schedule([rr("m1", "D1", "T1", "T2")], small_teams, two_fields, base_date=BASE_DATE)
        assert len(running) == 1
        assert running[0].start_time == at(9, 0)
        assert running[0].end_time == at(9, 10)

    def test_fields_run_in_parallel(self, small_teams, two_fields):
        matches = [rr("m1", "D1", "T1", "T2"), rr("m2", "D2", "T3", "T4")]
        running = project_schedule(matches, small_teams, two_fields, base_date=BASE_DATE)
        assert [item.start_time for item in running] == [at(9, 0), at(9, 0)]

    def test_team_not_double_booked_across_fields(self, small_teams, two_fields):
        """T1 plays first on field 1; its field 2 match waits until that one ends."""
        matches = [
            rr("m1", "D1", "T1", "T2"),
            rr("m2", "D2", "T3", "T4"),
            rr("m3", "D2", "T1", "T3"),
        ]
        running = project_schedule(matches, small_teams, two_fields, base_date=BASE_DATE)
        starts = {item.match.id: item.start_time for item in running}
        assert starts["m1"] == at(9, 0)
        assert starts["m2"] == at(9, 0)
        assert starts["m3"] >= at(9, 10)
        assert_no_conflicts(running, small_teams)

    def test_skips_busy_match_for_later_one(self, small_teams, two_fields):
        """A field takes the first pending match whose participants are free, not just the first."""
        matches = [
            rr("m1", "D1", "T1", "T2"),
            rr("m2", "D2", "T1", "T3"),
            rr("m3", "D2", "T3", "T4"),
        ]
        running = project_schedule(matches, small_teams, two_fields, base_date=BASE_DATE)
        starts = {item.match.id: item.start_time for item in running}
        assert starts["m3"] == at(9, 0)
        assert starts["m2"] == at(9, 10)

    def test_player_shared_between_team_and_individual(self, small_teams):
        """A team member is also busy in an individual discipline."""
        disciplines = [Discipline("TEAM", "Team", True), Discipline("SOLO", "Solo", False)]
        matches = [rr("m1", "TEAM", "T1", "T2"), rr("m2", "SOLO", "a1", "c1")]
        running = project_schedule(matches, small_teams, disciplines, base_date=BASE_DATE)
        starts = {item.match.id: item.start_time for item in running}
        assert starts["m1"] == at(9, 0)
        assert starts["m2"] == at(9, 10)

    def test_completed_and_unresolved_matches_excluded(self, small_teams, two_fields):
        matches = [
            played("done", "D1", "T1", "T2", 3, 1),
            Match(id="final", discipline_id="D1", player1_id="", player2_id="", phase=FINAL),
            rr("m1", "D1", "T3", "T4"),
        ]
        running = project_schedule(matches, small_teams, two_fields, base_date=BASE_DATE)
        assert [item.match.id for item in running] == ["m1"]

    def test_unknown_discipline_excluded(self, small_teams, two_fields):
        running = project_schedule([rr("m1", "CURLING", "T1", "T2")], small_teams, two_fields,
                                   base_date=BASE_DATE)
        assert running == []

    def test_deleted_team_does_not_break_projection(self, small_teams, two_fields):
        """A match still naming a removed team is projected with the bare team id."""
        matches = [rr("m1", "D1", "T9", "T2"), rr("m2", "D2", "T9", "T3"), rr("m3", "D2", "T1", "T4")]
        running = project_schedule(matches, small_teams, two_fields, base_date=BASE_DATE)
        starts = {item.match.id: item.start_time for item in running}
        assert starts == {"m1": at(9, 0), "m3": at(9, 0), "m2": at(9, 10)}
        assert_no_conflicts(running, small_teams)

    def test_list_order_preserved_within_field(self, small_teams, two_fields):
        matches = [rr("m1", "D1", "T1", "T2"), rr("m2", "D1", "T3", "T4"), rr("m3", "D1", "T1", "T3")]
        running = project_schedule(matches, small_teams, two_fields, base_date=BASE_DATE)
        assert [item.match.id for item in running] == ["m1", "m2", "m3"]
        assert [item.start_time for item in running] == [at(9, 0), at(9, 10), at(9, 20)]

    def test_statuses_per_field(self, small_teams, two_fields):
        matches = [
            rr("m1", "D1", "T1", "T2"), rr("m2", "D1", "T3", "T4"), rr("m3", "D1", "T1", "T3"),
            rr("m4", "D2", "T2", "T4"),
        ]
        running = project_schedule(matches, small_teams, two_fields, base_date=BASE_DATE)
        status = {item.match.id: item.status for item in running}
        assert status == {"m1": PLAYING, "m2": UP_NEXT, "m3": LATER, "m4": PLAYING}

    def test_custom_duration_and_start(self, small_teams, two_fields):
        settings = {"match_duration_minutes": 15, "day_start_time": "14:00"}
        matches = [rr("m1", "D1", "T1", "T2"), rr("m2", "D1", "T3", "T4")]
        running = project_schedule(matches, small_teams, two_fields, settings, base_date=BASE_DATE)
        assert [item.start_time for item in running] == [at(14, 0), at(14, 15)]

    def test_iteration_cap(self, small_teams, two_fields, caplog):
        settings = {"max_time_slots": 2}
        matches = [rr(f"m{i}", "D1", "T1", "T2") for i in range(5)]
        scheduler = LiveScheduler(small_teams, two_fields, settings)
        with caplog.at_level(logging.WARNING, logger="core.allocation"):
            running = scheduler.allocate(matches, BASE_DATE)
        assert len(running) == 2
        assert [m.id for m in scheduler.unscheduled] == ["m2", "m3", "m4"]
        assert "stopped after 2 time slots" in caplog.text

    def test_empty(self, small_teams):
        assert project_schedule([], small_teams, base_date=BASE_DATE) == []

    def test_recomputed_from_scratch(self, small_teams, two_fields):
        scheduler = LiveScheduler(small_teams, two_fields)
        scheduler.allocate([rr("m1", "D1", "T1", "T2")], BASE_DATE)
        running = scheduler.allocate([rr("m2", "D2", "T3", "T4")], BASE_DATE)
        assert [item.match.id for item in running] == ["m2"]
        assert scheduler.schedule["D1"] == []

    @pytest.mark.slow
    def test_full_tournament_has_no_conflicts(self, roster):
        from core.roster import balance_roster
        teams = balance_roster(roster)
        matches = generate_round_robin(teams, roster)
        scheduler = LiveScheduler(teams, DISCIPLINES, {"max_time_slots": 1000})
        running = scheduler.allocate(matches, BASE_DATE)
        assert len(running) == len(matches)
        assert scheduler.unscheduled == []
        assert_no_conflicts(running, teams)


class TestScheduleOutput:
    def test_output_grouped_by_field(self, small_teams, two_fields):
        scheduler = LiveScheduler(small_teams, two_fields)
        scheduler.allocate([rr("m1", "D2", "T1", "T2")], BASE_DATE)
        output = scheduler.get_schedule_output()
        assert [f["discipline_id"] for f in output] == ["D1", "D2"]
        assert output[0]["matches"] == []
        entry = output[1]["matches"][0]
        assert entry["id"] == "m1"
        assert entry["startTime"] == "09:00"
        assert entry["endTime"] == "09:10"
        assert entry["status"] == PLAYING
