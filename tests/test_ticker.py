"""Unit tests for change detection between polls."""

import threading
from datetime import datetime, timezone

import pytest

from fplive.models import Catalogue, ExplainStat, Fixture, FixtureStat, LivePlayer, Player, Team
from fplive.ticker import ChangeDetector, build_ticker_snapshot, diff_snapshots

DETECTED = datetime(2025, 8, 16, 15, 10, tzinfo=timezone.utc)

CATALOGUE = Catalogue(
    players={
        1: Player(1, 'Haaland', 'FWD', 1),
        2: Player(2, 'Foden', 'MID', 1),
        3: Player(3, 'Gvardiol', 'DEF', 1),
        4: Player(4, 'Isak', 'FWD', 2),
    },
    teams={1: Team(1, 'Man City', 'MCI'), 2: Team(2, 'Newcastle', 'NEW')},
    current_gameweek=10,
)


def make_fixture(bps, minutes=70, home_score=1, away_score=0):
    """Fixture 1: team 1 at home to team 2, bps as (player_id, value) home pairs."""
    return Fixture(
        fixture_id=1,
        home_team=1,
        away_team=2,
        home_score=home_score,
        away_score=away_score,
        minutes=minutes,
        started=True,
        stats={'bps': FixtureStat(home=list(bps))},
    )


def make_detector(max_events=50):
    return ChangeDetector(max_events=max_events, clock=lambda: DETECTED)


class TestChangeDetector:
    """Tests for the stateful ticker."""

    def test_first_poll_seeds(self):
        """Test the first poll stores a baseline and emits nothing."""
        detector = make_detector()
        assert detector.state == 'idle'
        assert detector.process(10, [make_fixture([(1, 40), (2, 30)])], {}, CATALOGUE) == []
        assert detector.state == 'seeded'

    def test_bonus_change_then_unchanged(self):
        """Test {X:2} -> {X:3} emits one change and an identical poll emits none."""
        detector = make_detector()
        detector.process(10, [make_fixture([(1, 40), (2, 30)])], {}, CATALOGUE)

        events = detector.process(10, [make_fixture([(1, 40), (2, 50)])], {}, CATALOGUE)
        assert len(events) == 1
        assert events[0].event_type == 'bonus_change'
        changes = {c.player_id: (c.old, c.new) for c in events[0].changes}
        assert changes[2] == (2, 3)
        assert detector.state == 'diffing'

        assert detector.process(10, [make_fixture([(1, 40), (2, 50)])], {}, CATALOGUE) == []
        assert len(detector.events) == 1

    def test_bonus_change_metadata(self):
        """Test the change carries gameweek, minute, detection time and impact."""
        detector = make_detector()
        detector.process(10, [make_fixture([(1, 40), (2, 30)])], {}, CATALOGUE)
        event = detector.process(10, [make_fixture([(1, 40), (2, 50)], minutes=75)], {}, CATALOGUE)[0]
        assert event.gameweek == 10
        assert event.minute == 75
        assert event.detected_at == DETECTED
        assert [c.to_dict() for c in event.changes] == [
            {'player': 2, 'name': 'Foden', 'from': 2, 'to': 3, 'impact': 1},
            {'player': 1, 'name': 'Haaland', 'from': 3, 'to': 2, 'impact': -1},
        ]

    def test_clean_sheet_lost(self):
        """Test a side losing its clean sheet emits cs_lost for that side."""
        detector = make_detector()
        detector.process(10, [make_fixture([], minutes=65, home_score=0)], {}, CATALOGUE)
        events = detector.process(10, [make_fixture([], minutes=72, home_score=1)], {}, CATALOGUE)
        assert [(e.event_type, e.team_id, e.name) for e in events] == [('cs_lost', 2, 'Newcastle')]

    def test_defcon_gained(self):
        """Test a newly credited defensive contribution emits defcon_gained."""
        credited = {3: LivePlayer(3, minutes=70, explain=[ExplainStat(1, 'defensive_contribution', 2, 10)])}
        detector = make_detector()
        detector.process(10, [make_fixture([])], {}, CATALOGUE)
        events = detector.process(10, [make_fixture([])], credited, CATALOGUE)
        assert len(events) == 1
        assert events[0].event_type == 'defcon_gained'
        assert events[0].player_id == 3
        assert events[0].fixture_id == 1
        assert detector.process(10, [make_fixture([])], credited, CATALOGUE) == []

    def test_defcon_gained_in_second_fixture(self):
        """Test a double gameweek credit carries the fixture that awarded it."""
        first = make_fixture([])
        second = Fixture(fixture_id=2, home_team=2, away_team=1, minutes=35, started=True)
        credited = {3: LivePlayer(3, minutes=125, explain=[ExplainStat(2, 'defensive_contribution', 2, 10)])}
        detector = make_detector()
        detector.process(10, [first, second], {}, CATALOGUE)
        events = detector.process(10, [first, second], credited, CATALOGUE)
        assert [(e.player_id, e.fixture_id, e.minute) for e in events] == [(3, 2, 35)]

    def test_failed_pass_keeps_baseline(self):
        """Test a pass that raises leaves the previous baseline in place."""
        def broken_clock():
            raise RuntimeError('clock unavailable')

        detector = ChangeDetector(clock=broken_clock)
        detector.process(10, [make_fixture([(1, 40), (2, 30)])], {}, CATALOGUE)
        seeded = detector.baseline

        with pytest.raises(RuntimeError):
            detector.process(10, [make_fixture([(1, 40), (2, 50)])], {}, CATALOGUE)
        assert detector.baseline is seeded
        assert detector.state == 'seeded'

    def test_concurrent_passes_serialized(self):
        """Test concurrent passes for one gameweek behave like running them in turn."""
        # Each poll sees a different fixture, so every pass after the seed emits one change in any order
        polls = []
        for fixture_id in range(1, 21):
            fixture = make_fixture([(1, 40), (2, 30)])
            fixture.fixture_id = fixture_id
            polls.append([fixture])

        serial = make_detector(max_events=100)
        for fixtures in polls:
            serial.process(10, fixtures, {}, CATALOGUE)

        detector = make_detector(max_events=100)
        barrier = threading.Barrier(len(polls))

        def run(fixtures):
            barrier.wait()
            detector.process(10, fixtures, {}, CATALOGUE)

        threads = [threading.Thread(target=run, args=(fixtures,)) for fixtures in polls]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert detector.baseline.polls == len(polls)
        assert len(detector.events) == len(serial.events) == len(polls) - 1

    def test_events_newest_first_and_bounded(self):
        """Test the retained list is newest first and capped."""
        detector = make_detector(max_events=1)
        detector.process(10, [make_fixture([(1, 40), (2, 30)])], {}, CATALOGUE)
        detector.process(10, [make_fixture([(1, 40), (2, 50)])], {}, CATALOGUE)
        latest = detector.process(10, [make_fixture([(1, 60), (2, 50)])], {}, CATALOGUE)
        assert detector.events == latest

    def test_gameweek_change_resets(self):
        """Test a poll for a new gameweek clears the baseline and emits nothing."""
        detector = make_detector()
        detector.process(10, [make_fixture([(1, 40), (2, 30)])], {}, CATALOGUE)
        detector.process(10, [make_fixture([(1, 40), (2, 50)])], {}, CATALOGUE)
        assert len(detector.events) == 1

        assert detector.process(11, [make_fixture([(1, 10), (2, 90)])], {}, CATALOGUE) == []
        assert detector.events == []
        assert detector.baseline.gameweek == 11
        assert detector.state == 'seeded'

    def test_reset(self):
        """Test an explicit reset returns to idle."""
        detector = make_detector()
        detector.process(10, [make_fixture([(1, 40)])], {}, CATALOGUE)
        detector.reset(10)
        assert detector.state == 'idle'


class TestDiffSnapshots:
    """Tests for the pure snapshot comparison."""

    def test_flip_back_is_no_change(self):
        """Test a value that returns to its earlier reading compares equal."""
        fixtures = [make_fixture([(1, 40), (2, 30)])]
        before = build_ticker_snapshot(fixtures, {})
        after = build_ticker_snapshot(fixtures, {})
        assert diff_snapshots(before, after, fixtures) == []

    def test_unstarted_fixtures_ignored(self):
        """Test fixtures that have not started are not in the snapshot."""
        fixture = make_fixture([(1, 40)])
        fixture.started = False
        snapshot = build_ticker_snapshot([fixture], {})
        assert snapshot.bonus == {}
        assert snapshot.scores == {}

    def test_new_fixture_bonus_is_a_change(self):
        """Test bonus appearing in a newly started fixture is reported."""
        fixtures = [make_fixture([(1, 40)])]
        before = build_ticker_snapshot([], {})
        after = build_ticker_snapshot(fixtures, {})
        events = diff_snapshots(before, after, fixtures, CATALOGUE)
        assert [(c.player_id, c.old, c.new) for c in events[0].changes] == [(1, 0, 3)]

    def test_to_dict(self):
        """Test the serialized change event."""
        fixtures = [make_fixture([(1, 40)])]
        events = diff_snapshots(
            build_ticker_snapshot([], {}), build_ticker_snapshot(fixtures, {}), fixtures,
            CATALOGUE, gameweek=10, detected_at=DETECTED,
        )
        data = events[0].to_dict()
        assert data['type'] == 'bonus_change'
        assert data['gameweek'] == 10
        assert data['detectedAt'] == '2025-08-16T15:10:00+00:00'
