"""Unit tests for feed payload parsing."""

from datetime import datetime, timezone

from fplive.feed import (
    build_catalogue,
    build_snapshots,
    parse_fixture,
    parse_fixtures,
    parse_kickoff,
    parse_lineup,
    parse_live,
)

BOOTSTRAP = {
    'elements': [
        {'id': 1, 'web_name': 'Raya', 'element_type': 1, 'team': 1},
        {'id': 2, 'web_name': 'Saliba', 'element_type': 2, 'team': 1},
        {'id': 3, 'web_name': 'Isak', 'element_type': 4, 'team': 2},
        {'web_name': 'No id'},
    ],
    'teams': [
        {'id': 1, 'name': 'Arsenal', 'short_name': 'ARS'},
        {'id': 2, 'name': 'Newcastle', 'short_name': 'NEW'},
    ],
    'events': [
        {'id': 9, 'is_current': False, 'finished': True, 'data_checked': True},
        {'id': 10, 'is_current': True, 'finished': False, 'data_checked': False},
    ],
}

RAW_FIXTURE = {
    'id': 100,
    'event': 10,
    'team_h': 1,
    'team_a': 2,
    'team_h_score': 2,
    'team_a_score': 0,
    'minutes': 90,
    'started': True,
    'finished': False,
    'finished_provisional': True,
    'kickoff_time': '2025-10-25T14:00:00Z',
    'stats': [
        {'identifier': 'goals_scored', 'h': [{'element': 2, 'value': 1}], 'a': []},
        {'identifier': 'bps', 'h': [{'element': 2, 'value': 41}], 'a': [{'element': 3, 'value': 12}]},
    ],
}


class TestCatalogue:
    """Tests for bootstrap parsing."""

    def test_players_and_teams(self):
        """Test players get positions and teams get names."""
        catalogue = build_catalogue(BOOTSTRAP)
        assert catalogue.player(1).position == 'GKP'
        assert catalogue.player(3).position == 'FWD'
        assert catalogue.player(2).name == 'Saliba'
        assert catalogue.team(2).short_name == 'NEW'
        assert len(catalogue.players) == 3

    def test_current_gameweek(self):
        """Test the current gameweek and its flags."""
        catalogue = build_catalogue(BOOTSTRAP)
        assert catalogue.current_gameweek == 10
        assert not catalogue.gameweek_finished
        assert not catalogue.gameweek_confirmed

    def test_unknown_lookups(self):
        """Test missing players and teams fall back to placeholders."""
        catalogue = build_catalogue({})
        assert catalogue.current_gameweek is None
        assert catalogue.player(99).name == 'Unknown'
        assert catalogue.team(99).short_name == 'UNK'


class TestFixtures:
    """Tests for fixture parsing."""

    def test_parse_fixture(self):
        """Test scores, flags and stats are read."""
        fixture = parse_fixture(RAW_FIXTURE)
        assert fixture.fixture_id == 100
        assert fixture.scoreline == (2, 0)
        assert fixture.finished
        assert not fixture.finished_confirmed
        assert fixture.is_live
        assert fixture.stats['bps'].values() == [(2, 41), (3, 12)]
        assert fixture.kickoff_time == datetime(2025, 10, 25, 14, 0, tzinfo=timezone.utc)

    def test_missing_stats(self):
        """Test a fixture without stats parses to an empty stats map."""
        fixture = parse_fixture({'id': 5, 'team_h': 1, 'team_a': 2})
        assert fixture.stats == {}
        assert not fixture.started

    def test_filter_by_gameweek(self):
        """Test fixtures of other gameweeks are dropped."""
        fixtures = parse_fixtures([RAW_FIXTURE, {**RAW_FIXTURE, 'id': 101, 'event': 11}], gameweek=10)
        assert [f.fixture_id for f in fixtures] == [100]

    def test_parse_kickoff_invalid(self):
        """Test an invalid kickoff time yields None."""
        assert parse_kickoff('not a date') is None
        assert parse_kickoff(None) is None


class TestLive:
    """Tests for live stats parsing."""

    def test_parse_live(self):
        """Test stats and explain lines are read."""
        raw = {
            'elements': [
                {
                    'id': 2,
                    'stats': {'minutes': 90, 'total_points': 8, 'bonus': 0, 'bps': 41},
                    'explain': [
                        {
                            'fixture': 100,
                            'stats': [
                                {'identifier': 'minutes', 'points': 2, 'value': 90},
                                {'identifier': 'goals_scored', 'points': 6, 'value': 1},
                            ],
                        }
                    ],
                }
            ]
        }
        live = parse_live(raw)
        assert live[2].total_points == 8
        assert live[2].bps == 41
        assert [(e.fixture_id, e.identifier, e.points) for e in live[2].explain] == [
            (100, 'minutes', 2),
            (100, 'goals_scored', 6),
        ]

    def test_empty_live(self):
        """Test an empty payload gives no players."""
        assert parse_live({}) == {}


class TestLineup:
    """Tests for picks parsing."""

    def test_parse_lineup(self):
        """Test slots, captaincy and chip."""
        raw = {
            'active_chip': '3xc',
            'entry_history': {'points': 61, 'total_points': 540, 'event_transfers_cost': 8},
            'picks': [
                {'element': 1, 'position': 1, 'multiplier': 1, 'is_captain': False, 'is_vice_captain': True},
                {'element': 2, 'position': 2, 'multiplier': 3, 'is_captain': True, 'is_vice_captain': False},
                {'element': 3, 'position': 12, 'multiplier': 0, 'is_captain': False, 'is_vice_captain': False},
            ],
        }
        lineup = parse_lineup(raw, entry_id=42, gameweek=10)
        assert lineup.active_chip == '3xc'
        assert lineup.api_points == 61
        assert lineup.season_points == 540
        assert lineup.transfers_cost == 8
        assert [p.slot for p in lineup.picks] == [0, 1, 11]
        assert [p.player_id for p in lineup.bench] == [3]
        assert lineup.picks[1].is_captain

    def test_no_chip(self):
        """Test a null chip parses as None."""
        lineup = parse_lineup({'active_chip': None, 'picks': []}, entry_id=1)
        assert lineup.active_chip is None
        assert lineup.season_points is None
        assert lineup.transfers_cost == 0
        assert lineup.picks == []


class TestSnapshots:
    """Tests for combining catalogue, fixtures and live stats."""

    def test_snapshot_fields(self):
        """Test a snapshot carries live stats and fixture status."""
        catalogue = build_catalogue(BOOTSTRAP)
        fixtures = parse_fixtures([RAW_FIXTURE])
        live = parse_live({'elements': [{'id': 2, 'stats': {'minutes': 90, 'total_points': 8, 'bps': 41}}]})
        snapshots = build_snapshots(catalogue, fixtures, live)
        saliba = snapshots[2]
        assert saliba.points == 8
        assert saliba.fixture_ids == [100]
        assert saliba.play_status == 'finished'
        assert not saliba.did_not_play
        assert snapshots[1].did_not_play

    def test_player_without_fixture(self):
        """Test a player whose club has no fixture is not started."""
        catalogue = build_catalogue(BOOTSTRAP)
        snapshots = build_snapshots(catalogue, [], {}, player_ids=[3])
        assert snapshots[3].play_status == 'not_started'
        assert not snapshots[3].did_not_play
