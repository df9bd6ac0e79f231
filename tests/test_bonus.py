"""Unit tests for provisional bonus resolution."""

from fplive.bonus import (
    bonus_credited_fixtures,
    fixture_bonus,
    gameweek_bonus,
    provisional_bonus_by_player,
    resolve_bonus,
)
from fplive.models import ExplainStat, Fixture, FixtureStat, LivePlayer


def make_fixture(fixture_id=1, bps_home=None, bps_away=None, started=True, confirmed=False):
    stats = {}
    if bps_home is not None or bps_away is not None:
        stats['bps'] = FixtureStat(home=bps_home or [], away=bps_away or [])
    return Fixture(
        fixture_id=fixture_id,
        home_team=1,
        away_team=2,
        started=started,
        finished=confirmed,
        finished_confirmed=confirmed,
        stats=stats,
    )


class TestResolveBonus:
    """Tests for rank-based bonus allocation."""

    def test_distinct_values(self):
        """Test top three receive 3, 2 and 1."""
        awards = resolve_bonus([(1, 50), (2, 40), (3, 30), (4, 20)])
        assert awards == {1: 3, 2: 2, 3: 1}

    def test_tie_for_first_skips_second(self):
        """Test two players tied first both get 3 and the next value gets 1."""
        awards = resolve_bonus([(1, 40), (2, 40), (3, 35)])
        assert awards == {1: 3, 2: 3, 3: 1}

    def test_three_way_tie_for_first(self):
        """Test a three-way tie for first exhausts the bonus."""
        awards = resolve_bonus([(1, 40), (2, 40), (3, 40), (4, 30)])
        assert awards == {1: 3, 2: 3, 3: 3}

    def test_tie_for_second(self):
        """Test players tied second share 2 and nobody gets 1."""
        awards = resolve_bonus([(1, 50), (2, 40), (3, 40), (4, 30)])
        assert awards == {1: 3, 2: 2, 3: 2}

    def test_tie_for_third(self):
        """Test every player tied third receives 1."""
        awards = resolve_bonus([(1, 50), (2, 40), (3, 30), (4, 30), (5, 10)])
        assert awards == {1: 3, 2: 2, 3: 1, 4: 1}

    def test_unsorted_input(self):
        """Test input order does not matter."""
        awards = resolve_bonus([(3, 35), (1, 40), (2, 40)])
        assert awards == {1: 3, 2: 3, 3: 1}

    def test_empty(self):
        """Test no rankings yields no bonus."""
        assert resolve_bonus([]) == {}

    def test_zero_awards_omitted(self):
        """Test players outside the top three are left out."""
        awards = resolve_bonus([(1, 50), (2, 40), (3, 30), (4, 20), (5, 10)])
        assert 4 not in awards
        assert 5 not in awards


class TestFixtureBonus:
    """Tests for fixture and gameweek level bonus."""

    def test_combines_both_sides(self):
        """Test home and away rankings are ranked together."""
        fixture = make_fixture(bps_home=[(1, 35)], bps_away=[(2, 30)])
        assert fixture_bonus(fixture) == {1: 3, 2: 2}

    def test_no_bps_stat(self):
        """Test a fixture without bps awards nothing."""
        assert fixture_bonus(make_fixture()) == {}

    def test_gameweek_bonus_skips_unstarted(self):
        """Test only started fixtures are resolved."""
        fixtures = [
            make_fixture(1, bps_home=[(1, 30)]),
            make_fixture(2, bps_home=[(5, 30)], started=False),
        ]
        bonus = gameweek_bonus(fixtures)
        assert bonus == {1: {1: 3}}


class TestProvisionalBonus:
    """Tests for pending bonus per player."""

    def test_live_fixture_counts(self):
        """Test bonus from a live fixture is pending."""
        fixtures = [make_fixture(1, bps_home=[(1, 40), (2, 30)])]
        pending = provisional_bonus_by_player(fixtures, gameweek_bonus(fixtures))
        assert pending == {1: 3, 2: 2}

    def test_confirmed_fixture_excluded(self):
        """Test bonus from a confirmed fixture is already in total points."""
        fixtures = [make_fixture(1, bps_home=[(1, 40)], confirmed=True)]
        pending = provisional_bonus_by_player(fixtures, gameweek_bonus(fixtures))
        assert pending == {}

    def test_double_gameweek_sums(self):
        """Test a player in two live fixtures accumulates both awards."""
        fixtures = [
            make_fixture(1, bps_home=[(1, 40), (2, 30)]),
            make_fixture(2, bps_home=[(1, 20), (3, 30)]),
        ]
        pending = provisional_bonus_by_player(fixtures, gameweek_bonus(fixtures))
        assert pending[1] == 5

    def test_credited_fixture_skipped_per_player(self):
        """Test a fixture whose bonus the feed already credited is skipped for that player only."""
        fixtures = [
            make_fixture(1, bps_home=[(1, 40), (2, 30)]),
            make_fixture(2, bps_home=[(1, 50), (3, 30)]),
        ]
        live = {1: LivePlayer(1, minutes=180, bonus=3, explain=[ExplainStat(1, 'bonus', 3, 3)])}
        pending = provisional_bonus_by_player(fixtures, gameweek_bonus(fixtures), live)
        assert pending == {1: 3, 2: 2, 3: 2}

    def test_credited_fixtures(self):
        """Test only positive bonus lines count as credited."""
        player = LivePlayer(1, explain=[
            ExplainStat(1, 'bonus', 2, 2),
            ExplainStat(2, 'bonus', 0, 0),
            ExplainStat(2, 'minutes', 2, 90),
        ])
        assert bonus_credited_fixtures(player) == {1}
