"""Provisional bonus points from BPS rankings."""

from typing import Dict, Iterable, List, Optional, Set, Tuple

from .constants import BONUS_BY_RANK
from .models import BonusAllocation, Fixture, LivePlayer


def resolve_bonus(rankings: Iterable[Tuple[int, int]]) -> BonusAllocation:
    """
    Award bonus points from (player_id, bps) pairs for one fixture.

    Players sharing a BPS value share a rank and receive the same bonus.
    The rank after a tied group advances by the size of the group, so two
    players tied first push the next value down to third.

    Rank 1 earns 3, rank 2 earns 2, rank 3 earns 1. Players earning nothing
    are left out of the result.

    Example:
        resolve_bonus([(1, 40), (2, 40), (3, 35)])  # {1: 3, 2: 3, 3: 1}
    """
    ordered = sorted(rankings, key=lambda pair: pair[1], reverse=True)
    awards: BonusAllocation = {}

    rank = 1
    i = 0
    while i < len(ordered):
        value = ordered[i][1]
        tied: List[int] = []
        while i < len(ordered) and ordered[i][1] == value:
            tied.append(ordered[i][0])
            i += 1

        bonus = BONUS_BY_RANK.get(rank, 0)
        if bonus <= 0:
            break
        for player_id in tied:
            awards[player_id] = bonus

        rank += len(tied)

    return awards


def fixture_bonus(fixture: Fixture) -> BonusAllocation:
    """Bonus for one fixture from its live `bps` stat (home and away)."""
    stat = fixture.stats.get('bps')
    if stat is None:
        return {}
    return resolve_bonus(stat.values())


def gameweek_bonus(fixtures: Iterable[Fixture]) -> Dict[int, BonusAllocation]:
    """Map fixture_id -> provisional bonus for every started fixture."""
    return {f.fixture_id: fixture_bonus(f) for f in fixtures if f.started}


def bonus_credited_fixtures(live_player: LivePlayer) -> Set[int]:
    """Fixtures whose official bonus the feed has already added to a player's points."""
    return {
        line.fixture_id
        for line in live_player.explain
        if line.identifier == 'bonus' and line.points > 0
    }


def provisional_bonus_by_player(
    fixtures: Iterable[Fixture],
    allocations: Dict[int, BonusAllocation],
    live: Optional[Dict[int, LivePlayer]] = None,
) -> Dict[int, int]:
    """
    Bonus still pending for each player across live fixtures.

    Only fixtures that have started but are not confirmed count; once a
    fixture is confirmed the feed folds the bonus into total points. A
    fixture whose official bonus already shows in a player's explain
    breakdown is skipped for that player only, so in a double gameweek
    bonus from the other, still live fixture is kept.
    """
    live = live or {}
    credited = {pid: bonus_credited_fixtures(lp) for pid, lp in live.items()}
    pending: Dict[int, int] = {}
    for fixture in fixtures:
        if not fixture.is_live:
            continue
        for player_id, bonus in allocations.get(fixture.fixture_id, {}).items():
            if fixture.fixture_id in credited.get(player_id, ()):
                continue
            pending[player_id] = pending.get(player_id, 0) + bonus
    return pending
