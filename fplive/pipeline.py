"""Shared scoring pipeline: bonus, auto-subs and aggregation for entrants.

Every view of live points (week table, standings adjustment, what-if
comparisons) goes through these functions so the scoring rules live in
one place.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .bonus import gameweek_bonus, provisional_bonus_by_player
from .feed import build_snapshots
from .models import BonusAllocation, Catalogue, EntrantScore, Fixture, Lineup, LivePlayer, PlayerSnapshot
from .scoring import CAPTAIN_FALLBACK_NONE, score_lineup
from .validators import validate_entrant_score, validate_lineup

logger = logging.getLogger('fplive.pipeline')


@dataclass
class GameweekContext:
    """Parsed inputs of one poll, shared by every entrant."""
    catalogue: Catalogue
    fixtures: List[Fixture]
    live: Dict[int, LivePlayer]
    snapshots: Dict[int, PlayerSnapshot] = field(default_factory=dict)
    bonus: Dict[int, BonusAllocation] = field(default_factory=dict)
    provisional: Dict[int, int] = field(default_factory=dict)

    @property
    def gameweek(self) -> Optional[int]:
        return self.catalogue.current_gameweek


def build_context(catalogue: Catalogue, fixtures: List[Fixture], live: Dict[int, LivePlayer]) -> GameweekContext:
    """Resolve snapshots and provisional bonus once per poll."""
    bonus = gameweek_bonus(fixtures)
    return GameweekContext(
        catalogue=catalogue,
        fixtures=fixtures,
        live=live,
        snapshots=build_snapshots(catalogue, fixtures, live),
        bonus=bonus,
        provisional=provisional_bonus_by_player(fixtures, bonus, live),
    )


def score_entrant(
    lineup: Lineup,
    context: GameweekContext,
    captain_fallback: str = CAPTAIN_FALLBACK_NONE,
) -> EntrantScore:
    """
    Live score for one entrant, with lineup anomalies attached.

    An invalid lineup is still scored with whatever picks are present.
    """
    anomalies = validate_lineup(lineup)
    for message in anomalies:
        logger.warning(message)

    snapshots = context.snapshots
    missing = [p.player_id for p in lineup.picks if p.player_id not in snapshots]
    if missing:
        snapshots = {**snapshots, **build_snapshots(context.catalogue, context.fixtures, context.live, missing)}

    score = score_lineup(lineup, snapshots, context.provisional, captain_fallback)
    score.anomalies = anomalies
    for message in validate_entrant_score(score):
        logger.warning(message)
    return score


def score_entrants(
    lineups: Iterable[Lineup],
    context: GameweekContext,
    captain_fallback: str = CAPTAIN_FALLBACK_NONE,
    max_workers: int = 1,
) -> Dict[int, EntrantScore]:
    """
    Score many entrants against the same poll.

    Scoring is pure, so entrants may be fanned out over a thread pool.

    Returns:
        Dict of entry_id -> EntrantScore
    """
    lineups = list(lineups)
    if max_workers > 1 and len(lineups) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            scores = list(pool.map(lambda l: score_entrant(l, context, captain_fallback), lineups))
    else:
        scores = [score_entrant(l, context, captain_fallback) for l in lineups]
    return {s.entry_id: s for s in scores}


def standings_adjustment(score: EntrantScore, api_points: int) -> int:
    """
    Points the live calculation adds over the feed's own entry total.

    The feed applies auto-subs only after the gameweek, so during live play
    the difference is the gain from provisional subs and bonus. Never negative.
    """
    return max(0, score.total_points - api_points)


def build_standings(
    scores: Dict[int, EntrantScore],
    lineups: Dict[int, Lineup],
    league_rows: Iterable[dict] = (),
) -> List[dict]:
    """
    Live league table ranked on net score.

    Net score is the season total plus the positive live adjustment for this
    gameweek. The season total comes from the league standings row when the
    entrant has one, otherwise from the picks entry history. Gross score adds
    back this gameweek's transfer cost.
    """
    by_entry = {row.get('entry'): row for row in league_rows}
    rows = []
    for entry_id, score in scores.items():
        lineup = lineups.get(entry_id) or Lineup(entry_id=entry_id)
        league_row = by_entry.get(entry_id, {})
        season = league_row.get('total')
        if season is None:
            season = lineup.season_points or 0
        adjustment = standings_adjustment(score, lineup.api_points)
        net = int(season) + adjustment
        rows.append(
            {
                'rank': 0,
                'entryId': entry_id,
                'entryName': league_row.get('entry_name', lineup.entry_name),
                'managerName': league_row.get('player_name', lineup.manager_name),
                'totalPoints': score.total_points,
                'benchPoints': score.bench_points,
                'liveAdjustment': adjustment,
                'seasonTotal': int(season),
                'transferCost': lineup.transfers_cost,
                'netScore': net,
                'grossScore': net + lineup.transfers_cost,
            }
        )

    rows.sort(key=lambda r: (-r['netScore'], r['entryId']))
    for rank, row in enumerate(rows, 1):
        row['rank'] = rank
    return rows


def players_left(lineup: Lineup, snapshots: Dict[int, PlayerSnapshot]) -> int:
    """Starters whose fixture has not kicked off yet."""
    left = 0
    for pick in lineup.starters:
        snap = snapshots.get(pick.player_id)
        if snap is not None and snap.fixture_ids and not snap.fixture_started:
            left += 1
    return left


def compare_lineups(
    base: Lineup,
    alternative: Lineup,
    context: GameweekContext,
    captain_fallback: str = CAPTAIN_FALLBACK_NONE,
) -> int:
    """What-if impact: alternative total minus base total on the same poll."""
    base_score = score_lineup(base, context.snapshots, context.provisional, captain_fallback)
    alt_score = score_lineup(alternative, context.snapshots, context.provisional, captain_fallback)
    return alt_score.total_points - base_score.total_points
