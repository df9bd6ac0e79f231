"""Conversion of raw feed payloads into engine models.

Every parser reads with `.get` and neutral defaults: live data is often
partial, and a missing or malformed field must never stop a poll.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .constants import POSITIONS, UNKNOWN_NAME
from .models import (
    Catalogue,
    ExplainStat,
    Fixture,
    FixtureStat,
    Lineup,
    LivePlayer,
    Pick,
    Player,
    PlayerSnapshot,
    Team,
)

logger = logging.getLogger('fplive.feed')


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_kickoff(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO kickoff time such as '2025-08-16T14:00:00Z'."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        logger.debug(f'Unparseable kickoff time: {value!r}')
        return None


def build_catalogue(bootstrap: Dict[str, Any]) -> Catalogue:
    """
    Build the player/team catalogue from bootstrap-static.

    Args:
        bootstrap: Raw bootstrap-static payload

    Returns:
        Catalogue with players, teams and the current gameweek's flags
    """
    bootstrap = bootstrap or {}
    players = {}
    for element in bootstrap.get('elements') or []:
        player_id = _int(element.get('id'), -1)
        if player_id < 0:
            continue
        players[player_id] = Player(
            player_id=player_id,
            name=element.get('web_name') or UNKNOWN_NAME,
            position=POSITIONS.get(_int(element.get('element_type')), 'MID'),
            team_id=_int(element.get('team')),
        )

    teams = {}
    for team in bootstrap.get('teams') or []:
        team_id = _int(team.get('id'), -1)
        if team_id < 0:
            continue
        teams[team_id] = Team(
            team_id=team_id,
            name=team.get('name') or UNKNOWN_NAME,
            short_name=team.get('short_name') or 'UNK',
        )

    current = next((e for e in bootstrap.get('events') or [] if e.get('is_current')), None)

    return Catalogue(
        players=players,
        teams=teams,
        current_gameweek=_int(current.get('id')) if current else None,
        gameweek_finished=bool(current.get('finished')) if current else False,
        gameweek_confirmed=bool(current.get('data_checked')) if current else False,
    )


def _parse_stat_side(entries: Iterable[Dict[str, Any]]) -> List[tuple]:
    pairs = []
    for entry in entries or []:
        player_id = _int(entry.get('element'), -1)
        if player_id < 0:
            continue
        pairs.append((player_id, _int(entry.get('value'))))
    return pairs


def parse_fixture(raw: Dict[str, Any]) -> Fixture:
    """Parse a single fixture, including its per-side stats."""
    stats = {}
    for stat in raw.get('stats') or []:
        identifier = stat.get('identifier')
        if not identifier:
            continue
        stats[identifier] = FixtureStat(
            home=_parse_stat_side(stat.get('h')),
            away=_parse_stat_side(stat.get('a')),
        )

    finished_confirmed = bool(raw.get('finished'))
    return Fixture(
        fixture_id=_int(raw.get('id')),
        gameweek=_int(raw.get('event'), 0) or None,
        home_team=_int(raw.get('team_h')),
        away_team=_int(raw.get('team_a')),
        home_score=_int(raw.get('team_h_score')),
        away_score=_int(raw.get('team_a_score')),
        minutes=_int(raw.get('minutes')),
        started=bool(raw.get('started')),
        finished=bool(raw.get('finished_provisional')) or finished_confirmed,
        finished_confirmed=finished_confirmed,
        kickoff_time=parse_kickoff(raw.get('kickoff_time')),
        stats=stats,
    )


def parse_fixtures(raw: Iterable[Dict[str, Any]], gameweek: Optional[int] = None) -> List[Fixture]:
    """Parse the fixture list, keeping only `gameweek` if given."""
    fixtures = []
    for entry in raw or []:
        if gameweek is not None and _int(entry.get('event'), -1) != gameweek:
            continue
        fixtures.append(parse_fixture(entry))
    return fixtures


def parse_live(raw: Dict[str, Any]) -> Dict[int, LivePlayer]:
    """Parse event/{gw}/live into LivePlayer records keyed by player_id."""
    live = {}
    for element in (raw or {}).get('elements') or []:
        player_id = _int(element.get('id'), -1)
        if player_id < 0:
            continue
        stats = element.get('stats') or {}
        explain = []
        for block in element.get('explain') or []:
            fixture_id = _int(block.get('fixture'))
            for line in block.get('stats') or []:
                explain.append(
                    ExplainStat(
                        fixture_id=fixture_id,
                        identifier=line.get('identifier') or '',
                        points=_int(line.get('points')),
                        value=_int(line.get('value')),
                    )
                )
        live[player_id] = LivePlayer(
            player_id=player_id,
            minutes=_int(stats.get('minutes')),
            total_points=_int(stats.get('total_points')),
            bonus=_int(stats.get('bonus')),
            bps=_int(stats.get('bps')),
            explain=explain,
        )
    return live


def parse_lineup(raw: Dict[str, Any], entry_id: int, gameweek: Optional[int] = None) -> Lineup:
    """Parse entry/{id}/event/{gw}/picks into a Lineup."""
    raw = raw or {}
    picks = []
    for idx, pick in enumerate(raw.get('picks') or []):
        player_id = _int(pick.get('element'), -1)
        if player_id < 0:
            continue
        position = _int(pick.get('position'), idx + 1)
        picks.append(
            Pick(
                player_id=player_id,
                slot=position - 1,
                is_captain=bool(pick.get('is_captain')),
                is_vice_captain=bool(pick.get('is_vice_captain')),
                multiplier=_int(pick.get('multiplier'), 1),
                entry_id=entry_id,
            )
        )

    history = raw.get('entry_history') or {}
    season_points = history.get('total_points')
    return Lineup(
        entry_id=entry_id,
        gameweek=gameweek,
        picks=picks,
        active_chip=raw.get('active_chip') or None,
        api_points=_int(history.get('points')),
        season_points=_int(season_points) if season_points is not None else None,
        transfers_cost=_int(history.get('event_transfers_cost')),
    )


def build_snapshots(
    catalogue: Catalogue,
    fixtures: List[Fixture],
    live: Dict[int, LivePlayer],
    player_ids: Optional[Iterable[int]] = None,
) -> Dict[int, PlayerSnapshot]:
    """
    Combine catalogue, fixtures and live stats into PlayerSnapshots.

    Unknown players get a placeholder name and zero points.

    Args:
        catalogue: Bootstrap catalogue
        fixtures: The gameweek's fixtures
        live: Live stats keyed by player_id
        player_ids: Restrict to these players (default: catalogue and live players)

    Returns:
        Dict of player_id -> PlayerSnapshot
    """
    by_team: Dict[int, List[Fixture]] = {}
    for fixture in fixtures:
        by_team.setdefault(fixture.home_team, []).append(fixture)
        by_team.setdefault(fixture.away_team, []).append(fixture)

    if player_ids is None:
        player_ids = set(catalogue.players) | set(live)

    snapshots = {}
    for player_id in player_ids:
        player = catalogue.player(player_id)
        stats = live.get(player_id) or LivePlayer(player_id=player_id)
        team_fixtures = by_team.get(player.team_id, [])
        if player_id not in catalogue.players:
            logger.debug(f'Player {player_id} missing from catalogue, using defaults')

        snapshots[player_id] = PlayerSnapshot(
            player_id=player_id,
            name=player.name,
            position=player.position,
            team_id=player.team_id,
            points=stats.total_points,
            minutes=stats.minutes,
            bps=stats.bps,
            bonus=stats.bonus,
            fixture_ids=[f.fixture_id for f in team_fixtures],
            fixture_started=any(f.started for f in team_fixtures),
            fixture_finished=bool(team_fixtures) and all(f.finished for f in team_fixtures),
        )
    return snapshots
