"""Extraction of discrete scoring events from live fixture stats."""

import logging
from typing import Dict, Iterable, List, Tuple

from .bonus import fixture_bonus
from .constants import (
    CLEAN_SHEET_MINUTES,
    CLEAN_SHEET_POINTS,
    DIRECT_STAT_EVENTS,
    EVENT_POINTS,
    EVENT_PRIORITY,
    GOAL_POINTS,
    GOALS_CONCEDED_PER_POINT,
    SAVES_PER_POINT,
)
from .models import Catalogue, Fixture, LivePlayer, ScoringEvent

logger = logging.getLogger('fplive.events')


def event_sort_key(event: ScoringEvent) -> Tuple[int, str, int]:
    """Order within one poll: event priority, then display name."""
    return EVENT_PRIORITY.get(event.event_type, 99), event.name, event.ordinal


def defcon_credits(fixture_id: int, live: Dict[int, LivePlayer]) -> List[int]:
    """Players whose explain breakdown credits a defensive contribution in this fixture."""
    credited = []
    for player_id, live_player in live.items():
        for line in live_player.explain:
            if (
                line.fixture_id == fixture_id
                and line.identifier == 'defensive_contribution'
                and line.points > 0
            ):
                credited.append(player_id)
                break
    return sorted(credited)


def clean_sheet_sides(fixture: Fixture, clean_sheet_minutes: int = CLEAN_SHEET_MINUTES) -> Dict[str, bool]:
    """Whether each side ('h', 'a') is currently on course for a clean sheet."""
    qualifies = fixture.started and fixture.minutes >= clean_sheet_minutes
    return {
        'h': qualifies and fixture.away_score == 0,
        'a': qualifies and fixture.home_score == 0,
    }


def _side_pairs(fixture: Fixture, identifier: str) -> Iterable[Tuple[int, int, int]]:
    """(player_id, value, team_id) for every entry of a stat on both sides."""
    stat = fixture.stats.get(identifier)
    if stat is None:
        return []
    return [(pid, value, fixture.home_team) for pid, value in stat.home] + [
        (pid, value, fixture.away_team) for pid, value in stat.away
    ]


def extract_fixture_events(
    fixture: Fixture,
    catalogue: Catalogue,
    live: Dict[int, LivePlayer],
    clean_sheet_minutes: int = CLEAN_SHEET_MINUTES,
) -> List[ScoringEvent]:
    """
    Derive the ordered scoring events for one fixture as of this poll.

    Events:
        - One per unit of goals, assists, penalty saves/misses, own goals, cards
        - saves: one per full group of 3 saves
        - clean_sheet: one per side at 60+ minutes with nothing conceded
        - goals_conceded: one per side per full group of 2 conceded
        - bonus: one per player awarded bonus once the fixture reaches full time
        - defcon: one per player credited a defensive contribution

    Values are cumulative, so every event carries an ordinal and the
    returned list describes the fixture as a whole; callers merge polls by
    ScoringEvent.key. A fixture without stats yields an empty list.
    """
    if not fixture.started or not fixture.stats:
        return []

    events: List[ScoringEvent] = []
    minute = fixture.minutes

    def player_event(event_type: str, player_id: int, team_id: int, points: int, ordinal: int) -> None:
        player = catalogue.player(player_id)
        events.append(
            ScoringEvent(
                event_type=event_type,
                fixture_id=fixture.fixture_id,
                name=player.name,
                team_id=team_id,
                points=points,
                minute=minute,
                player_id=player_id,
                ordinal=ordinal,
                kickoff_time=fixture.kickoff_time,
            )
        )

    def team_event(event_type: str, team_id: int, points: int, ordinal: int = 1) -> None:
        events.append(
            ScoringEvent(
                event_type=event_type,
                fixture_id=fixture.fixture_id,
                name=catalogue.team(team_id).name,
                team_id=team_id,
                points=points,
                minute=minute,
                ordinal=ordinal,
                kickoff_time=fixture.kickoff_time,
            )
        )

    for identifier, event_type in DIRECT_STAT_EVENTS.items():
        for player_id, value, team_id in _side_pairs(fixture, identifier):
            if event_type == 'goal':
                points = GOAL_POINTS.get(catalogue.player(player_id).position, 0)
            else:
                points = EVENT_POINTS[event_type]
            for n in range(1, max(value, 0) + 1):
                player_event(event_type, player_id, team_id, points, n)

    for player_id, value, team_id in _side_pairs(fixture, 'saves'):
        for n in range(1, max(value, 0) // SAVES_PER_POINT + 1):
            player_event('saves', player_id, team_id, EVENT_POINTS['saves'], n)

    sides = clean_sheet_sides(fixture, clean_sheet_minutes)
    if sides['h']:
        team_event('clean_sheet', fixture.home_team, CLEAN_SHEET_POINTS['DEF'])
    if sides['a']:
        team_event('clean_sheet', fixture.away_team, CLEAN_SHEET_POINTS['DEF'])

    for team_id, conceded in ((fixture.home_team, fixture.away_score), (fixture.away_team, fixture.home_score)):
        for n in range(1, max(conceded, 0) // GOALS_CONCEDED_PER_POINT + 1):
            team_event('goals_conceded', team_id, EVENT_POINTS['goals_conceded'], n)

    if fixture.finished:
        for player_id, bonus in fixture_bonus(fixture).items():
            team_id = catalogue.player(player_id).team_id
            player_event('bonus', player_id, team_id, bonus, 1)

    for player_id in defcon_credits(fixture.fixture_id, live):
        player_event('defcon', player_id, catalogue.player(player_id).team_id, EVENT_POINTS['defcon'], 1)

    events.sort(key=event_sort_key)
    logger.debug(f'Fixture {fixture.fixture_id}: {len(events)} events at minute {minute}')
    return events


def extract_gameweek_events(
    fixtures: Iterable[Fixture],
    catalogue: Catalogue,
    live: Dict[int, LivePlayer],
    clean_sheet_minutes: int = CLEAN_SHEET_MINUTES,
) -> List[ScoringEvent]:
    """Events for every fixture, concatenated in fixture order."""
    events: List[ScoringEvent] = []
    for fixture in fixtures:
        events.extend(extract_fixture_events(fixture, catalogue, live, clean_sheet_minutes))
    return events
