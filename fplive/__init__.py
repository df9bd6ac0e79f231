from .models import (
    Catalogue,
    ChangeEvent,
    EntrantScore,
    Fixture,
    Lineup,
    Pick,
    PlayerSnapshot,
    ScoringEvent,
    TickerBaseline,
)
from .bonus import resolve_bonus, fixture_bonus, gameweek_bonus
from .auto_subs import simulate_auto_subs
from .scoring import score_lineup
from .events import extract_fixture_events, extract_gameweek_events
from .timeline import EventTimeline
from .ticker import ChangeDetector, build_ticker_snapshot, diff_snapshots
from .cache import ResultCache
from .scheduler import PollScheduler, SchedulerState, group_fixtures_into_windows
from .feed import build_catalogue, parse_fixtures, parse_live, parse_lineup, build_snapshots
from .pipeline import (
    build_context,
    score_entrant,
    score_entrants,
    standings_adjustment,
    build_standings,
    players_left,
    compare_lineups,
)
from .data_fetcher import FPLDataFetcher, UpstreamUnavailable
from .store import BaselineStore
from .engine import LiveEngine, PollPayload, PollResult, fetch_payload

__all__ = [
    # Models
    'Catalogue',
    'ChangeEvent',
    'EntrantScore',
    'Fixture',
    'Lineup',
    'Pick',
    'PlayerSnapshot',
    'ScoringEvent',
    'TickerBaseline',
    # Scoring
    'resolve_bonus',
    'fixture_bonus',
    'gameweek_bonus',
    'simulate_auto_subs',
    'score_lineup',
    # Events
    'extract_fixture_events',
    'extract_gameweek_events',
    'EventTimeline',
    'ChangeDetector',
    'build_ticker_snapshot',
    'diff_snapshots',
    # Caching and scheduling
    'ResultCache',
    'PollScheduler',
    'SchedulerState',
    'group_fixtures_into_windows',
    # Feed
    'build_catalogue',
    'parse_fixtures',
    'parse_live',
    'parse_lineup',
    'build_snapshots',
    'FPLDataFetcher',
    'UpstreamUnavailable',
    # Pipeline
    'build_context',
    'score_entrant',
    'score_entrants',
    'standings_adjustment',
    'build_standings',
    'players_left',
    'compare_lineups',
    # Engine
    'BaselineStore',
    'LiveEngine',
    'PollPayload',
    'PollResult',
    'fetch_payload',
]
