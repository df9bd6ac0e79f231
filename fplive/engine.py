"""One live poll, end to end: score entrants, extract events, diff the ticker."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from .cache import ResultCache, gameweek_confirmed
from .data_fetcher import FPLDataFetcher
from .events import extract_gameweek_events
from .feed import build_catalogue, parse_fixtures, parse_lineup, parse_live
from .models import ChangeEvent, EntrantScore, Lineup, ScoringEvent
from .pipeline import build_context, build_standings, score_entrant
from .schemas import EngineConfig
from .store import BaselineStore
from .ticker import ChangeDetector, utc_now
from .timeline import EventTimeline

logger = logging.getLogger('fplive.engine')


@dataclass
class PollPayload:
    """Raw feed payloads of one refresh."""
    bootstrap: Dict[str, Any]
    fixtures: List[Dict[str, Any]]
    live: Dict[str, Any] = field(default_factory=dict)
    picks: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    entries: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class PollResult:
    """Everything one poll produces for the presentation layer."""
    gameweek: Optional[int]
    entrants: Dict[int, EntrantScore] = field(default_factory=dict)
    standings: List[Dict[str, Any]] = field(default_factory=list)
    live_events: List[ScoringEvent] = field(default_factory=list)
    new_live_events: List[ScoringEvent] = field(default_factory=list)
    change_events: List[ChangeEvent] = field(default_factory=list)
    new_change_events: List[ChangeEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gameweek': self.gameweek,
            'entrants': {str(k): v.to_dict() for k, v in self.entrants.items()},
            'standings': self.standings,
            'liveEvents': [e.to_dict() for e in self.live_events],
            'changeEvents': [e.to_dict() for e in self.change_events],
        }


def fetch_payload(
    fetcher: FPLDataFetcher,
    entry_ids: Optional[Iterable[int]] = None,
    league_id: Optional[int] = None,
) -> PollPayload:
    """
    Fetch one complete refresh from the feed.

    Raises:
        UpstreamUnavailable: If any request fails; nothing is retried here
    """
    bootstrap = fetcher.bootstrap
    fixtures = fetcher.fixtures
    catalogue = build_catalogue(bootstrap)
    gameweek = catalogue.current_gameweek

    entries: List[Dict[str, Any]] = []
    ids = list(entry_ids or [])
    if league_id is not None:
        entries = fetcher.league_entries(league_id)
        ids.extend(row['entry'] for row in entries if row.get('entry') not in ids)

    if gameweek is None:
        logger.info('No current gameweek in the feed')
        return PollPayload(bootstrap=bootstrap, fixtures=fixtures, entries=entries)

    live = fetcher.live(gameweek)
    picks = {entry_id: fetcher.picks(entry_id, gameweek) for entry_id in ids}
    return PollPayload(bootstrap=bootstrap, fixtures=fixtures, live=live, picks=picks, entries=entries)


class LiveEngine:
    """
    Owns the mutable pieces of the live engine.

    The change detector baseline and the event timeline are the only state;
    everything else is recomputed from the payload on each poll. Finished,
    confirmed gameweek scores are served from the result cache.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        detector: Optional[ChangeDetector] = None,
        timeline: Optional[EventTimeline] = None,
        cache: Optional[ResultCache] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config or EngineConfig()
        self.detector = detector or ChangeDetector(
            max_events=self.config.max_change_events,
            clock=clock,
            clean_sheet_minutes=self.config.clean_sheet_minutes,
        )
        self.timeline = timeline or EventTimeline(max_events=self.config.max_timeline_events)
        self.cache = cache or ResultCache()
        self._timeline_gameweek = self.detector.baseline.gameweek

    @classmethod
    def from_store(
        cls,
        store: BaselineStore,
        config: Optional[EngineConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> 'LiveEngine':
        """Rebuild an engine from persisted ticker state."""
        config = config or EngineConfig()
        baseline, events = store.load()
        detector = ChangeDetector(
            baseline=baseline,
            max_events=config.max_change_events,
            clock=clock,
            clean_sheet_minutes=config.clean_sheet_minutes,
        )
        timeline = EventTimeline(max_events=config.max_timeline_events, events=events)
        return cls(config=config, detector=detector, timeline=timeline, clock=clock)

    def save(self, store: BaselineStore) -> None:
        store.save(self.detector.baseline, self.timeline.events)

    def process_poll(self, payload: PollPayload) -> PollResult:
        """
        Run one poll over fetched payloads.

        Args:
            payload: Raw feed payloads for this refresh

        Returns:
            PollResult with entrant scores, live events and change events
        """
        catalogue = build_catalogue(payload.bootstrap)
        gameweek = catalogue.current_gameweek
        fixtures = parse_fixtures(payload.fixtures, gameweek)
        live = parse_live(payload.live)
        context = build_context(catalogue, fixtures, live)
        confirmed = gameweek_confirmed(catalogue.gameweek_finished, catalogue.gameweek_confirmed)

        lineups: Dict[int, Lineup] = {}
        entrants: Dict[int, EntrantScore] = {}
        for entry_id, raw_picks in payload.picks.items():
            lineups[entry_id] = parse_lineup(raw_picks, entry_id, gameweek)
            key = (entry_id, gameweek)
            cached = self.cache.get(key)
            if cached is not None:
                entrants[entry_id] = cached
                continue
            score = score_entrant(lineups[entry_id], context, self.config.captain_fallback)
            entrants[entry_id] = score
            self.cache.put(key, score, confirmed=confirmed)

        standings = build_standings(entrants, lineups, payload.entries)

        if gameweek != self._timeline_gameweek:
            self.timeline.clear()
            self._timeline_gameweek = gameweek
        events = extract_gameweek_events(fixtures, catalogue, live, self.config.clean_sheet_minutes)
        new_live = self.timeline.merge(events)

        new_changes = self.detector.process(gameweek, fixtures, live, catalogue)

        logger.info(
            f'Poll for gameweek {gameweek}: {len(entrants)} entrant(s), '
            f'{len(new_live)} new live event(s), {len(new_changes)} new change event(s)'
        )

        return PollResult(
            gameweek=gameweek,
            entrants=entrants,
            standings=standings,
            live_events=self.timeline.events,
            new_live_events=new_live,
            change_events=self.detector.events,
            new_change_events=new_changes,
        )
