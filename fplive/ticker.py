"""Change detection between consecutive live polls (the ticker)."""

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .bonus import gameweek_bonus
from .constants import (
    BONUS_CHANGE,
    CLEAN_SHEET_MINUTES,
    CS_LOST,
    DEFCON_GAINED,
    MAX_CHANGE_EVENTS,
)
from .events import clean_sheet_sides, defcon_credits
from .models import (
    BonusChange,
    Catalogue,
    ChangeEvent,
    Fixture,
    LivePlayer,
    TickerBaseline,
    TickerSnapshot,
)

logger = logging.getLogger('fplive.ticker')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_ticker_snapshot(
    fixtures: Iterable[Fixture],
    live: Dict[int, LivePlayer],
    clean_sheet_minutes: int = CLEAN_SHEET_MINUTES,
) -> TickerSnapshot:
    """
    Current bonus, clean-sheet, defensive-contribution and score state.

    Only fixtures that have started contribute.
    """
    started = [f for f in fixtures if f.started]
    credited: set[Tuple[int, int]] = set()
    for fixture in started:
        credited.update((pid, fixture.fixture_id) for pid in defcon_credits(fixture.fixture_id, live))

    return TickerSnapshot(
        bonus=gameweek_bonus(started),
        clean_sheets={f.fixture_id: clean_sheet_sides(f, clean_sheet_minutes) for f in started},
        defcon=sorted(credited),
        scores={f.fixture_id: f.scoreline for f in started},
    )


def diff_snapshots(
    previous: TickerSnapshot,
    current: TickerSnapshot,
    fixtures: Iterable[Fixture],
    catalogue: Optional[Catalogue] = None,
    gameweek: Optional[int] = None,
    detected_at: Optional[datetime] = None,
) -> List[ChangeEvent]:
    """
    Transitions from one snapshot to the next.

    Emits:
        - bonus_change: one per fixture, bundling every player whose bonus moved
        - cs_lost: one per side that held a clean sheet and no longer does
        - defcon_gained: one per player newly credited in a fixture

    Only the two snapshots are compared, so a value that moves and returns
    between polls is no change.
    """
    catalogue = catalogue or Catalogue()
    by_id = {f.fixture_id: f for f in fixtures}
    events: List[ChangeEvent] = []

    def minute_of(fixture_id: int) -> int:
        fixture = by_id.get(fixture_id)
        return fixture.minutes if fixture else 0

    for fixture_id, side_flags in sorted(current.clean_sheets.items()):
        before = previous.clean_sheets.get(fixture_id, {})
        fixture = by_id.get(fixture_id)
        for side in ('h', 'a'):
            if before.get(side) and not side_flags.get(side, False):
                team_id = None
                if fixture is not None:
                    team_id = fixture.home_team if side == 'h' else fixture.away_team
                events.append(
                    ChangeEvent(
                        event_type=CS_LOST,
                        fixture_id=fixture_id,
                        gameweek=gameweek,
                        minute=minute_of(fixture_id),
                        team_id=team_id,
                        name=catalogue.team(team_id).name if team_id is not None else '',
                        detected_at=detected_at,
                    )
                )

    for fixture_id, allocation in sorted(current.bonus.items()):
        before = previous.bonus.get(fixture_id, {})
        changes = []
        for player_id in set(before) | set(allocation):
            old = before.get(player_id, 0)
            new = allocation.get(player_id, 0)
            if old != new:
                changes.append(BonusChange(player_id, catalogue.player(player_id).name, old, new))
        if changes:
            changes.sort(key=lambda c: (c.name, c.player_id))
            events.append(
                ChangeEvent(
                    event_type=BONUS_CHANGE,
                    fixture_id=fixture_id,
                    gameweek=gameweek,
                    minute=minute_of(fixture_id),
                    detected_at=detected_at,
                    changes=changes,
                )
            )

    gained = set(current.defcon) - set(previous.defcon)
    for player_id, fixture_id in sorted(gained, key=lambda pair: (catalogue.player(pair[0]).name, pair)):
        player = catalogue.player(player_id)
        events.append(
            ChangeEvent(
                event_type=DEFCON_GAINED,
                fixture_id=fixture_id,
                gameweek=gameweek,
                minute=minute_of(fixture_id),
                team_id=player.team_id,
                player_id=player_id,
                name=player.name,
                detected_at=detected_at,
            )
        )

    return events


class ChangeDetector:
    """
    Stateful ticker: diffs each poll against the retained baseline.

    States:
        idle    - no baseline (fresh, or the gameweek just changed)
        seeded  - first poll stored, nothing emitted
        diffing - every later poll emits only transitions

    `process` is serialized with a lock, and the new baseline is built in
    full before it replaces the old one, so a failed or abandoned pass
    leaves the previous baseline untouched.
    """

    def __init__(
        self,
        baseline: Optional[TickerBaseline] = None,
        max_events: int = MAX_CHANGE_EVENTS,
        clock: Callable[[], datetime] = utc_now,
        clean_sheet_minutes: int = CLEAN_SHEET_MINUTES,
    ):
        self._baseline = baseline or TickerBaseline()
        self._lock = threading.Lock()
        self.max_events = max_events
        self.clock = clock
        self.clean_sheet_minutes = clean_sheet_minutes

    @property
    def baseline(self) -> TickerBaseline:
        return self._baseline

    @property
    def state(self) -> str:
        return self._baseline.state

    @property
    def events(self) -> List[ChangeEvent]:
        """Emitted change events, newest first."""
        return list(self._baseline.events)

    def reset(self, gameweek: Optional[int] = None) -> None:
        with self._lock:
            self._baseline = TickerBaseline(gameweek=gameweek)

    def process(
        self,
        gameweek: Optional[int],
        fixtures: List[Fixture],
        live: Dict[int, LivePlayer],
        catalogue: Optional[Catalogue] = None,
    ) -> List[ChangeEvent]:
        """
        Diff one poll against the baseline and replace it.

        Args:
            gameweek: Live gameweek id of this poll
            fixtures: The gameweek's fixtures as of this poll
            live: Live player stats keyed by player_id
            catalogue: Player and team names for display

        Returns:
            New change events (empty on the seeding poll)
        """
        with self._lock:
            previous = self._baseline
            if previous.gameweek != gameweek:
                if previous.gameweek is not None:
                    logger.info(f'Gameweek changed {previous.gameweek} -> {gameweek}, clearing ticker baseline')
                previous = TickerBaseline(gameweek=gameweek)

            current = build_ticker_snapshot(fixtures, live, self.clean_sheet_minutes)

            if previous.snapshot is None:
                self._baseline = TickerBaseline(gameweek=gameweek, snapshot=current, events=[], polls=1)
                logger.info(f'Ticker baseline seeded for gameweek {gameweek}')
                return []

            new_events = diff_snapshots(
                previous.snapshot,
                current,
                fixtures,
                catalogue=catalogue,
                gameweek=gameweek,
                detected_at=self.clock(),
            )

            self._baseline = TickerBaseline(
                gameweek=gameweek,
                snapshot=current,
                events=(new_events + previous.events)[: self.max_events],
                polls=previous.polls + 1,
            )

        if new_events:
            logger.info(f'Ticker: {len(new_events)} new change event(s) in gameweek {gameweek}')
        return new_events
