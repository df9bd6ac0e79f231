"""Kickoff-window scheduling of live polls.

Fixtures kicking off within 30 minutes of each other form one window.
Polling starts 5 minutes before the window's first kickoff and runs until
the estimated end of its last match (kickoff + 115 minutes). If a match in
the window is still running at that point, polling is extended for up to
30 more minutes.

The scheduler only decides; callers own the actual timers. Everything is
driven by `PollScheduler.reschedule()` and an injectable clock.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional

from .models import Fixture
from .schemas import EngineConfig

logger = logging.getLogger('fplive.scheduler')


class SchedulerState(Enum):
    """Poll scheduler state."""
    IDLE = 'idle'  # nothing within the lookahead, daily check only
    SCHEDULED_WAITING = 'scheduled_waiting'  # next window known, waiting for it
    POLLING = 'polling'  # inside a kickoff window
    EXTENDING_PAST_DEADLINE = 'extending_past_deadline'  # window over, matches still running


@dataclass
class KickoffWindow:
    """Fixtures whose kickoffs fall within one grouping interval."""
    start: datetime
    end: datetime
    fixtures: List[Fixture] = field(default_factory=list)

    @property
    def all_finished(self) -> bool:
        return all(f.finished for f in self.fixtures)


@dataclass
class ScheduleDecision:
    """What the caller should do next."""
    state: SchedulerState
    next_check_at: Optional[datetime]
    window: Optional[KickoffWindow] = None

    @property
    def should_poll(self) -> bool:
        return self.state in (SchedulerState.POLLING, SchedulerState.EXTENDING_PAST_DEADLINE)


def get_match_end_time(kickoff: datetime, match_duration_minutes: int = 115) -> datetime:
    """Estimated final whistle: 90 minutes plus stoppage, half time and a buffer."""
    return kickoff + timedelta(minutes=match_duration_minutes)


def group_fixtures_into_windows(
    fixtures: List[Fixture],
    grouping_minutes: int = 30,
    match_duration_minutes: int = 115,
) -> List[KickoffWindow]:
    """
    Group fixtures into kickoff windows.

    A fixture joins the current window if it kicks off within
    `grouping_minutes` of the window's first kickoff; the window's end
    stretches to the latest estimated match end. Fixtures without a
    kickoff time are ignored.
    """
    timed = sorted((f for f in fixtures if f.kickoff_time), key=lambda f: f.kickoff_time)
    windows: List[KickoffWindow] = []
    current: Optional[KickoffWindow] = None

    for fixture in timed:
        match_end = get_match_end_time(fixture.kickoff_time, match_duration_minutes)
        if current and fixture.kickoff_time - current.start <= timedelta(minutes=grouping_minutes):
            current.fixtures.append(fixture)
            current.end = max(current.end, match_end)
            continue
        if current:
            windows.append(current)
        current = KickoffWindow(start=fixture.kickoff_time, end=match_end, fixtures=[fixture])

    if current:
        windows.append(current)
    return windows


class PollScheduler:
    """State machine deciding when live polling should run."""

    def __init__(
        self,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        poll_interval_seconds: int = 60,
        pre_kickoff_minutes: int = 5,
        extension_minutes: int = 30,
        grouping_minutes: int = 30,
        match_duration_minutes: int = 115,
        lookahead_days: int = 7,
        daily_check_hour: int = 6,
    ):
        self.clock = clock
        self.poll_interval = timedelta(seconds=poll_interval_seconds)
        self.pre_kickoff = timedelta(minutes=pre_kickoff_minutes)
        self.extension = timedelta(minutes=extension_minutes)
        self.grouping_minutes = grouping_minutes
        self.match_duration_minutes = match_duration_minutes
        self.lookahead = timedelta(days=lookahead_days)
        self.daily_check_hour = daily_check_hour
        self.state = SchedulerState.IDLE

    @classmethod
    def from_config(cls, config: EngineConfig, clock: Optional[Callable[[], datetime]] = None) -> 'PollScheduler':
        """Build a scheduler from the engine configuration."""
        kwargs = {'clock': clock} if clock else {}
        return cls(
            poll_interval_seconds=config.poll_interval_seconds,
            pre_kickoff_minutes=config.pre_kickoff_minutes,
            extension_minutes=config.extension_minutes,
            grouping_minutes=config.window_grouping_minutes,
            match_duration_minutes=config.match_duration_minutes,
            **kwargs,
        )

    def _next_daily_check(self, now: datetime) -> datetime:
        check = now.replace(hour=self.daily_check_hour, minute=0, second=0, microsecond=0)
        if check <= now:
            check += timedelta(days=1)
        return check

    def _transition(self, decision: ScheduleDecision) -> ScheduleDecision:
        if decision.state != self.state:
            logger.info(f'Scheduler: {self.state.value} -> {decision.state.value}')
        self.state = decision.state
        return decision

    def reschedule(self, fixtures: List[Fixture]) -> ScheduleDecision:
        """
        Recompute the schedule from the current gameweek's fixtures.

        Returns:
            ScheduleDecision with the new state and when to call again
        """
        now = self.clock()
        windows = group_fixtures_into_windows(
            fixtures, self.grouping_minutes, self.match_duration_minutes
        )

        for window in windows:
            if window.start - self.pre_kickoff <= now <= window.end:
                return self._transition(
                    ScheduleDecision(SchedulerState.POLLING, now + self.poll_interval, window)
                )

        for window in windows:
            if window.end < now <= window.end + self.extension and not window.all_finished:
                return self._transition(
                    ScheduleDecision(
                        SchedulerState.EXTENDING_PAST_DEADLINE, now + self.poll_interval, window
                    )
                )

        upcoming = [w for w in windows if w.start - self.pre_kickoff > now]
        if upcoming and upcoming[0].start - self.pre_kickoff - now <= self.lookahead:
            window = upcoming[0]
            return self._transition(
                ScheduleDecision(SchedulerState.SCHEDULED_WAITING, window.start - self.pre_kickoff, window)
            )

        return self._transition(ScheduleDecision(SchedulerState.IDLE, self._next_daily_check(now)))
