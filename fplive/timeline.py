"""Append-only chronological log of scoring events across polls."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .constants import EVENT_PRIORITY, MAX_TIMELINE_EVENTS
from .models import ScoringEvent

_NO_KICKOFF = datetime.min.replace(tzinfo=timezone.utc)


def chronological_key(event: ScoringEvent):
    """Kickoff plus minute detected, then the same-poll ordering."""
    kickoff = event.kickoff_time or _NO_KICKOFF
    if kickoff.tzinfo is None:
        kickoff = kickoff.replace(tzinfo=timezone.utc)
    at = kickoff + timedelta(minutes=event.minute) if event.kickoff_time else kickoff
    return at, EVENT_PRIORITY.get(event.event_type, 99), event.name, event.ordinal


class EventTimeline:
    """
    Oldest-to-newest sequence of scoring events for one gameweek.

    Each poll's extracted events are merged by key. An event already on the
    timeline keeps the minute at which it was first detected, so later polls
    never reorder it. Past capacity the oldest events are dropped.
    """

    def __init__(self, max_events: int = MAX_TIMELINE_EVENTS, events: Optional[Iterable[ScoringEvent]] = None):
        self.max_events = max_events
        self._events: List[ScoringEvent] = []
        self._keys: set = set()
        if events:
            self.merge(events)

    @property
    def events(self) -> List[ScoringEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def merge(self, events: Iterable[ScoringEvent]) -> List[ScoringEvent]:
        """
        Add events not seen before.

        Returns:
            The newly added events, in chronological order
        """
        added = []
        for event in events:
            if event.key in self._keys:
                continue
            self._keys.add(event.key)
            added.append(event)

        if not added:
            return []

        self._events = sorted(self._events + added, key=chronological_key)
        # Dropped keys stay in _keys so cumulative stats never re-add them
        if len(self._events) > self.max_events:
            self._events = self._events[-self.max_events :]

        return sorted(added, key=chronological_key)

    def clear(self) -> None:
        self._events = []
        self._keys = set()
