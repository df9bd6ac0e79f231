"""Persistence of ticker state across restarts.

Without it a restart mid-gameweek re-seeds the baseline and any change that
happened while the process was down is lost.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple

from .models import BonusChange, ChangeEvent, ScoringEvent, TickerBaseline, TickerSnapshot
from .schemas import (
    BonusChangeRecord,
    ChangeEventRecord,
    ScoringEventRecord,
    TickerSnapshotRecord,
    TickerStateFile,
)
from .utils import load_json_safe, save_json

logger = logging.getLogger('fplive.store')


def baseline_to_record(baseline: TickerBaseline, timeline: List[ScoringEvent]) -> TickerStateFile:
    snapshot = None
    if baseline.snapshot is not None:
        snapshot = TickerSnapshotRecord(
            bonus=baseline.snapshot.bonus,
            clean_sheets=baseline.snapshot.clean_sheets,
            defcon=list(baseline.snapshot.defcon),
            scores=baseline.snapshot.scores,
        )

    return TickerStateFile(
        gameweek=baseline.gameweek,
        polls=baseline.polls,
        snapshot=snapshot,
        change_events=[
            ChangeEventRecord(
                event_type=e.event_type,
                fixture_id=e.fixture_id,
                gameweek=e.gameweek,
                minute=e.minute,
                team_id=e.team_id,
                player_id=e.player_id,
                name=e.name,
                detected_at=e.detected_at,
                changes=[
                    BonusChangeRecord(player_id=c.player_id, name=c.name, old=c.old, new=c.new)
                    for c in e.changes
                ],
            )
            for e in baseline.events
        ],
        timeline=[
            ScoringEventRecord(
                event_type=e.event_type,
                fixture_id=e.fixture_id,
                name=e.name,
                team_id=e.team_id,
                points=e.points,
                minute=e.minute,
                player_id=e.player_id,
                ordinal=e.ordinal,
                kickoff_time=e.kickoff_time,
            )
            for e in timeline
        ],
        saved_at=datetime.now(timezone.utc),
    )


def record_to_baseline(record: TickerStateFile) -> Tuple[TickerBaseline, List[ScoringEvent]]:
    snapshot = None
    if record.snapshot is not None:
        snapshot = TickerSnapshot(
            bonus={fid: dict(alloc) for fid, alloc in record.snapshot.bonus.items()},
            clean_sheets={fid: dict(sides) for fid, sides in record.snapshot.clean_sheets.items()},
            defcon=sorted(tuple(pair) for pair in record.snapshot.defcon),
            scores={fid: tuple(score) for fid, score in record.snapshot.scores.items()},
        )

    events = [
        ChangeEvent(
            event_type=e.event_type,
            fixture_id=e.fixture_id,
            gameweek=e.gameweek,
            minute=e.minute,
            team_id=e.team_id,
            player_id=e.player_id,
            name=e.name,
            detected_at=e.detected_at,
            changes=[BonusChange(c.player_id, c.name, c.old, c.new) for c in e.changes],
        )
        for e in record.change_events
    ]

    timeline = [
        ScoringEvent(
            event_type=e.event_type,
            fixture_id=e.fixture_id,
            name=e.name,
            team_id=e.team_id,
            points=e.points,
            minute=e.minute,
            player_id=e.player_id,
            ordinal=e.ordinal,
            kickoff_time=e.kickoff_time,
        )
        for e in record.timeline
    ]

    baseline = TickerBaseline(gameweek=record.gameweek, snapshot=snapshot, events=events, polls=record.polls)
    return baseline, timeline


class BaselineStore:
    """JSON file store for the ticker baseline and the event timeline."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Tuple[TickerBaseline, List[ScoringEvent]]:
        """
        Restore saved state.

        A missing or unreadable file yields an empty (Idle) baseline.
        """
        if not self.path.exists():
            logger.info(f'No ticker state at {self.path}, starting idle')
            return TickerBaseline(), []
        record = load_json_safe(self.path, default=None, schema=TickerStateFile)
        if record is None:
            return TickerBaseline(), []
        baseline, timeline = record_to_baseline(record)
        logger.info(
            f'Restored ticker state for gameweek {baseline.gameweek}: '
            f'{len(baseline.events)} change event(s), {len(timeline)} timeline event(s)'
        )
        return baseline, timeline

    def save(self, baseline: TickerBaseline, timeline: List[ScoringEvent]) -> None:
        save_json(self.path, baseline_to_record(baseline, timeline))
        logger.debug(f'Saved ticker state to {self.path}')
