"""Data models for the live scoring engine."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .constants import UNKNOWN_NAME

# player_id -> bonus awarded (1-3); players awarded nothing are omitted
BonusAllocation = Dict[int, int]


@dataclass
class Player:
    """Catalogue entry for a player."""
    player_id: int
    name: str = UNKNOWN_NAME
    position: str = 'MID'
    team_id: int = 0


@dataclass
class Team:
    """Catalogue entry for a club."""
    team_id: int
    name: str = UNKNOWN_NAME
    short_name: str = 'UNK'


@dataclass
class Catalogue:
    """Players, teams and gameweek flags from the bootstrap feed."""
    players: Dict[int, Player] = field(default_factory=dict)
    teams: Dict[int, Team] = field(default_factory=dict)
    current_gameweek: Optional[int] = None
    gameweek_finished: bool = False
    gameweek_confirmed: bool = False

    def player(self, player_id: int) -> Player:
        return self.players.get(player_id) or Player(player_id=player_id)

    def team(self, team_id: int) -> Team:
        return self.teams.get(team_id) or Team(team_id=team_id)


@dataclass
class FixtureStat:
    """One stat identifier's per-side (player_id, value) pairs."""
    home: List[Tuple[int, int]] = field(default_factory=list)
    away: List[Tuple[int, int]] = field(default_factory=list)

    def values(self) -> List[Tuple[int, int]]:
        return self.home + self.away


@dataclass
class Fixture:
    """A fixture's live state."""
    fixture_id: int
    home_team: int
    away_team: int
    gameweek: Optional[int] = None
    home_score: int = 0
    away_score: int = 0
    minutes: int = 0
    started: bool = False
    finished: bool = False  # full time, bonus still provisional
    finished_confirmed: bool = False
    kickoff_time: Optional[datetime] = None
    stats: Dict[str, FixtureStat] = field(default_factory=dict)

    @property
    def scoreline(self) -> Tuple[int, int]:
        return self.home_score, self.away_score

    @property
    def is_live(self) -> bool:
        """Started and not yet confirmed, so bonus is provisional."""
        return self.started and not self.finished_confirmed


@dataclass
class ExplainStat:
    """One line of a player's explain breakdown."""
    fixture_id: int
    identifier: str
    points: int = 0
    value: int = 0


@dataclass
class LivePlayer:
    """A player's live gameweek stats."""
    player_id: int
    minutes: int = 0
    total_points: int = 0
    bonus: int = 0
    bps: int = 0
    explain: List[ExplainStat] = field(default_factory=list)


@dataclass
class PlayerSnapshot:
    """Everything the scoring rules need to know about one player this poll."""
    player_id: int
    name: str = UNKNOWN_NAME
    position: str = 'MID'
    team_id: int = 0
    points: int = 0
    minutes: int = 0
    bps: int = 0
    bonus: int = 0  # officially confirmed bonus, already inside points
    fixture_ids: List[int] = field(default_factory=list)
    fixture_started: bool = False
    fixture_finished: bool = False

    @property
    def play_status(self) -> str:
        if not self.fixture_started:
            return 'not_started'
        if self.fixture_finished:
            return 'finished'
        return 'live'

    @property
    def did_not_play(self) -> bool:
        """Zero minutes in a fixture that has already started."""
        return self.minutes == 0 and (self.fixture_started or self.fixture_finished)


@dataclass
class Pick:
    """One slot of an entrant's fifteen."""
    player_id: int
    slot: int  # 0-10 starting, 11-14 bench in priority order
    is_captain: bool = False
    is_vice_captain: bool = False
    multiplier: int = 1
    entry_id: Optional[int] = None

    @property
    def is_bench(self) -> bool:
        return self.slot >= 11


@dataclass
class Lineup:
    """An entrant's picks for one gameweek."""
    entry_id: int
    gameweek: Optional[int] = None
    picks: List[Pick] = field(default_factory=list)
    active_chip: Optional[str] = None
    entry_name: str = ''
    manager_name: str = ''
    api_points: int = 0  # the feed's own gameweek total for this entry
    season_points: Optional[int] = None  # season total as of this gameweek
    transfers_cost: int = 0  # hit taken this gameweek

    @property
    def starters(self) -> List[Pick]:
        return sorted((p for p in self.picks if not p.is_bench), key=lambda p: p.slot)

    @property
    def bench(self) -> List[Pick]:
        return sorted((p for p in self.picks if p.is_bench), key=lambda p: p.slot)


@dataclass
class AutoSubstitution:
    """A committed swap: starter out, bench player in."""
    player_out: int
    player_in: int
    name_out: str = UNKNOWN_NAME
    name_in: str = UNKNOWN_NAME

    def to_dict(self) -> dict:
        return {
            'out': {'id': self.player_out, 'name': self.name_out},
            'in': {'id': self.player_in, 'name': self.name_in},
        }


@dataclass
class AutoSubResult:
    """Outcome of the substitution simulation."""
    effective: List[Pick] = field(default_factory=list)
    substitutions: List[AutoSubstitution] = field(default_factory=list)
    unused_bench: List[Pick] = field(default_factory=list)
    subbed_in: List[int] = field(default_factory=list)
    subbed_out: List[int] = field(default_factory=list)


@dataclass
class PlayerPoints:
    """Audit line for one pick."""
    player_id: int
    name: str
    position: str
    slot: int
    role: str  # starter, sub_in, sub_out, bench
    raw_points: int = 0
    provisional_bonus: int = 0
    multiplier: int = 1
    points: int = 0
    minutes: int = 0
    play_status: str = 'not_started'
    is_captain: bool = False
    is_vice_captain: bool = False

    def to_dict(self) -> dict:
        return {
            'id': self.player_id,
            'name': self.name,
            'position': self.position,
            'slot': self.slot,
            'role': self.role,
            'rawPoints': self.raw_points,
            'provisionalBonus': self.provisional_bonus,
            'multiplier': self.multiplier,
            'points': self.points,
            'minutes': self.minutes,
            'playStatus': self.play_status,
            'isCaptain': self.is_captain,
            'isViceCaptain': self.is_vice_captain,
        }


@dataclass
class EntrantScore:
    """Live score for one entrant."""
    entry_id: int
    total_points: int = 0
    bench_points: int = 0
    breakdown: List[PlayerPoints] = field(default_factory=list)
    auto_substitutions: List[AutoSubstitution] = field(default_factory=list)
    anomalies: List[str] = field(default_factory=list)
    formation: str = ''
    active_chip: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'entryId': self.entry_id,
            'totalPoints': self.total_points,
            'benchPoints': self.bench_points,
            'perPlayerBreakdown': [p.to_dict() for p in self.breakdown],
            'autoSubstitutions': [s.to_dict() for s in self.auto_substitutions],
            'anomalies': list(self.anomalies),
            'formation': self.formation,
            'activeChip': self.active_chip,
        }


@dataclass
class ScoringEvent:
    """A discrete scoring event extracted from one poll."""
    event_type: str
    fixture_id: int
    name: str
    team_id: int
    points: int = 0
    minute: int = 0
    player_id: Optional[int] = None  # None for side-level events
    ordinal: int = 1
    kickoff_time: Optional[datetime] = None

    @property
    def key(self) -> Tuple[int, str, int, Optional[int], int]:
        """Identity of the event across polls."""
        return (self.fixture_id, self.event_type, self.team_id, self.player_id, self.ordinal)

    def to_dict(self) -> dict:
        return {
            'type': self.event_type,
            'fixtureId': self.fixture_id,
            'name': self.name,
            'teamId': self.team_id,
            'playerId': self.player_id,
            'points': self.points,
            'minute': self.minute,
            'ordinal': self.ordinal,
            'kickoffTime': self.kickoff_time.isoformat() if self.kickoff_time else None,
        }


@dataclass
class BonusChange:
    """One player's provisional bonus movement."""
    player_id: int
    name: str
    old: int
    new: int

    @property
    def impact(self) -> int:
        return self.new - self.old

    def to_dict(self) -> dict:
        return {
            'player': self.player_id,
            'name': self.name,
            'from': self.old,
            'to': self.new,
            'impact': self.impact,
        }


@dataclass
class ChangeEvent:
    """A transition detected between two polls."""
    event_type: str
    fixture_id: int
    gameweek: Optional[int] = None
    minute: int = 0
    team_id: Optional[int] = None
    player_id: Optional[int] = None
    name: str = ''
    detected_at: Optional[datetime] = None
    changes: List[BonusChange] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'type': self.event_type,
            'fixtureId': self.fixture_id,
            'gameweek': self.gameweek,
            'minute': self.minute,
            'teamId': self.team_id,
            'playerId': self.player_id,
            'name': self.name,
            'detectedAt': self.detected_at.isoformat() if self.detected_at else None,
            'changes': [c.to_dict() for c in self.changes],
        }


@dataclass
class TickerSnapshot:
    """State compared between consecutive polls."""
    bonus: Dict[int, BonusAllocation] = field(default_factory=dict)
    clean_sheets: Dict[int, Dict[str, bool]] = field(default_factory=dict)
    defcon: List[Tuple[int, int]] = field(default_factory=list)  # (player_id, crediting fixture_id)
    scores: Dict[int, Tuple[int, int]] = field(default_factory=dict)


@dataclass
class TickerBaseline:
    """Retained state of the change detector for one gameweek."""
    gameweek: Optional[int] = None
    snapshot: Optional[TickerSnapshot] = None
    events: List[ChangeEvent] = field(default_factory=list)
    polls: int = 0  # polls processed since the last reset

    @property
    def state(self) -> str:
        if self.snapshot is None:
            return 'idle'
        return 'seeded' if self.polls <= 1 else 'diffing'
