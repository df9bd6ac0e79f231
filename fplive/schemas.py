"""Pydantic schemas for configuration and persisted ticker state."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class EngineConfig(BaseModel):
    """Live engine configuration settings."""

    league_id: int | None = Field(None, ge=1)
    entry_ids: list[int] = Field(default_factory=list)
    api_base_url: str = 'https://fantasy.premierleague.com/api'
    api_timeout_seconds: float = Field(10.0, gt=0, le=120)
    max_change_events: int = Field(50, ge=1, le=1000)
    max_timeline_events: int = Field(500, ge=1, le=10000)
    clean_sheet_minutes: int = Field(60, ge=0, le=90)
    captain_fallback: str = Field('none', pattern=r'^(none|vice_captain)$')
    poll_interval_seconds: int = Field(60, ge=5, le=3600)
    pre_kickoff_minutes: int = Field(5, ge=0, le=120)
    match_duration_minutes: int = Field(115, ge=90, le=180)
    window_grouping_minutes: int = Field(30, ge=0, le=240)
    extension_minutes: int = Field(30, ge=0, le=180)

    class Config:
        extra = 'forbid'


class BonusChangeRecord(BaseModel):
    """One player's bonus movement inside a bonus_change event."""

    player_id: int
    name: str = ''
    old: int = Field(..., ge=0, le=3)
    new: int = Field(..., ge=0, le=3)

    class Config:
        extra = 'forbid'


class ChangeEventRecord(BaseModel):
    """Persisted change event."""

    event_type: str = Field(..., pattern=r'^(bonus_change|cs_lost|defcon_gained)$')
    fixture_id: int
    gameweek: int | None = None
    minute: int = 0
    team_id: int | None = None
    player_id: int | None = None
    name: str = ''
    detected_at: datetime | None = None
    changes: list[BonusChangeRecord] = Field(default_factory=list)

    class Config:
        extra = 'forbid'


class TickerSnapshotRecord(BaseModel):
    """Persisted snapshot compared against the next poll."""

    bonus: dict[int, dict[int, int]] = Field(default_factory=dict)
    clean_sheets: dict[int, dict[str, bool]] = Field(default_factory=dict)
    defcon: list[tuple[int, int]] = Field(default_factory=list)
    scores: dict[int, tuple[int, int]] = Field(default_factory=dict)

    @field_validator('bonus')
    @classmethod
    def validate_bonus(cls, v):
        """Ensure every bonus value is between 0 and 3."""
        for fixture_id, allocation in v.items():
            for player_id, bonus in allocation.items():
                if not (0 <= bonus <= 3):
                    raise ValueError(
                        f'Invalid bonus {bonus} for player {player_id} in fixture {fixture_id}'
                    )
        return v

    @field_validator('clean_sheets')
    @classmethod
    def validate_sides(cls, v):
        """Ensure clean sheets are keyed by side 'h' or 'a'."""
        for fixture_id, sides in v.items():
            for side in sides:
                if side not in ('h', 'a'):
                    raise ValueError(f'Invalid side {side!r} in fixture {fixture_id}')
        return v

    class Config:
        extra = 'forbid'


class ScoringEventRecord(BaseModel):
    """Persisted timeline event."""

    event_type: str
    fixture_id: int
    name: str = ''
    team_id: int = 0
    points: int = 0
    minute: int = 0
    player_id: int | None = None
    ordinal: int = Field(1, ge=1)
    kickoff_time: datetime | None = None

    class Config:
        extra = 'forbid'


class TickerStateFile(BaseModel):
    """Complete ticker_state.json file structure."""

    gameweek: int | None = Field(None, ge=1, le=38)
    polls: int = Field(0, ge=0)
    snapshot: TickerSnapshotRecord | None = None
    change_events: list[ChangeEventRecord] = Field(default_factory=list)
    timeline: list[ScoringEventRecord] = Field(default_factory=list)
    saved_at: datetime | None = None

    class Config:
        extra = 'forbid'
