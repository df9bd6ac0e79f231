"""Point aggregation with captaincy and chip rules."""

from typing import Dict, List, Optional

from .auto_subs import simulate_auto_subs
from .constants import (
    CAPTAIN_MULTIPLIER,
    CHIP_BENCH_BOOST,
    CHIP_TRIPLE_CAPTAIN,
    TRIPLE_CAPTAIN_MULTIPLIER,
)
from .formation import formation_string, get_formation_counts
from .models import AutoSubResult, EntrantScore, Lineup, PlayerPoints, PlayerSnapshot

CAPTAIN_FALLBACK_NONE = 'none'
CAPTAIN_FALLBACK_VICE = 'vice_captain'


def pending_bonus(snapshot: PlayerSnapshot, provisional: Dict[int, int]) -> int:
    """
    Provisional bonus still to be added to a player's raw points.

    `provisional` already leaves out fixtures whose bonus the feed has
    folded in, so confirmed bonus from one fixture of a double gameweek
    never hides pending bonus from the other.
    """
    return provisional.get(snapshot.player_id, 0)


def captain_multiplier(active_chip: Optional[str]) -> int:
    return TRIPLE_CAPTAIN_MULTIPLIER if active_chip == CHIP_TRIPLE_CAPTAIN else CAPTAIN_MULTIPLIER


def select_captain(
    lineup: Lineup,
    snapshots: Dict[int, PlayerSnapshot],
    subs: AutoSubResult,
    captain_fallback: str = CAPTAIN_FALLBACK_NONE,
) -> Optional[int]:
    """
    Player id that scores with the captain multiplier, if any.

    With the `vice_captain` fallback the vice-captain takes the armband when
    the captain recorded zero minutes in a started fixture and the vice
    played. A bench player brought on by auto-sub never inherits it.
    """
    ordered = sorted(lineup.picks, key=lambda p: p.slot)
    captain = next((p for p in ordered if p.is_captain), None)
    if captain is None:
        return None

    if captain_fallback != CAPTAIN_FALLBACK_VICE:
        return captain.player_id

    captain_snap = snapshots.get(captain.player_id)
    if captain_snap is None or not captain_snap.did_not_play:
        return captain.player_id

    vice = next((p for p in ordered if p.is_vice_captain), None)
    if vice is None or vice.player_id in subs.subbed_in:
        return captain.player_id
    if vice not in subs.effective:
        return captain.player_id
    vice_snap = snapshots.get(vice.player_id)
    if vice_snap is None or vice_snap.did_not_play:
        return captain.player_id
    return vice.player_id


def score_lineup(
    lineup: Lineup,
    snapshots: Dict[int, PlayerSnapshot],
    provisional: Optional[Dict[int, int]] = None,
    captain_fallback: str = CAPTAIN_FALLBACK_NONE,
) -> EntrantScore:
    """
    Score an entrant's lineup after auto-substitution.

    Scoring:
        - Effective starters: (raw + provisional bonus) x multiplier
          (2 for the captain, 3 under Triple Captain, otherwise the pick's own)
        - Substituted-in bench players: raw + provisional bonus, multiplier 1
        - Unused bench: counted as bench points only

    Args:
        lineup: The entrant's picks and chip
        snapshots: Player snapshots keyed by player_id
        provisional: Pending bonus per player_id for live fixtures
        captain_fallback: 'none' or 'vice_captain'

    Returns:
        EntrantScore with totals, per-pick breakdown and substitutions
    """
    provisional = provisional or {}
    subs = simulate_auto_subs(lineup, snapshots)
    captain_id = select_captain(lineup, snapshots, subs, captain_fallback)
    multiplier_for_captain = captain_multiplier(lineup.active_chip)

    total = 0
    bench_points = 0
    breakdown: List[PlayerPoints] = []
    effective_ids = {p.player_id for p in subs.effective}

    for pick in sorted(lineup.picks, key=lambda p: p.slot):
        snap = snapshots.get(pick.player_id) or PlayerSnapshot(player_id=pick.player_id)
        bonus = pending_bonus(snap, provisional)
        base = snap.points + bonus

        if pick.player_id in subs.subbed_in:
            role = 'sub_in'
            multiplier = 1
            points = base
            total += points
        elif pick.player_id in subs.subbed_out:
            role = 'sub_out'
            multiplier = 0
            points = 0
        elif pick.player_id in effective_ids:
            role = 'starter'
            if pick.player_id == captain_id:
                multiplier = multiplier_for_captain
            else:
                multiplier = pick.multiplier or 1
            points = base * multiplier
            total += points
        else:
            role = 'bench'
            multiplier = 0
            points = base
            bench_points += points

        breakdown.append(
            PlayerPoints(
                player_id=pick.player_id,
                name=snap.name,
                position=snap.position,
                slot=pick.slot,
                role=role,
                raw_points=snap.points,
                provisional_bonus=bonus,
                multiplier=multiplier,
                points=points,
                minutes=snap.minutes,
                play_status=snap.play_status,
                is_captain=pick.is_captain,
                is_vice_captain=pick.is_vice_captain,
            )
        )

    counts = get_formation_counts(
        (snapshots.get(p.player_id) or PlayerSnapshot(player_id=p.player_id)).position
        for p in subs.effective
    )
    if lineup.active_chip == CHIP_BENCH_BOOST:
        shape = 'bench boost'
    else:
        shape = formation_string(counts)

    return EntrantScore(
        entry_id=lineup.entry_id,
        total_points=total,
        bench_points=bench_points,
        breakdown=breakdown,
        auto_substitutions=subs.substitutions,
        formation=shape,
        active_chip=lineup.active_chip,
    )
