"""Validation of lineups and live scoring results.

Nothing here raises: problems come back as messages so a degraded live
score can still be shown with its anomalies flagged.
"""

from .constants import ALL_CHIPS, SQUAD_SIZE
from .models import EntrantScore, Lineup


def validate_lineup(lineup: Lineup) -> list[str]:
    """
    Check a lineup against the squad rules.

    Checks:
    - Exactly fifteen picks
    - Exactly one captain, at most one vice-captain
    - No duplicate players or slots, slots within 0-14
    - A known chip

    Args:
        lineup: Lineup to validate

    Returns:
        List of anomaly messages (empty if valid)
    """
    anomalies = []
    entry = lineup.entry_id

    if len(lineup.picks) != SQUAD_SIZE:
        anomalies.append(f'Entry {entry} has {len(lineup.picks)} picks (expected {SQUAD_SIZE})')

    captains = [p for p in lineup.picks if p.is_captain]
    if not captains:
        anomalies.append(f'Entry {entry} has no captain')
    elif len(captains) > 1:
        anomalies.append(f'Entry {entry} has {len(captains)} captains')

    vices = [p for p in lineup.picks if p.is_vice_captain]
    if len(vices) > 1:
        anomalies.append(f'Entry {entry} has {len(vices)} vice-captains')

    seen_players = set()
    duplicate_players = set()
    for pick in lineup.picks:
        if pick.player_id in seen_players:
            duplicate_players.add(pick.player_id)
        seen_players.add(pick.player_id)
    if duplicate_players:
        ids = ', '.join(str(p) for p in sorted(duplicate_players))
        anomalies.append(f'Entry {entry} has duplicate players: {ids}')

    slots = [p.slot for p in lineup.picks]
    if len(set(slots)) != len(slots):
        anomalies.append(f'Entry {entry} has duplicate slots')
    out_of_range = sorted(s for s in slots if not (0 <= s < SQUAD_SIZE))
    if out_of_range:
        anomalies.append(f'Entry {entry} has slots out of range: {out_of_range}')

    if lineup.active_chip and lineup.active_chip not in ALL_CHIPS:
        anomalies.append(f'Entry {entry} has unknown chip {lineup.active_chip!r}')

    return anomalies


def validate_entrant_score(score: EntrantScore) -> list[str]:
    """
    Sanity checks on a computed score.

    Checks:
    - Breakdown of counted picks adds up to the total
    - Bench breakdown adds up to bench points
    - Total in a plausible range (-30 to 300)

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    counted = sum(p.points for p in score.breakdown if p.role in ('starter', 'sub_in'))
    if counted != score.total_points:
        warnings.append(
            f'Entry {score.entry_id} breakdown sum ({counted}) != total ({score.total_points})'
        )

    bench = sum(p.points for p in score.breakdown if p.role == 'bench')
    if bench != score.bench_points:
        warnings.append(
            f'Entry {score.entry_id} bench breakdown ({bench}) != bench points ({score.bench_points})'
        )

    if score.total_points > 300:
        warnings.append(f'Entry {score.entry_id} scored {score.total_points} pts (unusually high)')
    elif score.total_points < -30:
        warnings.append(f'Entry {score.entry_id} scored {score.total_points} pts (unusually low)')

    return warnings
