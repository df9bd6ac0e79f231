"""Automatic substitution of starters who did not play."""

import logging
from typing import Dict, List

from .constants import CHIP_BENCH_BOOST
from .formation import get_formation_counts, would_be_valid_substitution
from .models import AutoSubResult, AutoSubstitution, Lineup, Pick, PlayerSnapshot

logger = logging.getLogger('fplive.auto_subs')


def _snapshot(snapshots: Dict[int, PlayerSnapshot], player_id: int) -> PlayerSnapshot:
    return snapshots.get(player_id) or PlayerSnapshot(player_id=player_id)


def simulate_auto_subs(lineup: Lineup, snapshots: Dict[int, PlayerSnapshot]) -> AutoSubResult:
    """
    Replace starters with zero minutes in a started fixture.

    Rules:
        - Bench Boost: no substitutions, all fifteen picks count
        - Starters are processed in slot order, the bench in priority order
        - A bench player is eligible if unused and not itself a zero-minute
          player whose fixture has started
        - GKP only for GKP; outfield never for GKP
        - The swap must leave at least 1 GKP, 3 DEF, 2 MID, 1 FWD
        - If nobody qualifies the starter stays in and scores zero

    Args:
        lineup: The entrant's picks and active chip
        snapshots: Player snapshots keyed by player_id

    Returns:
        AutoSubResult with the effective picks, swaps and unused bench
    """
    starters = lineup.starters
    bench = lineup.bench

    if lineup.active_chip == CHIP_BENCH_BOOST:
        return AutoSubResult(effective=starters + bench, unused_bench=[])

    effective: List[Pick] = list(starters)
    substitutions: List[AutoSubstitution] = []
    used: set[int] = set()

    for starter in starters:
        snap_out = _snapshot(snapshots, starter.player_id)
        if not snap_out.did_not_play:
            continue

        counts = get_formation_counts(_snapshot(snapshots, p.player_id).position for p in effective)

        for candidate in bench:
            if candidate.slot in used:
                continue
            snap_in = _snapshot(snapshots, candidate.player_id)
            if snap_in.did_not_play:
                continue
            if not would_be_valid_substitution(counts, snap_out.position, snap_in.position):
                continue

            used.add(candidate.slot)
            effective[effective.index(starter)] = candidate
            substitutions.append(
                AutoSubstitution(
                    player_out=starter.player_id,
                    player_in=candidate.player_id,
                    name_out=snap_out.name,
                    name_in=snap_in.name,
                )
            )
            logger.debug(
                f'Entry {lineup.entry_id}: {snap_out.name} ({snap_out.position}) '
                f'-> {snap_in.name} ({snap_in.position})'
            )
            break

    return AutoSubResult(
        effective=effective,
        substitutions=substitutions,
        unused_bench=[p for p in bench if p.slot not in used],
        subbed_in=[s.player_in for s in substitutions],
        subbed_out=[s.player_out for s in substitutions],
    )
