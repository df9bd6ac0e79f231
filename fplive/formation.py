"""Formation rules used to validate lineups and auto-subs."""

from typing import Dict, Iterable

from .constants import FORMATION_MINIMUMS


def get_formation_counts(positions: Iterable[str]) -> Dict[str, int]:
    """Count players by position code (GKP, DEF, MID, FWD)."""
    counts = {pos: 0 for pos in FORMATION_MINIMUMS}
    for position in positions:
        if position in counts:
            counts[position] += 1
    return counts


def is_valid_formation(counts: Dict[str, int]) -> bool:
    """At least 1 GKP, 3 DEF, 2 MID and 1 FWD."""
    return all(counts.get(pos, 0) >= minimum for pos, minimum in FORMATION_MINIMUMS.items())


def would_be_valid_substitution(counts: Dict[str, int], position_out: str, position_in: str) -> bool:
    """
    Test a hypothetical swap against the current formation counts.

    A goalkeeper can only be replaced by a goalkeeper, and an outfield
    player can never be replaced by one.
    """
    if (position_out == 'GKP') != (position_in == 'GKP'):
        return False

    test = dict(counts)
    test[position_out] = test.get(position_out, 0) - 1
    test[position_in] = test.get(position_in, 0) + 1
    return is_valid_formation(test)


def formation_string(counts: Dict[str, int]) -> str:
    """Outfield shape, e.g. '4-4-2'."""
    return f"{counts.get('DEF', 0)}-{counts.get('MID', 0)}-{counts.get('FWD', 0)}"
