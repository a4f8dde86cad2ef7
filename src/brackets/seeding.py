"""
Random seed assignment into bracket slots.

Both modes split the roster and the slot range in half recursively. Compact
mode stops early when exactly two competitors remain and pairs them in the
first two slots of the range, which pushes byes out of round 1.
"""
import math
import random
from typing import List, Optional

from brackets.bracket import Slots, is_power_of_two
from brackets.models import (
    Competitor, SEED_COMPACT, SEED_MODES, LAYOUT_DOUBLE, LAYOUTS,
)


def _split(teams: List[Competitor]):
    half_teams = math.ceil(len(teams) / 2)
    return teams[:half_teams], teams[half_teams:]


def _assign(teams: List[Competitor], slots: Slots, start: int, width: int, compact: bool):
    if len(teams) > width:
        raise ValueError(
            f"Cannot place {len(teams)} competitors in {width} slots starting at {start}")

    if not teams:
        return

    if len(teams) == 1:
        slots[start] = teams[0]
        return

    # Force pair: keep the two together in round 1 instead of splitting them
    if compact and len(teams) == 2:
        slots[start] = teams[0]
        slots[start + 1] = teams[1]
        return

    half_width = width // 2
    left_teams, right_teams = _split(teams)
    _assign(left_teams, slots, start, half_width, compact)
    _assign(right_teams, slots, start + half_width, half_width, compact)


def assign_standard(teams: List[Competitor], slots: Slots, start: int, width: int):
    """Place teams in slots[start:start + width] by pure recursive halving."""
    _assign(teams, slots, start, width, compact=False)


def assign_compact(teams: List[Competitor], slots: Slots, start: int, width: int):
    """Place teams in slots[start:start + width], pairing eagerly."""
    _assign(teams, slots, start, width, compact=True)


def generate_assignments(roster: List[Competitor], capacity: int, seed_mode: str,
                         layout: str, rng: Optional[random.Random] = None) -> Slots:
    """
    Shuffle the roster and place it into a fresh set of ``capacity`` slots.

    Args:
        roster: Competitors to place; each ends up in exactly one slot
        capacity: Slot count, a power of two >= 2
        seed_mode: 'standard' or 'compact'
        layout: 'double' splits the roster between the left and right half
            of the bracket before seeding; 'single' seeds the whole range
        rng: Optional random source for reproducible draws

    Returns:
        New list of slots, ``None`` for empty ones
    """
    if capacity < 2 or not is_power_of_two(capacity):
        raise ValueError(f"Capacity must be a power of two >= 2, got {capacity}")
    if seed_mode not in SEED_MODES:
        raise ValueError(f"Unknown seed mode {seed_mode!r}, expected one of {SEED_MODES}")
    if layout not in LAYOUTS:
        raise ValueError(f"Unknown layout {layout!r}, expected one of {LAYOUTS}")
    if len(roster) > capacity:
        raise ValueError(f"Roster of {len(roster)} does not fit capacity {capacity}")

    slots = [None] * capacity
    shuffled = list(roster)
    (rng or random).shuffle(shuffled)

    assign = assign_compact if seed_mode == SEED_COMPACT else assign_standard

    if layout == LAYOUT_DOUBLE:
        half_capacity = capacity // 2
        left_teams, right_teams = _split(shuffled)
        assign(left_teams, slots, 0, half_capacity)
        assign(right_teams, slots, half_capacity, half_capacity)
    else:
        assign(shuffled, slots, 0, capacity)

    return slots
