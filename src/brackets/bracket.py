"""
Single elimination bracket structure: sizing, round construction and
reachability queries.

A bracket is a list of rounds, each round a list of match dicts. Match ``m``
of round ``r`` feeds match ``m // 2`` of round ``r + 1``, filling ``side1``
when ``m`` is even and ``side2`` when it is odd.
"""
import math
from typing import List, Dict, Optional, Tuple

from brackets.models import Competitor, SIDE1, SIDE2, SIDES

Slots = List[Optional[Competitor]]
Bracket = List[List[Dict]]

STATE_DECIDED = 'decided'
STATE_WAITING = 'waiting'
STATE_BYE = 'bye'
STATE_DISCONNECTED = 'disconnected'


def get_round_name(matches_in_round: int) -> str:
    """Get the name of a round based on number of matches it holds."""
    teams_in_round = matches_in_round * 2
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def get_capacity(roster_size: int) -> int:
    """Calculate the number of seed slots (next power of 2, at least 2)."""
    if roster_size <= 2:
        return 2
    return 2 ** math.ceil(math.log2(roster_size))


def resize_slots(current_slots: Slots, roster_size: int) -> Slots:
    """
    Grow or shrink the seed slots to the capacity required by the roster.

    Existing placements are never reordered. Growing appends empty slots,
    shrinking drops trailing slots; a competitor in a dropped slot goes back
    to the unassigned pool.
    """
    capacity = get_capacity(roster_size)
    if len(current_slots) == capacity:
        return current_slots

    if len(current_slots) < capacity:
        return list(current_slots) + [None] * (capacity - len(current_slots))

    return list(current_slots[:capacity])


def _new_match(match_id: int, side1=None, side2=None,
               source_slot1: Optional[int] = None, source_slot2: Optional[int] = None) -> Dict:
    return {
        'id': match_id,
        'side1': side1,
        'side2': side2,
        'source_slot1': source_slot1,
        'source_slot2': source_slot2,
        'wins1': 0,
        'wins2': 0,
        'winner': None,
    }


def build_bracket(seed_slots: Slots) -> Bracket:
    """
    Build every round of the bracket from the seed slots.

    Round 0 pairs consecutive slots; later rounds start empty and halve in
    size until the single final match.
    """
    if len(seed_slots) < 2 or not is_power_of_two(len(seed_slots)):
        raise ValueError(
            f"Seed slot count must be a power of two >= 2, got {len(seed_slots)}")

    first_round = []
    for i in range(0, len(seed_slots), 2):
        first_round.append(_new_match(len(first_round), seed_slots[i], seed_slots[i + 1], i, i + 1))

    rounds = [first_round]
    round_size = len(first_round)
    while round_size > 1:
        round_size //= 2
        rounds.append([_new_match(i) for i in range(round_size)])

    return rounds


def parent_position(match_index: int) -> Tuple[int, str]:
    """Return (parent match index, side of the parent this match feeds)."""
    return match_index // 2, SIDE1 if match_index % 2 == 0 else SIDE2


def check_side(side: str):
    if side not in SIDES:
        raise ValueError(f"Unknown side {side!r}, expected one of {SIDES}")


def get_match(bracket: Bracket, round_index: int, match_index: int) -> Dict:
    """Look up a match, failing loudly on indices outside the bracket."""
    if not 0 <= round_index < len(bracket):
        raise IndexError(f"Round index {round_index} out of range (0..{len(bracket) - 1})")
    round_matches = bracket[round_index]
    if not 0 <= match_index < len(round_matches):
        raise IndexError(
            f"Match index {match_index} out of range for round {round_index} "
            f"(0..{len(round_matches) - 1})")
    return round_matches[match_index]


def has_input(bracket: Bracket, round_index: int, match_index: int, side: str) -> bool:
    """
    Check whether a side of a match is fed by any real competitor.

    A side has input when it already holds a competitor, or, past round 0,
    when either side of its feeder match has input. A pending competitor
    counts: this is structural reachability, not a decided result.
    """
    check_side(side)
    match = get_match(bracket, round_index, match_index)
    if match[side] is not None:
        return True
    if round_index == 0:
        return False
    feeder_index = match_index * 2 + (0 if side == SIDE1 else 1)
    return (has_input(bracket, round_index - 1, feeder_index, SIDE1) or
            has_input(bracket, round_index - 1, feeder_index, SIDE2))


def is_match_reachable(bracket: Bracket, round_index: int, match_index: int) -> bool:
    return (has_input(bracket, round_index, match_index, SIDE1) or
            has_input(bracket, round_index, match_index, SIDE2))


def side_state(bracket: Bracket, round_index: int, match_index: int, side: str) -> str:
    """
    Classify a match side for display.

    decided: a competitor is present.
    waiting: reachable, competitor not known yet.
    bye: unreachable while the other side is reachable.
    disconnected: neither side is reachable (dead branch).
    """
    other = SIDE2 if side == SIDE1 else SIDE1
    active = has_input(bracket, round_index, match_index, side)
    other_active = has_input(bracket, round_index, match_index, other)
    if active:
        match = bracket[round_index][match_index]
        return STATE_DECIDED if match[side] is not None else STATE_WAITING
    if other_active:
        return STATE_BYE
    return STATE_DISCONNECTED


def _check_slot(seed_slots: Slots, index: int):
    if not 0 <= index < len(seed_slots):
        raise IndexError(f"Slot index {index} out of range (0..{len(seed_slots) - 1})")


def swap_slots(seed_slots: Slots, first: int, second: int) -> Slots:
    """Return a copy of the slots with two occupants exchanged."""
    _check_slot(seed_slots, first)
    _check_slot(seed_slots, second)
    new_slots = list(seed_slots)
    new_slots[first], new_slots[second] = new_slots[second], new_slots[first]
    return new_slots


def clear_slot(seed_slots: Slots, index: int) -> Slots:
    """Return a copy of the slots with one occupant returned to the pool."""
    _check_slot(seed_slots, index)
    new_slots = list(seed_slots)
    new_slots[index] = None
    return new_slots
