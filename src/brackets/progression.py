"""
Recording match results, advancing winners and resolving byes.

Every function here returns a new bracket and leaves its argument untouched.
"""
import copy
from typing import Optional, Tuple

from brackets.bracket import Bracket, check_side, get_match, has_input, parent_position
from brackets.models import Competitor, MATCH_BEST_OF_3, SIDE1, SIDE2


def wins_required(match_type: str) -> int:
    return 2 if match_type == MATCH_BEST_OF_3 else 1


def _propagate_winner(bracket: Bracket, round_index: int, match_index: int,
                      winner: Competitor) -> Optional[Competitor]:
    """Move a winner into its parent match; return it when it won the final."""
    if round_index == len(bracket) - 1:
        return winner
    parent_index, parent_side = parent_position(match_index)
    bracket[round_index + 1][parent_index][parent_side] = winner
    return None


def _resolve_in_place(bracket: Bracket) -> Optional[Competitor]:
    champion = None
    for round_index, round_matches in enumerate(bracket):
        for match_index, match in enumerate(round_matches):
            if match['winner'] is not None:
                continue

            side1_active = has_input(bracket, round_index, match_index, SIDE1)
            side2_active = has_input(bracket, round_index, match_index, SIDE2)

            if side1_active and not side2_active:
                advancing = match[SIDE1]
            elif side2_active and not side1_active:
                advancing = match[SIDE2]
            else:
                continue

            # Reachable side still waiting on its own feeder match
            if advancing is None:
                continue

            match['winner'] = advancing
            # Later rounds are visited after this one, so one sweep is enough
            reached_final = _propagate_winner(bracket, round_index, match_index, advancing)
            if reached_final is not None:
                champion = reached_final
    return champion


def resolve_byes(bracket: Bracket) -> Tuple[Bracket, Optional[Competitor]]:
    """
    Advance every competitor whose opponent can never arrive.

    Sweeps rounds in order. A match with exactly one reachable side that
    already holds a competitor is won by that competitor. Matches with no
    reachable side are dead branches and stay undecided.

    Returns:
        (new bracket, champion if the final was decided by a bye)
    """
    new_bracket = copy.deepcopy(bracket)
    champion = _resolve_in_place(new_bracket)
    return new_bracket, champion


def record_result(bracket: Bracket, round_index: int, match_index: int, side: str,
                  new_wins: int, match_type: str) -> Tuple[Bracket, Optional[Competitor]]:
    """
    Set a side's win count and advance the winner if the match is decided.

    Args:
        bracket: Current bracket, not modified
        round_index: Round of the match
        match_index: Position of the match within its round
        side: 'side1' or 'side2'
        new_wins: New win count for that side (normally previous + 1)
        match_type: 'single' (one win decides) or 'bestOf3' (two wins)

    Returns:
        (new bracket, champion or None)
    """
    check_side(side)
    get_match(bracket, round_index, match_index)
    if isinstance(new_wins, bool) or not isinstance(new_wins, int) or new_wins < 0:
        raise ValueError(f"Win count must be a non-negative integer, got {new_wins!r}")

    new_bracket = copy.deepcopy(bracket)
    match = new_bracket[round_index][match_index]
    if side == SIDE1:
        match['wins1'] = new_wins
    else:
        match['wins2'] = new_wins

    required = wins_required(match_type)
    winner = None
    if match['wins1'] >= required:
        winner = match[SIDE1]
    elif match['wins2'] >= required:
        winner = match[SIDE2]

    champion = None
    if winner is not None:
        match['winner'] = winner
        champion = _propagate_winner(new_bracket, round_index, match_index, winner)
        resolved_champion = _resolve_in_place(new_bracket)
        if resolved_champion is not None:
            champion = resolved_champion

    return new_bracket, champion
