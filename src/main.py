# Command line draw: seed a roster file into a bracket and print it
"""
Usage:
    python src/main.py data/roster.yaml
    python src/main.py data/roster.yaml --mode standard --layout single --seed 7

The roster file is a YAML list of names, or a mapping with a 'competitors'
list and an optional 'name'.
"""
import argparse
import os
import random
import sys
import yaml
from brackets.bracket import get_round_name, side_state, STATE_BYE, STATE_WAITING
from brackets.models import SEED_MODES, SEED_COMPACT, LAYOUTS, LAYOUT_DOUBLE, SIDE1, SIDE2
from brackets.tournament import Tournament


def load_roster(file_path):
    """Return (tournament name, list of competitor names) from a YAML file."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file)
    default_name = os.path.splitext(os.path.basename(file_path))[0]
    if not data:
        return default_name, []
    if isinstance(data, dict):
        return data.get('name', default_name), [str(n) for n in data.get('competitors', [])]
    return default_name, [str(n) for n in data]


def draw_tournament(name, names, seed_mode, layout, rng=None):
    """Build a started tournament with byes already resolved."""
    tournament = Tournament.create(name)
    tournament.update_settings(seed_mode=seed_mode, layout=layout)
    for competitor_name in names:
        tournament.add_competitor(competitor_name)
    tournament.auto_fill(rng=rng)
    tournament.start(confirm_byes=True)
    return tournament


def _side_label(bracket, round_index, match_index, side):
    match = bracket[round_index][match_index]
    if match[side] is not None:
        return match[side].name
    state = side_state(bracket, round_index, match_index, side)
    if state == STATE_BYE:
        return 'BYE'
    if state == STATE_WAITING:
        return 'TBD'
    return '-'


def format_bracket(tournament):
    lines = [f"# {tournament.name}"]
    bracket = tournament.bracket
    for round_index, round_matches in enumerate(bracket):
        lines.append(f"\n## {get_round_name(len(round_matches))}")
        for match_index, match in enumerate(round_matches):
            side1 = _side_label(bracket, round_index, match_index, SIDE1)
            side2 = _side_label(bracket, round_index, match_index, SIDE2)
            line = f"M{match_index + 1}: {side1} vs {side2}"
            if match['winner'] is not None:
                line += f"  -> {match['winner'].name}"
            lines.append(line)
    if tournament.champion is not None:
        lines.append(f"\nChampion: {tournament.champion.name}")
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(
        description='Seed a roster into a single elimination bracket and print it'
    )
    parser.add_argument('roster', help='YAML file listing competitor names')
    parser.add_argument('--mode', choices=SEED_MODES, default=SEED_COMPACT,
                        help='Seeding mode (default: compact)')
    parser.add_argument('--layout', choices=LAYOUTS, default=LAYOUT_DOUBLE,
                        help='Bracket layout (default: double)')
    parser.add_argument('--seed', type=int, help='Random seed for a reproducible draw')
    args = parser.parse_args()

    name, names = load_roster(args.roster)
    if len(names) < 2:
        print(f"Need at least 2 competitors in {args.roster}", file=sys.stderr)
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None
    try:
        tournament = draw_tournament(name, names, args.mode, args.layout, rng=rng)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(format_bracket(tournament))
    return 0


if __name__ == '__main__':
    sys.exit(main())
