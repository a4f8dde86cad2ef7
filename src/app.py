"""
Flask web application for Bracket Master.
"""
import os
import shutil
import yaml
from filelock import FileLock
from flask import Flask, request, jsonify
from brackets.bracket import get_round_name, side_state
from brackets.models import MAX_TOURNAMENTS, SIDE1, SIDE2
from brackets.tournament import Tournament

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))

TOURNAMENTS_FILE = os.path.join(DATA_DIR, 'tournaments.yaml')


def _data_lock() -> FileLock:
    """Lock serializing read-modify-write cycles on the tournaments file."""
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(os.path.join(DATA_DIR, '.lock'), timeout=10)


def load_tournaments() -> list:
    """Load every saved tournament from YAML."""
    if not os.path.exists(TOURNAMENTS_FILE):
        return []
    try:
        with open(TOURNAMENTS_FILE, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if not data:
            return []
        return [Tournament.from_dict(t) for t in data.get('tournaments', [])]
    except Exception as e:
        backup = TOURNAMENTS_FILE + '.corrupt'
        shutil.copy2(TOURNAMENTS_FILE, backup)
        app.logger.warning(f'Failed to parse {TOURNAMENTS_FILE}, kept a copy at {backup}: {e}')
        return []


def save_tournaments(tournaments: list):
    """Save every tournament to YAML."""
    os.makedirs(os.path.dirname(TOURNAMENTS_FILE), exist_ok=True)
    with open(TOURNAMENTS_FILE, 'w', encoding='utf-8') as f:
        yaml.dump({'tournaments': [t.to_dict() for t in tournaments]}, f, default_flow_style=False)


def _find_tournament(tournaments: list, tournament_id: str):
    for tournament in tournaments:
        if tournament.id == tournament_id:
            return tournament
    return None


def tournament_payload(tournament: Tournament) -> dict:
    """Serialized tournament plus the derived state a client needs to render it."""
    payload = tournament.to_dict()
    payload['unassigned'] = [c.to_dict() for c in tournament.unassigned()]
    payload['needsByeWarning'] = tournament.needs_bye_warning()
    return payload


def bracket_view(tournament: Tournament) -> list:
    """Rounds with names and per-side display state (decided/waiting/bye/disconnected)."""
    rounds = []
    bracket = tournament.bracket
    for round_index, round_matches in enumerate(bracket):
        matches = []
        for match_index, match in enumerate(round_matches):
            matches.append({
                'id': match['id'],
                'side1': match['side1'].to_dict() if match['side1'] else None,
                'side2': match['side2'].to_dict() if match['side2'] else None,
                'wins1': match['wins1'],
                'wins2': match['wins2'],
                'winner': match['winner'].to_dict() if match['winner'] else None,
                'side1State': side_state(bracket, round_index, match_index, SIDE1),
                'side2State': side_state(bracket, round_index, match_index, SIDE2),
            })
        rounds.append({
            'name': get_round_name(len(round_matches)),
            'matches': matches
        })
    return rounds


def _int_field(data: dict, key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Field '{key}' must be an integer")
    return value


def _update_tournament(tournament_id: str, action):
    """Load, modify and save one tournament under the data lock."""
    with _data_lock():
        tournaments = load_tournaments()
        tournament = _find_tournament(tournaments, tournament_id)
        if tournament is None:
            return jsonify({'error': 'Tournament not found'}), 404
        try:
            action(tournament)
        except (ValueError, IndexError) as e:
            app.logger.info(f'Rejected change to tournament {tournament_id}: {e}')
            return jsonify({'error': str(e)}), 400
        save_tournaments(tournaments)
    return jsonify(tournament_payload(tournament))


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    """List tournaments, most recently modified first."""
    tournaments = sorted(load_tournaments(), key=lambda t: t.last_modified, reverse=True)
    return jsonify({'tournaments': [{
        'id': t.id,
        'name': t.name,
        'phase': t.phase,
        'competitors': len(t.roster),
        'seedMode': t.seed_mode,
        'layout': t.layout,
        'champion': t.champion.to_dict() if t.champion else None,
        'lastModified': t.last_modified
    } for t in tournaments]})


@app.route('/api/tournaments', methods=['POST'])
def api_create_tournament():
    data = request.get_json(silent=True) or {}
    with _data_lock():
        tournaments = load_tournaments()
        if len(tournaments) >= MAX_TOURNAMENTS:
            return jsonify({'error': f'You have reached the limit of {MAX_TOURNAMENTS} tournaments. '
                                     'Please delete an existing one to create more.'}), 400
        try:
            tournament = Tournament.create(data.get('name', ''))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        tournaments.insert(0, tournament)
        save_tournaments(tournaments)
    app.logger.info(f'Created tournament {tournament.id} ({tournament.name})')
    return jsonify(tournament_payload(tournament)), 201


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
def api_get_tournament(tournament_id):
    tournament = _find_tournament(load_tournaments(), tournament_id)
    if tournament is None:
        return jsonify({'error': 'Tournament not found'}), 404
    return jsonify(tournament_payload(tournament))


@app.route('/api/tournaments/<tournament_id>', methods=['DELETE'])
def api_delete_tournament(tournament_id):
    with _data_lock():
        tournaments = load_tournaments()
        remaining = [t for t in tournaments if t.id != tournament_id]
        if len(remaining) == len(tournaments):
            return jsonify({'error': 'Tournament not found'}), 404
        save_tournaments(remaining)
    app.logger.info(f'Deleted tournament {tournament_id}')
    return jsonify({'success': True})


@app.route('/api/tournaments/<tournament_id>/bracket', methods=['GET'])
def api_get_bracket(tournament_id):
    tournament = _find_tournament(load_tournaments(), tournament_id)
    if tournament is None:
        return jsonify({'error': 'Tournament not found'}), 404
    return jsonify({
        'phase': tournament.phase,
        'layout': tournament.layout,
        'matchType': tournament.match_type,
        'rounds': bracket_view(tournament),
        'champion': tournament.champion.to_dict() if tournament.champion else None
    })


@app.route('/api/tournaments/<tournament_id>/rename', methods=['POST'])
def api_rename_tournament(tournament_id):
    data = request.get_json(silent=True) or {}
    return _update_tournament(tournament_id, lambda t: t.rename(data.get('name', '')))


@app.route('/api/tournaments/<tournament_id>/competitors', methods=['POST'])
def api_add_competitor(tournament_id):
    data = request.get_json(silent=True) or {}
    return _update_tournament(tournament_id, lambda t: t.add_competitor(data.get('name', '')))


@app.route('/api/tournaments/<tournament_id>/competitors/<competitor_id>', methods=['DELETE'])
def api_remove_competitor(tournament_id, competitor_id):
    return _update_tournament(tournament_id, lambda t: t.remove_competitor(competitor_id))


@app.route('/api/tournaments/<tournament_id>/settings', methods=['POST'])
def api_update_settings(tournament_id):
    data = request.get_json(silent=True) or {}
    return _update_tournament(tournament_id, lambda t: t.update_settings(
        match_type=data.get('matchType'),
        seed_mode=data.get('seedMode'),
        layout=data.get('layout')
    ))


@app.route('/api/tournaments/<tournament_id>/auto-fill', methods=['POST'])
def api_auto_fill(tournament_id):
    return _update_tournament(tournament_id, lambda t: t.auto_fill())


@app.route('/api/tournaments/<tournament_id>/slots/swap', methods=['POST'])
def api_swap_slots(tournament_id):
    data = request.get_json(silent=True) or {}
    return _update_tournament(tournament_id, lambda t: t.swap_slots(
        _int_field(data, 'first'), _int_field(data, 'second')))


@app.route('/api/tournaments/<tournament_id>/slots/place', methods=['POST'])
def api_place_in_slot(tournament_id):
    data = request.get_json(silent=True) or {}
    return _update_tournament(tournament_id, lambda t: t.place_in_slot(
        data.get('competitorId'), _int_field(data, 'slot')))


@app.route('/api/tournaments/<tournament_id>/slots/clear', methods=['POST'])
def api_clear_slot(tournament_id):
    data = request.get_json(silent=True) or {}
    return _update_tournament(tournament_id, lambda t: t.clear_slot(_int_field(data, 'slot')))


@app.route('/api/tournaments/<tournament_id>/start', methods=['POST'])
def api_start_tournament(tournament_id):
    data = request.get_json(silent=True) or {}
    return _update_tournament(tournament_id, lambda t: t.start(confirm_byes=bool(data.get('confirmByes'))))


@app.route('/api/tournaments/<tournament_id>/results', methods=['POST'])
def api_record_win(tournament_id):
    """Record one more win for a side of a match."""
    data = request.get_json(silent=True) or {}

    def record(tournament):
        champion = tournament.record_win(
            _int_field(data, 'round'), _int_field(data, 'match'), data.get('side'))
        if champion is not None:
            app.logger.info(f'Tournament {tournament_id} won by {champion.name}')

    return _update_tournament(tournament_id, record)


@app.route('/api/tournaments/<tournament_id>/edit', methods=['POST'])
def api_edit_tournament(tournament_id):
    """Unlock the bracket, discarding recorded results."""
    return _update_tournament(tournament_id, lambda t: t.edit())


if __name__ == '__main__':
    app.run(debug=True, port=5000)
