"""
Flask web application for the Nolimpiadi tournament.
"""
import os
from flask import Flask, request, jsonify, abort
import storage
from core.models import DISCIPLINES, OVERALL, PHASES, Player, generate_id, get_discipline
from core.formats import involves_player
from core.standings import compute_standings
from core.elimination import generate_bracket, propagate_bracket_winners, get_bracket_display
from core.scoring import ScoreError, record_score, clear_score
from core.allocation import LiveScheduler

app = Flask(__name__)

DATA_DIR = storage.DATA_DIR

# Fixed once a player has been placed on a team
TEAM_LOCKED_FIELDS = ('teamId', 'weight', 'category')


def get_store() -> storage.TournamentStore:
    """Store for the configured data directory."""
    return storage.TournamentStore(DATA_DIR)


def _discipline_or_404(discipline_id):
    discipline = get_discipline(discipline_id)
    if discipline is None:
        abort(404, description=f'Unknown discipline: {discipline_id}')
    return discipline


def _propagate(store, matches):
    """Advance bracket winners after a match change and persist the updated slots."""
    changed = propagate_bracket_winners(matches)
    if changed:
        store.update_matches(changed)
        app.logger.info(f'Propagated bracket winners into {len(changed)} matches')
    return changed


def _players_from_request(entries):
    """Players posted to /api/init; entries without an id get a generated one."""
    if not isinstance(entries, list):
        raise TypeError('players must be a list')
    players = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise TypeError(f'not a player object: {entry!r}')
        entry = dict(entry)
        if not entry.get('id'):
            entry['id'] = generate_id()
        players.append(Player.from_dict(entry))
    return players


@app.errorhandler(404)
def not_found(error):
    return jsonify({'error': error.description}), 404


@app.route('/api/disciplines')
def api_disciplines():
    return jsonify({'disciplines': [d.to_dict() for d in DISCIPLINES]})


@app.route('/api/init', methods=['POST'])
def api_init():
    """First-time initialization: teams from the roster, then all round-robin matches."""
    store = get_store()
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Expected a JSON object'}), 400
    if data.get('players'):
        try:
            players = _players_from_request(data['players'])
        except (ValueError, TypeError) as e:
            return jsonify({'error': f'Invalid players: {e}'}), 400
    else:
        players = storage.load_players_file(storage.SEED_PLAYERS_FILE)

    if not store.initialize_tournament(players):
        return jsonify({'error': 'Tournament already initialized'}), 409

    users, teams, matches = store.load_snapshot()
    return jsonify({
        'success': True,
        'players': len(users),
        'teams': [t.to_dict() for t in teams],
        'matches': len(matches),
    })


@app.route('/api/reset', methods=['POST'])
def api_reset():
    get_store().reset_tournament()
    return jsonify({'success': True})


@app.route('/api/users', methods=['GET', 'POST'])
def api_users():
    store = get_store()
    if request.method == 'GET':
        return jsonify({'users': [u.to_dict() for u in store.load_users()]})

    data = request.get_json(silent=True) or {}
    if not data.get('name'):
        return jsonify({'error': 'Missing name'}), 400
    data.setdefault('id', '')
    try:
        user = Player.from_dict(data)
    except (KeyError, TypeError) as e:
        return jsonify({'error': f'Invalid user: {e}'}), 400
    user = store.add_user(user)
    return jsonify({'success': True, 'user': user.to_dict()}), 201


@app.route('/api/users/<user_id>', methods=['PUT', 'DELETE'])
def api_user(user_id):
    store = get_store()
    if request.method == 'PUT':
        existing = store.get_user(user_id)
        if existing is None:
            abort(404, description=f'Unknown user: {user_id}')
        changes = request.get_json(silent=True) or {}
        if existing.team_id:
            current = existing.to_dict()
            locked = [k for k in TEAM_LOCKED_FIELDS if k in changes and changes[k] != current.get(k)]
            if locked:
                return jsonify({'error': f'Cannot change {", ".join(locked)} of a player already on a team'}), 409
        data = {**existing.to_dict(), **changes, 'id': user_id}
        user = Player.from_dict(data)
        store.update_user(user)
        return jsonify({'success': True, 'user': user.to_dict()})

    try:
        deleted = store.delete_user(user_id)
    except storage.UserInUseError as e:
        return jsonify({'error': str(e)}), 409
    if not deleted:
        abort(404, description=f'Unknown user: {user_id}')
    return jsonify({'success': True})


@app.route('/api/teams')
def api_teams():
    return jsonify({'teams': [t.to_dict() for t in get_store().load_teams()]})


@app.route('/api/matches')
def api_matches():
    """Match list, optionally filtered by discipline, phase, player and open (unplayed) status."""
    _, teams, matches = get_store().load_snapshot()
    discipline_id = request.args.get('discipline')
    phase = request.args.get('phase')
    player_id = request.args.get('player')
    open_only = request.args.get('open') in ('1', 'true')

    if phase and phase not in PHASES:
        return jsonify({'error': f'Unknown phase: {phase}'}), 400

    teams_by_id = {t.id: t for t in teams}
    filtered = [
        m for m in matches
        if (not discipline_id or m.discipline_id == discipline_id)
        and (not phase or m.phase == phase)
        and (not player_id or involves_player(m, player_id, teams_by_id))
        and (not open_only or not m.is_completed)
    ]
    return jsonify({'matches': [m.to_dict() for m in filtered]})


@app.route('/api/matches/<match_id>/score', methods=['POST', 'DELETE'])
def api_match_score(match_id):
    """Record (POST) or clear (DELETE) a match score, then advance bracket winners."""
    store = get_store()
    matches = store.load_matches()
    match = next((m for m in matches if m.id == match_id), None)
    if match is None:
        abort(404, description=f'Unknown match: {match_id}')

    try:
        if request.method == 'DELETE':
            clear_score(match, matches)
        else:
            data = request.get_json(silent=True) or {}
            if not isinstance(data, dict):
                data = {}
            record_score(match, data.get('score1'), data.get('score2'), matches)
    except ScoreError as e:
        return jsonify({'error': str(e)}), 400

    store.update_match(match)
    changed = _propagate(store, store.load_matches())

    return jsonify({
        'success': True,
        'match': match.to_dict(),
        'advanced': [m.to_dict() for m in changed],
    })


@app.route('/api/standings/<discipline_id>')
def api_standings(discipline_id):
    if discipline_id != OVERALL:
        _discipline_or_404(discipline_id)
    users, teams, matches = get_store().load_snapshot()
    rows = compute_standings(matches, users, teams, discipline_id)
    return jsonify({
        'discipline_id': discipline_id,
        'standings': [row.to_dict() for row in rows],
    })


@app.route('/api/progress')
def api_progress():
    """Completed versus total matches, overall and per discipline."""
    matches = get_store().load_matches()
    disciplines = []
    for discipline in DISCIPLINES:
        own = [m for m in matches if m.discipline_id == discipline.id]
        disciplines.append({
            'discipline_id': discipline.id,
            'completed': sum(1 for m in own if m.is_completed),
            'total': len(own),
        })
    return jsonify({
        'completed': sum(1 for m in matches if m.is_completed),
        'total': len(matches),
        'disciplines': disciplines,
    })


@app.route('/api/bracket/<discipline_id>', methods=['GET', 'POST'])
def api_bracket(discipline_id):
    _discipline_or_404(discipline_id)
    store = get_store()
    users, teams, matches = store.load_snapshot()

    if request.method == 'POST':
        standings = compute_standings(matches, users, teams, discipline_id)
        result = generate_bracket(discipline_id, standings, matches)
        if not result.ok:
            app.logger.info(f'Bracket for {discipline_id} refused: {result.reason}')
            return jsonify({'error': result.reason}), 409
        store.add_matches(result.matches)
        matches = matches + result.matches

    display = get_bracket_display(matches, discipline_id)
    display['rounds'] = [
        {**r, 'match': r['match'].to_dict() if r['match'] else None} for r in display['rounds']
    ]
    return jsonify(display)


@app.route('/api/live')
def api_live():
    """Projected running order of unplayed matches, one field per discipline."""
    store = get_store()
    _, teams, matches = store.load_snapshot()
    scheduler = LiveScheduler(teams, DISCIPLINES, store.load_settings())
    running = scheduler.allocate(matches)
    return jsonify({
        'fields': scheduler.get_schedule_output(),
        'running_order': [item.to_dict() for item in running],
        'unscheduled': [m.id for m in scheduler.unscheduled],
    })


if __name__ == '__main__':
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1', port=5000)
