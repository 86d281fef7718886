"""
HTTP Routes - JSON API over stored simulations plus server-side runs.
"""

from flask import Blueprint, current_app, jsonify, request

import config
from app.db import dao
from app.engine.spin_generator import SpinGenerator, distribution_report, validate_spin_count
from app.engine.streaks import analyze_streak_patterns
from app.session.simulation_runner import run_simulation, build_simulation_payload

main_bp = Blueprint('main', __name__)


def _db():
    return current_app.extensions['db']


@main_bp.route('/')
def index():
    return jsonify({'service': config.SERVICE_NAME, 'status': 'ok'})


@main_bp.route('/api/health')
def health():
    return jsonify({
        'status': 'ok',
        'env': current_app.config['APP_ENV'],
        'dbReady': current_app.config['DB_READY'],
    })


@main_bp.route('/api/users/<uid>')
def get_user(uid):
    user = dao.get_user(_db(), uid)
    if not user:
        return jsonify({'error': 'User not found'}), 404
    return jsonify(user)


# ─── Simulations ─────────────────────────────────────────────────────

@main_bp.route('/api/simulations', methods=['GET'])
def list_simulations():
    return jsonify(dao.list_simulations(_db(), request.args.get('userId')))


@main_bp.route('/api/simulations', methods=['POST'])
def create_simulation():
    body = request.get_json() or {}
    simulation_id = dao.save_simulation(_db(), body)
    return jsonify({'ok': True, 'id': simulation_id}), 201


@main_bp.route('/api/simulations/<int:simulation_id>')
def get_simulation(simulation_id):
    data = dao.get_simulation_with_spins(_db(), simulation_id)
    if data is None:
        return jsonify({'error': 'Not found'}), 404
    return jsonify(data)


@main_bp.route('/api/simulations/<int:simulation_id>/spins')
def list_spins(simulation_id):
    limit = request.args.get('limit', type=int)
    offset = request.args.get('offset', type=int)
    return jsonify(dao.list_spins(_db(), simulation_id, limit, offset))


@main_bp.route('/api/simulations/<int:simulation_id>/spins/stats')
def spins_stats(simulation_id):
    return jsonify(dao.get_spins_stats(_db(), simulation_id))


@main_bp.route('/api/simulations/run', methods=['POST'])
def run_and_maybe_save():
    """Run a strategy on freshly generated spins; `save: true` persists it."""
    body = request.get_json() or {}
    if not isinstance(body, dict):
        return jsonify({'error': 'Request body must be a JSON object'}), 400
    try:
        summary, results, settings = run_simulation(
            body.get('strategy', 'standard_martingale'),
            spins=body.get('spins', config.DEFAULT_SPIN_COUNT),
            seed=body.get('seed'),
            starting_investment=body.get('startingInvestment', config.DEFAULT_STARTING_INVESTMENT),
            strategy_settings=body.get('strategySettings'),
            streak_settings=body.get('streakSettings'),
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    response = {'summary': summary, 'settings': settings, 'results': results}
    if body.get('save'):
        payload = build_simulation_payload(summary, results, settings, body.get('userId'))
        response['id'] = dao.save_simulation(_db(), payload)
        return jsonify(response), 201
    return jsonify(response)


# ─── Spin generation ─────────────────────────────────────────────────

@main_bp.route('/api/spins/generate')
def generate():
    seed = request.args.get('seed', type=int)
    streaks = request.args.get('streaks', 'true').lower() != 'false'
    try:
        count = validate_spin_count(request.args.get('count', config.DEFAULT_SPIN_COUNT))
        generator = SpinGenerator(seed=seed, config={'realistic_streaks_enabled': streaks})
        spins = generator.take(count)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({
        'seed': generator.seed,
        'spins': spins,
        'streaks': analyze_streak_patterns(spins),
        'distribution': distribution_report(spins),
    })
