"""
SocketIO Event Handlers - stream a simulation run to the dashboard spin by
spin, and persist the finished run on request.
"""

import logging

from flask import current_app, request
from flask_socketio import emit

import config
from app import socketio
from app.db import dao
from app.session.simulation_runner import run_simulation, build_simulation_payload

logger = logging.getLogger(__name__)

# Last finished run per connected client, keyed by session id
last_runs = {}


@socketio.on('connect')
def handle_connect():
    emit('connected', {
        'service': config.SERVICE_NAME,
        'strategies': list(config.STRATEGY_TYPES),
    })


@socketio.on('disconnect')
def handle_disconnect(*_args):
    last_runs.pop(request.sid, None)


@socketio.on('run_simulation')
def handle_run_simulation(data):
    data = data or {}
    try:
        summary, results, settings = run_simulation(
            data.get('strategy', 'standard_martingale'),
            spins=data.get('spins', config.DEFAULT_SPIN_COUNT),
            seed=data.get('seed'),
            starting_investment=data.get('startingInvestment', config.DEFAULT_STARTING_INVESTMENT),
            strategy_settings=data.get('strategySettings'),
            streak_settings=data.get('streakSettings'),
        )
    except ValueError as e:
        emit('error', {'message': str(e)})
        return
    except Exception as e:
        logger.exception("Simulation run failed")
        emit('error', {'message': str(e) or e.__class__.__name__})
        return

    for result in results:
        emit('spin_result', result)

    last_runs[request.sid] = (summary, results, settings)
    logger.info(f"[Run] {summary['strategy']}: {summary['totalSpins']} spins, "
                f"final portfolio {summary['finalPortfolio']}")
    emit('simulation_complete', {'summary': summary, 'settings': settings})


@socketio.on('save_simulation')
def handle_save_simulation(data=None):
    run = last_runs.get(request.sid)
    if run is None:
        emit('error', {'message': 'No finished simulation to save'})
        return

    summary, results, settings = run
    payload = build_simulation_payload(summary, results, settings, (data or {}).get('userId'))
    try:
        simulation_id = dao.save_simulation(current_app.extensions['db'], payload)
    except Exception as e:
        logger.exception("Saving simulation failed")
        emit('error', {'message': str(e)})
        return

    emit('simulation_saved', {'id': simulation_id})
