"""
Flask API server for the Sargassum Drift Visualization Engine.

This module provides a REST API over one shared session:
- GET /api/v1/health -> service status
- GET /api/v1/predictions -> trajectories and concentration samples
- GET /api/v1/statistics -> derived risk statistics
- GET /api/v1/frame?step=N&site=S&seed=K -> one animation frame as GeoJSON
- GET /api/v1/sites -> monitored coastal sites
- POST /api/v1/reload -> drop the cached prediction and load it again
"""

import logging
import threading
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from . import __version__, config
from .coastal_sites import FILTER_ZONES
from .main import SessionManager

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

_session: Optional[SessionManager] = None
_session_lock = threading.Lock()


def get_session() -> SessionManager:
    """Get the shared session, loading it on first use."""
    global _session
    if _session is None:
        _session = SessionManager()
        _session.load()
    return _session


def reset_session(session: Optional[SessionManager] = None) -> None:
    """
    Replace the shared session.

    The previous session is torn down. With no argument the next request
    creates and loads a fresh default session.
    """
    global _session
    with _session_lock:
        if _session is not None:
            _session.close()
        _session = session


def _int_arg(name: str) -> Optional[int]:
    value = request.args.get(name)
    if value is None or value == '':
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Query parameter '{name}' must be an integer, got {value!r}")


@app.route('/api/v1/health', methods=['GET'])
def health_check():
    """Simple health check endpoint."""
    session = _session
    return jsonify({
        'status': 'ok',
        'version': __version__,
        'session': session.session_state if session is not None else None,
        'total_steps': session.controller.total_steps if session is not None else 0
    })


@app.route('/api/v1/predictions', methods=['GET'])
def get_predictions():
    """Get the loaded trajectories and concentration samples."""
    with _session_lock:
        session = get_session()
        results = session.results()
    results.pop('frame', None)
    return jsonify(results)


@app.route('/api/v1/statistics', methods=['GET'])
def get_statistics():
    """Get the derived risk statistics."""
    with _session_lock:
        session = get_session()
        return jsonify(session.statistics.to_dict())


@app.route('/api/v1/frame', methods=['GET'])
def get_frame():
    """Render one animation step as a GeoJSON feature collection."""
    try:
        step = _int_arg('step')
        seed = _int_arg('seed')
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    site = request.args.get('site')

    with _session_lock:
        session = get_session()
        if session.controller.total_steps == 0:
            return jsonify({'error': 'No prediction loaded'}), 404
        frame = session.render_frame(step=step, site=site, seed=seed)
    return jsonify(frame)


@app.route('/api/v1/sites', methods=['GET'])
def get_sites():
    """List the monitored coastal sites, optionally for one region."""
    region = request.args.get('region')
    with _session_lock:
        registry = get_session().registry
        sites = registry.by_region(region) if region else list(registry)

    return jsonify({
        'count': len(sites),
        'sites': [site.to_dict() for site in sites],
        'filter_zones': sorted(FILTER_ZONES)
    })


@app.route('/api/v1/reload', methods=['POST'])
def reload_predictions():
    """Drop the cached prediction and load it again."""
    with _session_lock:
        session = get_session()
        session.reload()
        state = dict(session.session_state)
        total_steps = session.controller.total_steps

    logger.info(f"Prediction reloaded: {total_steps} steps")
    return jsonify({'session': state, 'total_steps': total_steps})


# Error handling
@app.errorhandler(400)
def bad_request(error):
    return jsonify({
        'error': 'Bad request',
        'message': str(error)
    }), 400


@app.errorhandler(404)
def not_found(error):
    return jsonify({
        'error': 'Not found',
        'message': 'The requested resource was not found'
    }), 404


@app.errorhandler(500)
def internal_server_error(error):
    return jsonify({
        'error': 'Internal server error',
        'message': str(error)
    }), 500


@app.errorhandler(Exception)
def handle_exception(e):
    if isinstance(e, HTTPException):
        return e

    logger.exception(f"Unhandled exception: {e}")
    return jsonify({
        'error': 'Internal server error',
        'message': 'An unexpected error occurred'
    }), 500


def run_server(host=None, port=None, debug=None):
    """
    Run the Flask server.

    Args:
        host: Host to bind to (default from config)
        port: Port to bind to (default from config)
        debug: Whether to run in debug mode (default from config)
    """
    if host is None:
        host = config.FLASK_CONFIG['host']

    if port is None:
        port = config.FLASK_CONFIG['port']

    if debug is None:
        debug = config.FLASK_CONFIG['debug']

    logging.basicConfig(level=logging.INFO)
    app.run(host=host, port=port, debug=debug, threaded=config.FLASK_CONFIG.get('threaded', True))


if __name__ == '__main__':
    run_server()
