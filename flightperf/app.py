"""
FlightPerf Flask Application.

Main entry point for the web application. Initializes:
- Database engine and schema
- Record store handed to the analytics layer
- API routes
- JSON error handlers

Usage:
    python -m flightperf.app

Or with gunicorn:
    gunicorn "flightperf.app:create_app()"
"""

import logging
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from flightperf.config import config
from flightperf.errors import StoreUnavailable, UnknownDelayType, UnknownFilterKey
from flightperf.models import create_db_engine, init_db
from flightperf.api import reports_bp, analytics_bp
from flightperf.store import RecordStore, SqlRecordStore

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(store: Optional[RecordStore] = None) -> Flask:
    """
    Application factory for Flask.

    Args:
        store: Record store to serve. When omitted, a SqlRecordStore over
               the configured database is created (and its schema with it).
               Pass a MemoryRecordStore for testing.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    if store is None:
        logger.info('Initializing database...')
        engine = create_db_engine()
        init_db(engine)
        store = SqlRecordStore(engine, query_timeout_seconds=config.database.query_timeout_seconds)

    app.config['RECORD_STORE'] = store

    # Register API blueprints
    app.register_blueprint(reports_bp)
    app.register_blueprint(analytics_bp)

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(StoreUnavailable)
    def store_unavailable(e):
        logger.error(f'Store unavailable: {e}')
        return {'error': str(e)}, 503

    @app.errorhandler(UnknownDelayType)
    @app.errorhandler(UnknownFilterKey)
    def bad_request(e):
        return {'error': str(e)}, 400

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    port = int(os.environ.get('PORT', 5000))

    logger.info(f'Starting FlightPerf on http://localhost:{port}')

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug,
    )


if __name__ == '__main__':
    run_development_server()
