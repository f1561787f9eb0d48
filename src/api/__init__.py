"""
StakePool API Package.

Flask application factory and blueprints.

Blueprints:
- staking: stake, unstake, claim, account/referral/pool views, events
- admin: interest rate, claim cooldown, max stake, emergency withdrawal
- monitoring: health checks and metrics
"""

import logging
import os

from flask import Flask, jsonify

from api.admin import admin_bp
from api.monitoring import monitoring_bp
from api.staking import staking_bp
from api.state import build_state_from_env, init_state
from monitoring import setup_request_logging
from staking import StakingEngine, StakingError
from storage import MemoryStorage, StorageBackend, StorageError

logger = logging.getLogger(__name__)

# Tuple format: (blueprint, url_prefix)
ALL_BLUEPRINTS = [
    (staking_bp, ""),
    (admin_bp, None),       # Blueprint carries its own /admin prefix
    (monitoring_bp, ""),
]


def register_blueprints(app: Flask) -> None:
    """Register all blueprints with the Flask app."""
    for blueprint, url_prefix in ALL_BLUEPRINTS:
        if url_prefix is None:
            app.register_blueprint(blueprint)
        else:
            app.register_blueprint(blueprint, url_prefix=url_prefix)


def register_error_handlers(app: Flask) -> None:
    """Map staking and storage failures to JSON responses."""

    @app.errorhandler(StakingError)
    def handle_staking_error(error: StakingError):
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(StorageError)
    def handle_storage_error(error: StorageError):
        return jsonify({"error": "storage_error", "message": str(error)}), 500

    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(_error):
        return jsonify({"error": "Internal server error"}), 500


def create_app(
    engine: StakingEngine | None = None,
    storage: StorageBackend | None = None,
) -> Flask:
    """
    Create the Flask application.

    Args:
        engine: Staking engine to serve (built from the environment if omitted)
        storage: Snapshot storage (memory storage when an engine is supplied
            without one, environment-selected otherwise)
    """
    if engine is None:
        engine, env_storage = build_state_from_env()
        storage = storage or env_storage
    elif storage is None:
        storage = MemoryStorage()

    init_state(engine, storage)

    app = Flask(__name__)
    app.json.sort_keys = False

    register_blueprints(app)
    register_error_handlers(app)
    setup_request_logging(app)
    return app


def run_server() -> None:
    """Run the Flask development server."""
    from dotenv import load_dotenv

    load_dotenv()

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "").lower() == "true"

    app = create_app()
    logger.info("Starting StakePool API server", extra={"host": host, "port": port})
    app.run(host=host, port=port, debug=debug)
