"""HTTP front end for a ``SimulationService``."""

import logging

from flask import Flask, jsonify, request

from ambsim.simulator.errors import SimulatorError
from ambsim.simulator.service import SimulationService
from ambsim.utils.config import ConfigError

logger = logging.getLogger(__name__)


def create_app(service: SimulationService) -> Flask:
    app = Flask(__name__)

    def _config_body():
        if not request.get_data().strip():
            return {}
        body = request.get_json(force=True, silent=True)
        if body is None:
            raise ConfigError("Request body is not valid JSON")
        if not isinstance(body, dict):
            raise ConfigError("Request body must be a JSON object")
        return body

    @app.errorhandler(ConfigError)
    def handle_config_error(exc):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(SimulatorError)
    def handle_simulator_error(exc):
        logger.error("Simulation request failed: %s", exc)
        return jsonify({"error": str(exc)}), 409

    @app.route("/api/start", methods=["POST"])
    def start_simulation():
        config = _config_body()
        logger.info("Start requested with %s", config)
        service.init(config)
        service.start()
        return jsonify({"message": "Simulation started"})

    @app.route("/api/stop", methods=["POST"])
    def stop_simulation():
        service.stop()
        return jsonify({"message": "Simulation stopped"})

    @app.route("/api/restart", methods=["POST"])
    def restart_simulation():
        service.restart(_config_body())
        return jsonify({"message": "Simulation restarted"})

    @app.route("/api/status", methods=["GET"])
    def get_status():
        return jsonify(service.status())

    @app.route("/api/summary", methods=["GET"])
    def get_summary():
        return jsonify(service.summary())

    return app
