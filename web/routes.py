from flask import request, jsonify, Response
import logging

from core.errors import SensorReadError, StorageError

logger = logging.getLogger(__name__)

# Largest value SQLite can bind as LIMIT
SQLITE_MAX_INTEGER = 2 ** 63 - 1


class WebRoutes:
    """JSON read surface over the live sensor and stored history"""

    def __init__(self, config, query_service, sensor):
        self.config = config
        self.query_service = query_service
        self.sensor = sensor

    def register_routes(self, app):
        """Register all routes on the Flask app"""

        @app.route("/temperature_now.json")
        def temperature_now():
            reading = self.sensor.read()
            return jsonify({"temperature_record": [reading.to_record()]})

        @app.route("/temperature_query.json")
        def temperature_query():
            raw_num_obs = request.args.get("num_obs")
            if raw_num_obs:
                try:
                    num_obs = int(raw_num_obs)
                except ValueError:
                    return jsonify({"error": f"num_obs must be an integer, got {raw_num_obs!r}"}), 400
                if num_obs > SQLITE_MAX_INTEGER:
                    num_obs = -1
            else:
                num_obs = self.config.QUERY_DEFAULT_NUM_OBS
            start_date = request.args.get("start_date") or None

            logger.info(f"Database query request from {request.remote_addr} for {num_obs} records "
                        f"from {start_date or 'epoch'}.")
            readings = self.query_service.query_temperatures(num_obs, start_date)
            return jsonify({"temperature_record": [[r.to_record() for r in readings]]})

        @app.route("/favicon.ico")
        def favicon():
            return Response(b"", mimetype="image/x-icon")

        @app.errorhandler(StorageError)
        def storage_error(e):
            logger.error(f"Error querying database: {e}")
            return jsonify({"error": str(e)}), 500

        @app.errorhandler(SensorReadError)
        def sensor_error(e):
            logger.error(f"Error reading sensor: {e}")
            return jsonify({"error": str(e)}), 503
