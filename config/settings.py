import logging
import math
import os
from dotenv import load_dotenv

from core.errors import ConfigurationError
from core.models import TemperatureRange

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
)
logger = logging.getLogger(__name__)

SENSOR_SOURCES = ("w1", "mqtt")


class PiThermConfig:
    """Application settings read once from the environment at startup"""

    def __init__(self, environ=None):
        env = os.environ if environ is None else environ
        self._errors = []

        # Sensor
        self.SENSOR_ID = env.get("SENSOR_ID")
        self.SENSOR_SOURCE = env.get("SENSOR_SOURCE", "w1").lower()
        self.W1_DEVICES_DIR = env.get("W1_DEVICES_DIR", "/sys/bus/w1/devices")
        self.LOG_INTERVAL = self._int(env, "LOG_INTERVAL", 300000)

        # MQTT sensor source
        self.MQTT_BROKER = env.get("MQTT_BROKER")
        self.MQTT_PORT = self._int(env, "MQTT_PORT", 1883)
        self.MQTT_TOPIC = env.get("MQTT_TOPIC")

        # Alerting
        self.RANGE_MIN = self._float(env, "RANGE_MIN")
        self.RANGE_MAX = self._float(env, "RANGE_MAX")
        self.NOTIFICATION_THROTTLE = self._float(env, "NOTIFICATION_THROTTLE", 60.0)

        # Telegram notifier
        self.TELEGRAM_TOKEN = env.get("TELEGRAM_TOKEN")
        self.NOTIFICATION_RECIPIENTS = self._recipients(env.get("NOTIFICATION_RECIPIENTS", ""))

        # Storage
        self.DB_PATH = env.get("DB_PATH", "piTemps.db")
        self.STORE_TIMEOUT = self._float(env, "STORE_TIMEOUT", 30.0)

        # HTTP
        self.HTTP_HOST = env.get("HTTP_HOST", "0.0.0.0")
        self.HTTP_PORT = self._int(env, "HTTP_PORT", 8080)
        self.QUERY_DEFAULT_NUM_OBS = self._int(env, "QUERY_DEFAULT_NUM_OBS", 20)

        self.validate()

    def _int(self, env, name, default=None):
        raw = env.get(name)
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except ValueError:
            self._errors.append(f"{name} must be an integer, got {raw!r}")
            return default

    def _float(self, env, name, default=None):
        raw = env.get(name)
        if raw is None or raw == "":
            return default
        try:
            value = float(raw)
        except ValueError:
            self._errors.append(f"{name} must be a number, got {raw!r}")
            return default
        if not math.isfinite(value):
            self._errors.append(f"{name} must be a finite number, got {raw!r}")
            return default
        return value

    @staticmethod
    def _recipients(raw):
        recipients = []
        for item in raw.split(","):
            item = item.strip()
            if item and item not in recipients:
                recipients.append(item)
        return tuple(recipients)

    def validate(self):
        """Validate required settings, raising ConfigurationError listing every problem"""
        errors = list(self._errors)

        if not self.SENSOR_ID:
            errors.append("SENSOR_ID must be defined")
        if self.SENSOR_SOURCE not in SENSOR_SOURCES:
            errors.append(f"SENSOR_SOURCE must be one of {', '.join(SENSOR_SOURCES)}")
        if self.SENSOR_SOURCE == "mqtt" and not (self.MQTT_BROKER and self.MQTT_TOPIC):
            errors.append("MQTT_BROKER and MQTT_TOPIC must be defined for the mqtt sensor source")

        if self.RANGE_MIN is None or self.RANGE_MAX is None:
            errors.append("RANGE_MIN and RANGE_MAX must be defined")
        elif self.RANGE_MIN > self.RANGE_MAX:
            errors.append(f"RANGE_MIN ({self.RANGE_MIN}) must not exceed RANGE_MAX ({self.RANGE_MAX})")

        if self.NOTIFICATION_THROTTLE is not None and self.NOTIFICATION_THROTTLE < 0:
            errors.append("NOTIFICATION_THROTTLE must not be negative")
        elif self.NOTIFICATION_THROTTLE is not None and not math.isfinite(self.NOTIFICATION_THROTTLE * 60 * 1000):
            errors.append("NOTIFICATION_THROTTLE is too large")
        if self.LOG_INTERVAL is not None and self.LOG_INTERVAL <= 0:
            errors.append("LOG_INTERVAL must be positive")
        if self.STORE_TIMEOUT is not None and self.STORE_TIMEOUT <= 0:
            errors.append("STORE_TIMEOUT must be positive")

        if errors:
            raise ConfigurationError("Invalid configuration: " + "; ".join(errors))

        if not (self.TELEGRAM_TOKEN and self.NOTIFICATION_RECIPIENTS):
            logger.warning("TELEGRAM_TOKEN or NOTIFICATION_RECIPIENTS not set, notifications disabled")

        logger.info(f"Config loaded - Sensor: {self.SENSOR_ID} ({self.SENSOR_SOURCE}), "
                    f"range: [{self.RANGE_MIN}, {self.RANGE_MAX}]")

    @property
    def temperature_range(self):
        return TemperatureRange(self.RANGE_MIN, self.RANGE_MAX)

    @property
    def notification_cooldown_ms(self):
        return int(self.NOTIFICATION_THROTTLE * 60 * 1000)

    @property
    def log_interval_seconds(self):
        return self.LOG_INTERVAL / 1000.0

    @property
    def notifications_enabled(self):
        return bool(self.TELEGRAM_TOKEN and self.NOTIFICATION_RECIPIENTS)
