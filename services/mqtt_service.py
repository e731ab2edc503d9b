import json
import logging
import math
import threading
import paho.mqtt.client as mqtt
from typing import Any, Dict, Optional

from core.errors import SensorReadError
from core.models import Reading, now_millis

logger = logging.getLogger(__name__)


class MQTTSensorReader:
    """Sensor reader fed by an MQTT topic.

    The latest published temperature is cached; each ``read()`` stamps it
    with the sampling time. Payloads are either a bare number or a JSON
    object with a ``temperature`` field.
    """

    def __init__(self, config, clock=now_millis):
        self.config = config
        self.clock = clock
        self.topic = config.MQTT_TOPIC
        self.client = None
        self.is_connected = False
        self._latest = None
        self._lock = threading.Lock()

    def start(self):
        """Connect in the background; paho reconnects with backoff on its own"""
        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect
        self.client.reconnect_delay_set(min_delay=5, max_delay=300)

        logger.info(f"Connecting to MQTT broker: {self.config.MQTT_BROKER}:{self.config.MQTT_PORT}")
        self.client.connect_async(self.config.MQTT_BROKER, self.config.MQTT_PORT, 60)
        self.client.loop_start()

    def stop(self):
        if self.client:
            self.client.loop_stop()
            self.client.disconnect()

    def read(self) -> Reading:
        with self._lock:
            value = self._latest
        if value is None:
            raise SensorReadError(f"No temperature received yet on {self.topic}")
        return Reading(timestamp=self.clock(), value=value)

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.error(f"Failed to connect to MQTT broker: {reason_code}")
            return
        self.is_connected = True
        client.subscribe(self.topic)
        logger.info(f"Connected to MQTT broker, subscribed to topic: {self.topic}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        self.is_connected = False
        logger.warning(f"Disconnected from MQTT broker: {reason_code}")

    def _on_message(self, client, userdata, msg):
        try:
            raw_payload = msg.payload.decode('utf-8')
        except UnicodeDecodeError:
            logger.warning(f"Non UTF-8 payload on {msg.topic}")
            return

        logger.debug(f"Received MQTT message - Topic: {msg.topic}, Payload: {raw_payload}")
        value = self.parse_payload(raw_payload)
        if value is None:
            logger.warning(f"Failed to parse payload from topic {msg.topic}: {raw_payload}")
            return
        with self._lock:
            self._latest = value

    @staticmethod
    def parse_payload(payload: str) -> Optional[float]:
        """Parse a numeric or JSON ``{"temperature": ...}`` payload"""
        payload = payload.strip()
        if payload.startswith('{') and payload.endswith('}'):
            try:
                data: Dict[str, Any] = json.loads(payload)
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON format: {e}")
                return None
            payload = data.get("temperature")
            if payload is None:
                return None
        try:
            value = float(payload)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(value):
            return None
        return value
