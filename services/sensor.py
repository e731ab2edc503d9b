import logging
import math
import os

from core.errors import SensorReadError
from core.models import Reading, now_millis

logger = logging.getLogger(__name__)


def parse_w1_slave(text):
    """Extract celsius from DS18B20 ``w1_slave`` output.

    The last whitespace separated token carries ``t=<milli-celsius>``; the
    result is rounded to one decimal place.
    """
    tokens = text.split()
    if not tokens or not tokens[-1].startswith("t="):
        raise SensorReadError(f"No temperature field in sensor output: {text!r}")
    try:
        milli = float(tokens[-1][2:])
    except ValueError as e:
        raise SensorReadError(f"Invalid temperature field {tokens[-1]!r}") from e
    if not math.isfinite(milli):
        raise SensorReadError(f"Non-finite temperature field {tokens[-1]!r}")
    return round(milli / 1000.0, 1)


class W1SensorReader:
    """Reads a 1-Wire temperature sensor through sysfs"""

    def __init__(self, sensor_id, devices_dir="/sys/bus/w1/devices", clock=now_millis):
        self.sensor_id = sensor_id
        self.path = os.path.join(devices_dir, sensor_id, "w1_slave")
        self.clock = clock

    def read(self) -> Reading:
        try:
            with open(self.path, "r", encoding="ascii") as f:
                text = f.read()
        except OSError as e:
            raise SensorReadError(f"Cannot read sensor {self.sensor_id}: {e}") from e
        return Reading(timestamp=self.clock(), value=parse_w1_slave(text))

    def start(self):
        """Nothing to connect; sysfs is read on demand"""

    def stop(self):
        """Nothing to release"""


def create_sensor_reader(config):
    """Build the reader selected by SENSOR_SOURCE"""
    if config.SENSOR_SOURCE == "mqtt":
        from .mqtt_service import MQTTSensorReader
        return MQTTSensorReader(config)
    return W1SensorReader(config.SENSOR_ID, config.W1_DEVICES_DIR)
