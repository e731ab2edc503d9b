"""Shared fixtures for the monitoring service tests."""

from typing import List

import pytest

from config.settings import PiThermConfig
from core.errors import SensorReadError
from core.models import Reading, TemperatureRange
from database.manager import TimeSeriesStore


class FakeSensor:
    """Sensor returning queued readings, raising SensorReadError when empty."""

    def __init__(self, readings=None):
        self.readings: List[Reading] = list(readings or [])

    def read(self) -> Reading:
        if not self.readings:
            raise SensorReadError("sensor unplugged")
        return self.readings.pop(0)

    def start(self):
        pass

    def stop(self):
        pass


class FakeNotifier:
    """Records every notification handed to it."""

    def __init__(self):
        self.sent = []

    def send(self, subject, body, recipients):
        self.sent.append((subject, body, tuple(recipients)))

    def start_worker(self):
        pass

    def stop_worker(self):
        pass


@pytest.fixture
def env(tmp_path):
    return {
        "SENSOR_ID": "28-000004e23a4b",
        "RANGE_MIN": "18",
        "RANGE_MAX": "28",
        "NOTIFICATION_THROTTLE": "60",
        "LOG_INTERVAL": "1000",
        "DB_PATH": str(tmp_path / "temps.db"),
        "TELEGRAM_TOKEN": "123:abc",
        "NOTIFICATION_RECIPIENTS": "111,222",
    }


@pytest.fixture
def config(env) -> PiThermConfig:
    return PiThermConfig(env)


@pytest.fixture
def store(tmp_path) -> TimeSeriesStore:
    return TimeSeriesStore(str(tmp_path / "store.db"), timeout=1.0)


@pytest.fixture
def temp_range() -> TemperatureRange:
    return TemperatureRange(18.0, 28.0)


@pytest.fixture
def fake_sensor() -> FakeSensor:
    return FakeSensor()


@pytest.fixture
def fake_notifier() -> FakeNotifier:
    return FakeNotifier()
