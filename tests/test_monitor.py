from unittest.mock import MagicMock

import pytest

from core.errors import StorageError
from core.models import NotificationKind, Reading
from core.monitor import TemperatureMonitor
from tests.conftest import FakeSensor

HOUR = 60 * 60 * 1000


class Clock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock(1_000_000)


@pytest.fixture
def monitor(config, store, fake_sensor, fake_notifier, clock):
    return TemperatureMonitor(config, store=store, sensor=fake_sensor, notifier=fake_notifier, clock=clock)


def test_in_range_reading_on_empty_store_is_silent(monitor, store, fake_notifier):
    assert monitor.process_reading(Reading(1, 25.0)) is None
    assert store.query_range(0) == [Reading(1, 25.0)]
    assert fake_notifier.sent == []
    assert monitor.throttle.state.is_idle


def test_first_out_of_range_reading_notifies_recipients(monitor, fake_notifier):
    notification = monitor.process_reading(Reading(1, 30.0))

    assert notification.kind is NotificationKind.FIRST_FAILURE
    assert not monitor.throttle.state.is_idle
    subject, body, recipients = fake_notifier.sent[0]
    assert subject == "Temperature has gone out of desired range"
    assert recipients == ("111", "222")


def test_full_failure_and_recovery_cycle(monitor, fake_notifier, clock):
    monitor.process_reading(Reading(1, 22.0))
    monitor.process_reading(Reading(2, 30.0))
    clock.now += 1000
    monitor.process_reading(Reading(3, 31.0))
    clock.now += HOUR
    still = monitor.process_reading(Reading(4, 32.0))
    recovered = monitor.process_reading(Reading(5, 24.0))
    monitor.process_reading(Reading(6, 24.5))

    assert [s[0] for s in fake_notifier.sent] == [
        "Temperature has gone out of desired range",
        "Temperature is still out of desired range",
        "Temperature is back within desired range",
    ]
    assert "Last 3 temperature readings" in still.body
    assert recovered.body == "Current temperature is 24.0 C"


def test_sensor_failure_is_no_event(monitor, store, fake_notifier):
    assert monitor.sample_once() is None
    assert store.query_range(0) == []
    assert fake_notifier.sent == []


def test_sample_once_processes_sensor_reading(config, store, fake_notifier, clock):
    sensor = FakeSensor([Reading(1, 40.0)])
    monitor = TemperatureMonitor(config, store=store, sensor=sensor, notifier=fake_notifier, clock=clock)

    assert monitor.sample_once().kind is NotificationKind.FIRST_FAILURE


def test_storage_error_on_append_propagates_without_evaluation(config, fake_sensor, fake_notifier):
    store = MagicMock()
    store.append.side_effect = StorageError("disk full")
    monitor = TemperatureMonitor(config, store=store, sensor=fake_sensor, notifier=fake_notifier)

    with pytest.raises(StorageError):
        monitor.process_reading(Reading(1, 30.0))
    assert fake_notifier.sent == []
    assert monitor.throttle.state.is_idle


def test_notifications_skipped_without_credentials(env, store, fake_sensor, fake_notifier):
    from config.settings import PiThermConfig

    env.pop("TELEGRAM_TOKEN")
    monitor = TemperatureMonitor(PiThermConfig(env), store=store, sensor=fake_sensor, notifier=fake_notifier)

    notification = monitor.process_reading(Reading(1, 30.0))

    assert notification.kind is NotificationKind.FIRST_FAILURE
    assert fake_notifier.sent == []
    assert not monitor.throttle.state.is_idle


def test_notifier_failure_does_not_revert_state(monitor):
    monitor.notifier = MagicMock()
    monitor.notifier.send.side_effect = RuntimeError("queue closed")

    notification = monitor.process_reading(Reading(1, 30.0))

    assert notification.kind is NotificationKind.FIRST_FAILURE
    assert not monitor.throttle.state.is_idle


def test_cooldown_comes_from_config(monitor, config):
    assert monitor.throttle.cooldown_ms == config.notification_cooldown_ms == HOUR
