from types import SimpleNamespace

import pytest

from core.errors import SensorReadError
from services.mqtt_service import MQTTSensorReader
from services.sensor import W1SensorReader, create_sensor_reader, parse_w1_slave

W1_OUTPUT = (
    "72 01 4b 46 7f ff 0e 10 57 : crc=57 YES\n"
    "72 01 4b 46 7f ff 0e 10 57 t=23125\n"
)


def test_parse_w1_slave_rounds_to_one_decimal():
    assert parse_w1_slave(W1_OUTPUT) == 23.1


def test_parse_w1_slave_negative():
    assert parse_w1_slave("... t=-1062\n") == -1.1


@pytest.mark.parametrize("text", ["", "garbage", "72 01 t=abc"])
def test_parse_w1_slave_rejects_bad_output(text):
    with pytest.raises(SensorReadError):
        parse_w1_slave(text)


def test_w1_reader_reads_device_file(tmp_path):
    device = tmp_path / "28-000004e23a4b"
    device.mkdir()
    (device / "w1_slave").write_text(W1_OUTPUT)

    reader = W1SensorReader("28-000004e23a4b", str(tmp_path), clock=lambda: 42)
    reading = reader.read()

    assert reading.timestamp == 42
    assert reading.value == 23.1


def test_w1_reader_missing_device(tmp_path):
    with pytest.raises(SensorReadError):
        W1SensorReader("28-missing", str(tmp_path)).read()


def test_factory_picks_reader(config):
    assert isinstance(create_sensor_reader(config), W1SensorReader)
    config.SENSOR_SOURCE = "mqtt"
    assert isinstance(create_sensor_reader(config), MQTTSensorReader)


@pytest.mark.parametrize("payload, expected", [
    ("21.5", 21.5),
    ("  19 ", 19.0),
    ('{"temperature": 28.5, "humidity": 47.6}', 28.5),
    ('{"humidity": 60.2}', None),
    ('{"temperature": "hot"}', None),
    ("{broken", None),
    ("invalid_payload", None),
])
def test_mqtt_parse_payload(payload, expected):
    assert MQTTSensorReader.parse_payload(payload) == expected


def test_mqtt_reader_caches_latest_value(config):
    config.MQTT_TOPIC = "home/temp"
    reader = MQTTSensorReader(config, clock=lambda: 7)

    with pytest.raises(SensorReadError):
        reader.read()

    reader._on_message(None, None, SimpleNamespace(topic="home/temp", payload=b"24.5"))
    reader._on_message(None, None, SimpleNamespace(topic="home/temp", payload=b"nonsense"))

    reading = reader.read()
    assert (reading.timestamp, reading.value) == (7, 24.5)


@pytest.mark.parametrize("text", ["72 01 t=nan", "72 01 t=inf", "72 01 t=-inf"])
def test_parse_w1_slave_rejects_non_finite(text):
    with pytest.raises(SensorReadError):
        parse_w1_slave(text)


@pytest.mark.parametrize("payload", ["nan", "inf", "-Infinity", '{"temperature": NaN}', '{"temperature": "inf"}'])
def test_mqtt_parse_payload_drops_non_finite(payload):
    assert MQTTSensorReader.parse_payload(payload) is None


def test_non_finite_mqtt_payload_is_no_event(config, store, fake_notifier):
    from core.monitor import TemperatureMonitor

    config.MQTT_TOPIC = "home/temp"
    reader = MQTTSensorReader(config, clock=lambda: 7)
    reader._on_message(None, None, SimpleNamespace(topic="home/temp", payload=b"nan"))
    monitor = TemperatureMonitor(config, store=store, sensor=reader, notifier=fake_notifier)

    assert monitor.sample_once() is None
    assert store.query_range(0) == []
