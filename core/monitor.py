import threading
import logging
import time
from flask import Flask
from typing import Optional

from config.settings import PiThermConfig
from database.manager import TimeSeriesStore
from services.sensor import create_sensor_reader
from services.telegram_service import TelegramService
from tasks.sampling_task import SamplingTask
from web.routes import WebRoutes

from .errors import SensorReadError
from .evaluator import classify
from .failure_run import detect_failure_run
from .models import Classification, Notification, Reading, now_millis
from .query import QueryService
from .throttle import NotificationThrottle

logger = logging.getLogger(__name__)


class TemperatureMonitor:
    """Wires the sampler, store, alerting and HTTP surface together"""

    def __init__(self, config=None, store=None, sensor=None, notifier=None, clock=now_millis):
        self.config = config or PiThermConfig()
        self.temperature_range = self.config.temperature_range
        self.clock = clock

        self.store = store or TimeSeriesStore(self.config.DB_PATH, timeout=self.config.STORE_TIMEOUT)
        self.sensor = sensor or create_sensor_reader(self.config)
        self.notifier = notifier or TelegramService(self.config.TELEGRAM_TOKEN)
        self.throttle = NotificationThrottle(self.config.notification_cooldown_ms)
        self.query_service = QueryService(self.store)
        self.tasks = []

    def sample_once(self) -> Optional[Notification]:
        """Run one sampling tick. A sensor failure means no event this tick"""
        try:
            reading = self.sensor.read()
        except SensorReadError as e:
            logger.warning(f"No reading this tick: {e}")
            return None
        return self.process_reading(reading)

    def process_reading(self, reading: Reading) -> Optional[Notification]:
        """Store ``reading``, evaluate it and dispatch any resulting notification.

        StorageError propagates; the reading is then considered lost.
        """
        self.store.append(reading)
        logger.info(f"{reading.timestamp} {reading.value}")

        classification = classify(reading, self.temperature_range)
        notification = self.throttle.evaluate(
            reading,
            classification,
            now=self.clock(),
            failure_run=lambda: detect_failure_run(self.store, self.temperature_range),
        )
        if classification is Classification.OUT_OF_RANGE and notification is None:
            logger.info(f"Temperature {reading.value} C out of range, notification throttled")

        if notification is not None:
            self.dispatch(notification)
        return notification

    def dispatch(self, notification: Notification):
        if not self.config.notifications_enabled:
            logger.info(f"Not sending notification '{notification.subject}': notifier not configured")
            return
        logger.info(f"Queueing {notification.kind.value} notification: {notification.subject}")
        try:
            self.notifier.send(notification.subject, notification.body, self.config.NOTIFICATION_RECIPIENTS)
        except Exception as e:
            logger.error(f"Failed to queue notification: {e}")

    def start_background_tasks(self):
        self.tasks.append(SamplingTask(self.config, self))
        for task in self.tasks:
            task.start()
        logger.info(f"Server is logging to database at {self.config.LOG_INTERVAL}ms intervals")

    def stop_background_tasks(self):
        for task in self.tasks:
            task.stop()
        logger.info("All background tasks stopped")

    def create_flask_app(self):
        """Create and configure the Flask application"""
        app = Flask(__name__)
        app.json.sort_keys = False

        web_routes = WebRoutes(self.config, self.query_service, self.sensor)
        web_routes.register_routes(app)
        return app

    def run(self):
        """Run the complete monitoring system until interrupted"""
        logger.info(f"Temp Sensor: {self.config.SENSOR_ID}")
        try:
            self.sensor.start()
            self.notifier.start_worker()
            self.start_background_tasks()

            app = self.create_flask_app()
            flask_thread = threading.Thread(
                target=lambda: app.run(host=self.config.HTTP_HOST, port=self.config.HTTP_PORT),
                daemon=True,
                name="HTTPServer",
            )
            flask_thread.start()
            logger.info(f"Server listening on {self.config.HTTP_HOST}:{self.config.HTTP_PORT}")

            while flask_thread.is_alive():
                time.sleep(1)
            logger.error("HTTP server stopped unexpectedly")
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        finally:
            self.stop_background_tasks()
            self.notifier.stop_worker()
            self.sensor.stop()
