import logging
from .base_task import BackgroundTask

logger = logging.getLogger(__name__)


class SamplingTask(BackgroundTask):
    """Samples the sensor once per LOG_INTERVAL and runs alert evaluation"""

    def __init__(self, config, monitor):
        super().__init__(config.log_interval_seconds, "SamplingTask")
        self.monitor = monitor

    def task(self):
        self.monitor.sample_once()
