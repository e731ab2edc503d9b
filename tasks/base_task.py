import threading
import logging

logger = logging.getLogger(__name__)


class BackgroundTask:
    """Base class for periodic background tasks.

    ``task()`` runs first on start, then once per ``interval`` seconds.
    An exception in one run is logged and the loop carries on.
    """

    def __init__(self, interval, name="BackgroundTask"):
        self.interval = interval
        self.name = name
        self.thread = None
        self._stop_event = threading.Event()

    @property
    def is_running(self):
        return self.thread is not None and not self._stop_event.is_set()

    def task(self):
        """Override in subclasses"""
        raise NotImplementedError

    def run(self):
        """Main loop for the background task"""
        while not self._stop_event.is_set():
            try:
                self.task()
            except Exception as e:
                logger.error(f"Error in {self.name}: {e}")
            if self._stop_event.wait(self.interval):
                break

    def start(self):
        """Start the background task in a separate thread"""
        self._stop_event.clear()
        self.thread = threading.Thread(target=self.run, daemon=True, name=self.name)
        self.thread.start()

    def stop(self):
        """Stop the background task"""
        self._stop_event.set()
        if self.thread:
            self.thread.join(timeout=5)
