class PiThermError(Exception):
    """Base class for all errors raised by the monitoring service"""


class StorageError(PiThermError):
    """Time-series store unavailable, timed out or rejected a query"""


class SensorReadError(PiThermError):
    """The sensor did not produce a usable reading"""


class NotificationTransportError(PiThermError):
    """A notification could not be handed to the transport"""


class ConfigurationError(PiThermError):
    """Required configuration is missing or invalid"""
