import enum
import time
from dataclasses import dataclass
from typing import Optional


def now_millis() -> int:
    """Current wall-clock time in ms since epoch"""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Reading:
    """One timestamped temperature sample"""
    timestamp: int
    value: float

    def to_record(self):
        """Serialize to the legacy JSON record shape"""
        return {"unix_time": self.timestamp, "celsius": self.value}


@dataclass(frozen=True)
class TemperatureRange:
    """Inclusive [min, max] band of acceptable values"""
    min: float
    max: float

    def __post_init__(self):
        if self.min > self.max:
            raise ValueError(f"Range minimum {self.min} is greater than maximum {self.max}")

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


class Classification(enum.Enum):
    IN_RANGE = "in_range"
    OUT_OF_RANGE = "out_of_range"


class NotificationKind(enum.Enum):
    FIRST_FAILURE = "first_failure"
    STILL_FAILING = "still_failing"
    RECOVERED = "recovered"


@dataclass
class ThrottleState:
    """Absent last_notification_time means Idle, otherwise Notified"""
    last_notification_time: Optional[int] = None

    @property
    def is_idle(self) -> bool:
        return self.last_notification_time is None


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    subject: str
    body: str
