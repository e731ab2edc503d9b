import logging
from typing import Callable, List, Optional

from .models import (
    Classification,
    Notification,
    NotificationKind,
    Reading,
    ThrottleState,
)

logger = logging.getLogger(__name__)


def first_failure_message(reading: Reading) -> Notification:
    return Notification(
        kind=NotificationKind.FIRST_FAILURE,
        subject="Temperature has gone out of desired range",
        body=f"Last temperature reading was out of desired range: {reading.value} C",
    )


def still_failing_message(reading: Reading, run_length: int) -> Notification:
    return Notification(
        kind=NotificationKind.STILL_FAILING,
        subject="Temperature is still out of desired range",
        body=(f"Last {run_length} temperature readings were out of range\n"
              f"Current temperature is {reading.value} C"),
    )


def recovered_message(reading: Reading) -> Notification:
    return Notification(
        kind=NotificationKind.RECOVERED,
        subject="Temperature is back within desired range",
        body=f"Current temperature is {reading.value} C",
    )


class NotificationThrottle:
    """Idle/Notified state machine gating outbound notifications.

    The throttle is the only writer of its ThrottleState. A state change is
    committed as soon as a notification is decided, before delivery is
    attempted, so a failed delivery is never retried.
    """

    def __init__(self, cooldown_ms: int, state: Optional[ThrottleState] = None):
        if cooldown_ms < 0:
            raise ValueError("cooldown_ms must not be negative")
        self.cooldown_ms = cooldown_ms
        self.state = state if state is not None else ThrottleState()

    def failure_notification_due(self, now: int) -> bool:
        """Whether an out-of-range reading at ``now`` would notify"""
        if self.state.is_idle:
            return True
        return now > self.state.last_notification_time + self.cooldown_ms

    def evaluate(
        self,
        reading: Reading,
        classification: Classification,
        now: int,
        failure_run: Callable[[], List[Reading]],
    ) -> Optional[Notification]:
        """Decide which notification, if any, ``reading`` triggers.

        ``failure_run`` is only called when a "still failing" message is
        about to be built; if it raises, the state is left untouched.
        """
        if classification is Classification.IN_RANGE:
            if self.state.is_idle:
                return None
            self.state.last_notification_time = None
            logger.info("Temperature recovered, throttle reset")
            return recovered_message(reading)

        if self.state.is_idle:
            self.state.last_notification_time = now
            return first_failure_message(reading)

        if not self.failure_notification_due(now):
            logger.debug(f"Notification suppressed until {self.state.last_notification_time + self.cooldown_ms}")
            return None

        run = failure_run()
        self.state.last_notification_time = now
        return still_failing_message(reading, len(run))
