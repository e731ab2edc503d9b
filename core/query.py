import datetime
import logging
from typing import List, Optional, Union

from .models import Reading

logger = logging.getLogger(__name__)

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def parse_start_date(start_date: Union[str, datetime.datetime, None]) -> int:
    """Convert an ISO 8601 date to ms since epoch.

    Missing or unparsable input maps to the epoch. Naive values are taken as UTC.
    """
    if start_date is None or start_date == "":
        return 0

    if isinstance(start_date, datetime.datetime):
        parsed = start_date
    else:
        try:
            parsed = datetime.datetime.fromisoformat(start_date.strip())
        except ValueError:
            logger.warning(f"Unparsable start date {start_date!r}, using epoch")
            return 0

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return max(0, (parsed - EPOCH) // datetime.timedelta(milliseconds=1))


class QueryService:
    """Serves windows of historical readings for the reporting interface"""

    def __init__(self, store):
        self.store = store

    def query_temperatures(self, num_records: Optional[int], start_date=None) -> List[Reading]:
        """The ``num_records`` most recent readings after ``start_date``, oldest first.

        A negative or None ``num_records`` returns every matching reading.
        """
        since = parse_start_date(start_date)
        limit = None if num_records is None or num_records < 0 else num_records
        return self.store.query_latest(since, limit)
