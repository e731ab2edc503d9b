import logging
from typing import List

from .evaluator import in_range_predicate
from .models import Reading, TemperatureRange

logger = logging.getLogger(__name__)


def detect_failure_run(store, temp_range: TemperatureRange) -> List[Reading]:
    """Return the contiguous out-of-range tail of the store's history.

    The run starts right after the latest in-range reading, or at the
    beginning of history when no reading was ever in range. Only call this
    once the newest reading has been classified out of range. StorageError
    from either query propagates to the caller.
    """
    last_in_range = store.most_recent_matching(in_range_predicate(temp_range))
    since = 0 if last_in_range is None else last_in_range.timestamp
    run = store.query_range(since)
    logger.debug(f"Failure run since {since}: {len(run)} readings")
    return run
