import sqlite3
import logging
from contextlib import contextmanager
from typing import Callable, List, Optional

from core.errors import StorageError
from core.models import Reading

logger = logging.getLogger(__name__)

# Rows pulled per round trip while scanning backwards through history
SCAN_BATCH_SIZE = 64


class TimeSeriesStore:
    """Append-only SQLite store of (unix_time, celsius) temperature records.

    Insertion order is chronological order. Rows sharing a timestamp keep
    their insertion order through ``rowid``.
    """

    def __init__(self, db_path, timeout=30.0):
        self.db_path = db_path
        self.timeout = timeout
        self.initialize_database()

    def initialize_database(self):
        """Create the records table and its time index"""
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS temperature_records (
                    unix_time INTEGER NOT NULL,
                    celsius REAL NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_temperature_records_unix_time
                ON temperature_records (unix_time)
            """)
        logger.info(f"Temperature database initialized at: {self.db_path}")

    @contextmanager
    def get_connection(self):
        """Yield a connection inside a transaction, committed on success.

        Any sqlite failure, including lock waits longer than ``timeout``,
        surfaces as StorageError.
        """
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=self.timeout)
            conn.execute("PRAGMA journal_mode=WAL")
            with conn:
                yield conn
        except (sqlite3.Error, OverflowError) as e:
            raise StorageError(f"Database error on {self.db_path}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def append(self, reading: Reading):
        """Persist one reading atomically"""
        with self.get_connection() as conn:
            conn.execute(
                "INSERT INTO temperature_records (unix_time, celsius) VALUES (?, ?)",
                (reading.timestamp, reading.value),
            )

    def query_range(self, since_exclusive: int, limit: Optional[int] = None) -> List[Reading]:
        """Readings newer than ``since_exclusive``, oldest first.

        ``limit`` of None means no cap.
        """
        sql = ("SELECT unix_time, celsius FROM temperature_records "
               "WHERE unix_time > ? ORDER BY unix_time ASC, rowid ASC")
        params = [since_exclusive]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with self.get_connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [Reading(timestamp=row[0], value=row[1]) for row in rows]

    def query_latest(self, since_exclusive: int, limit: Optional[int] = None) -> List[Reading]:
        """The newest ``limit`` readings newer than ``since_exclusive``, oldest first"""
        if limit is None:
            return self.query_range(since_exclusive)

        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT unix_time, celsius FROM temperature_records "
                "WHERE unix_time > ? ORDER BY unix_time DESC, rowid DESC LIMIT ?",
                (since_exclusive, limit),
            ).fetchall()
        return [Reading(timestamp=row[0], value=row[1]) for row in reversed(rows)]

    def most_recent_matching(self, predicate: Callable[[Reading], bool]) -> Optional[Reading]:
        """Latest reading satisfying ``predicate``, or None.

        Walks history newest first and stops at the first match.
        """
        with self.get_connection() as conn:
            cursor = conn.execute(
                "SELECT unix_time, celsius FROM temperature_records "
                "ORDER BY unix_time DESC, rowid DESC"
            )
            while True:
                rows = cursor.fetchmany(SCAN_BATCH_SIZE)
                if not rows:
                    return None
                for row in rows:
                    reading = Reading(timestamp=row[0], value=row[1])
                    if predicate(reading):
                        return reading
