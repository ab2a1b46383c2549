"""Walk-in queue number reservation backed by a Redis counter."""

from datetime import date

import redis
import structlog

logger = structlog.get_logger()


class QueueSequencer:
    """
    Hands out walk-in queue numbers, one counter per clinic and day.

    ``INCR`` is the only step that decides a number, so concurrent check-ins
    on any number of API workers always receive distinct values. Numbers
    are never handed back; a cancelled walk-in keeps its number.
    """

    KEY_PREFIX = "frontdesk:walk_in_queue"

    def __init__(self, redis_client: redis.Redis, clinic_id: str, ttl_seconds: int):
        """Initialize sequencer with Redis client and clinic scope."""
        self.redis = redis_client
        self.clinic_id = clinic_id
        self.ttl_seconds = ttl_seconds

    def _key(self, day: date) -> str:
        return f"{self.KEY_PREFIX}:{self.clinic_id}:{day.isoformat()}"

    def reserve(self, day: date, floor: int = 0) -> int:
        """
        Reserve the next queue number for ``day``.

        Args:
            day: Calendar day of the walk-in
            floor: Highest number already persisted for ``day``; seeds the
                counter if it does not exist yet (first walk-in of the day,
                or after the key was lost)

        Returns:
            The reserved queue number
        """
        key = self._key(day)
        # Seeding is a no-op when the counter already exists
        self.redis.set(key, floor, nx=True, ex=self.ttl_seconds)
        number = int(self.redis.incr(key))
        logger.debug("queue_number_reserved", day=day.isoformat(), queue_number=number)
        return number

    def current(self, day: date) -> int:
        """Return the last number handed out for ``day`` (0 if none)."""
        value = self.redis.get(self._key(day))
        return int(value) if value is not None else 0
