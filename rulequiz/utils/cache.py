"""
Redis cache utility for chart series responses
"""
import redis
import json
import logging
from typing import Optional, Any
from rulequiz.config import settings
from rulequiz.utils.date_range import DateRange

logger = logging.getLogger(__name__)


class CacheService:
    """Redis-based caching service; every call is a no-op when Redis is unavailable"""

    def __init__(self, redis_url: Optional[str] = None):
        redis_url = settings.REDIS_URL if redis_url is None else redis_url
        self.redis_client = None

        if not redis_url:
            logger.info("REDIS_URL is empty, chart caching disabled")
            return

        try:
            self.redis_client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=2
            )
            self.redis_client.ping()
            logger.info("Chart cache connected to Redis")
        except redis.RedisError as e:
            logger.warning(f"Chart cache unavailable, serving uncached charts: {str(e)}")
            self.redis_client = None

    def chart_key(self, chart: str, date_range: DateRange, *parts: str) -> str:
        """
        Deterministic cache key for a chart and its date range

        Example: chart:success-trends:2024-05-01:2024-05-07
        """
        start = date_range.start_date.isoformat() if date_range.start_date else "*"
        end = date_range.end_date.isoformat() if date_range.end_date else "*"
        return ":".join(["chart", chart, start, end, *parts])

    def get(self, key: str) -> Optional[Any]:
        """Return the cached JSON value or None"""
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.debug(f"Cache hit: {key}")
                return json.loads(value)
            logger.debug(f"Cache miss: {key}")
            return None
        except redis.RedisError as e:
            logger.warning(f"Chart cache read failed for {key}: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a JSON-serializable value with a TTL (default CHART_CACHE_TTL)"""
        if not self.redis_client:
            return False

        try:
            ttl = ttl or settings.CHART_CACHE_TTL
            self.redis_client.setex(key, ttl, json.dumps(value))
            logger.debug(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except redis.RedisError as e:
            logger.warning(f"Chart cache write failed for {key}: {str(e)}")
            return False


# Global instance
cache_service = CacheService()
