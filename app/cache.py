"""Cache accessors for the full recipe listing.

The listing is stored as a JSON array under a single key. It is a derived
snapshot of the store: it is deleted on every write and rebuilt on the next
cache miss.
"""

from __future__ import annotations

import json
import logging
import os
from typing import List, Optional, Protocol

import redis

from .errors import CacheError
from .models import Recipe

logger = logging.getLogger(__name__)

DEFAULT_LISTING_KEY = "recipes"

# 0 disables expiry
DEFAULT_TTL = 0


class ListingCache(Protocol):
    """Protocol describing the cache used by the service layer."""

    def get_listing(self) -> Optional[List[Recipe]]:
        """Return the cached listing, or ``None`` on a miss."""

    def set_listing(self, recipes: List[Recipe]) -> None:
        """Store ``recipes`` as the current listing.

        Raises :class:`CacheError` when the backend fails.
        """

    def invalidate_listing(self) -> None:
        """Drop the cached listing. Missing keys are not an error.

        Raises :class:`CacheError` when the backend fails.
        """


def dump_listing(recipes: List[Recipe]) -> str:
    return json.dumps([recipe.to_dict() for recipe in recipes])


def load_listing(payload: str | bytes) -> List[Recipe]:
    """Decode a cached listing.

    Raises :class:`ValueError` when the payload is not a list of recipes.
    """

    try:
        data = json.loads(payload)
    except RecursionError as exc:
        raise ValueError("Cached listing is nested too deeply.") from exc
    if not isinstance(data, list):
        raise ValueError("Cached listing is not a JSON array.")
    try:
        return [Recipe.from_dict(item) for item in data]
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Cached listing has an unexpected shape: {exc}") from exc


class RedisListingCache(ListingCache):
    """Redis backed listing cache."""

    def __init__(self, client: redis.Redis, *, key: str = DEFAULT_LISTING_KEY, ttl: int = DEFAULT_TTL):
        self.client = client
        self.key = key
        self.ttl = ttl

    @classmethod
    def from_env(cls) -> Optional["RedisListingCache"]:
        """Build a cache from environment variables, or ``None`` without ``REDIS_URL``."""

        url = os.environ.get("REDIS_URL")
        if not url:
            return None
        client = redis.Redis.from_url(url, encoding="utf-8", decode_responses=True)
        key = os.environ.get("RECIPES_CACHE_KEY", DEFAULT_LISTING_KEY)
        ttl = int(os.environ.get("RECIPES_CACHE_TTL", DEFAULT_TTL))
        return cls(client, key=key, ttl=ttl)

    def get_listing(self) -> Optional[List[Recipe]]:
        try:
            payload = self.client.get(self.key)
        except redis.RedisError as exc:
            logger.warning("Could not read %r from Redis, treating as a miss: %s", self.key, exc)
            return None

        if payload is None:
            return None

        try:
            return load_listing(payload)
        except ValueError as exc:
            logger.warning("Discarding unreadable listing cached under %r: %s", self.key, exc)
            return None

    def set_listing(self, recipes: List[Recipe]) -> None:
        try:
            self.client.set(self.key, dump_listing(recipes), ex=self.ttl or None)
        except redis.RedisError as exc:
            raise CacheError(f"Could not store {self.key!r} in Redis: {exc}") from exc

    def invalidate_listing(self) -> None:
        try:
            self.client.delete(self.key)
        except redis.RedisError as exc:
            raise CacheError(f"Could not delete {self.key!r} from Redis: {exc}") from exc


class NullListingCache(ListingCache):
    """Cache that never holds anything. Used when Redis is not configured."""

    def get_listing(self) -> Optional[List[Recipe]]:
        return None

    def set_listing(self, recipes: List[Recipe]) -> None:
        pass

    def invalidate_listing(self) -> None:
        pass


__all__ = [
    "ListingCache",
    "NullListingCache",
    "RedisListingCache",
    "dump_listing",
    "load_listing",
]
