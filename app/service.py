from __future__ import annotations

import logging
import threading
from typing import List, Optional

from .cache import ListingCache, NullListingCache
from .errors import CacheError
from .models import Recipe, RecipeDraft
from .storage import RecipeRepository

logger = logging.getLogger(__name__)


class RecipeService:
    """Cache-aside access to recipes.

    Listings are served from ``cache`` when present and otherwise read from
    ``storage`` and written back to the cache. Every successful write drops the
    cached listing; a failure to do so is logged and never reported to the
    caller.

    Parameters
    ----------
    storage:
        Source-of-truth recipe repository.
    cache:
        Listing cache. Defaults to a cache that always misses.
    coalesce_misses:
        Serialize cache misses so that concurrent requests trigger a single
        store query instead of one each.
    """

    def __init__(
        self,
        storage: RecipeRepository,
        cache: Optional[ListingCache] = None,
        *,
        coalesce_misses: bool = False,
    ) -> None:
        self.storage = storage
        self.cache = cache if cache is not None else NullListingCache()
        self._miss_lock = threading.Lock() if coalesce_misses else None

    def list_recipes(self) -> List[Recipe]:
        cached = self.cache.get_listing()
        if cached is not None:
            logger.debug("Serving recipes from cache")
            return cached

        if self._miss_lock is None:
            return self._load_listing()

        with self._miss_lock:
            # Another request may have filled the cache while we waited.
            cached = self.cache.get_listing()
            if cached is not None:
                return cached
            return self._load_listing()

    def get_recipe(self, recipe_id: str) -> Recipe:
        return self.storage.get_recipe(recipe_id)

    def find_by_tag(self, tag: str) -> List[Recipe]:
        return self.storage.find_by_tag(tag)

    def add_recipe(self, draft: RecipeDraft) -> Recipe:
        recipe = self.storage.add_recipe(draft)
        self._invalidate()
        return recipe

    def update_recipe(self, recipe_id: str, draft: RecipeDraft) -> Recipe:
        recipe = self.storage.update_recipe(recipe_id, draft)
        self._invalidate()
        return recipe

    def delete_recipe(self, recipe_id: str) -> None:
        self.storage.delete_recipe(recipe_id)
        self._invalidate()

    def _load_listing(self) -> List[Recipe]:
        logger.debug("Cache miss, querying store")
        recipes = self.storage.list_recipes()
        try:
            self.cache.set_listing(recipes)
        except CacheError as exc:
            logger.warning("Could not populate recipe listing cache: %s", exc)
        return recipes

    def _invalidate(self) -> None:
        try:
            self.cache.invalidate_listing()
        except CacheError as exc:
            logger.warning("Could not invalidate recipe listing cache: %s", exc)


__all__ = ["RecipeService"]
