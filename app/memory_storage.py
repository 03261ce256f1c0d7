from __future__ import annotations

import copy
import threading
import uuid
from typing import List

from .errors import RecipeNotFound
from .models import Recipe, RecipeDraft, utcnow
from .storage import RecipeRepository


class InMemoryRecipeStorage(RecipeRepository):
    """Process local recipe storage backed by a list.

    Recipes are copied on the way in and out so callers never share state with
    the store.
    """

    def __init__(self, *, upsert: bool = False) -> None:
        self._upsert = upsert
        self._recipes: list[Recipe] = []
        self._lock = threading.Lock()

    def list_recipes(self) -> List[Recipe]:
        with self._lock:
            return copy.deepcopy(self._recipes)

    def get_recipe(self, recipe_id: str) -> Recipe:
        with self._lock:
            return copy.deepcopy(self._find(recipe_id))

    def add_recipe(self, draft: RecipeDraft) -> Recipe:
        recipe = Recipe.from_draft(uuid.uuid4().hex, draft, utcnow())
        with self._lock:
            self._recipes.append(recipe)
            return copy.deepcopy(recipe)

    def update_recipe(self, recipe_id: str, draft: RecipeDraft) -> Recipe:
        with self._lock:
            try:
                recipe = self._find(recipe_id)
            except RecipeNotFound:
                if not self._upsert:
                    raise
                recipe = Recipe.from_draft(recipe_id, draft, utcnow())
                self._recipes.append(recipe)
            else:
                recipe.name = draft.name
                recipe.tags = list(draft.tags)
                recipe.ingredients = list(draft.ingredients)
                recipe.instructions = list(draft.instructions)
            return copy.deepcopy(recipe)

    def delete_recipe(self, recipe_id: str) -> None:
        with self._lock:
            for index, recipe in enumerate(self._recipes):
                if recipe.id == recipe_id:
                    self._recipes.pop(index)
                    return
        raise RecipeNotFound(recipe_id)

    def find_by_tag(self, tag: str) -> List[Recipe]:
        with self._lock:
            return [copy.deepcopy(recipe) for recipe in self._recipes if recipe.has_tag(tag)]

    def _find(self, recipe_id: str) -> Recipe:
        for recipe in self._recipes:
            if recipe.id == recipe_id:
                return recipe
        raise RecipeNotFound(recipe_id)


__all__ = ["InMemoryRecipeStorage"]
