from __future__ import annotations

from typing import List, Protocol

from .models import Recipe, RecipeDraft


class RecipeRepository(Protocol):
    """Protocol describing the source-of-truth store used by the service layer."""

    def list_recipes(self) -> List[Recipe]:
        """Return every stored recipe. Order is not guaranteed."""

    def get_recipe(self, recipe_id: str) -> Recipe:
        """Return a single recipe or raise :class:`RecipeNotFound` if missing."""

    def add_recipe(self, draft: RecipeDraft) -> Recipe:
        """Assign identifier and publication time, persist and return the recipe."""

    def update_recipe(self, recipe_id: str, draft: RecipeDraft) -> Recipe:
        """Replace the mutable fields of an existing recipe and return it."""

    def delete_recipe(self, recipe_id: str) -> None:
        """Remove a recipe or raise :class:`RecipeNotFound` if missing."""

    def find_by_tag(self, tag: str) -> List[Recipe]:
        """Return recipes whose tags contain ``tag`` exactly."""


__all__ = ["RecipeRepository"]
