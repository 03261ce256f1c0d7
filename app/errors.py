class RecipeError(Exception):
    """Base class for errors raised by the recipes application."""


class StoreError(RecipeError):
    """The persistent store failed to execute a read or write."""


class RecipeNotFound(RecipeError, KeyError):
    """No stored recipe matches the requested identifier."""

    def __init__(self, recipe_id: str) -> None:
        super().__init__(f"Recipe '{recipe_id}' does not exist.")
        self.recipe_id = recipe_id

    def __str__(self) -> str:
        # KeyError.__str__ would wrap the message in quotes.
        return str(self.args[0])


class CacheError(RecipeError):
    """The listing cache could not be written or cleared."""


class InvalidRecipe(RecipeError, ValueError):
    """A request body could not be turned into a recipe."""


__all__ = ["RecipeError", "StoreError", "RecipeNotFound", "CacheError", "InvalidRecipe"]
