import logging
import os
from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .cache import ListingCache, RedisListingCache
from .config import env_flag
from .errors import InvalidRecipe, RecipeError, RecipeNotFound, StoreError
from .memory_storage import InMemoryRecipeStorage
from .models import Recipe, RecipeDraft
from .service import RecipeService
from .storage import RecipeRepository

try:
    from .gcp_storage import FirestoreRecipeStorage
except ImportError:  # pragma: no cover - allows running tests without optional deps
    FirestoreRecipeStorage = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def create_app(
    storage: Optional[RecipeRepository] = None,
    cache: Optional[ListingCache] = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    storage:
        Optional recipe repository. When ``None`` the backend is chosen through
        ``RECIPES_BACKEND`` (``firestore`` or ``memory``).
    cache:
        Optional listing cache. When ``None`` a Redis cache is built from
        ``REDIS_URL``; without it caching is disabled.
    """

    app = Flask(__name__)

    if storage is None:
        storage = _storage_from_env()
    if cache is None:
        cache = RedisListingCache.from_env()

    coalesce = env_flag("RECIPES_CACHE_COALESCE")
    app.config["RECIPE_SERVICE"] = RecipeService(storage, cache, coalesce_misses=coalesce)

    def service() -> RecipeService:
        return app.config["RECIPE_SERVICE"]

    @app.get("/recipes")
    def list_recipes():
        recipes = service().list_recipes()
        return jsonify([recipe.to_dict() for recipe in recipes])

    @app.post("/recipes")
    def create_recipe():
        draft = _draft_from_request()
        recipe = service().add_recipe(draft)
        return jsonify(recipe.to_dict()), 201

    @app.get("/recipes/search")
    def search_recipes():
        tag = request.args.get("tag")
        if tag is None:
            raise InvalidRecipe("Query parameter 'tag' is required.")
        recipes = service().find_by_tag(tag)
        return jsonify([recipe.to_dict() for recipe in recipes])

    @app.get("/recipes/<recipe_id>")
    def get_recipe(recipe_id: str):
        return jsonify(service().get_recipe(recipe_id).to_dict())

    @app.put("/recipes/<recipe_id>")
    def update_recipe(recipe_id: str):
        draft = _draft_from_request()
        recipe = service().update_recipe(recipe_id, draft)
        return jsonify(recipe.to_dict())

    @app.delete("/recipes/<recipe_id>")
    def delete_recipe(recipe_id: str):
        service().delete_recipe(recipe_id)
        return jsonify({"message": "Recipe has been deleted"})

    @app.errorhandler(InvalidRecipe)
    def handle_invalid(exc: InvalidRecipe):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(RecipeNotFound)
    def handle_not_found(exc: RecipeNotFound):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(StoreError)
    def handle_store_error(exc: StoreError):
        logger.error("Store failure: %s", exc)
        return jsonify({"error": str(exc)}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.description}), exc.code

    return app


def _draft_from_request() -> RecipeDraft:
    payload = request.get_json(silent=True)
    try:
        return RecipeDraft.from_payload(payload)
    except ValueError as exc:
        raise InvalidRecipe(str(exc)) from exc


def _storage_from_env() -> RecipeRepository:
    backend = os.environ.get("RECIPES_BACKEND", "firestore").lower()
    if backend == "memory":
        return InMemoryRecipeStorage(upsert=env_flag("RECIPES_UPSERT"))
    if backend != "firestore":
        raise RuntimeError(f"Unknown RECIPES_BACKEND {backend!r}; expected 'firestore' or 'memory'.")
    if FirestoreRecipeStorage is None:
        raise RuntimeError(
            "google-cloud-firestore is not installed. Install optional dependencies "
            "or pass an explicit storage backend to create_app."
        )
    return FirestoreRecipeStorage.from_env()


__all__ = ["create_app", "Recipe", "RecipeError"]
