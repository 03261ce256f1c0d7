from __future__ import annotations

import os
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from google.api_core import exceptions as gcloud_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .config import env_flag
from .errors import RecipeNotFound, StoreError
from .models import Recipe, RecipeDraft, utcnow
from .storage import RecipeRepository


def _as_list(value: object) -> List[str]:
    return list(value) if isinstance(value, list) else []


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except (gcloud_exceptions.GoogleAPICallError, gcloud_exceptions.RetryError) as exc:
        raise StoreError(f"Error while {action}: {exc}") from exc


class FirestoreRecipeStorage(RecipeRepository):
    """GCP backed recipe storage using a Firestore collection."""

    def __init__(
        self,
        *,
        project: Optional[str] = None,
        collection_name: str = "recipes",
        upsert: bool = False,
        client: Optional[firestore.Client] = None,
    ) -> None:
        self._project = project
        self._collection_name = collection_name
        self._upsert = upsert

        self._firestore_client = client or firestore.Client(project=project)
        self._collection = self._firestore_client.collection(collection_name)

    @classmethod
    def from_env(cls) -> "FirestoreRecipeStorage":
        """Build a storage instance from environment variables."""

        project = os.environ.get("GCP_PROJECT")
        collection_name = os.environ.get("RECIPES_COLLECTION", "recipes")
        upsert = env_flag("RECIPES_UPSERT")
        return cls(project=project, collection_name=collection_name, upsert=upsert)

    def list_recipes(self) -> List[Recipe]:
        with _store_errors("listing recipes"):
            return [self._doc_to_recipe(doc.id, doc.to_dict() or {}) for doc in self._collection.stream()]

    def get_recipe(self, recipe_id: str) -> Recipe:
        with _store_errors("reading a recipe"):
            snapshot = self._collection.document(recipe_id).get()

        if not snapshot.exists:
            raise RecipeNotFound(recipe_id)

        return self._doc_to_recipe(snapshot.id, snapshot.to_dict() or {})

    def add_recipe(self, draft: RecipeDraft) -> Recipe:
        published_at = utcnow()

        with _store_errors("inserting a new recipe"):
            doc_ref = self._collection.document()
            doc_ref.set({**self._draft_to_doc(draft), "published_at": published_at})

        return Recipe.from_draft(doc_ref.id, draft, published_at)

    def update_recipe(self, recipe_id: str, draft: RecipeDraft) -> Recipe:
        doc_ref = self._collection.document(recipe_id)

        with _store_errors("updating a recipe"):
            snapshot = doc_ref.get()

            if snapshot.exists:
                doc_ref.update(self._draft_to_doc(draft))
            elif self._upsert:
                doc_ref.set({**self._draft_to_doc(draft), "published_at": utcnow()})
            else:
                raise RecipeNotFound(recipe_id)

            snapshot = doc_ref.get()

        return self._doc_to_recipe(snapshot.id, snapshot.to_dict() or {})

    def delete_recipe(self, recipe_id: str) -> None:
        doc_ref = self._collection.document(recipe_id)

        with _store_errors("deleting a recipe"):
            snapshot = doc_ref.get()
            if not snapshot.exists:
                raise RecipeNotFound(recipe_id)
            doc_ref.delete()

    def find_by_tag(self, tag: str) -> List[Recipe]:
        query = self._collection.where(filter=FieldFilter("tags", "array_contains", tag))
        with _store_errors("searching recipes"):
            return [self._doc_to_recipe(doc.id, doc.to_dict() or {}) for doc in query.stream()]

    @staticmethod
    def _draft_to_doc(draft: RecipeDraft) -> dict:
        return {
            "name": draft.name,
            "tags": list(draft.tags),
            "ingredients": list(draft.ingredients),
            "instructions": list(draft.instructions),
        }

    def _doc_to_recipe(self, doc_id: str, data: dict) -> Recipe:
        published_at = data.get("published_at")
        if not isinstance(published_at, datetime):
            published_at = None

        return Recipe(
            id=doc_id,
            name=data.get("name", ""),
            tags=_as_list(data.get("tags")),
            ingredients=_as_list(data.get("ingredients")),
            instructions=_as_list(data.get("instructions")),
            published_at=published_at,
        )


__all__ = ["FirestoreRecipeStorage"]
