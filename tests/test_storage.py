from __future__ import annotations

from pathlib import Path
import sys

import pytest
from google.api_core import exceptions as gcloud_exceptions

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from app.errors import RecipeNotFound, StoreError
from app.gcp_storage import FirestoreRecipeStorage
from app.memory_storage import InMemoryRecipeStorage
from app.models import RecipeDraft

from fakes import FakeFirestoreClient


def memory_storage(upsert=False):
    return InMemoryRecipeStorage(upsert=upsert)


def firestore_storage(upsert=False):
    return FirestoreRecipeStorage(client=FakeFirestoreClient(), upsert=upsert)


backends = pytest.mark.parametrize("make_storage", [memory_storage, firestore_storage])


@backends
def test_add_assigns_identifier_and_timestamp(make_storage):
    storage = make_storage()

    recipe = storage.add_recipe(RecipeDraft(name="Pasta", tags=["italian"]))

    assert recipe.id
    assert recipe.published_at is not None
    assert storage.get_recipe(recipe.id) == recipe


@backends
def test_identifiers_are_unique(make_storage):
    storage = make_storage()

    ids = {storage.add_recipe(RecipeDraft(name=f"Soup {n}")).id for n in range(5)}

    assert len(ids) == 5


@backends
def test_find_by_tag_matches_exact_elements(make_storage):
    storage = make_storage()
    pasta = storage.add_recipe(RecipeDraft(name="Pasta", tags=["italian", "quick"]))
    storage.add_recipe(RecipeDraft(name="Pizza", tags=["Italian"]))
    storage.add_recipe(RecipeDraft(name="Tacos", tags=["mexican"]))

    assert [recipe.id for recipe in storage.find_by_tag("italian")] == [pasta.id]
    assert storage.find_by_tag("ital") == []
    assert storage.find_by_tag("thai") == []


@backends
def test_update_replaces_fields_and_keeps_timestamp(make_storage):
    storage = make_storage()
    recipe = storage.add_recipe(
        RecipeDraft(name="Curry", tags=["mild"], ingredients=["rice"], instructions=["Cook."])
    )

    updated = storage.update_recipe(recipe.id, RecipeDraft(name="Hot Curry", tags=["spicy"]))

    assert updated.id == recipe.id
    assert updated.name == "Hot Curry"
    assert updated.tags == ["spicy"]
    assert updated.ingredients == []
    assert updated.instructions == []
    assert updated.published_at == recipe.published_at


@backends
def test_update_unknown_recipe(make_storage):
    with pytest.raises(RecipeNotFound):
        make_storage().update_recipe("missing", RecipeDraft(name="Soup"))

    storage = make_storage(upsert=True)
    created = storage.update_recipe("missing", RecipeDraft(name="Soup"))

    assert created.id == "missing"
    assert created.published_at is not None
    assert [recipe.name for recipe in storage.list_recipes()] == ["Soup"]


@backends
def test_delete_twice_reports_not_found(make_storage):
    storage = make_storage()
    recipe = storage.add_recipe(RecipeDraft(name="Pasta"))

    storage.delete_recipe(recipe.id)

    assert storage.list_recipes() == []
    with pytest.raises(RecipeNotFound):
        storage.delete_recipe(recipe.id)
    with pytest.raises(KeyError):
        storage.get_recipe(recipe.id)


def test_memory_storage_returns_copies():
    storage = InMemoryRecipeStorage()
    recipe = storage.add_recipe(RecipeDraft(name="Pasta", tags=["italian"]))

    recipe.tags.append("changed")
    storage.list_recipes()[0].name = "Changed"

    stored = storage.get_recipe(recipe.id)
    assert stored.tags == ["italian"]
    assert stored.name == "Pasta"


def test_firestore_driver_errors_become_store_errors():
    client = FakeFirestoreClient()
    storage = FirestoreRecipeStorage(client=client)
    client.collection("recipes").error = gcloud_exceptions.ServiceUnavailable("firestore down")

    with pytest.raises(StoreError, match="listing recipes"):
        storage.list_recipes()


def test_firestore_defaults_missing_fields():
    client = FakeFirestoreClient()
    client.collection("recipes").docs["sparse"] = {"name": "Bread", "ingredients": "flour"}

    recipe = FirestoreRecipeStorage(client=client).get_recipe("sparse")

    assert recipe.name == "Bread"
    assert recipe.ingredients == []
    assert recipe.instructions == []
    assert recipe.tags == []
    assert recipe.published_at is None
