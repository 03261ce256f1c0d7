from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional


def _string_list(value: Any, field_name: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{field_name}' must be a list of strings.")
    return list(value)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RecipeDraft:
    """Client supplied fields of a recipe.

    Identifier and publication time are never part of a draft; they are
    assigned by the storage backend.
    """

    name: str
    tags: List[str] = field(default_factory=list)
    ingredients: List[str] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "RecipeDraft":
        """Build a draft from a decoded JSON request body.

        Raises :class:`ValueError` when the payload does not describe a recipe.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("Request body must be a JSON object.")

        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Please provide a recipe name.")

        return cls(
            name=name.strip(),
            tags=_string_list(payload.get("tags"), "tags"),
            ingredients=_string_list(payload.get("ingredients"), "ingredients"),
            instructions=_string_list(payload.get("instructions"), "instructions"),
        )


@dataclass
class Recipe:
    """Domain object representing a stored recipe."""

    id: str
    name: str
    tags: List[str] = field(default_factory=list)
    ingredients: List[str] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    published_at: Optional[datetime] = None

    @classmethod
    def from_draft(cls, recipe_id: str, draft: RecipeDraft, published_at: datetime) -> "Recipe":
        return cls(
            id=recipe_id,
            name=draft.name,
            tags=list(draft.tags),
            ingredients=list(draft.ingredients),
            instructions=list(draft.instructions),
            published_at=published_at,
        )

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def to_dict(self) -> dict:
        """Return the JSON representation shared by the API and the cache."""

        return {
            "id": self.id,
            "name": self.name,
            "tags": list(self.tags),
            "ingredients": list(self.ingredients),
            "instructions": list(self.instructions),
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Recipe":
        """Inverse of :meth:`to_dict`.

        Raises :class:`ValueError`, :class:`TypeError` or :class:`KeyError` on
        malformed input.
        """

        recipe_id = data["id"]
        name = data["name"]
        if not isinstance(recipe_id, str) or not isinstance(name, str):
            raise ValueError("Recipe 'id' and 'name' must be strings.")

        published_at = data.get("publishedAt")
        return cls(
            id=recipe_id,
            name=name,
            tags=_string_list(data.get("tags"), "tags"),
            ingredients=_string_list(data.get("ingredients"), "ingredients"),
            instructions=_string_list(data.get("instructions"), "instructions"),
            published_at=datetime.fromisoformat(published_at) if published_at else None,
        )


__all__ = ["Recipe", "RecipeDraft", "utcnow"]
