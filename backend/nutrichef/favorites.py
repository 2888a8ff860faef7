from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from .models import Recipe

logger = logging.getLogger(__name__)

FAVORITES_KEY = "nutrichef-favorites"

_RECIPES = TypeAdapter(List[Recipe])


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStorage:
    """Key/value strings kept in a single JSON document on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)


class FavoritesStore:
    def __init__(self, storage: Any, key: str = FAVORITES_KEY):
        self.storage = storage
        self.key = key

    def list(self) -> List[Recipe]:
        try:
            raw = self.storage.get(self.key)
            if not raw:
                return []
            return _RECIPES.validate_json(raw)
        except (OSError, ValueError, ValidationError):
            logger.exception("Failed to load favorite recipes; starting with an empty list.")
            return []

    def save(self, favorites: List[Recipe]) -> None:
        self.storage.set(self.key, _RECIPES.dump_json(favorites, by_alias=True).decode("utf-8"))

    def is_favorite(self, recipe_id: str) -> bool:
        return any(recipe.id == recipe_id for recipe in self.list())

    def toggle(self, recipe: Recipe) -> bool:
        """Add or remove ``recipe``; returns True when it is now a favorite."""
        favorites = self.list()
        remaining = [fav for fav in favorites if fav.id != recipe.id]
        is_favorite = len(remaining) == len(favorites)
        if is_favorite:
            remaining.append(recipe)
        self.save(remaining)
        return is_favorite
