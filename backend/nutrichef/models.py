from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

Language = Literal["en", "es"]

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    # Wire format is camelCase; Python code uses snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Difficulty(str, Enum):
    VERY_EASY = "Very Easy"
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    EXPERT = "Expert"


_DIFFICULTY_LOOKUP = {d.value.replace(" ", "").lower(): d for d in Difficulty}


class IngredientRef(CamelModel):
    quantity: NonEmptyStr
    name: NonEmptyStr
    is_staple: bool


class NutritionInfo(CamelModel):
    protein: NonEmptyStr
    carbs: NonEmptyStr
    fats: NonEmptyStr


class RecipeDraft(CamelModel):
    recipe_name: NonEmptyStr
    description: NonEmptyStr
    prep_time: NonEmptyStr
    cook_time: NonEmptyStr
    servings: int = Field(gt=0)
    calories: float = Field(ge=0)
    difficulty: Difficulty
    health_tip: NonEmptyStr
    nutrition: NutritionInfo
    ingredients: List[IngredientRef] = Field(min_length=1)
    instructions: List[NonEmptyStr] = Field(min_length=1)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _normalize_difficulty(cls, value):
        if isinstance(value, str):
            key = value.replace(" ", "").replace("-", "").replace("_", "").lower()
            return _DIFFICULTY_LOOKUP.get(key, value)
        return value

    @property
    def staples(self) -> List[IngredientRef]:
        return [ingredient for ingredient in self.ingredients if ingredient.is_staple]


class Recipe(RecipeDraft):
    id: NonEmptyStr
    image_url: Optional[str] = None

    @classmethod
    def from_draft(cls, draft: RecipeDraft, recipe_id: str | None = None) -> "Recipe":
        return cls(id=recipe_id or new_recipe_id(draft.recipe_name), **draft.model_dump())


def new_recipe_id(recipe_name: str) -> str:
    slug = "-".join(recipe_name.lower().split()) or "recipe"
    return f"{slug}-{uuid.uuid4().hex[:12]}"


class GenerationPhase(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    PER_RECIPE = "per_recipe"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


class GenerationBatch(CamelModel):
    """Observable state of one recipe-generation batch."""

    ingredients: List[str] = Field(default_factory=list)
    language: Language = "en"
    phase: GenerationPhase = GenerationPhase.IDLE
    recipes: List[Recipe] = Field(default_factory=list)
    current_index: Optional[int] = None
    error: Optional[str] = None
    image_error: Optional[str] = None
    image_requests: int = 0

    @property
    def is_busy(self) -> bool:
        return self.phase in (GenerationPhase.GENERATING, GenerationPhase.PER_RECIPE)


class GenerateRequest(CamelModel):
    ingredients: List[str] = Field(default_factory=list)
    language: Language = "en"
    error_message: Optional[str] = None


class GenerateResponse(CamelModel):
    recipes: List[RecipeDraft]


class ImageRequest(CamelModel):
    recipe_name: NonEmptyStr
    recipe_description: str = ""


class ImageResponse(CamelModel):
    image_url: str


class ScanRequest(CamelModel):
    base64_image: str
    language: Language = "en"
    error_message: Optional[str] = None


class ScanResponse(CamelModel):
    ingredients: List[str]


class ShareRequest(CamelModel):
    recipe: Recipe


class ShareResponse(CamelModel):
    token: str
    url: str


class FavoritesResponse(CamelModel):
    favorites: List[Recipe]
    is_favorite: Optional[bool] = None
