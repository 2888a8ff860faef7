from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Iterable, List

from pydantic import TypeAdapter

from .models import Language, RecipeDraft

RECIPE_COUNT = 3
MAX_STAPLES = 3

_LANGUAGE_NAMES = {"en": "English", "es": "Spanish"}


@dataclass(frozen=True)
class RecipePrompt:
    system_instruction: str
    user_prompt: str
    schema: Dict[str, Any]


def language_name(language: Language) -> str:
    return _LANGUAGE_NAMES.get(language, "English")


def unique_ingredients(ingredients: Iterable[str]) -> List[str]:
    """Trimmed, non-blank names with case-insensitive duplicates removed (first wins)."""
    seen = set()
    result: List[str] = []
    for item in ingredients:
        name = (item or "").strip()
        key = name.lower()
        if not name or key in seen:
            continue
        seen.add(key)
        result.append(name)
    return result


@lru_cache(maxsize=1)
def recipe_schema() -> Dict[str, Any]:
    return TypeAdapter(List[RecipeDraft]).json_schema(by_alias=True)


def build_recipe_prompt(ingredients: Iterable[str], language: Language) -> RecipePrompt:
    names = unique_ingredients(ingredients)
    schema = recipe_schema()
    system_instruction = (
        "You are an expert chef specializing in healthy, delicious cuisine. Your task is to generate "
        f"exactly {RECIPE_COUNT} distinct, healthy recipes based on a list of ingredients provided by the user.\n\n"
        f"Your response MUST be a valid JSON array containing {RECIPE_COUNT} recipe objects that strictly "
        "adheres to the JSON schema below. Return only the JSON array, with no markdown and no commentary. "
        "All text in the recipes (names, descriptions, instructions, etc.) MUST be in the language "
        "requested by the user.\n\n"
        "Recipe Generation Rules:\n"
        "1. First Two Recipes: Use ONLY the ingredients from the user's list. For these ingredients, "
        "the 'isStaple' flag must be set to false.\n"
        "2. Third (Creative) Recipe: Use the user's ingredients (with 'isStaple' set to false) AND "
        f"creatively introduce 1-{MAX_STAPLES} common pantry staples (like olive oil, salt, pepper, common "
        "spices). For these added staples ONLY, the 'isStaple' flag must be set to true.\n"
        "3. Completeness and Quality: Fill every field of the schema with relevant, high-quality content "
        "for all three recipes. 'difficulty' must be one of: 'Very Easy', 'Easy', 'Medium', 'Hard', "
        "'Expert'. 'servings' and 'calories' (per serving) are numbers. Nutrition values include their "
        "unit, e.g. '30g'.\n\n"
        f"JSON schema:\n{json.dumps(schema)}"
    )
    user_prompt = (
        f"Please generate recipes in {language_name(language)} using the following ingredients: "
        f"{', '.join(names)}."
    )
    return RecipePrompt(system_instruction=system_instruction, user_prompt=user_prompt, schema=schema)


def build_image_prompt(recipe_name: str, description: str) -> str:
    return (
        f'A healthy, fresh, and vibrant photo of a freshly prepared "{recipe_name}". {description}. '
        "Professional food photography, bright natural lighting, minimalist styling, focus on fresh "
        "ingredients. The food should look incredibly delicious and nutritious, served on a modern white plate."
    )


def build_scan_prompt(language: Language) -> str:
    return (
        "Identify all the food ingredients in this image. List only the names of the ingredients. "
        f"Respond entirely in {language_name(language)}. "
        "Return only a JSON array of strings, one ingredient name per item, with no markdown."
    )
