from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional

from .models import Language
from .prompts import unique_ingredients

# Parallel lists: the same position holds the same ingredient in each language.
CATALOG: Dict[str, Dict[str, List[str]]] = {
    "en": {
        "proteins": ["Chicken Breast", "Salmon", "Tofu", "Black Beans", "Greek Yogurt", "Eggs", "Lentils"],
        "vegetables": ["Broccoli", "Spinach", "Kale", "Bell Pepper", "Onion", "Tomato", "Sweet Potato", "Zucchini"],
        "carbs_fats": ["Quinoa", "Brown Rice", "Avocado", "Olive Oil", "Almonds", "Oats"],
    },
    "es": {
        "proteins": [
            "Pechuga de Pollo", "Salmón", "Tofu", "Frijoles Negros", "Yogur Griego", "Huevos", "Lentejas",
        ],
        "vegetables": [
            "Brócoli", "Espinacas", "Kale", "Pimiento", "Cebolla", "Tomate", "Batata", "Calabacín",
        ],
        "carbs_fats": ["Quinoa", "Arroz Integral", "Aguacate", "Aceite de Oliva", "Almendras", "Avena"],
    },
}

CATEGORIES = ("proteins", "vegetables", "carbs_fats")


def suggestions(language: Language) -> List[str]:
    groups = CATALOG.get(language, CATALOG["en"])
    return [name for category in CATEGORIES for name in groups[category]]


def random_ingredients(rng: Optional[random.Random] = None) -> List[str]:
    """One protein, one vegetable and one carb/fat from the English catalog."""
    rng = rng or random.Random()
    return [rng.choice(CATALOG["en"][category]) for category in CATEGORIES]


def add_ingredient(ingredients: List[str], name: str) -> List[str]:
    return unique_ingredients([*ingredients, name])


def remove_ingredient(ingredients: List[str], name: str) -> List[str]:
    key = (name or "").strip().lower()
    return [item for item in ingredients if item.strip().lower() != key]


def merge_ingredients(existing: List[str], scanned: Iterable[str]) -> List[str]:
    return unique_ingredients([*existing, *scanned])


def translate_ingredients(ingredients: Iterable[str], source: Language, target: Language) -> List[str]:
    """Swap catalog items for their ``target`` counterpart; keep anything user-typed."""
    if source == target:
        return unique_ingredients(ingredients)
    lookup = {
        name.lower(): translated
        for name, translated in zip(suggestions(source), suggestions(target))
    }
    return unique_ingredients(lookup.get(item.strip().lower(), item) for item in ingredients)
