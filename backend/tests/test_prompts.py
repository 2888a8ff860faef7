from nutrichef.prompts import (
    build_image_prompt,
    build_recipe_prompt,
    build_scan_prompt,
    recipe_schema,
    unique_ingredients,
)


def test_unique_ingredients_is_case_insensitive_and_keeps_first():
    assert unique_ingredients([" Quinoa", "quinoa", "", "Broccoli", "BROCCOLI "]) == ["Quinoa", "Broccoli"]


def test_recipe_prompt_states_generation_rules():
    prompt = build_recipe_prompt(["Chicken Breast", "Broccoli", "Quinoa"], "en")

    assert "exactly 3" in prompt.system_instruction
    assert "ONLY the ingredients" in prompt.system_instruction
    assert "1-3 common pantry staples" in prompt.system_instruction
    assert prompt.user_prompt == (
        "Please generate recipes in English using the following ingredients: Chicken Breast, Broccoli, Quinoa."
    )


def test_recipe_prompt_uses_spanish_for_es():
    prompt = build_recipe_prompt(["Pollo"], "es")
    assert "in Spanish" in prompt.user_prompt


def test_recipe_schema_is_camel_case_array():
    schema = recipe_schema()
    assert schema["type"] == "array"
    draft = schema["$defs"]["RecipeDraft"]
    assert set(draft["required"]) >= {
        "recipeName", "description", "prepTime", "cookTime", "servings", "calories",
        "difficulty", "healthTip", "nutrition", "ingredients", "instructions",
    }
    assert "isStaple" in schema["$defs"]["IngredientRef"]["properties"]
    assert build_recipe_prompt(["Tofu"], "en").schema == schema


def test_image_and_scan_prompts():
    assert '"Green Curry"' in build_image_prompt("Green Curry", "Fragrant and light")
    assert "Respond entirely in Spanish" in build_scan_prompt("es")
