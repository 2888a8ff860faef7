import json

import pytest
from langchain_core.messages import AIMessage

from nutrichef.models import RecipeDraft


def make_draft(name="Lemon Chicken Quinoa Bowl", staples=()):
    ingredients = [
        {"quantity": "2", "name": "Chicken Breast", "isStaple": False},
        {"quantity": "1 head", "name": "Broccoli", "isStaple": False},
        {"quantity": "1 cup", "name": "Quinoa", "isStaple": False},
    ]
    ingredients += [{"quantity": "1 tbsp", "name": staple, "isStaple": True} for staple in staples]
    return {
        "recipeName": name,
        "description": "A bright, protein-packed bowl.",
        "prepTime": "10 minutes",
        "cookTime": "20 minutes",
        "servings": 2,
        "calories": 480,
        "difficulty": "Easy",
        "healthTip": "Steam the broccoli to keep its vitamin C.",
        "nutrition": {"protein": "42g", "carbs": "38g", "fats": "12g"},
        "ingredients": ingredients,
        "instructions": ["Cook the quinoa.", "Sear the chicken.", "Steam the broccoli and serve."],
    }


def make_drafts():
    return [
        make_draft("Lemon Chicken Quinoa Bowl"),
        make_draft("Broccoli Quinoa Salad"),
        make_draft("Pan-Seared Chicken with Herbs", staples=("Olive Oil", "Garlic Powder")),
    ]


class FakeChatModel:
    """Stands in for ChatOpenAI: returns canned replies or raises."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


@pytest.fixture
def drafts_payload():
    return make_drafts()


@pytest.fixture
def recipe_drafts():
    return [RecipeDraft.model_validate(item) for item in make_drafts()]


@pytest.fixture
def recipes_reply():
    return json.dumps(make_drafts())


@pytest.fixture
def draft_factory():
    return make_draft


@pytest.fixture
def fake_chat_model():
    return FakeChatModel
