from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from openinference.semconv.trace import OpenInferenceSpanKindValues
from pydantic import TypeAdapter, ValidationError

from .config import settings
from .errors import (
    EmptyInputError,
    MalformedResponseError,
    ModelEmptyResponseError,
    ModelNotConfiguredError,
    NutriChefError,
    UpstreamError,
)
from .llm import get_chat_model, message_text, strip_code_fence
from .models import Language, RecipeDraft
from .prompts import MAX_STAPLES, RECIPE_COUNT, build_recipe_prompt, unique_ingredients
from .tracing import set_output, start_span

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to generate recipes."

_DRAFTS = TypeAdapter(List[RecipeDraft])


def parse_recipe_payload(text: str) -> List[RecipeDraft]:
    """Validate a raw model payload into exactly three recipe drafts."""
    text = strip_code_fence(text or "")
    if not text:
        raise ModelEmptyResponseError()

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError("The AI model returned invalid JSON.") from e

    if not isinstance(payload, list):
        raise MalformedResponseError("The AI model returned an invalid format. Expected an array of recipes.")

    try:
        drafts = _DRAFTS.validate_python(payload)
    except ValidationError as e:
        raise MalformedResponseError(
            f"The AI model returned recipes that do not match the expected schema ({e.error_count()} errors)."
        ) from e
    return validate_drafts(drafts)


def validate_drafts(drafts: List[RecipeDraft]) -> List[RecipeDraft]:
    """Enforce the batch shape: exactly three drafts, staples only in the last one."""
    if len(drafts) != RECIPE_COUNT:
        raise MalformedResponseError(
            f"The AI model returned {len(drafts)} recipes; expected exactly {RECIPE_COUNT}."
        )
    check_staples(drafts)
    return drafts


def check_staples(drafts: List[RecipeDraft]) -> None:
    # Only the last (creative) recipe may add pantry staples.
    for position, draft in enumerate(drafts[:-1], start=1):
        if draft.staples:
            raise MalformedResponseError(
                f"Recipe {position} ('{draft.recipe_name}') adds staples; only the last recipe may."
            )
    creative = drafts[-1]
    if len(creative.staples) > MAX_STAPLES:
        raise MalformedResponseError(
            f"Recipe {len(drafts)} ('{creative.recipe_name}') adds {len(creative.staples)} staples; "
            f"at most {MAX_STAPLES} are allowed."
        )


class RecipeGenerationClient:
    """Single-attempt recipe generation against a LangChain chat model."""

    def __init__(self, llm: Any):
        self.llm = llm

    @classmethod
    def from_settings(cls) -> "RecipeGenerationClient":
        llm = get_chat_model(settings.recipe_temperature)
        if llm is None:
            raise ModelNotConfiguredError()
        return cls(llm)

    def generate_recipes(
        self,
        ingredients: Iterable[str],
        language: Language = "en",
        error_message: Optional[str] = None,
    ) -> List[RecipeDraft]:
        names = unique_ingredients(ingredients or [])
        if not names:
            raise EmptyInputError()

        prompt = build_recipe_prompt(names, language)
        messages = [
            SystemMessage(content=prompt.system_instruction),
            HumanMessage(content=prompt.user_prompt),
        ]
        with start_span(
            "generate_recipes_llm",
            OpenInferenceSpanKindValues.LLM,
            input_value=prompt.user_prompt,
            metadata={"language": language, "ingredients": len(names)},
        ) as span:
            try:
                response = self.llm.invoke(messages)
            except NutriChefError:
                raise
            except Exception as e:
                logger.exception("Recipe generation request failed.")
                raise UpstreamError(error_message or DEFAULT_ERROR_MESSAGE) from e
            text = message_text(response)
            set_output(span, text)

        drafts = parse_recipe_payload(text)
        logger.info(
            "Generated %d recipes (%s) from %d ingredients.", len(drafts), language, len(names)
        )
        return drafts
