from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from langchain_core.messages import HumanMessage
from openinference.semconv.trace import OpenInferenceSpanKindValues

from .config import settings
from .errors import (
    InvalidImageFormatError,
    MalformedResponseError,
    ModelNotConfiguredError,
    NutriChefError,
    UpstreamError,
)
from .llm import get_chat_model, message_text, strip_code_fence
from .models import Language
from .prompts import build_scan_prompt, unique_ingredients
from .tracing import set_output, start_span

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to identify ingredients."

DATA_URI_RE = re.compile(r"^data:(image/[^;,]+);base64,(.+)$", re.S)


def split_data_uri(image_data: str) -> tuple[str, str]:
    """Return ``(mime_type, base64_payload)`` of an image data URI."""
    match = DATA_URI_RE.match((image_data or "").strip()) if isinstance(image_data, str) else None
    if not match:
        raise InvalidImageFormatError()
    return match.group(1), match.group(2)


def parse_ingredient_payload(text: str) -> List[str]:
    try:
        payload = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise MalformedResponseError("AI returned an unexpected format for ingredients.") from e
    if not isinstance(payload, list) or not all(isinstance(item, str) for item in payload):
        raise MalformedResponseError("AI returned an unexpected format for ingredients.")
    return unique_ingredients(payload)


class IngredientScanClient:
    def __init__(self, llm: Any):
        self.llm = llm

    @classmethod
    def from_settings(cls) -> "IngredientScanClient":
        llm = get_chat_model(settings.scan_temperature)
        if llm is None:
            raise ModelNotConfiguredError()
        return cls(llm)

    def identify_ingredients(
        self,
        image_data: str,
        language: Language = "en",
        error_message: Optional[str] = None,
    ) -> List[str]:
        mime_type, payload = split_data_uri(image_data)
        message = HumanMessage(
            content=[
                {"type": "text", "text": build_scan_prompt(language)},
                {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{payload}"}},
            ]
        )
        with start_span(
            "scan_ingredients_llm",
            OpenInferenceSpanKindValues.LLM,
            metadata={"language": language, "mime_type": mime_type, "payload_chars": len(payload)},
        ) as span:
            try:
                response = self.llm.invoke([message])
            except NutriChefError:
                raise
            except Exception as e:
                logger.exception("Ingredient scan request failed.")
                raise UpstreamError(error_message or DEFAULT_ERROR_MESSAGE) from e
            text = message_text(response)
            set_output(span, text)

        ingredients = parse_ingredient_payload(text)
        logger.info("Identified %d ingredients from a %s image.", len(ingredients), mime_type)
        return ingredients
