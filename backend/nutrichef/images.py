from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from openinference.semconv.trace import OpenInferenceSpanKindValues

from .config import settings
from .errors import ImageGenerationFailedError, ModelNotConfiguredError, QuotaExceededError
from .llm import get_openai_client
from .prompts import build_image_prompt
from .retry import RetryAborted, RetryExhausted, exponential_backoff, retry
from .tracing import set_output, start_span

logger = logging.getLogger(__name__)

QUOTA_STATUSES = {"RESOURCE_EXHAUSTED"}
QUOTA_CODES = {429, "429", "insufficient_quota", "resource_exhausted"}


def error_details(error: BaseException) -> Dict[str, Any]:
    """Best-effort structured body of an upstream error.

    Providers embed the body either as a JSON message, as a ``body`` attribute
    (openai SDK), or wrapped in an ``{"error": {...}}`` envelope.
    """
    candidates = [getattr(error, "body", None), str(error)]
    for candidate in candidates:
        if isinstance(candidate, str):
            try:
                candidate = json.loads(candidate)
            except ValueError:
                continue
        if isinstance(candidate, dict):
            inner = candidate.get("error")
            return inner if isinstance(inner, dict) else candidate
    return {}


def is_quota_error(error: BaseException) -> bool:
    if isinstance(error, QuotaExceededError):
        return True
    if getattr(error, "status_code", None) == 429:
        return True
    details = error_details(error)
    if str(details.get("status") or "").upper() in QUOTA_STATUSES:
        return True
    code = details.get("code")
    if isinstance(code, str):
        code = code.lower()
    return isinstance(code, (int, str)) and code in QUOTA_CODES


def quota_message(error: BaseException) -> str:
    details = error_details(error)
    message = details.get("message")
    if isinstance(message, str) and message.strip():
        return message.strip()
    if isinstance(error, QuotaExceededError):
        return error.message
    return QuotaExceededError.default_message


class OpenAIImageBackend:
    """Calls the OpenAI Images API and returns ``(base64_bytes, mime_type)``."""

    def __init__(
        self,
        client: Any,
        model: str = "gpt-image-1",
        size: str = "1536x1024",
        output_format: str = "jpeg",
    ):
        self.client = client
        self.model = model
        self.size = size
        self.output_format = output_format

    @classmethod
    def from_settings(cls) -> "OpenAIImageBackend":
        client = get_openai_client()
        if client is None:
            raise ModelNotConfiguredError()
        return cls(
            client,
            model=settings.openai_image_model,
            size=settings.image_size,
            output_format=settings.image_output_format,
        )

    def __call__(self, prompt: str) -> tuple[Optional[str], str]:
        response = self.client.images.generate(
            model=self.model,
            prompt=prompt,
            n=1,
            size=self.size,
            output_format=self.output_format,
        )
        data = getattr(response, "data", None) or []
        image_bytes = data[0].b64_json if data else None
        return image_bytes, f"image/{self.output_format}"


class ImageGenerationClient:
    def __init__(
        self,
        backend: Callable[[str], tuple[Optional[str], str]],
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        quota_check: Callable[[BaseException], bool] = is_quota_error,
    ):
        self.backend = backend
        self.max_attempts = max_attempts
        self.backoff = exponential_backoff(initial_delay)
        self.sleep = sleep
        self.quota_check = quota_check

    @classmethod
    def from_settings(cls) -> "ImageGenerationClient":
        return cls(
            OpenAIImageBackend.from_settings(),
            max_attempts=settings.image_max_attempts,
            initial_delay=settings.image_initial_delay_ms / 1000.0,
        )

    def _attempt(self, prompt: str) -> str:
        image_bytes, mime_type = self.backend(prompt)
        if not image_bytes:
            raise ImageGenerationFailedError("No image was generated by the API.")
        return f"data:{mime_type};base64,{image_bytes}"

    def generate_image(self, recipe_name: str, description: str = "") -> str:
        prompt = build_image_prompt(recipe_name, description)
        with start_span(
            "generate_image",
            OpenInferenceSpanKindValues.TOOL,
            input_value=prompt,
            metadata={"recipe_name": recipe_name, "max_attempts": self.max_attempts},
        ) as span:
            try:
                image_url = retry(
                    lambda: self._attempt(prompt),
                    max_attempts=self.max_attempts,
                    backoff=self.backoff,
                    should_abort=self.quota_check,
                    sleep=self.sleep,
                    label=f'Image generation for "{recipe_name}"',
                )
            except RetryAborted as e:
                raise QuotaExceededError(quota_message(e.last_error)) from e.last_error
            except RetryExhausted as e:
                raise ImageGenerationFailedError() from e.last_error
            set_output(span, f"{len(image_url)} chars")
        return image_url
