from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import requests
from pydantic import TypeAdapter, ValidationError

from .errors import (
    EmptyInputError,
    InvalidImageFormatError,
    MalformedResponseError,
    QuotaExceededError,
    UpstreamError,
)
from .models import Language, RecipeDraft
from .prompts import unique_ingredients
from .recipes import validate_drafts
from .scan import split_data_uri

logger = logging.getLogger(__name__)

IMAGE_ERROR_MESSAGE = "Failed to create a healthy image for the recipe. Please try again."
RECIPES_ERROR_MESSAGE = "Failed to generate recipes."
SCAN_ERROR_MESSAGE = "Failed to identify ingredients."

_DRAFTS = TypeAdapter(List[RecipeDraft])

_BAD_REQUEST_ERRORS = {
    "/api/generate": EmptyInputError,
    "/api/scan": InvalidImageFormatError,
}


class NutriChefApiClient:
    """HTTP client for the NutriChef API, interchangeable with the direct model clients."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 60):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _post(self, path: str, body: Dict[str, Any], error_message: str) -> Dict[str, Any]:
        try:
            response = self.session.post(f"{self.base_url}{path}", json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.exception("Request to %s failed.", path)
            raise UpstreamError(error_message) from e

        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = (payload.get("error") if isinstance(payload, dict) else None) or error_message
            logger.error("API error from %s (%s): %s", path, response.status_code, message)
            if response.status_code == 429:
                raise QuotaExceededError(message)
            if response.status_code == 400 and path in _BAD_REQUEST_ERRORS:
                raise _BAD_REQUEST_ERRORS[path](message)
            raise UpstreamError(message)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(error_message) from e
        if not isinstance(data, dict):
            raise MalformedResponseError(error_message)
        return data

    def generate_recipes(
        self,
        ingredients: Iterable[str],
        language: Language = "en",
        error_message: Optional[str] = None,
    ) -> List[RecipeDraft]:
        names = unique_ingredients(ingredients or [])
        if not names:
            raise EmptyInputError()
        message = error_message or RECIPES_ERROR_MESSAGE
        body = {"ingredients": names, "language": language}
        if error_message:
            body["errorMessage"] = error_message
        data = self._post("/api/generate", body, message)
        try:
            drafts = _DRAFTS.validate_python(data.get("recipes"))
        except ValidationError as e:
            raise MalformedResponseError(message) from e
        try:
            return validate_drafts(drafts)
        except MalformedResponseError as e:
            logger.error("Recipe batch from %s rejected: %s", self.base_url, e.message)
            raise MalformedResponseError(message) from e

    def generate_image(self, recipe_name: str, description: str = "") -> str:
        data = self._post(
            "/api/image",
            {"recipeName": recipe_name, "recipeDescription": description},
            IMAGE_ERROR_MESSAGE,
        )
        image_url = data.get("imageUrl")
        if not isinstance(image_url, str) or not image_url:
            raise MalformedResponseError(IMAGE_ERROR_MESSAGE)
        return image_url

    def identify_ingredients(
        self,
        image_data: str,
        language: Language = "en",
        error_message: Optional[str] = None,
    ) -> List[str]:
        split_data_uri(image_data)
        message = error_message or SCAN_ERROR_MESSAGE
        body = {"base64Image": image_data, "language": language}
        if error_message:
            body["errorMessage"] = error_message
        data = self._post("/api/scan", body, message)
        ingredients = data.get("ingredients")
        if not isinstance(ingredients, list) or not all(isinstance(i, str) for i in ingredients):
            raise MalformedResponseError(message)
        return ingredients
