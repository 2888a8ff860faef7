from __future__ import annotations


class NutriChefError(Exception):
    """Base class for every error surfaced to API callers."""

    status_code = 500
    default_message = "An unknown error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class EmptyInputError(NutriChefError):
    status_code = 400
    default_message = "Please provide at least one ingredient."


class ModelEmptyResponseError(NutriChefError):
    default_message = "The AI model returned an empty response. Please try again."


class MalformedResponseError(NutriChefError):
    default_message = "The AI model returned an invalid format."


class InvalidImageFormatError(NutriChefError):
    status_code = 400
    default_message = "Invalid image format."


class QuotaExceededError(NutriChefError):
    status_code = 429
    default_message = "You have exceeded your API quota."


class ImageGenerationFailedError(NutriChefError):
    default_message = "Failed to create image after multiple retries."


class UpstreamError(NutriChefError):
    default_message = "The AI service request failed."


class ModelNotConfiguredError(UpstreamError):
    status_code = 503
    default_message = "OPENAI_API_KEY is not configured."


class InvalidShareTokenError(NutriChefError):
    status_code = 400
    default_message = "The shared recipe link is invalid or corrupted."
