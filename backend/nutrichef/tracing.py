from __future__ import annotations

import json
import logging
from contextlib import nullcontext
from typing import Any, ContextManager

from arize.otel import Endpoint, register
from openinference.instrumentation.langchain import LangChainInstrumentor
from openinference.instrumentation.openai import OpenAIInstrumentor
from openinference.semconv.trace import OpenInferenceSpanKindValues, SpanAttributes
from opentelemetry import trace as trace_api

from .config import settings

logger = logging.getLogger(__name__)

TRACER_NAME = "nutrichef"

_TRACING_ENABLED = False
_TRACING_INIT_ERROR: str | None = None


def _register_kwargs() -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "space_id": settings.arize_space_id,
        "api_key": settings.arize_api_key,
        "project_name": settings.arize_project_name,
    }
    endpoint = (settings.arize_endpoint or "").strip()
    if endpoint:
        kwargs["endpoint"] = Endpoint.ARIZE_EUROPE if endpoint.upper() == "ARIZE_EUROPE" else endpoint
    return kwargs


def setup_tracing() -> None:
    """
    Send recipe, scan and image spans to Arize AX when credentials are present.

    Instruments LangChain (recipe/scan chat calls) and the OpenAI SDK (image
    calls). Idempotent.
    """
    global _TRACING_ENABLED
    global _TRACING_INIT_ERROR
    if _TRACING_ENABLED:
        return

    if not (settings.arize_space_id and settings.arize_api_key):
        _TRACING_INIT_ERROR = "Arize tracing disabled: ARIZE_SPACE_ID / ARIZE_API_KEY not set."
        logger.info(_TRACING_INIT_ERROR)
        return

    try:
        tracer_provider = register(**_register_kwargs())
        for instrumentor in (LangChainInstrumentor(), OpenAIInstrumentor()):
            instrumentor.instrument(tracer_provider=tracer_provider)
    except Exception as e:
        _TRACING_ENABLED = False
        _TRACING_INIT_ERROR = f"Arize tracing init failed: {type(e).__name__}"
        logger.exception("Failed to initialize Arize tracing.")
        return

    _TRACING_ENABLED = True
    _TRACING_INIT_ERROR = None
    logger.info("Arize tracing enabled for project '%s'.", settings.arize_project_name)


def tracing_status() -> dict[str, Any]:
    # No secrets here; served by /debug/tracing.
    tracing_flag = (settings.langchain_tracing_v2 or "").strip().lower()
    return {
        "arize": {
            "enabled": _TRACING_ENABLED,
            "project_name": settings.arize_project_name,
            "endpoint": settings.arize_endpoint,
            "missing_space_id": not settings.arize_space_id,
            "missing_api_key": not settings.arize_api_key,
            "last_error": _TRACING_INIT_ERROR,
        },
        "langsmith": {
            "enabled": tracing_flag in {"1", "true", "yes", "on"} and bool(settings.langsmith_api_key),
            "project_name": settings.langchain_project,
            "configured_tracing_v2": bool(tracing_flag),
            "missing_api_key": not settings.langsmith_api_key,
        },
    }


def start_span(
    name: str,
    kind: OpenInferenceSpanKindValues,
    *,
    input_value: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> ContextManager[Any]:
    """Span context manager; yields None while tracing is disabled."""
    if not _TRACING_ENABLED:
        return nullcontext()

    attributes: dict[str, Any] = {SpanAttributes.OPENINFERENCE_SPAN_KIND: kind.value}
    if input_value is not None:
        attributes[SpanAttributes.INPUT_VALUE] = input_value
    if metadata:
        attributes[SpanAttributes.METADATA] = json.dumps(metadata)
    return trace_api.get_tracer(TRACER_NAME).start_as_current_span(name, attributes=attributes)


def set_output(span: Any, value: str) -> None:
    if span is not None:
        span.set_attribute(SpanAttributes.OUTPUT_VALUE, value)
