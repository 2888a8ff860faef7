from __future__ import annotations

import os
import re
from typing import Any, Optional

from langchain_openai import ChatOpenAI
from openai import OpenAI

from .config import settings

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.S | re.I)


def _configure_tracing() -> None:
    if settings.langchain_tracing_v2:
        os.environ["LANGCHAIN_TRACING_V2"] = settings.langchain_tracing_v2
    if settings.langchain_project:
        os.environ["LANGCHAIN_PROJECT"] = settings.langchain_project
    if settings.langsmith_api_key:
        os.environ["LANGSMITH_API_KEY"] = settings.langsmith_api_key


def get_chat_model(temperature: float) -> Optional[ChatOpenAI]:
    if not settings.openai_api_key:
        return None
    _configure_tracing()
    os.environ["OPENAI_API_KEY"] = settings.openai_api_key
    return ChatOpenAI(model=settings.openai_model, temperature=temperature)


def get_openai_client() -> Optional[OpenAI]:
    if not settings.openai_api_key:
        return None
    return OpenAI(api_key=settings.openai_api_key)


def message_text(message: Any) -> str:
    """Flatten a chat model reply (plain string or content parts) into text."""
    content = getattr(message, "content", message)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, dict):
                parts.append(str(part.get("text") or ""))
            else:
                parts.append(str(part))
        content = "".join(parts)
    return str(content or "").strip()


def strip_code_fence(text: str) -> str:
    match = _CODE_FENCE_RE.match(text.strip())
    if match:
        return match.group(1).strip()
    return text.strip()
