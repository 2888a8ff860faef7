from __future__ import annotations

import base64
import binascii
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from pydantic import ValidationError

from .errors import InvalidShareTokenError
from .models import Recipe

SHARE_PARAM = "recipe"


def encode_recipe(recipe: Recipe) -> str:
    """Base64 of the recipe's camelCase JSON."""
    payload = recipe.model_dump_json(by_alias=True).encode("utf-8")
    return base64.b64encode(payload).decode("ascii")


def decode_recipe(token: str) -> Recipe:
    # Query strings may turn '+' into ' ' and drop '=' padding.
    cleaned = (token or "").strip().replace(" ", "+")
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        payload = base64.b64decode(cleaned, altchars=b"-_" if "-" in cleaned or "_" in cleaned else None)
        return Recipe.model_validate_json(payload)
    except (binascii.Error, ValueError, ValidationError) as e:
        raise InvalidShareTokenError() from e


def build_share_url(recipe: Recipe, base_url: str) -> str:
    parts = urlsplit(base_url)
    query = parse_qs(parts.query)
    query[SHARE_PARAM] = [encode_recipe(recipe)]
    return urlunsplit(parts._replace(query=urlencode(query, doseq=True)))


def recipe_from_url(url: str) -> Recipe:
    values = parse_qs(urlsplit(url).query).get(SHARE_PARAM)
    if not values:
        raise InvalidShareTokenError()
    return decode_recipe(values[0])
