"""Placeholder dish images used when remote image generation fails.

Images are inline SVG data URIs so a fallback never needs a network request.
"""

from __future__ import annotations

import base64
from typing import List, Tuple


def _placeholder(label: str, plate: str, accent: str) -> str:
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="640" height="360" viewBox="0 0 640 360">'
        '<rect width="640" height="360" fill="#f1f5f9"/>'
        f'<circle cx="320" cy="180" r="130" fill="{plate}"/>'
        '<circle cx="320" cy="180" r="100" fill="#ffffff"/>'
        f'<circle cx="290" cy="160" r="34" fill="{accent}" fill-opacity="0.85"/>'
        f'<circle cx="350" cy="175" r="28" fill="{accent}" fill-opacity="0.6"/>'
        f'<circle cx="315" cy="210" r="22" fill="{accent}" fill-opacity="0.45"/>'
        '<text x="320" y="340" font-family="sans-serif" font-size="20" fill="#475569" '
        f'text-anchor="middle">{label}</text>'
        "</svg>"
    )
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


FALLBACK_GENERIC = _placeholder("NutriChef", "#e2e8f0", "#22c55e")
FALLBACK_CHICKEN = _placeholder("NutriChef", "#fde68a", "#d97706")
FALLBACK_SALAD = _placeholder("NutriChef", "#bbf7d0", "#15803d")

# Checked in order; the first keyword found in the recipe name wins.
KEYWORDS: List[Tuple[str, str]] = [
    ("chicken", FALLBACK_CHICKEN),
    ("pollo", FALLBACK_CHICKEN),
    ("salad", FALLBACK_SALAD),
    ("ensalada", FALLBACK_SALAD),
    ("baked", FALLBACK_GENERIC),
    ("roasted", FALLBACK_GENERIC),
    ("pan-seared", FALLBACK_CHICKEN),
]


def fallback_image_url(recipe_name: str) -> str:
    lowered = (recipe_name or "").lower()
    for keyword, image_url in KEYWORDS:
        if keyword in lowered:
            return image_url
    return FALLBACK_GENERIC
