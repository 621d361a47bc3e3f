"""
mattbot.engine.search — "Let me ___ that for you" links
========================================================
"""

from __future__ import annotations

from urllib.parse import quote_plus

LMGTFY_BASE_URL = "https://lmgt.org/?q="
LMGPTTFY_BASE_URL = "https://chatgpt.com/?q="


def build_lmgtfy_url(content: str) -> str:
    """Search link for *content*; runs of whitespace collapse to a single ``+``."""
    return LMGTFY_BASE_URL + quote_plus(" ".join(content.split()))


def build_lmgpttfy_url(content: str) -> str:
    """ChatGPT link with *content* URL-encoded as-is."""
    return LMGPTTFY_BASE_URL + quote_plus(content)
