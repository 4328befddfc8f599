"""Agent identifier normalization."""

import re

DEFAULT_AGENT_ID = "main"
MAX_AGENT_ID_LENGTH = 64

_VALID_ID = re.compile(r"^[a-z0-9][a-z0-9_-]{0,63}$", re.IGNORECASE)
_INVALID_CHARS = re.compile(r"[^a-z0-9_-]+")
_LEADING_DASHES = re.compile(r"^-+")
_TRAILING_DASHES = re.compile(r"-+$")


def sanitize_line(value: str) -> str:
    """Collapse internal whitespace runs to one space and trim."""
    return re.sub(r"\s+", " ", value).strip()


def normalize_agent_id(value: str | None) -> str:
    """Slug a display name into a filesystem-safe agent id.

    Runs of unsupported characters (whitespace included) become a single
    dash, so "My Bot" and "  My   Bot  " both map to "my-bot". Names with no
    usable characters map to the default agent id.
    """
    trimmed = (value or "").strip()
    if not trimmed:
        return DEFAULT_AGENT_ID
    if _VALID_ID.match(trimmed):
        return trimmed.lower()
    slug = _INVALID_CHARS.sub("-", trimmed.lower())
    slug = _LEADING_DASHES.sub("", slug)
    slug = _TRAILING_DASHES.sub("", slug[:MAX_AGENT_ID_LENGTH])
    return slug or DEFAULT_AGENT_ID
