"""Tolerant JSON extraction for structured model actions."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, Optional

_OBJECT_SPAN_RE = re.compile(r"\{[\s\S]*\}")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_QUOTE_TRANSLATION = str.maketrans(
    {
        "“": '"',
        "”": '"',
        "„": '"',
        "‟": '"',
        "″": '"',
        "‘": "'",
        "’": "'",
        "‚": "'",
        "‛": "'",
    }
)


def sanitize_json_text(text: str) -> str:
    """Normalize smart quotes and drop trailing commas before `}` / `]`."""
    normalized = (text or "").translate(_QUOTE_TRANSLATION)
    return _TRAILING_COMMA_RE.sub(r"\1", normalized)


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(candidate)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Extract the JSON object spanning the first `{` to the last `}` of `text`.

    A strict parse is tried first, then one retry on the sanitized span.
    Returns None when neither parse yields an object; callers treat that as
    unusable model output.
    """
    match = _OBJECT_SPAN_RE.search(text or "")
    if not match:
        return None
    span = match.group(0)
    parsed = _loads_object(span)
    if parsed is not None:
        return parsed
    return _loads_object(sanitize_json_text(span))


def read_discriminator(obj: Any) -> str:
    """Return the lower-cased `type` (or legacy `action`) field, or ''."""
    if not isinstance(obj, dict):
        return ""
    raw = obj.get("type")
    if not isinstance(raw, str) or not raw.strip():
        raw = obj.get("action")
    if not isinstance(raw, str):
        return ""
    return raw.strip().lower()


def first_string(obj: Dict[str, Any], keys: Iterable[str]) -> Optional[str]:
    """Return the first value among `keys` that is a string."""
    for key in keys:
        value = obj.get(key)
        if isinstance(value, str):
            return value
    return None


def coerce_bool(value: Any) -> Optional[bool]:
    """Accept real booleans and the usual string spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "ok", "pass", "passed"}:
            return True
        if lowered in {"false", "no", "fail", "failed"}:
            return False
    return None
