"""Shared log/text helpers for orchestration."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional


def truncate_log_text(text: Optional[str], max_chars: int = 1600) -> str:
    """Trim text for debug logs while preserving head and tail context."""
    content = (text or "").replace("\r", "")
    if len(content) <= max_chars:
        return content
    head = int(max_chars * 0.7)
    tail = max_chars - head
    return f"{content[:head]}\n...[truncated]...\n{content[-tail:]}"


def stringify_any(value: Any) -> str:
    """Render a JSON-ish value as display text (strings pass through)."""
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


trace_logger = logging.getLogger("agentgoround.trace")


def log_trace(trace_id: Optional[str], stage: str, payload: Dict[str, Any]) -> None:
    """Emit one structured orchestration trace line."""
    if not trace_id:
        return
    record = {"trace_id": trace_id, "stage": stage, **payload}
    trace_logger.info("[TRACE] %s", json.dumps(record, ensure_ascii=False, default=str))
