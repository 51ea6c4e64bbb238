"""Policy helpers for protocol limits and retry knobs."""

from typing import Any, Optional


class OrchestrationPolicy:
    """Pure policy helpers so orchestration logic can stay focused on control flow."""

    @staticmethod
    def _coerce_number(raw: Any) -> Optional[float]:
        if raw is None or isinstance(raw, bool):
            return None
        try:
            return float(raw)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def clamp_int(raw: Any, *, fallback: int, low: int, high: int) -> int:
        """Clamp an int-ish knob into [low, high]; unusable values give `fallback`."""
        value = OrchestrationPolicy._coerce_number(raw)
        if value is None or value != value:
            return fallback
        return int(max(low, min(value, high)))

    @staticmethod
    def resolve_max_rounds(raw: Any, *, fallback: int = 8) -> int:
        """Normalize the leader-team round limit."""
        return OrchestrationPolicy.clamp_int(raw, fallback=fallback, low=1, high=24)

    @staticmethod
    def resolve_react_max(raw: Any, *, fallback: int = 2) -> int:
        """Normalize the session-wide re-delegation budget."""
        return OrchestrationPolicy.clamp_int(raw, fallback=fallback, low=0, high=8)

    @staticmethod
    def resolve_retry_max(raw: Any, *, fallback: int = 2) -> int:
        """Normalize retries for invalid actions and transient backend failures."""
        return OrchestrationPolicy.clamp_int(raw, fallback=fallback, low=0, high=10)

    @staticmethod
    def resolve_retry_delay(raw: Any, *, fallback: float = 2.0) -> float:
        """Normalize the delay between retries, in seconds."""
        value = OrchestrationPolicy._coerce_number(raw)
        if value is None or value != value:
            return fallback
        return max(0.0, min(value, 60.0))

    @staticmethod
    def resolve_max_turns(raw: Any, *, fallback: int = 8) -> int:
        """Normalize the goal-driven turn limit."""
        return OrchestrationPolicy.clamp_int(raw, fallback=fallback, low=1, high=32)
