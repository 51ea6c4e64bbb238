"""Unit tests for orchestration limit normalization."""

import pytest

from agentgoround.api.services.orchestration.policy import OrchestrationPolicy


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 8),
        ("12", 12),
        (0, 1),
        (-3, 1),
        (99, 24),
        (5.9, 5),
        ("bad", 8),
        (True, 8),
        (float("nan"), 8),
        (float("inf"), 24),
    ],
)
def test_resolve_max_rounds(raw, expected):
    assert OrchestrationPolicy.resolve_max_rounds(raw) == expected


def test_resolve_react_max_allows_zero():
    assert OrchestrationPolicy.resolve_react_max(0) == 0
    assert OrchestrationPolicy.resolve_react_max(50) == 8
    assert OrchestrationPolicy.resolve_react_max(None, fallback=3) == 3


def test_resolve_retry_max_bounds():
    assert OrchestrationPolicy.resolve_retry_max(-1) == 0
    assert OrchestrationPolicy.resolve_retry_max("4") == 4
    assert OrchestrationPolicy.resolve_retry_max(11) == 10


def test_resolve_retry_delay_keeps_fractions():
    assert OrchestrationPolicy.resolve_retry_delay("0.5") == 0.5
    assert OrchestrationPolicy.resolve_retry_delay(-2) == 0.0
    assert OrchestrationPolicy.resolve_retry_delay(600) == 60.0
    assert OrchestrationPolicy.resolve_retry_delay(None) == 2.0


def test_resolve_max_turns_bounds():
    assert OrchestrationPolicy.resolve_max_turns(0) == 1
    assert OrchestrationPolicy.resolve_max_turns(40) == 32
    assert OrchestrationPolicy.resolve_max_turns("x", fallback=6) == 6
