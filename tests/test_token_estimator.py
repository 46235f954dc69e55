"""Token estimator tests.

Updates: v0.1.0 - 2026-10-16 - Cover prose/code bounds, clamping, and confidence bands.
"""

from __future__ import annotations

import pytest

from core.token_estimator import confidence_for, estimate_tokens, looks_like_code
from models.prompt_model import Confidence


def test_estimate_tokens_hello_world() -> None:
    """Two words and eleven characters give a 2..3 high-confidence estimate."""
    estimate = estimate_tokens("hello world")
    assert estimate.min_tokens == 2
    assert estimate.max_tokens == 3
    assert estimate.confidence is Confidence.HIGH


def test_estimate_tokens_ignores_surrounding_whitespace() -> None:
    assert estimate_tokens("   hello world \n") == estimate_tokens("hello world")


def test_estimate_tokens_empty_text() -> None:
    estimate = estimate_tokens("   ")
    assert (estimate.min_tokens, estimate.max_tokens) == (0, 0)
    assert estimate.confidence is Confidence.HIGH


def test_code_multiplier_scales_rounded_bounds() -> None:
    """Code scaling applies 1.3 to the already rounded bounds."""
    text = "const x = 1;"
    prose = estimate_tokens(text)
    code = estimate_tokens(text, is_code=True)
    assert (prose.min_tokens, prose.max_tokens) == (3, 3)
    assert (code.min_tokens, code.max_tokens) == (4, 4)


def test_max_is_clamped_up_to_min() -> None:
    """Many one-letter words push the word bound above the character bound."""
    text = " ".join(["a"] * 10)
    estimate = estimate_tokens(text)
    assert estimate.min_tokens == 8
    assert estimate.max_tokens == 8


@pytest.mark.parametrize(
    ("max_tokens", "expected"),
    [
        (0, Confidence.HIGH),
        (999, Confidence.HIGH),
        (1000, Confidence.MEDIUM),
        (5000, Confidence.MEDIUM),
        (5001, Confidence.LOW),
    ],
)
def test_confidence_bands(max_tokens: int, expected: Confidence) -> None:
    assert confidence_for(max_tokens) is expected


def test_estimate_grows_with_content() -> None:
    short = estimate_tokens("word " * 10)
    longer = estimate_tokens("word " * 100)
    assert longer.min_tokens >= short.min_tokens
    assert longer.max_tokens >= short.max_tokens


def test_long_text_lowers_confidence() -> None:
    estimate = estimate_tokens("x" * 24_000)
    assert estimate.max_tokens == 6000
    assert estimate.confidence is Confidence.LOW


@pytest.mark.parametrize(
    "text",
    [
        "def add(a, b):\n    return a + b",
        "function add(a, b) { return a + b }",
        "const total = items.length",
        "if (ready) start()",
        "items.map(x => x * 2)",
    ],
)
def test_looks_like_code_detects_source(text: str) -> None:
    assert looks_like_code(text)


@pytest.mark.parametrize(
    "text",
    [
        "Summarise the attached report in three bullet points.",
        "Write a friendly reply thanking the customer.",
    ],
)
def test_looks_like_code_ignores_prose(text: str) -> None:
    assert not looks_like_code(text)
