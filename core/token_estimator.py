"""Heuristic token estimation for prompt content.

The estimate brackets the likely token count of a text between a word-based
lower bound and a character-based upper bound. Texts that look like source
code are scaled up because code tokenises less efficiently than prose.

Updates:
  v0.2.0 - 2026-10-16 - Clamp the upper bound to the lower bound instead of swapping.
  v0.1.0 - 2026-10-15 - Initial estimator and code-likelihood heuristic.
"""

from __future__ import annotations

import math
import re
from typing import Final

from models.prompt_model import Confidence, TokenEstimate

WORD_TOKEN_RATIO: Final[float] = 0.75
CHAR_TOKEN_RATIO: Final[float] = 0.25
CODE_MULTIPLIER: Final[float] = 1.3
HIGH_CONFIDENCE_LIMIT: Final[int] = 1000
MEDIUM_CONFIDENCE_LIMIT: Final[int] = 5000

_CODE_PATTERN = re.compile(
    r"[{};<>]"
    r"|=>"
    r"|\b(?:function|class|def)\s+\w"
    r"|\b(?:const|let|var)\s+\w+\s*="
    r"|\b(?:if|for|while)\s*\("
    r"|^\s*return\b",
    re.MULTILINE,
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def looks_like_code(text: str) -> bool:
    """Return True when *text* carries punctuation or keywords typical of source code."""
    return bool(_CODE_PATTERN.search(text))


def confidence_for(max_tokens: int) -> Confidence:
    """Return the confidence band for an upper-bound estimate."""
    if max_tokens < HIGH_CONFIDENCE_LIMIT:
        return Confidence.HIGH
    if max_tokens <= MEDIUM_CONFIDENCE_LIMIT:
        return Confidence.MEDIUM
    return Confidence.LOW


def estimate_tokens(text: str, is_code: bool = False) -> TokenEstimate:
    """Estimate the token footprint of *text*.

    ``min`` is 0.75 tokens per whitespace-delimited word and ``max`` is one
    token per four characters of the trimmed text. When *is_code* is set both
    rounded bounds are scaled by 1.3 and rounded again. ``max`` is raised to
    ``min`` when it falls below it.
    """
    trimmed = text.strip()
    words = len(trimmed.split())
    chars = len(trimmed)
    min_tokens = _round_half_up(WORD_TOKEN_RATIO * words)
    max_tokens = _round_half_up(CHAR_TOKEN_RATIO * chars)
    if is_code:
        min_tokens = _round_half_up(min_tokens * CODE_MULTIPLIER)
        max_tokens = _round_half_up(max_tokens * CODE_MULTIPLIER)
    max_tokens = max(max_tokens, min_tokens)
    return TokenEstimate(
        min_tokens=min_tokens,
        max_tokens=max_tokens,
        confidence=confidence_for(max_tokens),
    )


__all__ = ["confidence_for", "estimate_tokens", "looks_like_code"]
