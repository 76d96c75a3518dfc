"""Heuristic classification of sanitized candidate text.

:func:`check` decides whether a string reads like a real answer or like a
loading placeholder / UI residue.  It is a cheap filter, not a language
model: the polling loop tolerates false rejects by simply trying again.

Checks run in this order and the first failing one decides the verdict:

1. shorter than :data:`~answer_probe.scraper.config.MIN_ANSWER_CHARS`
   -> ``too_short``
2. contains loading/attribution vocabulary and too little else
   -> ``loading``
3. share of code-like words above
   :data:`~answer_probe.scraper.config.MAX_TECHNICAL_RATIO` -> ``ui_noise``
4. no common function word -> ``ui_noise``
"""

from __future__ import annotations

import logging
import re

from answer_probe.scraper.config import (
    FUNCTION_WORDS,
    LOADING_PATTERNS,
    MAX_TECHNICAL_RATIO,
    MIN_ANSWER_CHARS,
    TECHNICAL_TOKEN_PATTERNS,
)
from answer_probe.scraper.models import ValidationVerdict, VerdictReason

logger = logging.getLogger(__name__)

_WORD_PATTERN = re.compile(r"[a-z]+")
_WHITESPACE_RUN = re.compile(r"\s+")
_NON_WORD_RUN = re.compile(r"[^\w]+")


def _strip_loading_vocabulary(text: str) -> str:
    for pattern in LOADING_PATTERNS:
        text = pattern.sub(" ", text)
    # Punctuation left behind by "Loading..." is not content either.
    return _NON_WORD_RUN.sub(" ", text).strip()


def _is_loading_placeholder(text: str) -> bool:
    if not any(p.search(text) for p in LOADING_PATTERNS):
        return False
    return len(_strip_loading_vocabulary(text)) < MIN_ANSWER_CHARS


def technical_ratio(text: str) -> float:
    """Return the share of whitespace-separated words that look like code.

    A word counts once even if several technical patterns match it.
    """
    words = _WHITESPACE_RUN.split(text.strip())
    words = [w for w in words if w]
    if not words:
        return 0.0
    technical = sum(
        1 for word in words if any(p.search(word) for p in TECHNICAL_TOKEN_PATTERNS)
    )
    return technical / len(words)


def _has_function_word(text: str) -> bool:
    return any(word in FUNCTION_WORDS for word in _WORD_PATTERN.findall(text.lower()))


def check(text: str | None) -> ValidationVerdict:
    """Classify ``text`` as an accepted answer or a rejection with a reason.

    Never raises; ``None`` and the empty string are rejected as too short.
    """
    if not text or len(text) < MIN_ANSWER_CHARS:
        return ValidationVerdict.reject(VerdictReason.TOO_SHORT)

    if _is_loading_placeholder(text):
        return ValidationVerdict.reject(VerdictReason.LOADING)

    ratio = technical_ratio(text)
    if ratio > MAX_TECHNICAL_RATIO:
        logger.debug("validator: technical ratio %.2f over limit", ratio)
        return ValidationVerdict.reject(VerdictReason.UI_NOISE)

    if not _has_function_word(text):
        return ValidationVerdict.reject(VerdictReason.UI_NOISE)

    return ValidationVerdict.accept()
