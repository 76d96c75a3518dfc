"""Noise stripping for candidate answer text.

:func:`clean` removes styling code, footnote markers, URLs and UI phrases,
collapses whitespace and drops a leading ``Answer:``-style label.  The rule
tables live in :mod:`answer_probe.scraper.config`.

``clean`` is pure and idempotent: the rule pass is repeated until the text
stops changing, so removing one fragment can never expose another that a
second call would catch.
"""

from __future__ import annotations

import re

from answer_probe.scraper.config import (
    ATTRIBUTION_PATTERN,
    FOOTNOTE_PATTERN,
    LABEL_PREFIX_PATTERN,
    STYLE_CODE_PATTERNS,
    UI_PHRASES,
    URL_PATTERN,
)

_WHITESPACE_RUN = re.compile(r"\s+")

# Longest phrases first so "share this answer" wins over "share this".
_UI_PHRASE_PATTERN = re.compile(
    "|".join(
        rf"(?<!\w){re.escape(phrase)}(?!\w)"
        for phrase in sorted(UI_PHRASES, key=len, reverse=True)
    ),
    re.IGNORECASE,
)


def _strip_style_code(text: str) -> str:
    for pattern in STYLE_CODE_PATTERNS:
        text = pattern.sub(" ", text)
    return text


def _strip_footnotes(text: str) -> str:
    return FOOTNOTE_PATTERN.sub("", text)


def _strip_urls(text: str) -> str:
    return URL_PATTERN.sub(" ", text)


def _strip_ui_phrases(text: str) -> str:
    text = _UI_PHRASE_PATTERN.sub(" ", text)
    return ATTRIBUTION_PATTERN.sub(" ", text)


def _normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RUN.sub(" ", text).strip()


def _strip_label(text: str) -> str:
    return LABEL_PREFIX_PATTERN.sub("", text, count=1)


def _single_pass(text: str) -> str:
    text = _strip_style_code(text)
    text = _strip_footnotes(text)
    text = _strip_urls(text)
    text = _strip_ui_phrases(text)
    text = _normalize_whitespace(text)
    return _strip_label(text)


def clean(text: str | None) -> str:
    """Return ``text`` with known noise removed.

    Args:
        text: Raw text pulled from a document region.  ``None`` is treated
            as the empty string.

    Returns:
        The sanitized text, whitespace-normalized and trimmed.  May be empty.
    """
    if not text:
        return ""
    # Every rule only deletes characters, so the loop always terminates.
    current = text
    while True:
        cleaned = _single_pass(current)
        if cleaned == current:
            return cleaned
        current = cleaned
