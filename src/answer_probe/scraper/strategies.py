"""Ordered extraction strategies for locating the answer inside a document.

Each strategy is a generator over a parsed document that yields
``(raw_text, locator)`` pairs in document order.  :class:`ExtractionChain`
walks the strategies in :class:`~answer_probe.scraper.models.StrategyId`
order, sanitizes every yielded span and returns the first one that clears the
length pre-filter.  Once a strategy produces such a span, later strategies
are not consulted, and within a strategy the first qualifying sub-region
wins (not the longest).

Strategies, highest priority first:

1. ``primary_container`` — known answer container selectors.
2. ``structured_data``   — answer-shaped fields in embedded JSON blocks.
3. ``metadata``          — description ``<meta>`` tags.
4. ``generic_scan``      — sentence-like blocks inside sectioning elements.

Full content validation is not applied here; that is the validator's job.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup, Tag

from answer_probe.scraper.config import (
    ANSWER_FIELD_NAMES,
    GENERIC_BLOCK_TAGS,
    GENERIC_REGION_TAGS,
    METADATA_SELECTORS,
    MIN_ANSWER_CHARS,
    NON_CONTENT_TAGS,
    PRIMARY_CONTAINER_SELECTORS,
)
from answer_probe.scraper.models import Candidate, DocumentSnapshot, StrategyId
from answer_probe.scraper.sanitizer import clean

logger = logging.getLogger(__name__)

_JSON_SCRIPT_TYPES: frozenset[str] = frozenset(
    {"application/ld+json", "application/json"}
)

# ``window.__STATE__ = {...};`` style assignments inside ordinary scripts.
_JS_ASSIGNMENT = re.compile(r"=\s*(\{.*\})\s*;?\s*$", re.DOTALL)

_SENTENCE_LIKE = re.compile(r"[A-Za-z]{2,}\s+[A-Za-z]{2,}.*[.!?]")


# ---------------------------------------------------------------------------
# Parsed document
# ---------------------------------------------------------------------------


@dataclass
class ParsedDocument:
    """A snapshot parsed once and shared by all strategies of one attempt.

    Attributes:
        soup: Markup tree with non-content elements (scripts, styles, ...)
            removed.
        data_blocks: Raw bodies of ``<script>`` elements captured before
            removal, in document order.
    """

    soup: BeautifulSoup
    data_blocks: list[tuple[str | None, str]] = field(default_factory=list)

    @classmethod
    def from_html(cls, html: str) -> ParsedDocument:
        soup = BeautifulSoup(html or "", "html.parser")
        blocks: list[tuple[str | None, str]] = []
        for script in soup.find_all("script"):
            body = script.string or script.get_text() or ""
            if body.strip():
                blocks.append((script.get("type"), body))
        for tag in soup.find_all(list(NON_CONTENT_TAGS)):
            tag.decompose()
        return cls(soup=soup, data_blocks=blocks)


def _text_of(element: Tag) -> str:
    return element.get_text(" ", strip=True)


# ---------------------------------------------------------------------------
# Strategy 1: primary content container
# ---------------------------------------------------------------------------


def primary_container(doc: ParsedDocument) -> Iterator[tuple[str, str]]:
    """Yield paragraphs of known answer containers, then the whole container."""
    for selector in PRIMARY_CONTAINER_SELECTORS:
        for n, container in enumerate(doc.soup.select(selector)):
            attr_answer = container.get("data-answer")
            if isinstance(attr_answer, str) and attr_answer.strip():
                yield attr_answer, f"{selector}[{n}]@data-answer"
            for i, paragraph in enumerate(container.find_all("p")):
                yield _text_of(paragraph), f"{selector}[{n}] p[{i}]"
            yield _text_of(container), f"{selector}[{n}]"


# ---------------------------------------------------------------------------
# Strategy 2: structured data blocks
# ---------------------------------------------------------------------------


def _load_block(script_type: str | None, body: str) -> Any:
    if script_type in _JSON_SCRIPT_TYPES:
        return json.loads(body)
    match = _JS_ASSIGNMENT.search(body.strip())
    if match is None:
        return None
    try:
        return json.loads(match.group(1))
    except ValueError:
        return None


def _walk_answer_fields(node: Any, path: str) -> Iterator[tuple[str, str]]:
    if isinstance(node, dict):
        for key, value in node.items():
            child = f"{path}.{key}"
            if key in ANSWER_FIELD_NAMES and isinstance(value, str):
                yield value, child
            else:
                yield from _walk_answer_fields(value, child)
    elif isinstance(node, list):
        for i, item in enumerate(node):
            yield from _walk_answer_fields(item, f"{path}[{i}]")


def structured_data(doc: ParsedDocument) -> Iterator[tuple[str, str]]:
    """Yield answer-shaped string fields from embedded JSON, in document order."""
    for n, (script_type, body) in enumerate(doc.data_blocks):
        try:
            data = _load_block(script_type, body)
        except ValueError as exc:
            logger.debug("strategies: unparseable data block %d: %s", n, exc)
            continue
        if data is None:
            continue
        # Field text may itself carry markup.
        for value, locator in _walk_answer_fields(data, f"script[{n}]"):
            yield BeautifulSoup(value, "html.parser").get_text(" ", strip=True), locator


# ---------------------------------------------------------------------------
# Strategy 3: document metadata
# ---------------------------------------------------------------------------


def metadata(doc: ParsedDocument) -> Iterator[tuple[str, str]]:
    """Yield the ``content`` of description-style ``<meta>`` tags."""
    for selector in METADATA_SELECTORS:
        for tag in doc.soup.select(selector):
            content = tag.get("content")
            if isinstance(content, str):
                yield content, selector


# ---------------------------------------------------------------------------
# Strategy 4: generic region scan
# ---------------------------------------------------------------------------


def generic_scan(doc: ParsedDocument) -> Iterator[tuple[str, str]]:
    """Yield sentence-like blocks from sectioning elements.

    Regions are visited in :data:`GENERIC_REGION_TAGS` order; inside a region
    block elements come first, then bare text nodes for pages that do not
    use paragraphs at all.  Fragments without any sectioning element are
    scanned as a whole.
    """
    regions: list[tuple[str, Tag]] = [
        (f"{region_tag}[{n}]", region)
        for region_tag in GENERIC_REGION_TAGS
        for n, region in enumerate(doc.soup.find_all(region_tag))
    ]
    if not regions:
        regions.append(("document", doc.soup))

    for prefix, region in regions:
        for i, block in enumerate(region.find_all(list(GENERIC_BLOCK_TAGS))):
            text = _text_of(block)
            if _SENTENCE_LIKE.search(text):
                yield text, f"{prefix} {block.name}[{i}]"
        for i, string in enumerate(region.stripped_strings):
            if _SENTENCE_LIKE.search(string):
                yield string, f"{prefix} text[{i}]"


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------

Strategy = Callable[[ParsedDocument], Iterator[tuple[str, str]]]

#: Strategies in priority order.
DEFAULT_STRATEGIES: tuple[tuple[StrategyId, Strategy], ...] = (
    (StrategyId.PRIMARY_CONTAINER, primary_container),
    (StrategyId.STRUCTURED_DATA, structured_data),
    (StrategyId.METADATA, metadata),
    (StrategyId.GENERIC_SCAN, generic_scan),
)


class ExtractionChain:
    """Run strategies in priority order and return the first usable candidate.

    Args:
        strategies: ``(StrategyId, callable)`` pairs in priority order.
        cleaner: Sanitizer applied to each raw span before the length check.
        min_chars: Pre-filter length a sanitized span must reach.
    """

    def __init__(
        self,
        strategies: tuple[tuple[StrategyId, Strategy], ...] = DEFAULT_STRATEGIES,
        *,
        cleaner: Callable[[str], str] = clean,
        min_chars: int = MIN_ANSWER_CHARS,
    ) -> None:
        self._strategies = strategies
        self._clean = cleaner
        self._min_chars = min_chars

    def _first_from(
        self, strategy_id: StrategyId, strategy: Strategy, doc: ParsedDocument
    ) -> Candidate | None:
        try:
            for raw, locator in strategy(doc):
                text = self._clean(raw)
                if len(text) >= self._min_chars:
                    return Candidate(text=text, strategy_id=strategy_id, source_locator=locator)
        except Exception as exc:  # noqa: BLE001
            logger.warning("strategies: %s failed: %s", strategy_id.value, exc)
        return None

    def extract(self, snapshot: DocumentSnapshot) -> Candidate | None:
        """Return the first candidate any strategy yields, or ``None``.

        Args:
            snapshot: The fetched document.

        Returns:
            A :class:`Candidate` carrying sanitized text, or ``None`` when no
            strategy finds a span of at least ``min_chars`` characters.
        """
        doc = ParsedDocument.from_html(snapshot.html)
        for strategy_id, strategy in self._strategies:
            candidate = self._first_from(strategy_id, strategy, doc)
            if candidate is not None:
                logger.debug(
                    "strategies: %s matched at %s",
                    strategy_id.value,
                    candidate.source_locator,
                )
                return candidate
        return None
