"""Constants, thresholds and rule tables for answer extraction.

Every heuristic the sanitizer, validator and strategy chain apply is listed
here as data so the vocabularies can grow without touching control flow.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Polling defaults
# ---------------------------------------------------------------------------

#: Default attempt budget for one query.
DEFAULT_MAX_ATTEMPTS: int = 10

#: Default wait between attempts (seconds).
DEFAULT_INTERVAL_SECONDS: float = 2.0

#: Default per-fetch timeout (seconds).  Kept below the interval.
DEFAULT_PER_CALL_TIMEOUT_SECONDS: float = 1.5

# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

#: Minimum length (characters, after sanitizing) of an accepted answer.  The
#: strategy chain uses the same figure as its pre-filter.
MIN_ANSWER_CHARS: int = 20

#: Maximum share of words that may look like code/markup before a candidate
#: is rejected as UI noise.
MAX_TECHNICAL_RATIO: float = 0.3

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

#: User-agent string sent with every request.
USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

#: Default search endpoint; ``{query}`` is replaced by the URL-encoded query.
DEFAULT_ENDPOINT_TEMPLATE: str = "https://www.bing.com/search?q={query}&form=QBRE"

#: Content-Type prefixes that can never hold an answer page.
BINARY_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/zip",
        "application/octet-stream",
        "application/vnd.",
        "image/",
        "video/",
        "audio/",
        "font/",
    }
)

# ---------------------------------------------------------------------------
# Sanitizer rule tables
# ---------------------------------------------------------------------------

#: Inline styling / animation code that leaks into text content.
STYLE_CODE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"@(?:-webkit-)?keyframes\s+[\w-]+\s*\{(?:[^{}]*\{[^{}]*\})*[^{}]*\}", re.I),
    re.compile(r"@media[^{}]{0,200}\{(?:[^{}]*\{[^{}]*\})*[^{}]*\}", re.I),
    # Selector tails are bounded so prose full of dots never rescans the text;
    # "." and "#" only continue a selector when a name follows them.
    re.compile(r"[.#][\w-]+(?:[\w ,>+~:\[\]=\"'-]|[.#][\w-]){0,80}?\{[^{}]*\}"),
    re.compile(r"\{[^{}]*\}"),
    re.compile(
        r"\b(?:animation|transition|transform|opacity|display|position|z-index|"
        r"background(?:-color)?|color|font-(?:size|weight|family)|margin|padding|"
        r"width|height)\s*:\s*[^;{}]{1,200};",
        re.I,
    ),
)

#: Bracketed footnote / citation markers such as ``[1]``, ``[2, 3]`` or ``[a]``.
FOOTNOTE_PATTERN: re.Pattern[str] = re.compile(
    r"\[\s*(?:\d{1,3}|[a-z])(?:\s*[,–-]\s*\d{1,3})*\s*\]", re.I
)

#: Embedded URLs.
URL_PATTERN: re.Pattern[str] = re.compile(r"(?:https?://|www\.)\S+", re.I)

#: Fixed UI vocabulary removed wherever it appears.
UI_PHRASES: tuple[str, ...] = (
    "email this answer",
    "share answer",
    "share this answer",
    "share this",
    "copy link",
    "copy to clipboard",
    "copy answer",
    "was this helpful?",
    "was this answer helpful?",
    "give feedback",
    "report an issue",
    "show more",
    "see more",
    "read more",
    "answer generated by ai",
    "ai-generated answer",
    "generated by ai",
    "loading...",
    "loading…",
    "thinking...",
    "thinking…",
    "please wait...",
    "please wait",
    "searching the web...",
    "generating answer...",
)

#: Attribution lines ("Powered by X") removed with the name that follows.
ATTRIBUTION_PATTERN: re.Pattern[str] = re.compile(r"\bpowered by\s+[\w.-]+", re.I)

#: Leading label prefix.
LABEL_PREFIX_PATTERN: re.Pattern[str] = re.compile(
    r"^(?:answer|response|result)\s*:\s*", re.I
)

# ---------------------------------------------------------------------------
# Validator rule tables
# ---------------------------------------------------------------------------

#: Loading-state / attribution vocabulary.  A candidate that is nothing but
#: these terms is a placeholder, not an answer.
LOADING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bthinking\b", re.I),
    re.compile(r"\bloading\b", re.I),
    re.compile(r"\bplease wait\b", re.I),
    re.compile(r"\bjust a (?:moment|second)\b", re.I),
    re.compile(r"\bone moment\b", re.I),
    re.compile(r"\bworking on it\b", re.I),
    re.compile(r"\bsearching(?: the web)?\b", re.I),
    re.compile(r"\bgenerating(?: (?:an |your )?answer)?\b", re.I),
    re.compile(r"\bpowered by\s+[\w.-]+", re.I),
    re.compile(r"\b(?:answer )?generated by ai\b", re.I),
    re.compile(r"\bsources?\b", re.I),
)

#: Word shapes that indicate code, markup or styling rather than prose.
TECHNICAL_TOKEN_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[{}<>;=]"),
    re.compile(r"^[\w-]+:[\w#().-]+$"),
    re.compile(r"^[a-z]+[A-Z]\w*$"),
    re.compile(r"^#[0-9a-fA-F]{3,8}$"),
    re.compile(r"^-?\d+(?:\.\d+)?(?:px|em|rem|ms|vh|vw|deg)$"),
    re.compile(r"^(?:function|var|const|let|return|null|undefined|true|false)\b"),
    re.compile(r"=>|\(\)|&&|\|\|"),
    re.compile(r"^[\w-]+\.(?:js|css|json|svg|png)$"),
)

#: Common English function words.  One hit marks the text as prose.
FUNCTION_WORDS: frozenset[str] = frozenset(
    {
        "a", "an", "the",
        "and", "or", "but", "because", "so",
        "is", "are", "was", "were", "be", "been", "has", "have", "had",
        "do", "does", "did", "can", "will", "would",
        "of", "in", "on", "at", "to", "for", "with", "from", "by", "as",
        "it", "its", "this", "that", "which", "who", "there",
    }
)

# ---------------------------------------------------------------------------
# Strategy tables
# ---------------------------------------------------------------------------

#: Selectors of containers known to hold the answer, most specific first.
PRIMARY_CONTAINER_SELECTORS: tuple[str, ...] = (
    "div.b_ans",
    "[data-answer]",
    "[data-testid='answer']",
    "#answer",
    ".answer",
    ".b_focusTextLarge",
    ".b_focusTextMedium",
    ".prose",
    ".markdown",
)

#: Keys whose string values look like an answer inside embedded JSON.
ANSWER_FIELD_NAMES: tuple[str, ...] = (
    "answer",
    "text",
    "answerText",
    "abstract",
    "description",
    "summary",
)

#: ``<meta>`` selectors carrying a summary of the page.
METADATA_SELECTORS: tuple[str, ...] = (
    "meta[name='description']",
    "meta[property='og:description']",
    "meta[name='twitter:description']",
)

#: Sectioning elements scanned by the generic strategy, in order.
GENERIC_REGION_TAGS: tuple[str, ...] = ("main", "article", "section", "body")

#: Text-bearing elements inside a generic region.
GENERIC_BLOCK_TAGS: tuple[str, ...] = ("p", "li", "dd", "blockquote")

#: Elements whose text is never content.
NON_CONTENT_TAGS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "template",
    "svg",
    "button",
    "nav",
    "footer",
)
