"""Resolution of a query into the endpoint(s) a poll session fetches."""

from __future__ import annotations

import urllib.parse
from collections.abc import Sequence
from dataclasses import dataclass

from answer_probe.scraper.config import DEFAULT_ENDPOINT_TEMPLATE


@dataclass(frozen=True)
class TargetDescriptor:
    """Immutable description of what one poll session fetches.

    Attributes:
        query: The caller's query, stripped.
        endpoints: Candidate URLs, tried in order within each attempt.
    """

    query: str
    endpoints: tuple[str, ...]


def resolve_target(
    query: str,
    templates: Sequence[str] = (DEFAULT_ENDPOINT_TEMPLATE,),
) -> TargetDescriptor:
    """Build the :class:`TargetDescriptor` for ``query``.

    Args:
        query: Non-empty natural-language query.
        templates: URL templates containing a ``{query}`` placeholder,
            substituted with the URL-encoded query.

    Returns:
        A descriptor with one endpoint per template, duplicates removed.

    Raises:
        ValueError: If ``query`` is blank or no template is given.
    """
    stripped = (query or "").strip()
    if not stripped:
        raise ValueError("query must be a non-empty string")
    if not templates:
        raise ValueError("at least one endpoint template is required")

    encoded = urllib.parse.quote_plus(stripped)
    endpoints: list[str] = []
    for template in templates:
        url = template.replace("{query}", encoded)
        if url not in endpoints:
            endpoints.append(url)
    return TargetDescriptor(query=stripped, endpoints=tuple(endpoints))
