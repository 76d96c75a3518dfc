"""Answer route handlers.

``GET /api/answer?q=...`` and ``POST /api/answer`` run one poll session for
the query and map the result record onto an HTTP response:

- accepted answer        -> 200
- blank / missing query  -> 400
- budget exhausted       -> 404 ``{"error": "No answer found", ...}``
- cancelled / deadline   -> 504
- anything unexpected    -> 500 ``{"error": "Search failed", ...}``
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from answer_probe.api.dependencies import get_app_settings, get_fetcher
from answer_probe.config.settings import Settings
from answer_probe.polling.controller import Fetcher, probe

logger = logging.getLogger(__name__)

router = APIRouter(tags=["answers"])

_MISSING_QUERY = {"error": 'Missing query parameter "q"'}


class AnswerRequest(BaseModel):
    """Body of ``POST /api/answer``."""

    q: Optional[str] = None


async def _answer(query: str | None, fetcher: Fetcher, settings: Settings) -> JSONResponse:
    if query is None or not query.strip():
        return JSONResponse(_MISSING_QUERY, status_code=400)

    query = query.strip()
    try:
        result = await probe(query, fetcher, settings)
    except Exception as exc:
        logger.exception("answers: poll session failed for %r", query)
        return JSONResponse(
            {"error": "Search failed", "details": str(exc), "query": query},
            status_code=500,
        )

    body: dict[str, Any] = {
        **result.to_dict(),
        "query": query,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if result.success:
        return JSONResponse(body, status_code=200)
    if result.cancelled:
        return JSONResponse(body, status_code=504)
    return JSONResponse({"error": "No answer found", **body}, status_code=404)


@router.get("/answer")
async def get_answer(
    q: Optional[str] = Query(default=None, description="Natural-language query."),
    fetcher: Fetcher = Depends(get_fetcher),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Poll for the answer to ``q``."""
    return await _answer(q, fetcher, settings)


@router.post("/answer")
async def post_answer(
    payload: AnswerRequest,
    fetcher: Fetcher = Depends(get_fetcher),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """Poll for the answer to ``payload.q``."""
    return await _answer(payload.q, fetcher, settings)
