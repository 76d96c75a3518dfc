"""Shared pytest fixtures for Answer Probe tests.

Fixture summary
---------------
scripted_fetcher — factory for a fake fetcher that replays a fixed script
                   of snapshots / errors and records every requested URL.
answer_html      — a rendered answer page (primary container present).
loading_html     — the same page while it still shows a loading placeholder.

No test touches the network: HTTP is mocked with ``respx`` and the browser
layer with ``unittest.mock``.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence

import pytest

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Settings() reads the environment; keep runs independent of any local .env.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "ANSWER_PROBE_MAX_ATTEMPTS": "3",
    "ANSWER_PROBE_INTERVAL_SECONDS": "0",
    "ANSWER_PROBE_PER_CALL_TIMEOUT_SECONDS": "1",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

from answer_probe.config.settings import get_settings  # noqa: E402
from answer_probe.core.exceptions import FetchError  # noqa: E402
from answer_probe.scraper.models import DocumentSnapshot  # noqa: E402

get_settings.cache_clear()


# ---------------------------------------------------------------------------
# HTML fixtures
# ---------------------------------------------------------------------------

ANSWER_PAGE = """
<!DOCTYPE html>
<html>
<head>
  <title>capital of france - Search</title>
  <meta name="description" content="Search results for the capital of France and more.">
  <style>.b_ans{color:red}</style>
</head>
<body>
  <div class="b_ans">
    <p>Answer:</p>
    <p>Paris is the capital and largest city of France.[1] Share Answer</p>
  </div>
  <main><p>Some unrelated article text that is long enough to be picked.</p></main>
</body>
</html>
"""

LOADING_PAGE = """
<!DOCTYPE html>
<html>
<head><title>capital of france - Search</title></head>
<body>
  <div class="b_ans"><span>Loading...</span> <span>Thinking...</span></div>
</body>
</html>
"""


@pytest.fixture
def answer_html() -> str:
    return ANSWER_PAGE


@pytest.fixture
def loading_html() -> str:
    return LOADING_PAGE


# ---------------------------------------------------------------------------
# Fake fetcher
# ---------------------------------------------------------------------------


class ScriptedFetcher:
    """Replay ``script`` one entry per ``fetch`` call.

    Entries are HTML strings (returned as snapshots) or exceptions (raised).
    The last entry repeats once the script is exhausted.
    """

    def __init__(self, script: Sequence[str | BaseException]) -> None:
        self._script = list(script)
        self.calls: list[str] = []

    async def fetch(self, url: str) -> DocumentSnapshot:
        self.calls.append(url)
        step = self._script[min(len(self.calls), len(self._script)) - 1]
        if isinstance(step, BaseException):
            raise step
        return DocumentSnapshot(url=url, html=step, status_code=200)


@pytest.fixture
def scripted_fetcher() -> Callable[[Sequence[str | BaseException]], ScriptedFetcher]:
    return ScriptedFetcher


@pytest.fixture
def transport_error() -> FetchError:
    return FetchError("request error: connection refused", kind="transport", url="https://x.test")
