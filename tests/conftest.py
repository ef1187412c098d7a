import pytest
import asyncio
import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

from core.config import Settings
from models.entry import Entry

# =============================================================================
# Fake aiohttp objects
# =============================================================================


class FakeResponse:
    """Stands in for aiohttp.ClientResponse inside `async with session.get(...)`."""

    def __init__(
        self,
        status: int = 200,
        text: str = "",
        headers: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        text_error: Optional[BaseException] = None,
    ):
        self.status = status
        self._text = text if json_body is None else json.dumps(json_body)
        self.headers = headers or {}
        self.text_error = text_error

    async def text(self) -> str:
        if self.text_error is not None:
            raise self.text_error
        return self._text

    async def json(self, content_type: Optional[str] = "application/json") -> Any:
        return json.loads(self._text)


class _RequestContext:
    def __init__(self, outcome):
        self.outcome = outcome

    async def __aenter__(self):
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Replays queued outcomes (FakeResponse or an exception to raise) for
    get() and post(), recording every call.
    """

    def __init__(self, get_outcomes: Optional[List] = None, post_outcomes: Optional[List] = None):
        self.get_outcomes = list(get_outcomes or [])
        self.post_outcomes = list(post_outcomes or [])
        self.get_calls: List[Dict[str, Any]] = []
        self.post_calls: List[Dict[str, Any]] = []
        self.closed = False

    def get(self, url, **kwargs):
        self.get_calls.append({"url": url, **kwargs})
        return _RequestContext(self.get_outcomes.pop(0))

    def post(self, url, **kwargs):
        self.post_calls.append({"url": url, **kwargs})
        return _RequestContext(self.post_outcomes.pop(0))

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True
        return False


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def make_settings():
    """Builds Settings without reading .env; keyword overrides win."""

    def _make(**overrides) -> Settings:
        values = {
            "DISCORD_WEBHOOK_URL": "https://discord.com/api/webhooks/123/abc",
            "AO3_SEARCH_URL": "https://archiveofourown.org/works/search?work_search[query]=x",
            "FETCH_JITTER_MAX": 0.0,
            "ENRICH_DELAY": 0.0,
            "DISCORD_MESSAGE_DELAY": 0.0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def no_sleep():
    """AsyncMock standing in for asyncio.sleep; inspect await_args_list for delays."""
    return AsyncMock(return_value=None)


# =============================================================================
# Sample Data Fixtures
# =============================================================================


def work_blurb(work_id: str, title: str, author: Optional[str] = None, chapters: str = "1/1") -> str:
    author_html = f'<a rel="author" href="/users/{author}">{author}</a>' if author else "Anonymous"
    return f"""
    <li class="work blurb group" id="work_{work_id}" role="article">
        <div class="header module">
            <h4 class="heading">
                <a href="/works/{work_id}">{title}</a>
                by
                {author_html}
            </h4>
        </div>
        <dl class="stats">
            <dt class="chapters">Chapters:</dt>
            <dd class="chapters">{chapters}</dd>
        </dl>
    </li>
    """


def listing_page(*blurbs: str) -> str:
    return f"""
    <html><body>
        <ol class="work index group">
            {''.join(blurbs)}
        </ol>
    </body></html>
    """


def work_page(author: Optional[str] = "someone", chapters: str = "4/10") -> str:
    author_html = f'<a rel="author" href="/users/{author}/pseuds/{author}">{author}</a>' if author else ""
    return f"""
    <html><body>
        <div class="wrapper">
            <dl class="work meta group">
                <dt class="chapters">Chapters:</dt>
                <dd class="chapters">{chapters}</dd>
            </dl>
        </div>
        <div id="workskin">
            <div class="preface group">
                <h2 class="title heading">A Title</h2>
                <h3 class="byline heading">{author_html}</h3>
            </div>
        </div>
    </body></html>
    """


@pytest.fixture
def sample_listing_html() -> str:
    return listing_page(
        work_blurb("103", "Newest Fic", "alpha", "3/?"),
        work_blurb("102", "Middle Fic", "beta", "1/1"),
        work_blurb("101", "Older Fic", None, "7/12"),
        work_blurb("100", "Oldest Fic", "delta", "2/2"),
    )


@pytest.fixture
def make_entries():
    def _make(*ids: str) -> List[Entry]:
        return [Entry(id=i, title=f"Work {i}", author=f"author{i}") for i in ids]

    return _make


@pytest.fixture
def fake_session_cls():
    return FakeSession


@pytest.fixture
def fake_response_cls():
    return FakeResponse


@pytest.fixture
def timeout_error():
    return asyncio.TimeoutError()


@pytest.fixture
def build_listing():
    """build_listing(("103", "Title", "author", "3/?"), ...) -> listing HTML"""

    def _build(*works) -> str:
        return listing_page(*(work_blurb(*work) for work in works))

    return _build


@pytest.fixture
def build_work_page():
    return work_page
