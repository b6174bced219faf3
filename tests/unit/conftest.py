"""Shared test fixtures."""

from pathlib import Path

import pytest

from tbrowser.navigation import Navigator
from tbrowser.session import SessionStore
from tests.unit.fakes import FakeFetcher

HOME_URL = "http://example.com/"
ARTICLE_URL = "http://example.com/article"

HOME_HTML = """<html>
<head><title>Example Home</title><style>body { color: red }</style></head>
<body>
<h1>Welcome</h1>
<p>Hello world, this is the <a href="/article">article</a> page.</p>
<p>Second paragraph mentions HELLO again.</p>
</body>
</html>"""

# Thirty paragraphs: 59 rendered lines at any width that fits "Paragraph NN".
ARTICLE_HTML = (
    "<html><head><title>Article</title></head><body>"
    + "".join(f"<p>Paragraph {n:02d}</p>" for n in range(1, 31))
    + "</body></html>"
)


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
    """Return an empty session store in a temporary directory."""
    return SessionStore(tmp_path / "state", max_history=50)


@pytest.fixture
def fetcher() -> FakeFetcher:
    """Return a fake fetcher serving the home and article pages."""
    fake = FakeFetcher()
    fake.add_page(HOME_URL, HOME_HTML)
    fake.add_page(ARTICLE_URL, ARTICLE_HTML)
    return fake


@pytest.fixture
def navigator(fetcher: FakeFetcher, store: SessionStore) -> Navigator:
    """Return a navigator with an 80x10 viewport and no page loaded."""
    return Navigator(fetcher, store, width=80, height=10)
