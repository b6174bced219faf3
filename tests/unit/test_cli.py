"""Tests for the interactive command loop."""

import io
import json
import os
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from tbrowser import cli
from tbrowser.cli import BrowserApp, main
from tbrowser.config import DEFAULT_CONFIG
from tbrowser.document import ViewMode
from tbrowser.navigation import Navigator
from tbrowser.session import SessionStore
from tests.unit.conftest import ARTICLE_URL, HOME_URL


def _scripted(lines: Iterable[str]) -> Callable[[str], str]:
    """Return an input() replacement that raises EOFError when done."""
    it = iter(lines)

    def read(prompt: str = "") -> str:
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None

    return read


def _app(navigator: Navigator, store: SessionStore, lines: Iterable[str], **kwargs) -> BrowserApp:
    return BrowserApp(
        navigator,
        store,
        dict(DEFAULT_CONFIG),
        input_fn=_scripted(lines),
        out=io.StringIO(),
        key_fn=lambda: "q",
        size_fn=lambda: os.terminal_size((87, 15)),
        **kwargs,
    )


def test_go_scroll_bookmark_quit(navigator: Navigator, store: SessionStore) -> None:
    app = _app(navigator, store, [f"g {ARTICLE_URL}", "s", "s", "w", "a Mine", "q", "never read"])

    app.run()

    assert navigator.document.url == ARTICLE_URL
    assert navigator.offset == 5
    assert store.bookmark_at(1) == ARTICLE_URL
    assert store.list_bookmarks()[0].title == "Mine"


def test_viewport_follows_terminal_size(navigator: Navigator, store: SessionStore) -> None:
    app = _app(navigator, store, [])
    app.run(HOME_URL)
    assert (navigator.width, navigator.height) == (80, 10)


def test_errors_are_reported_and_loop_continues(navigator: Navigator, store: SessionStore) -> None:
    app = _app(navigator, store, ["g http://down.invalid/", f"g {HOME_URL}"])

    app.run()

    output = app.out.getvalue()
    assert "Error: Cannot open http://down.invalid/" in output
    assert navigator.document.url == HOME_URL


def test_bookmark_without_page_is_an_error(navigator: Navigator, store: SessionStore) -> None:
    app = _app(navigator, store, ["a Title"])
    app.run()
    assert "No page loaded" in app.out.getvalue()
    assert store.list_bookmarks() == ()


def test_bookmark_menu_opens_and_deletes(navigator: Navigator, store: SessionStore) -> None:
    store.add_bookmark("Home", HOME_URL)
    store.add_bookmark("Article", ARTICLE_URL)
    app = _app(navigator, store, ["b", "d1", "1"])

    app.run()

    assert [b.title for b in store.list_bookmarks()] == ["Article"]
    assert navigator.document.url == ARTICLE_URL


def test_bad_bookmark_number_is_reported(navigator: Navigator, store: SessionStore) -> None:
    app = _app(navigator, store, ["b", "4"])
    app.run()
    assert "No bookmark #4" in app.out.getvalue()
    assert navigator.document is None


def test_history_menu_revisits(navigator: Navigator, store: SessionStore) -> None:
    app = _app(navigator, store, [f"g {HOME_URL}", f"g {ARTICLE_URL}", "history", "1"])

    app.run()

    assert navigator.document.url == HOME_URL
    assert [e.url for e in store.list_history()] == [HOME_URL, ARTICLE_URL, HOME_URL]


def test_links_menu_follows_link(navigator: Navigator, store: SessionStore) -> None:
    app = _app(navigator, store, [f"g {HOME_URL}", "l", "1"])
    app.run()
    assert navigator.document.url == ARTICLE_URL


def test_search_and_step_through_matches(navigator: Navigator, store: SessionStore) -> None:
    app = _app(navigator, store, [f"g {HOME_URL}", "search hello", "n"])

    app.run()

    assert navigator.search.cursor == 1
    output = app.out.getvalue()
    assert "match 2/2" in output
    assert "\033[30;103;1mHELLO" in output


def test_search_without_matches(navigator: Navigator, store: SessionStore) -> None:
    app = _app(navigator, store, [f"g {HOME_URL}", "search zebra", "n"])
    app.run()
    assert "No matches for 'zebra'" in app.out.getvalue()


def test_raw_toggle_and_source_view(navigator: Navigator, store: SessionStore) -> None:
    keys = []
    app = _app(navigator, store, [f"g {HOME_URL}", "source", "raw"])
    app.read_key = lambda: keys.append("pressed")

    app.run()

    assert keys == ["pressed"]
    assert navigator.mode is ViewMode.RAW
    assert "=== SOURCE http://example.com/ ===" in app.out.getvalue()


def test_download_writes_file(navigator: Navigator, store: SessionStore, tmp_path: Path) -> None:
    target = tmp_path / "saved.txt"
    app = _app(navigator, store, [f"g {HOME_URL}", f"download {target}"])

    app.run()

    assert target.read_text().startswith("Welcome\n")
    assert "Page downloaded to:" in app.out.getvalue()


def test_theme_switch_is_saved(navigator: Navigator, store: SessionStore, tmp_path: Path) -> None:
    config_path = tmp_path / "cfg.json"
    app = _app(navigator, store, ["theme night", "theme neon"], config_path=config_path)

    app.run()

    assert json.loads(config_path.read_text())["COLOR_THEME"] == "night"
    assert "No theme 'neon'" in app.out.getvalue()


def test_unknown_command(navigator: Navigator, store: SessionStore) -> None:
    app = _app(navigator, store, ["frobnicate"])
    app.run()
    assert "Unknown command" in app.out.getvalue()


def test_dispatch_quit() -> None:
    app = BrowserApp(None, None, {})
    assert app.dispatch("q") is False
    assert app.dispatch("quit") is False


def test_main_wires_components(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    started = []
    monkeypatch.setattr(BrowserApp, "run", lambda self, url=None: started.append((self, url)))
    monkeypatch.setattr(cli.shutil, "get_terminal_size", lambda: os.terminal_size((100, 30)))

    main(["example.org", "--state-dir", str(tmp_path / "st"), "--config", str(tmp_path / "c.json")])

    (app, url), = started
    assert url == "example.org"
    assert app.navigator.width == 93
    assert app.navigator.height == 25
    assert app.store.state_dir == tmp_path / "st"
    assert (tmp_path / "st").is_dir()
