"""History and bookmarks that outlive a page, flushed to disk on every change.

Each list is held as a tuple and replaced wholesale once the new version is
on disk, so a reader sees either the old list or the new one and memory
never runs ahead of the file.
"""

import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from tbrowser.config import BOOKMARKS_FILE_NAME, DEFAULT_CONFIG, HISTORY_FILE_NAME
from tbrowser.errors import NotFoundError, PersistenceError

_EPOCH = datetime.fromtimestamp(0, timezone.utc)


def _now():
    return datetime.now(timezone.utc)


def _parse_time(value):
    return datetime.fromisoformat(value) if value else _EPOCH


@dataclass(frozen=True)
class HistoryEntry:
    url: str
    title: str
    visited_at: datetime

    def to_json(self):
        return {"url": self.url, "title": self.title, "visited_at": self.visited_at.isoformat()}

    @classmethod
    def from_json(cls, d):
        return cls(url=d["url"], title=d.get("title") or d["url"], visited_at=_parse_time(d.get("visited_at")))


@dataclass(frozen=True)
class Bookmark:
    title: str
    url: str
    created_at: datetime

    def to_json(self):
        return {"title": self.title, "url": self.url, "created_at": self.created_at.isoformat()}

    @classmethod
    def from_json(cls, d):
        return cls(title=d.get("title") or d["url"], url=d["url"], created_at=_parse_time(d.get("created_at")))


def _load(path, cls):
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return ()
    except (OSError, ValueError) as e:
        logger.warning(f"Starting with an empty list, cannot read {str(path)!r}: {e}")
        return ()

    if not isinstance(data, list):
        logger.warning(f"Starting with an empty list, {str(path)!r} is not a JSON list")
        return ()

    items = []
    for raw in data:
        try:
            items.append(cls.from_json(raw))
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.warning(f"Skipping malformed entry in {str(path)!r}: {raw!r}")
    return tuple(items)


def _write(path, items):
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump([item.to_json() for item in items], f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except OSError as e:
        logger.error(f"Write of {str(path)!r} failed: {e}")
        msg = f"Cannot save {path.name}: {e}"
        raise PersistenceError(msg) from e
    logger.debug(f"Saved {len(items)} entries to {str(path)!r}")


def _at(items, index, what):
    if not isinstance(index, int) or not 1 <= index <= len(items):
        msg = f"No {what} #{index} (have {len(items)})"
        raise NotFoundError(msg)
    return items[index - 1].url


class SessionStore:
    """Visit history (bounded, oldest dropped first) and bookmarks (unbounded)."""

    def __init__(self, state_dir, max_history=DEFAULT_CONFIG["MAX_HISTORY"], clock=None):
        self.state_dir = Path(state_dir)
        self.history_path = self.state_dir / HISTORY_FILE_NAME
        self.bookmarks_path = self.state_dir / BOOKMARKS_FILE_NAME
        self.max_history = max(1, int(max_history))
        self.clock = clock or _now

        self._history = _load(self.history_path, HistoryEntry)[-self.max_history:]
        self._bookmarks = _load(self.bookmarks_path, Bookmark)
        logger.debug(
            f"Session loaded from {str(self.state_dir)!r}: "
            f"{len(self._history)} visits, {len(self._bookmarks)} bookmarks"
        )

    # ----- history -----
    def record_visit(self, url, title=None):
        entry = HistoryEntry(url, title or url, self.clock())
        kept = self._history[-(self.max_history - 1):] if self.max_history > 1 else ()
        history = kept + (entry,)
        _write(self.history_path, history)
        self._history = history
        return entry

    def list_history(self):
        return self._history

    def history_at(self, index):
        return _at(self._history, index, "history entry")

    # ----- bookmarks -----
    def add_bookmark(self, title, url):
        bookmark = Bookmark(title or url, url, self.clock())
        bookmarks = self._bookmarks + (bookmark,)
        _write(self.bookmarks_path, bookmarks)
        self._bookmarks = bookmarks
        logger.info(f"Bookmarked {url} as {bookmark.title!r}")
        return bookmark

    def delete_bookmark(self, index):
        _at(self._bookmarks, index, "bookmark")
        removed = self._bookmarks[index - 1]
        bookmarks = self._bookmarks[: index - 1] + self._bookmarks[index:]
        _write(self.bookmarks_path, bookmarks)
        self._bookmarks = bookmarks
        return removed

    def list_bookmarks(self):
        return self._bookmarks

    def bookmark_at(self, index):
        return _at(self._bookmarks, index, "bookmark")
