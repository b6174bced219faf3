"""The current page, where we are in it, and how it is shown."""

from enum import Enum

from loguru import logger

from tbrowser.document import ViewMode, load_document
from tbrowser.errors import (
    FetchError,
    FetchErrorKind,
    NavigationError,
    NavigationErrorKind,
    NotFoundError,
    ParseError,
)
from tbrowser.fetch import normalize_url
from tbrowser.search import start_search as search_document


class NavState(Enum):
    NO_DOCUMENT = "no document"
    VIEWING = "viewing"


class Navigator:
    """Owns the one live Document plus its scroll offset, view mode and search.

    `fetch` is any callable url -> FetchResult that raises FetchError.
    A failed navigate() leaves every piece of state as it was.
    """

    def __init__(self, fetch, store, width=80, height=24, scroll_step=5):
        if width <= 0 or height <= 0:
            msg = f"Viewport must be positive, got {width}x{height}"
            raise ValueError(msg)
        self.fetch = fetch
        self.store = store
        self.width = width
        self.height = height
        self.scroll_step = scroll_step
        self.document = None
        self.offset = 0
        self.mode = ViewMode.RENDERED
        self.search = None

    @property
    def state(self):
        return NavState.NO_DOCUMENT if self.document is None else NavState.VIEWING

    @property
    def lines(self):
        if self.document is None:
            return ()
        return self.document.lines_for(self.mode)

    @property
    def max_offset(self):
        return max(0, len(self.lines) - self.height)

    def _clamp(self, offset):
        return min(max(offset, 0), self.max_offset)

    def require_document(self):
        if self.document is None:
            msg = "No page loaded"
            raise NotFoundError(msg)
        return self.document

    # ========= PAGE LOADS =========
    def navigate(self, url):
        target = normalize_url(url)
        if target is None:
            cause = FetchError(FetchErrorKind.INVALID_URL, url.strip())
            raise NavigationError(NavigationErrorKind.FETCH_FAILED, url.strip(), cause)

        logger.info(f"Navigating to {target}")
        try:
            result = self.fetch(target)
        except FetchError as e:
            logger.warning(f"Fetch of {target} failed: {e}")
            raise NavigationError(NavigationErrorKind.FETCH_FAILED, target, e) from e
        try:
            doc = load_document(result, self.width)
        except ParseError as e:
            logger.warning(f"Cannot read {target}: {e}")
            raise NavigationError(NavigationErrorKind.PARSE_FAILED, target, e) from e

        self.document = doc
        self.offset = 0
        self.mode = ViewMode.RENDERED
        self.search = None
        logger.debug(f"{doc.url}: {len(doc.lines)} lines, {len(doc.link_table)} links")

        self.store.record_visit(doc.url, doc.title)
        return doc

    def reload(self):
        return self.navigate(self.require_document().url)

    def follow_link(self, link_id):
        return self.navigate(self.link_href(link_id))

    def link_href(self, link_id):
        doc = self.require_document()
        try:
            return doc.link_table[link_id]
        except KeyError:
            msg = f"No link [{link_id}] on this page"
            raise NotFoundError(msg) from None

    # ========= VIEW =========
    def scroll(self, delta):
        self.offset = self._clamp(self.offset + delta)
        return self.offset

    def scroll_up(self):
        return self.scroll(-self.scroll_step)

    def scroll_down(self):
        return self.scroll(self.scroll_step)

    def toggle_raw(self):
        self.require_document()
        self.mode = ViewMode.RENDERED if self.mode is ViewMode.RAW else ViewMode.RAW
        self.search = None
        self.offset = self._clamp(self.offset)
        return self.mode

    def resize(self, width, height):
        if width <= 0 or height <= 0:
            msg = f"Viewport must be positive, got {width}x{height}"
            raise ValueError(msg)
        self.width = width
        self.height = height
        if self.document is not None:
            self.document = self.document.rewrap(width)
            if self.search is not None:
                cursor = self.search.cursor
                self.search = search_document(self.document, self.search.query, self.mode)
                if cursor is not None and cursor < len(self.search):
                    self.search.cursor = cursor
        self.offset = self._clamp(self.offset)

    def visible_lines(self):
        lines = self.lines
        end = min(len(lines), self.offset + self.height)
        return [(i, lines[i]) for i in range(self.offset, end)]

    # ========= SEARCH =========
    def start_search(self, query):
        self.search = search_document(self.require_document(), query, self.mode)
        self._reveal()
        return self.search

    def next_match(self):
        match = self._require_search().next()
        self._reveal()
        return match

    def previous_match(self):
        match = self._require_search().previous()
        self._reveal()
        return match

    def _require_search(self):
        if self.search is None:
            msg = "No active search"
            raise NotFoundError(msg)
        return self.search

    def _reveal(self):
        match = self.search.current
        if match is None:
            return
        if not self.offset <= match.line_index < self.offset + self.height:
            self.offset = self._clamp(match.line_index)
