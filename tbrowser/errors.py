"""Error taxonomy for the browser.

Every error a command can surface derives from BrowserError, so the command
loop can report it and keep going.
"""

from enum import Enum


class BrowserError(Exception):
    pass


class FetchErrorKind(Enum):
    TIMEOUT = "timeout"
    DNS = "dns"
    CONNECTION_REFUSED = "connection refused"
    HTTP_STATUS = "http status"
    TLS = "tls"
    INVALID_URL = "invalid url"


class FetchError(BrowserError):
    def __init__(self, kind, url, detail="", status_code=None):
        self.kind = kind
        self.url = url
        self.status_code = status_code
        msg = f"{kind.value} fetching {url}"
        if status_code is not None:
            msg += f" (HTTP {status_code})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class ParseError(BrowserError):
    pass


class NavigationErrorKind(Enum):
    FETCH_FAILED = "fetch failed"
    PARSE_FAILED = "parse failed"


class NavigationError(BrowserError):
    def __init__(self, kind, url, cause=None):
        self.kind = kind
        self.url = url
        self.cause = cause
        msg = f"Cannot open {url}: {kind.value}"
        if cause is not None:
            msg += f" ({cause})"
        super().__init__(msg)


class PersistenceError(BrowserError):
    """A history or bookmark write did not reach disk."""


class NotFoundError(BrowserError, LookupError):
    pass


class DownloadError(BrowserError):
    pass
