"""HTTP fetch and decoding: the edges of the document engine."""

from dataclasses import dataclass

import requests
from bs4 import BeautifulSoup, UnicodeDammit
from loguru import logger

from tbrowser.errors import FetchError, FetchErrorKind, ParseError

# Fragments of resolver errors as raised by urllib3 on the common platforms.
_DNS_MARKERS = (
    "NameResolutionError",
    "Name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "Temporary failure in name resolution",
    "No address associated with hostname",
)


@dataclass(frozen=True)
class FetchResult:
    content: bytes
    final_url: str
    content_type: str = "text/html"
    encoding: str | None = None


# ========= URL HELPERS =========
def normalize_url(t):
    t = t.strip()
    if t.startswith("http://") or t.startswith("https://"):
        return t
    if "." in t or t.startswith("localhost"):
        return "https://" + t
    return None


# ========= HTTP =========
class HttpFetcher:
    """Callable fetch(url) -> FetchResult over one shared requests.Session."""

    def __init__(self, user_agent="Mozilla/5.0", timeout=None):
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        self.timeout = timeout

    def __call__(self, url):
        logger.debug(f"GET {url}")
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
        except requests.exceptions.HTTPError as e:
            code = e.response.status_code if e.response is not None else None
            raise FetchError(FetchErrorKind.HTTP_STATUS, url, status_code=code) from e
        except requests.exceptions.Timeout as e:
            raise FetchError(FetchErrorKind.TIMEOUT, url) from e
        except requests.exceptions.SSLError as e:
            raise FetchError(FetchErrorKind.TLS, url, str(e)) from e
        except requests.exceptions.ConnectionError as e:
            if any(m in str(e) for m in _DNS_MARKERS):
                raise FetchError(FetchErrorKind.DNS, url) from e
            raise FetchError(FetchErrorKind.CONNECTION_REFUSED, url) from e
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as e:
            raise FetchError(FetchErrorKind.INVALID_URL, url, str(e)) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(FetchErrorKind.CONNECTION_REFUSED, url, str(e)) from e

        content_type = r.headers.get("content-type", "")
        mime = content_type.split(";")[0].strip().lower()
        logger.info(f"Fetched {r.url} ({mime or 'no content-type'}, {len(r.content)} bytes)")
        return FetchResult(
            content=r.content,
            final_url=r.url,
            content_type=mime,
            encoding=r.encoding if "charset" in content_type.lower() else None,
        )


# ========= DECODING =========
def decode(content, encoding=None):
    """Bytes to text, guessing the charset when the server did not say."""
    if isinstance(content, str):
        return content
    known = [encoding] if encoding else []
    dammit = UnicodeDammit(content, known, is_html=True)
    if dammit.unicode_markup is None:
        msg = "Cannot determine the character encoding of the page"
        raise ParseError(msg)
    return dammit.unicode_markup


def parse_html(content, encoding=None):
    """Decode and parse a page. Returns (text, soup).

    Malformed markup is never an error; only undecodable bytes are.
    """
    text = decode(content, encoding)
    return text, BeautifulSoup(text, "html.parser")
