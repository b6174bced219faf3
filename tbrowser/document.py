"""The immutable result of one page load."""

import dataclasses
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from bs4 import BeautifulSoup

from tbrowser.errors import ParseError
from tbrowser.fetch import decode, parse_html
from tbrowser.linearize import extract_title, link_table, linearize, text_tokens
from tbrowser.wrap import DisplayLine, wrap, wrap_text

HTML_TYPES = ("", "text/html", "application/xhtml+xml")
_HTML_HEAD = re.compile(rb"\s*(<!doctype\s+html|<html[\s>])", re.IGNORECASE)


class ViewMode(Enum):
    RENDERED = "rendered"
    RAW = "raw"


@dataclass(frozen=True)
class Document:
    url: str
    title: str
    raw_html: str
    width: int
    tokens: tuple
    lines: tuple[DisplayLine, ...]
    raw_lines: tuple[DisplayLine, ...]
    link_table: Mapping[int, str]
    content_type: str = "text/html"

    def lines_for(self, mode):
        return self.raw_lines if mode is ViewMode.RAW else self.lines

    def rewrap(self, width):
        """Same page, lines rebuilt for a new viewport width."""
        if width == self.width:
            return self
        return dataclasses.replace(
            self,
            width=width,
            lines=wrap(self.tokens, width),
            raw_lines=wrap_text(self.raw_html, width),
        )

    def text(self):
        return "".join(line.text + "\n" for line in self.lines)


def _assemble(url, title, raw, width, tokens, content_type):
    return Document(
        url=url,
        title=title,
        raw_html=raw,
        width=width,
        tokens=tokens,
        lines=wrap(tokens, width),
        raw_lines=wrap_text(raw, width),
        link_table=MappingProxyType(link_table(tokens)),
        content_type=content_type,
    )


def build_document(url, raw_html, width, title=None, soup=None):
    if soup is None:
        soup = BeautifulSoup(raw_html, "html.parser")
    tokens = linearize(soup, base_url=url)
    title = title or extract_title(soup) or url
    return _assemble(url, title, raw_html, width, tokens, "text/html")


def looks_like_html(content):
    return bool(_HTML_HEAD.match(content[:1024]))


def load_document(result, width):
    """Build a Document from a FetchResult according to its content type."""
    url = result.final_url
    ct = result.content_type

    if ct in HTML_TYPES:
        raw, soup = parse_html(result.content, result.encoding)
        return build_document(url, raw, width, soup=soup)

    if ct == "application/json" or ct.endswith("+json"):
        raw = decode(result.content, result.encoding)
        try:
            data = json.loads(raw)
        except ValueError as e:
            msg = f"Invalid JSON: {e}"
            raise ParseError(msg) from e
        pretty = json.dumps(data, indent=2, ensure_ascii=False)
        return _assemble(url, url, raw, width, text_tokens(pretty, "pre"), ct)

    if ct.startswith("text/"):
        raw = decode(result.content, result.encoding)
        return _assemble(url, url, raw, width, text_tokens(raw, "pre"), ct)

    if looks_like_html(result.content):
        raw, soup = parse_html(result.content, result.encoding)
        return build_document(url, raw, width, soup=soup)

    notice = f"Content-Type '{ct}' not supported for display"
    return _assemble(url, url, "", width, text_tokens(notice), ct)
