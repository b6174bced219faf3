"""HTML -> flat token stream.

The walk never fails: whatever html.parser makes of the markup is turned
into text runs, line breaks, link markers and heading markers.
"""

import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString
from bs4.element import CData, PreformattedString


# ========= TOKENS =========
@dataclass(frozen=True)
class Text:
    text: str
    style: str = "plain"


@dataclass(frozen=True)
class LineBreak:
    pass


@dataclass(frozen=True)
class LinkStart:
    href: str
    id: int


@dataclass(frozen=True)
class LinkEnd:
    pass


@dataclass(frozen=True)
class Heading:
    level: int


# ========= TAG KINDS =========
class TagKind(Enum):
    BLOCK = "block"
    INLINE = "inline"
    ANCHOR = "anchor"
    TEXT = "text"
    IGNORED = "ignored"


BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "br", "center", "dd",
    "details", "dialog", "div", "dl", "dt", "fieldset", "figcaption",
    "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "legend", "li", "main", "menu", "nav", "ol", "p",
    "pre", "section", "summary", "table", "tbody", "tfoot", "thead", "tr",
    "ul", "body", "html",
})
IGNORED_TAGS = frozenset({
    "script", "style", "noscript", "template", "head", "title", "meta",
    "link", "svg", "iframe", "object", "canvas",
})
EMPHASIS_TAGS = frozenset({"b", "strong", "em", "i", "u", "mark", "code", "kbd"})
CELL_TAGS = frozenset({"td", "th"})
HEADING_LEVELS = {f"h{n}": n for n in range(1, 7)}

# HTML whitespace; a no-break space is content, not a collapsible gap.
HTML_SPACE = " \t\n\r\f\v"
_WS = re.compile(f"[{HTML_SPACE}]+")


def classify(node, inside_link=False):
    if isinstance(node, NavigableString):
        if isinstance(node, PreformattedString) and not isinstance(node, CData):
            return TagKind.IGNORED
        return TagKind.TEXT
    name = node.name
    if name in IGNORED_TAGS:
        return TagKind.IGNORED
    if name == "a" and node.get("href") and not inside_link:
        return TagKind.ANCHOR
    if name in BLOCK_TAGS:
        return TagKind.BLOCK
    return TagKind.INLINE


class _Exit:
    __slots__ = ("fn",)

    def __init__(self, fn):
        self.fn = fn


class _Linearizer:
    def __init__(self, base_url):
        self.base_url = base_url
        self.tokens = []
        self.next_id = 1
        self.has_text = False
        self.pending_space = False
        self.link = None
        self.link_has_text = False
        self.heading = 0
        self.pre = 0
        self.pre_fresh = False
        self.emphasis = 0

    def style(self):
        if self.link is not None:
            return "link"
        if self.heading:
            return "heading"
        if self.pre:
            return "pre"
        if self.emphasis:
            return "emphasis"
        return "plain"

    def at_line_start(self):
        return self._trailing_breaks() > 0 or not self.has_text

    def _trailing_breaks(self):
        n = 0
        for tok in reversed(self.tokens):
            if isinstance(tok, LineBreak):
                n += 1
            elif isinstance(tok, Text):
                break
        return n

    def _emit(self, text, style=None):
        if self.pending_space and not self.at_line_start():
            self.tokens.append(Text(" "))
        self.pending_space = False
        self.tokens.append(Text(text, style or self.style()))
        self.has_text = True
        if self.link is not None:
            self.link_has_text = True

    # ----- emitters -----
    def text(self, s):
        if self.pre:
            self.pre_text(s)
            return
        collapsed = _WS.sub(" ", s)
        body = collapsed.strip(" ")
        if not body:
            if collapsed:
                self.pending_space = True
            return
        if collapsed.startswith(" "):
            self.pending_space = True
        self._emit(body)
        self.pending_space = collapsed.endswith(" ")

    def pre_text(self, s):
        s = s.replace("\r\n", "\n").expandtabs()
        if self.pre_fresh and s.startswith("\n"):
            s = s[1:]
        self.pre_fresh = False
        for i, part in enumerate(s.split("\n")):
            if i:
                self.pending_space = False
                self.tokens.append(LineBreak())
            if part:
                self._emit(part)

    def line_break(self):
        self.pending_space = False
        if not self.has_text or self._trailing_breaks() >= 2:
            return
        self.tokens.append(LineBreak())

    # ----- tree walk -----
    def run(self, root):
        stack = list(reversed(list(root.children)))
        while stack:
            item = stack.pop()
            if isinstance(item, _Exit):
                item.fn()
                continue
            kind = classify(item, inside_link=self.link is not None)
            if kind is TagKind.IGNORED:
                continue
            if kind is TagKind.TEXT:
                self.text(str(item))
                continue
            if kind is TagKind.BLOCK and item.name == "br":
                self.line_break()
                continue
            stack.append(_Exit(self.enter(kind, item)))
            stack.extend(reversed(list(item.children)))
        while self.tokens and isinstance(self.tokens[-1], LineBreak):
            self.tokens.pop()
        return tuple(self.tokens)

    def enter(self, kind, node):
        """Open an element; return the function that closes it."""
        name = node.name
        if kind is TagKind.ANCHOR:
            href = node["href"].strip()
            if self.base_url:
                href = urljoin(self.base_url, href)
            link_id = self.next_id
            self.next_id += 1
            self.tokens.append(LinkStart(href, link_id))
            self.link = link_id
            self.link_has_text = False

            def close_anchor():
                if not self.link_has_text:
                    self._emit(href)
                self.link = None
                self.tokens.append(LinkEnd())
                pending, self.pending_space = self.pending_space, False
                self._emit(f"[{link_id}]", "marker")
                self.pending_space = pending

            return close_anchor

        if kind is TagKind.BLOCK:
            self.line_break()
            level = HEADING_LEVELS.get(name)
            if level:
                self.tokens.append(Heading(level))
                self.heading += 1
            if name == "pre":
                self.pre += 1
                self.pre_fresh = True

            def close_block():
                if level:
                    self.heading -= 1
                if name == "pre":
                    self.pre -= 1
                self.line_break()

            return close_block

        if name in EMPHASIS_TAGS:
            self.emphasis += 1

            def close_emphasis():
                self.emphasis -= 1

            return close_emphasis

        if name in CELL_TAGS:
            self.pending_space = True

            def close_cell():
                self.pending_space = True

            return close_cell

        return lambda: None


def linearize(html, base_url=None):
    """Turn HTML (string or parsed soup) into a tuple of tokens."""
    soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html or "", "html.parser")
    return _Linearizer(base_url).run(soup)


def text_tokens(text, style="plain"):
    """Plain text -> tokens, one LineBreak per newline, whitespace kept."""
    tokens = []
    for i, line in enumerate(text.replace("\r\n", "\n").split("\n")):
        if i:
            tokens.append(LineBreak())
        line = line.expandtabs()
        if line:
            tokens.append(Text(line, style))
    return tuple(tokens)


def linearized_text(tokens):
    parts = []
    for tok in tokens:
        if isinstance(tok, Text):
            parts.append(tok.text)
        elif isinstance(tok, LineBreak):
            parts.append("\n")
    return "".join(parts)


def link_table(tokens):
    return {tok.id: tok.href for tok in tokens if isinstance(tok, LinkStart)}


def clean_text(text):
    return _WS.sub(" ", text).strip()


def extract_title(soup):
    if soup.title and soup.title.string:
        return clean_text(soup.title.string) or None
    return None
