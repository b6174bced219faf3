"""Greedy word wrap of a token stream into fixed-width display lines."""

import re
from dataclasses import dataclass

from tbrowser.linearize import (
    HTML_SPACE,
    Heading,
    LineBreak,
    LinkEnd,
    LinkStart,
    Text,
    text_tokens,
)

_PIECES = re.compile(f"[{HTML_SPACE}]+|[^{HTML_SPACE}]+")


@dataclass(frozen=True)
class Span:
    text: str
    style: str = "plain"
    link_id: int | None = None


@dataclass(frozen=True)
class DisplayLine:
    """One row of the page.

    The source offsets are character offsets into the linearized text of
    the tokens the line was wrapped from.
    """

    spans: tuple[Span, ...] = ()
    source_offset_start: int = 0
    source_offset_end: int = 0
    link_ids: tuple[int, ...] = ()
    heading: int = 0

    @property
    def text(self):
        return "".join(s.text for s in self.spans)

    @property
    def width(self):
        return len(self.text)


def _is_space(piece):
    return piece[0] in HTML_SPACE


def _make_line(pieces, start, end, heading):
    spans = []
    for text, style, link_id, _ in pieces:
        if spans and spans[-1].style == style and spans[-1].link_id == link_id:
            spans[-1] = Span(spans[-1].text + text, style, link_id)
        else:
            spans.append(Span(text, style, link_id))
    link_ids = tuple(dict.fromkeys(p[2] for p in pieces if p[2] is not None))
    return DisplayLine(tuple(spans), start, end, link_ids, heading)


class _Wrapper:
    def __init__(self, width):
        self.width = width
        self.lines = []
        self.offset = 0
        self.links = []
        self.heading = 0
        # A break at the very start of the stream already closes an empty line.
        self.prev_break = True
        self._reset(soft=False)

    def _reset(self, soft):
        # pieces: (text, style, link_id, end offset)
        self.pieces = []
        self.used = 0
        self.soft = soft

    def _put(self, text, style):
        link_id = self.links[-1] if self.links else None
        self.offset += len(text)
        self.pieces.append((text, style, link_id, self.offset))
        self.used += len(text)
        self.prev_break = False

    def _emit(self, soft):
        pieces = self.pieces
        while pieces and _is_space(pieces[-1][0]):
            pieces.pop()
        if pieces:
            start = pieces[0][3] - len(pieces[0][0])
            self.lines.append(_make_line(pieces, start, pieces[-1][3], self.heading))
        elif not soft:
            self.lines.append(DisplayLine((), self.offset, self.offset))
        self._reset(soft)

    def text(self, text, style):
        for piece in _PIECES.findall(text):
            if _is_space(piece):
                if not self.pieces and self.soft:
                    self.offset += len(piece)
                elif self.used + len(piece) > self.width:
                    self.offset += len(piece)
                    self._emit(soft=True)
                else:
                    self._put(piece, style)
                continue

            if self.pieces and self.used + len(piece) > self.width:
                self._emit(soft=True)
            while len(piece) > self.width:
                self._put(piece[:self.width], style)
                piece = piece[self.width:]
                self._emit(soft=True)
            self._put(piece, style)

    def line_break(self):
        if self.pieces:
            self._emit(soft=False)
        elif self.prev_break:
            self.lines.append(DisplayLine((), self.offset, self.offset))
        self._reset(soft=False)
        self.offset += 1
        self.heading = 0
        self.prev_break = True

    def feed(self, tokens):
        for tok in tokens:
            if isinstance(tok, Text):
                self.text(tok.text, tok.style)
            elif isinstance(tok, LineBreak):
                self.line_break()
            elif isinstance(tok, LinkStart):
                self.links.append(tok.id)
            elif isinstance(tok, LinkEnd):
                if self.links:
                    self.links.pop()
            elif isinstance(tok, Heading):
                self.heading = tok.level
        if self.pieces:
            self._emit(soft=False)
        return tuple(self.lines)


def wrap(tokens, width):
    """Wrap tokens into DisplayLines no wider than `width`.

    Lines break at whitespace; a word longer than the width is cut at the
    width. Each LineBreak ends the current line, and two in a row leave an
    empty line.
    """
    if width <= 0:
        msg = f"Wrap width must be positive, got {width!r}"
        raise ValueError(msg)
    return _Wrapper(width).feed(tokens)


def wrap_text(text, width, style="plain"):
    return wrap(text_tokens(text, style), width)
