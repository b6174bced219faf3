"""In-page search over display lines."""

import re
from dataclasses import dataclass, field

from tbrowser.document import ViewMode


@dataclass(frozen=True)
class Match:
    line_index: int
    start: int
    end: int

    @property
    def span(self):
        return (self.start, self.end)


@dataclass
class SearchSession:
    """Matches in line order, left to right, and a cyclic cursor.

    `cursor` is None only when there is nothing to point at.
    """

    query: str
    matches: tuple[Match, ...] = ()
    cursor: int | None = None
    _by_line: dict = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self):
        for m in self.matches:
            self._by_line.setdefault(m.line_index, []).append(m)
        if self.matches and self.cursor is None:
            self.cursor = 0

    def __len__(self):
        return len(self.matches)

    @property
    def current(self):
        if self.cursor is None:
            return None
        return self.matches[self.cursor]

    def next(self):
        if not self.matches:
            return None
        self.cursor = (self.cursor + 1) % len(self.matches)
        return self.current

    def previous(self):
        if not self.matches:
            return None
        self.cursor = (self.cursor - 1) % len(self.matches)
        return self.current

    def matches_on(self, line_index):
        return self._by_line.get(line_index, [])


def search_lines(lines, query):
    if not query:
        return SearchSession(query)
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    matches = []
    for i, line in enumerate(lines):
        for m in pattern.finditer(line.text):
            matches.append(Match(i, m.start(), m.end()))
    return SearchSession(query, tuple(matches))


def start_search(doc, query, mode=ViewMode.RENDERED):
    """Case-insensitive substring search of a document's lines."""
    return search_lines(doc.lines_for(mode), query)
