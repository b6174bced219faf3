"""Tests for the HTML linearizer."""

from bs4 import BeautifulSoup

from tbrowser.linearize import (
    Heading,
    LineBreak,
    LinkEnd,
    LinkStart,
    TagKind,
    Text,
    classify,
    extract_title,
    link_table,
    linearize,
    linearized_text,
    text_tokens,
)


def test_heading_and_paragraph_tokens() -> None:
    tokens = linearize("<h1>Title</h1><p>Hello world</p>")
    assert tokens == (
        Heading(1),
        Text("Title", "heading"),
        LineBreak(),
        LineBreak(),
        Text("Hello world"),
    )


def test_script_and_style_contents_are_dropped() -> None:
    tokens = linearize("<p>a<script>var x = 1;</script>b</p><style>p { color: red }</style>")
    assert linearized_text(tokens) == "ab"


def test_whitespace_runs_collapse_across_inline_elements() -> None:
    tokens = linearize("<p>  Hello \n\t  <b>big</b>   world  </p>")
    assert linearized_text(tokens) == "Hello big world"
    assert Text("big", "emphasis") in tokens


def test_no_break_space_is_not_collapsed() -> None:
    tokens = linearize("<p>a&nbsp;&nbsp;b</p>")
    assert linearized_text(tokens) == "a\xa0\xa0b"


def test_anchors_get_increasing_ids_and_resolved_hrefs() -> None:
    html = '<p>See <a href="/a">one</a> and <a href="http://x.org/b">two</a></p>'
    tokens = linearize(html, base_url="http://example.com/dir/page")

    assert linearized_text(tokens) == "See one[1] and two[2]"
    assert LinkStart("http://example.com/a", 1) in tokens
    assert LinkStart("http://x.org/b", 2) in tokens
    assert tokens.count(LinkEnd()) == 2
    assert link_table(tokens) == {1: "http://example.com/a", 2: "http://x.org/b"}


def test_link_ids_restart_for_each_document() -> None:
    first = linearize('<a href="/x">x</a>')
    second = linearize('<a href="/y">y</a>')
    assert list(link_table(first)) == [1]
    assert list(link_table(second)) == [1]


def test_anchor_without_text_shows_its_href() -> None:
    tokens = linearize('<a href="http://x.org"></a>')
    assert linearized_text(tokens) == "http://x.org[1]"


def test_anchor_without_href_is_plain_inline() -> None:
    tokens = linearize('<p>go <a name="top">here</a></p>')
    assert linearized_text(tokens) == "go here"
    assert link_table(tokens) == {}


def test_malformed_markup_degrades_to_text() -> None:
    tokens = linearize("<div><p>unclosed <b>bold <i>text</div></span><<>>")
    assert "unclosed bold text" in linearized_text(tokens)


def test_br_forces_a_single_break() -> None:
    assert linearized_text(linearize("a<br>b")) == "a\nb"


def test_breaks_are_capped_at_one_blank_line() -> None:
    tokens = linearize("<p>a</p><div><div><p></p></div></div><p>b</p>")
    assert linearized_text(tokens) == "a\n\nb"


def test_pre_keeps_whitespace_and_newlines() -> None:
    tokens = linearize("<pre>\n  a  b\n\n c</pre>")
    assert linearized_text(tokens) == "  a  b\n\n c"
    assert Text("  a  b", "pre") in tokens


def test_table_cells_are_space_separated() -> None:
    tokens = linearize("<table><tr><td>a</td><td>b</td></tr><tr><td>c</td></tr></table>")
    assert linearized_text(tokens) == "a b\n\nc"


def test_classify_covers_every_kind() -> None:
    soup = BeautifulSoup(
        '<a href="x">l</a><a>n</a><script></script><div></div><span></span><blink></blink>'
        "<!-- note -->",
        "html.parser",
    )
    linked, unlinked = soup.find_all("a")
    assert classify(linked) is TagKind.ANCHOR
    assert classify(linked, inside_link=True) is TagKind.INLINE
    assert classify(unlinked) is TagKind.INLINE
    assert classify(soup.script) is TagKind.IGNORED
    assert classify(soup.div) is TagKind.BLOCK
    assert classify(soup.span) is TagKind.INLINE
    assert classify(soup.blink) is TagKind.INLINE
    assert classify(linked.string) is TagKind.TEXT
    assert classify(soup.contents[-1]) is TagKind.IGNORED


def test_extract_title() -> None:
    soup = BeautifulSoup("<title>  My\n Page </title><p>x</p>", "html.parser")
    assert extract_title(soup) == "My Page"
    assert extract_title(BeautifulSoup("<p>x</p>", "html.parser")) is None


def test_text_tokens_split_on_newlines() -> None:
    assert text_tokens("a\r\n\nb\tc") == (
        Text("a"),
        LineBreak(),
        LineBreak(),
        Text("b" + " " * 7 + "c"),
    )
