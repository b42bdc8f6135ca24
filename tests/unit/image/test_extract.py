"""Tests for image link extraction.

Covers both syntaxes, merge order, dedup-by-path and idempotence.
"""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from imgbed.image.detect import is_network_url
from imgbed.image.extract import (
    extract_image_links,
    merge_unique,
    parse_bracket_links,
    parse_wiki_links,
)
from imgbed.models import ImageReference, LinkSyntax

# ---------------------------------------------------------------------------
# Bracket syntax
# ---------------------------------------------------------------------------


class TestBracketLinks:
    def test_plain_path(self):
        refs = list(parse_bracket_links("see ![cat](img/cat.png) here"))
        assert refs == [ImageReference(path="img/cat.png", name="cat", source="![cat](img/cat.png)")]

    def test_angle_bracket_path(self):
        refs = list(parse_bracket_links("![a](<my pics/a b.png>)"))
        # Whitespace inside angle brackets is not a path character.
        assert refs == []
        refs = list(parse_bracket_links("![a](<pics/a.png>)"))
        assert refs[0].path == "pics/a.png"
        assert refs[0].source == "![a](<pics/a.png>)"

    def test_quoted_title_is_not_part_of_path(self):
        refs = list(parse_bracket_links('![x](a/b.jpg "A title")'))
        assert refs[0].path == "a/b.jpg"
        assert refs[0].source == '![x](a/b.jpg "A title")'

    def test_http_url_without_extension(self):
        refs = list(parse_bracket_links("![](https://example.com/image?id=3)"))
        assert refs[0].path == "https://example.com/image?id=3"
        assert refs[0].name == ""
        assert is_network_url(refs[0].path)

    def test_two_links_on_one_line_stay_separate(self):
        text = "![a](one.png) and ![b](two.png)"
        refs = list(parse_bracket_links(text))
        assert [r.path for r in refs] == ["one.png", "two.png"]
        assert [r.source for r in refs] == ["![a](one.png)", "![b](two.png)"]

    def test_plain_link_is_not_an_image(self):
        assert list(parse_bracket_links("[doc](file.pdf)")) == []

    def test_syntax_tag(self):
        ref = next(parse_bracket_links("![a](a.png)"))
        assert ref.syntax is LinkSyntax.BRACKET


# ---------------------------------------------------------------------------
# Wiki syntax
# ---------------------------------------------------------------------------


class TestWikiLinks:
    def test_name_defaults_to_stem(self):
        refs = list(parse_wiki_links("![[assets/photo.jpeg]]"))
        assert refs == [
            ImageReference(
                path="assets/photo.jpeg",
                name="photo",
                source="![[assets/photo.jpeg]]",
                syntax=LinkSyntax.WIKI,
            )
        ]

    def test_display_suffix_appended_verbatim(self):
        ref = next(parse_wiki_links("![[photo.png|300]]"))
        assert ref.path == "photo.png"
        assert ref.name == "photo|300"

    def test_multiple_wiki_links(self):
        refs = list(parse_wiki_links("![[a.png]] ![[b.png]]"))
        assert [r.path for r in refs] == ["a.png", "b.png"]


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


class TestExtractImageLinks:
    def test_bracket_matches_come_before_wiki(self):
        text = "![[w.png]]\n![b](b.png)"
        assert [r.path for r in extract_image_links(text)] == ["b.png", "w.png"]

    def test_duplicate_paths_dropped_first_wins(self):
        text = "![first](a.png)\n![second](a.png)\n![[a.png]]"
        refs = extract_image_links(text)
        assert len(refs) == 1
        assert refs[0].name == "first"

    def test_empty_text(self):
        assert extract_image_links("") == []

    def test_mixed_document(self):
        text = (
            "# Title\n"
            "![local](assets/l.png)\n"
            "![](https://img.example.com/r.jpg)\n"
            "![[notes/w.gif|120]]\n"
        )
        refs = extract_image_links(text)
        assert [(r.path, r.syntax) for r in refs] == [
            ("assets/l.png", LinkSyntax.BRACKET),
            ("https://img.example.com/r.jpg", LinkSyntax.BRACKET),
            ("notes/w.gif", LinkSyntax.WIKI),
        ]

    def test_merge_unique_keeps_first_per_path(self):
        a = ImageReference(path="p.png", name="a", source="A")
        b = ImageReference(path="p.png", name="b", source="B")
        c = ImageReference(path="q.png", name="c", source="C")
        assert merge_unique([a], [b, c]) == [a, c]


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

_names = st.text(alphabet="abcdefgh", min_size=1, max_size=6)
_link = st.one_of(
    st.builds(lambda n, e: f"![{n}]({n}.{e})", _names, st.sampled_from(["png", "jpg", "gif"])),
    st.builds(lambda n: f"![[{n}.png]]", _names),
    st.builds(lambda n: f"![](https://h.example/{n})", _names),
)
_documents = st.lists(
    st.one_of(_link, st.text(alphabet="xyz \n", max_size=10)),
    max_size=12,
).map("".join)


class TestExtractionProperties:
    @given(_documents)
    @settings(max_examples=200)
    def test_idempotent(self, text):
        assert extract_image_links(text) == extract_image_links(text)

    @given(_documents)
    @settings(max_examples=200)
    def test_paths_unique(self, text):
        paths = [r.path for r in extract_image_links(text)]
        assert len(paths) == len(set(paths))

    @given(_documents)
    @settings(max_examples=200)
    def test_every_source_occurs_in_text(self, text):
        for ref in extract_image_links(text):
            assert ref.source in text
