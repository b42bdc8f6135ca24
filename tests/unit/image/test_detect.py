"""Tests for source classification, block-list matching and MIME helpers."""

from __future__ import annotations

import pytest

from imgbed.image.detect import (
    DEFAULT_MIME,
    guess_mime,
    has_block_domain,
    is_network_url,
    mime_to_extension,
    network_candidates,
    sniff_mime,
)
from imgbed.models import ImageReference


class TestIsNetworkUrl:
    @pytest.mark.parametrize(
        "src",
        ["http://a.com/x.png", "https://a.com/x", "  https://a.com/y.gif"],
    )
    def test_network(self, src):
        assert is_network_url(src)

    @pytest.mark.parametrize(
        "src",
        ["assets/x.png", "/abs/x.png", "ftp://a.com/x.png", "https://", "data:image/png;base64,AA=="],
    )
    def test_not_network(self, src):
        assert not is_network_url(src)


class TestBlockDomains:
    def test_subdomain_is_blocked(self):
        assert has_block_domain("https://img.blocked.com/a.png", ["blocked.com"])

    def test_host_inside_entry_not_blocked(self):
        assert not has_block_domain("https://ked.com/a.png", ["blocked.com"])

    def test_unrelated_host_not_blocked(self):
        assert not has_block_domain("https://img.other.com/a.png", ["blocked.com"])

    def test_entry_with_scheme_reduced_to_host(self):
        assert has_block_domain("https://cdn.x/img/a.png", ["https://cdn.x"])

    def test_empty_and_blank_entries_ignored(self):
        assert not has_block_domain("https://a.com/x.png", ["", "  "])

    def test_local_path_never_blocked(self):
        assert not has_block_domain("assets/blocked.com.png", ["blocked.com"])

    def test_network_candidates_excludes_blocked_hosts(self):
        refs = [
            ImageReference(path="https://img.blocked.com/a.png", name="a", source="s1"),
            ImageReference(path="https://ok.com/b.png", name="b", source="s2"),
            ImageReference(path="local/c.png", name="c", source="s3"),
        ]
        assert [r.path for r in network_candidates(refs, ["blocked.com"])] == ["https://ok.com/b.png"]


class TestMime:
    def test_sniff_png(self, make_png):
        assert sniff_mime(make_png()) == "image/png"

    def test_sniff_jpeg(self):
        assert sniff_mime(b"\xff\xd8\xff\xe0rest") == "image/jpeg"

    def test_sniff_webp_requires_marker(self):
        assert sniff_mime(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"
        assert sniff_mime(b"RIFF\x00\x00\x00\x00WAVEfmt ") is None

    def test_declared_type_wins(self, make_png):
        assert guess_mime(make_png(), declared="image/jpeg; charset=binary") == "image/jpeg"

    def test_extension_fallback(self):
        assert guess_mime(b"plain", name="photo.gif") == "image/gif"

    def test_default(self):
        assert guess_mime(b"plain", name="noext") == DEFAULT_MIME

    def test_extension_mapping(self):
        assert mime_to_extension("image/jpeg") == ".jpg"
        assert mime_to_extension("application/x-unknown") == ".bin"
