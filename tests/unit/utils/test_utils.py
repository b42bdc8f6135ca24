"""Tests for imgbed.utils: hashing and redaction."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from imgbed.utils import md5_hash, redact


class TestMd5Hash:
    def test_known_value(self):
        assert md5_hash("hello") == "5d41402abc4b2a76b9719d911017c592"

    def test_unicode(self):
        assert len(md5_hash("图片")) == 32

    @given(st.text())
    def test_deterministic(self, text):
        assert md5_hash(text) == md5_hash(text)


class TestRedact:
    def test_data_uri_replaced(self):
        payload = {"name": "a.png", "data": "data:image/png;base64,aGVsbG8="}
        assert redact(payload) == {"name": "a.png", "data": "<data_uri:5_bytes>"}

    def test_original_not_mutated(self):
        payload = {"data": "data:image/png;base64,aGVsbG8="}
        redact(payload)
        assert payload["data"].startswith("data:")

    def test_nested_structures(self):
        payload = {"outer": [{"data": "data:image/gif;base64,AAAA"}]}
        assert redact(payload) == {"outer": [{"data": "<data_uri:3_bytes>"}]}

    def test_bytes_replaced(self):
        assert redact({"raw": b"\x00\x01"}) == {"raw": "<binary:2_bytes>"}

    def test_long_binary_string_replaced(self):
        value = "\x00\x01\x02" * 200
        assert redact({"v": value})["v"].startswith("<binary:")

    def test_plain_values_untouched(self):
        payload = {"size": 2048, "type": "image/png", "ok": True, "none": None}
        assert redact(payload) == payload

    def test_data_uri_embedded_in_text(self):
        out = redact({"msg": "got data:image/png;base64,aGVsbG8= back"})
        assert out["msg"] == "got <data_uri:5_bytes> back"
