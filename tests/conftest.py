"""Shared test fixtures for the imgbed test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from imgbed.cache import UploadCache
from imgbed.config import ImgbedConfig
from imgbed.host import LogNotifier, TextEditor
from imgbed.models import UploadResult


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(self, name: str, ms: float, tags: dict[str, str] | None = None) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> list[str]:
        return [entry["name"] for entry in self.increments]


@pytest.fixture
def config() -> ImgbedConfig:
    """Upload-ready configuration pointing at a fake server."""
    return ImgbedConfig(server_url="https://cdn.x", upload_api="/up")


@pytest.fixture
def cache() -> UploadCache:
    return UploadCache()


@pytest.fixture
def editor() -> TextEditor:
    return TextEditor()


@pytest.fixture
def notifier() -> LogNotifier:
    return LogNotifier()


@pytest.fixture
def metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()


@pytest.fixture
def http_client() -> MagicMock:
    """Stand-in for ``httpx.AsyncClient``; set ``post``/``get`` return values per test."""
    client = MagicMock(spec=httpx.AsyncClient)
    client.post = AsyncMock(return_value=httpx.Response(200, json={"code": 0, "data": {"url": "/up-response-url"}}))
    client.get = AsyncMock(return_value=httpx.Response(200, json={"success": True, "msg": ""}))
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def gateway() -> MagicMock:
    """Gateway double whose uploads succeed with a fixed URL."""
    gw = MagicMock()
    gw.upload = AsyncMock(return_value=UploadResult.success("https://cdn.x/up-response-url"))
    gw.delete_images = AsyncMock(return_value=([], ""))
    return gw


@pytest.fixture
def make_png():
    """Factory for a buffer of *size* bytes that sniffs as PNG."""

    def _make(size: int = 64) -> bytes:
        header = b"\x89PNG\r\n\x1a\n"
        return header + b"\x00" * max(size - len(header), 0)

    return _make
