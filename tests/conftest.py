"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import gzip
import io
from typing import List, Optional

import pytest


class TrackedStream(io.BytesIO):
    """In-memory index body that records closes and can fail on the first one."""

    def __init__(self, data: bytes, close_error: Optional[BaseException] = None):
        super().__init__(data)
        self.close_calls = 0
        self._close_error = close_error

    def close(self) -> None:
        self.close_calls += 1
        super().close()
        if self._close_error is not None and self.close_calls == 1:
            raise self._close_error


class FakeOpener:
    """Stands in for `transport.open_url` and records every URL it is asked for."""

    def __init__(
        self,
        payload: bytes = b"",
        *,
        error: Optional[BaseException] = None,
        close_error: Optional[BaseException] = None,
    ):
        self.payload = payload
        self.error = error
        self.close_error = close_error
        self.calls: List[str] = []
        self.streams: List[TrackedStream] = []

    def __call__(self, url: str) -> TrackedStream:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        stream = TrackedStream(self.payload, close_error=self.close_error)
        self.streams.append(stream)
        return stream

    @property
    def stream(self) -> TrackedStream:
        return self.streams[-1]


def gzip_lines(lines: List[str], *, newline: str = "\n", trailing: bool = True) -> bytes:
    body = newline.join(lines)
    if lines and trailing:
        body += newline
    return gzip.compress(body.encode("utf-8"))


@pytest.fixture
def make_opener():
    """Build a FakeOpener serving the given index lines as gzip."""

    def _make(lines: Optional[List[str]] = None, **kwargs) -> FakeOpener:
        payload = kwargs.pop("payload", None)
        if payload is None:
            payload = gzip_lines(lines or [])
        return FakeOpener(payload, **kwargs)

    return _make


@pytest.fixture
def crawl_lines() -> List[str]:
    return [
        "CC-MAIN-2020-05/segments/a/warc/1.warc.gz",
        "CC-MAIN-2020-05/segments/a/warc/2.warc.gz",
    ]
