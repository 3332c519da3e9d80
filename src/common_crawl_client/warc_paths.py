"""Resolve the WARC file locations that belong to a Common Crawl crawl.

Every crawl publishes a gzip'd listing of its WARC files at

  https://commoncrawl.s3.amazonaws.com/crawl-data/<crawl_id>/warc.paths.gz

with one path per line, relative to the bucket root. This module streams that
listing and turns each line into an absolute location.

Four shapes are offered over the same pipeline:

- `build_location_url_list()` / `build_location_string_list()` read the whole
  listing and return a list. The connection is closed before they return.
- `build_location_url_stream()` / `build_location_string_stream()` return a
  `LocationStream`. Nothing is fetched until the first item is pulled; the
  caller must close it (or use it in a `with` block) unless it is drained.

URL-typed shapes yield `urllib.parse.SplitResult` values. A line that does not
produce a valid URL raises `MalformedLocationError`; it is never skipped.

Example:
    with build_location_string_stream("CC-MAIN-2020-05") as locations:
        for loc in locations:
            ...
"""

from __future__ import annotations

import gzip
import io
import logging
import urllib.parse
import zlib
from typing import BinaryIO, Callable, Generic, List, Optional, TypeVar

from . import transport
from .errors import DecompressionError, MalformedLocationError, ReleaseError, TransportError

logger = logging.getLogger(__name__)


AWS_S3_PREFIX = "https://commoncrawl.s3.amazonaws.com/"
WARC_PATHS_FILENAME = "warc.paths.gz"

Opener = Callable[[str], BinaryIO]

T = TypeVar("T")


def _require_crawl_id(crawl_id: object) -> str:
    if not isinstance(crawl_id, str) or not crawl_id:
        raise ValueError(f"crawl_id must be a non-empty string, got {crawl_id!r}")
    return crawl_id


def warc_paths_url(crawl_id: str) -> str:
    """Location of the gzip'd file that lists all WARC paths of a crawl."""

    return AWS_S3_PREFIX + "crawl-data/" + _require_crawl_id(crawl_id) + "/" + WARC_PATHS_FILENAME


def build_location(path_fragment: str) -> str:
    return AWS_S3_PREFIX + path_fragment


def parse_location(location: str) -> urllib.parse.SplitResult:
    """Parse an absolute location into a URL value.

    Raises MalformedLocationError when the string is not an http(s) URL with a
    host, or contains control characters that `urlsplit` would silently drop.
    """

    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in location):
        raise MalformedLocationError(f"Unable to convert WARC url: {location!r}")
    try:
        parts = urllib.parse.urlsplit(location)
        # Port is validated lazily by urllib; touch it so bad ports fail here.
        parts.port
    except ValueError as e:
        raise MalformedLocationError(f"Unable to convert WARC url: {location!r}") from e

    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise MalformedLocationError(f"Unable to convert WARC url: {location!r}")
    return parts


def _build_location_url(path_fragment: str) -> urllib.parse.SplitResult:
    if not path_fragment:
        raise MalformedLocationError("Unable to convert WARC url: empty path in index")
    return parse_location(build_location(path_fragment))


class _CountingReader:
    """Pass-through reader that counts the compressed bytes handed to gzip."""

    def __init__(self, raw: BinaryIO) -> None:
        self._raw = raw
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        data = self._raw.read(size)
        self.bytes_read += len(data)
        return data


class LocationStream(Generic[T]):
    """Lazy, closable sequence of locations read from one crawl's index.

    The index is fetched on the first `next()`. The stream closes itself when
    the index is exhausted; a consumer that stops early must call `close()`.
    Stopping early never raises by itself. Once exhausted, further `next()`
    calls keep raising StopIteration.

    A failure while converting one line is raised for that item only; the
    next `next()` continues with the following line. Transport and gzip
    failures leave the stream in an undefined position and it should be
    closed.
    """

    def __init__(self, index_url: str, *, opener: Opener, convert: Callable[[str], T]) -> None:
        self.index_url = index_url
        self._opener = opener
        self._convert = convert
        self._raw: Optional[BinaryIO] = None
        self._text: Optional[io.TextIOWrapper] = None
        self._counter: Optional[_CountingReader] = None
        self._closed = False
        self._exhausted = False
        self.lines_read = 0

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("open" if self._raw is not None else "pending")
        return f"<LocationStream {self.index_url} {state} lines_read={self.lines_read}>"

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "LocationStream[T]":
        return self

    def __enter__(self) -> "LocationStream[T]":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.close()
            return False
        try:
            self.close()
        except ReleaseError as e:
            # Keep the original failure; the release problem is secondary.
            logger.warning("Ignoring close failure after error for %s: %s", self.index_url, e)
        return False

    def _open(self) -> io.TextIOWrapper:
        logger.debug("Opening WARC paths index %s", self.index_url)
        try:
            raw = self._opener(self.index_url)
        except OSError as e:
            raise TransportError(f"failed to fetch {self.index_url}: {e}") from e
        self._raw = raw
        self._counter = _CountingReader(raw)
        gz = gzip.GzipFile(fileobj=self._counter, mode="rb")
        self._text = io.TextIOWrapper(gz, encoding="utf-8", errors="replace", newline=None)
        return self._text

    def _readline(self) -> str:
        text = self._text if self._text is not None else self._open()
        try:
            return text.readline()
        except (gzip.BadGzipFile, EOFError, zlib.error) as e:
            raise DecompressionError(f"invalid gzip data in {self.index_url}: {e}") from e
        except OSError as e:
            raise TransportError(f"failed reading {self.index_url}: {e}") from e

    def __next__(self) -> T:
        if self._exhausted:
            raise StopIteration
        if self._closed:
            raise ValueError("I/O operation on closed LocationStream")

        line = self._readline()
        if not line:
            # gzip treats a body with no member at all as clean EOF.
            if self._counter is not None and self._counter.bytes_read == 0:
                raise DecompressionError(f"invalid gzip data in {self.index_url}: empty response body")
            logger.debug("Read %d WARC paths from %s", self.lines_read, self.index_url)
            self._exhausted = True
            self.close()
            raise StopIteration

        self.lines_read += 1
        if line.endswith("\n"):
            line = line[:-1]
        return self._convert(line)

    def close(self) -> None:
        """Release the underlying connection. Safe to call more than once."""

        if self._closed:
            return
        self._closed = True

        text, raw = self._text, self._raw
        self._text = None
        self._raw = None
        self._counter = None
        if raw is None:
            return

        logger.debug("Closing WARC paths index %s", self.index_url)
        try:
            try:
                if text is not None:
                    # GzipFile does not close a caller-supplied fileobj.
                    text.close()
            finally:
                raw.close()
        except Exception as e:
            raise ReleaseError(f"Unable to close WARC paths index {self.index_url}: {e}") from e


def _stream(crawl_id: str, opener: Optional[Opener], convert: Callable[[str], T]) -> LocationStream[T]:
    index_url = warc_paths_url(crawl_id)
    return LocationStream(index_url, opener=opener or transport.open_url, convert=convert)


def build_location_string_stream(crawl_id: str, *, opener: Optional[Opener] = None) -> LocationStream[str]:
    """Return the WARC locations of a crawl as a lazy stream of strings.

    The returned stream should be closed by the caller.
    """

    return _stream(crawl_id, opener, build_location)


def build_location_url_stream(
    crawl_id: str, *, opener: Optional[Opener] = None
) -> LocationStream[urllib.parse.SplitResult]:
    """Return the WARC locations of a crawl as a lazy stream of parsed URLs.

    The returned stream should be closed by the caller.
    """

    return _stream(crawl_id, opener, _build_location_url)


def build_location_string_list(crawl_id: str, *, opener: Optional[Opener] = None) -> List[str]:
    """Return the WARC locations of a crawl as a list of strings."""

    with build_location_string_stream(crawl_id, opener=opener) as stream:
        return list(stream)


def build_location_url_list(
    crawl_id: str, *, opener: Optional[Opener] = None
) -> List[urllib.parse.SplitResult]:
    """Return the WARC locations of a crawl as a list of parsed URLs."""

    with build_location_url_stream(crawl_id, opener=opener) as stream:
        return list(stream)
