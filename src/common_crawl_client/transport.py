"""HTTP transport for fetching Common Crawl index files.

`open_url()` issues a streamed GET and hands back a readable binary file
object, so callers can layer `gzip.GzipFile` on top without buffering the
whole download.

Tunables (env):
  CC_WARC_PATHS_TIMEOUT_S    connect/read timeout in seconds (default 60)
  CC_WARC_PATHS_CHUNK_BYTES  read chunk size (default 65536)
"""

from __future__ import annotations

import io
import logging
import os
from typing import Iterator, Optional, Tuple

from urllib3.exceptions import HTTPError as Urllib3HTTPError

from .errors import TransportError

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_S = 60.0
DEFAULT_CHUNK_BYTES = 64 * 1024


def default_timeout_s() -> float:
    try:
        v = float((os.environ.get("CC_WARC_PATHS_TIMEOUT_S") or "").strip() or DEFAULT_TIMEOUT_S)
    except ValueError:
        v = DEFAULT_TIMEOUT_S
    return v if v > 0 else DEFAULT_TIMEOUT_S


def default_chunk_bytes() -> int:
    try:
        v = int((os.environ.get("CC_WARC_PATHS_CHUNK_BYTES") or "").strip() or DEFAULT_CHUNK_BYTES)
    except ValueError:
        v = DEFAULT_CHUNK_BYTES
    return max(1, v)


def _require_requests():
    try:
        import requests  # type: ignore
    except ImportError as e:
        raise RuntimeError(
            "requests is required for fetching Common Crawl index files. Install with: pip install -e ."
        ) from e
    return requests


class ResponseStream(io.RawIOBase):
    """Read-only binary stream over a streamed `requests` response.

    Reads pull from `response.raw` with `decode_content=False`, so the body
    reaches the caller exactly as stored even when the server sets a
    Content-Encoding. Read failures surface as `TransportError`.
    """

    def __init__(self, response, *, chunk_bytes: int, read_errors: Tuple[type, ...]) -> None:
        super().__init__()
        self._response = response
        self._chunks: Iterator[bytes] = response.raw.stream(chunk_bytes, decode_content=False)
        self._read_errors = read_errors
        self._pending = b""

    @property
    def url(self) -> str:
        return str(getattr(self._response, "url", ""))

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except self._read_errors as e:
                raise TransportError(f"failed reading {self.url}: {e}") from e

        n = min(len(b), len(self._pending))
        b[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._response.close()
        finally:
            super().close()


def open_url(
    url: str,
    *,
    timeout_s: Optional[float] = None,
    chunk_bytes: Optional[int] = None,
) -> ResponseStream:
    """Open a streamed GET to `url` and return it as a binary file object.

    The caller owns the returned stream and must close it.
    """

    requests = _require_requests()
    timeout = float(timeout_s) if timeout_s is not None else default_timeout_s()
    chunk = int(chunk_bytes) if chunk_bytes is not None else default_chunk_bytes()

    logger.debug("GET %s (timeout_s=%s)", url, timeout)
    try:
        resp = requests.get(url, stream=True, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("GET %s failed: %s", url, e)
        raise TransportError(f"failed to fetch {url}: {e}") from e

    status = int(resp.status_code)
    if status < 200 or status >= 300:
        resp.close()
        logger.warning("GET %s returned HTTP %d", url, status)
        raise TransportError(f"failed to fetch {url}: HTTP {status}")

    return ResponseStream(resp, chunk_bytes=chunk, read_errors=(requests.RequestException, Urllib3HTTPError, OSError))
