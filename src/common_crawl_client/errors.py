"""Exceptions raised while resolving WARC locations.

Invalid crawl ids are rejected with the built-in `ValueError`; everything that
goes wrong after that point is a `WarcPathsError`.
"""

from __future__ import annotations


class WarcPathsError(RuntimeError):
    """Base class: the locations for a crawl could not be determined."""


class TransportError(WarcPathsError):
    """The index could not be fetched (connection, DNS, non-2xx, timeout)."""


class DecompressionError(WarcPathsError):
    """The fetched index is not valid gzip data."""


class MalformedLocationError(WarcPathsError):
    """An index line did not produce a valid URL.

    The origin prefix is always a valid URL root, so this means the index
    itself is broken. It is never skipped.
    """


class ReleaseError(WarcPathsError):
    """Closing the underlying index stream failed."""
