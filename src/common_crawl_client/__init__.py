"""Common Crawl client utilities.

Resolves the WARC file locations of a Common Crawl crawl from its published
`warc.paths.gz` listing.
"""

from .errors import (
    DecompressionError,
    MalformedLocationError,
    ReleaseError,
    TransportError,
    WarcPathsError,
)
from .warc_paths import (
    AWS_S3_PREFIX,
    LocationStream,
    build_location,
    build_location_string_list,
    build_location_string_stream,
    build_location_url_list,
    build_location_url_stream,
    parse_location,
    warc_paths_url,
)

__all__ = [
    "AWS_S3_PREFIX",
    "DecompressionError",
    "LocationStream",
    "MalformedLocationError",
    "ReleaseError",
    "TransportError",
    "WarcPathsError",
    "build_location",
    "build_location_string_list",
    "build_location_string_stream",
    "build_location_url_list",
    "build_location_url_stream",
    "parse_location",
    "warc_paths_url",
]
