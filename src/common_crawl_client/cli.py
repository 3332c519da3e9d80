"""Print the WARC file locations of a Common Crawl crawl.

Examples:
    ccwarc CC-MAIN-2020-05 --limit 10
    ccwarc CC-MAIN-2020-05 --format jsonl --validate-urls
    python -m common_crawl_client.cli CC-MAIN-2020-05 > warc_locations.txt
"""

from __future__ import annotations

import argparse
import functools
import itertools
import json
import logging
import os
import sys

from common_crawl_client import transport, warc_paths
from common_crawl_client.errors import WarcPathsError

logger = logging.getLogger(__name__)


def _eprint(msg: str) -> None:
    sys.stderr.write(str(msg) + "\n")


def _silence_stdout() -> None:
    # Reader went away (e.g. `| head`); point stdout at devnull so the flush at exit is quiet.
    try:
        fd = sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(devnull, fd)
    finally:
        os.close(devnull)


def _write_location(fmt: str, index: int, location: str) -> None:
    if fmt == "jsonl":
        sys.stdout.write(json.dumps({"index": index, "location": location}, ensure_ascii=False) + "\n")
    else:
        sys.stdout.write(location + "\n")


def _cmd_locations(args: argparse.Namespace) -> int:
    opener = None
    if args.timeout_s is not None:
        opener = functools.partial(transport.open_url, timeout_s=float(args.timeout_s))

    if args.validate_urls:
        stream = warc_paths.build_location_url_stream(args.crawl_id, opener=opener)
    else:
        stream = warc_paths.build_location_string_stream(args.crawl_id, opener=opener)

    emitted = 0
    with stream:
        for loc in itertools.islice(stream, args.limit):
            text = loc.geturl() if args.validate_urls else loc
            _write_location(args.format, emitted, text)
            emitted += 1

    logger.info("Emitted %d locations for %s", emitted, args.crawl_id)
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog="ccwarc",
        description="List the WARC file locations of a Common Crawl crawl (from its warc.paths.gz)",
    )
    ap.add_argument("crawl_id", help="Crawl identifier, e.g. CC-MAIN-2020-05")
    ap.add_argument("--format", choices=["text", "jsonl"], default="text", help="Output format (default: text)")
    ap.add_argument("--limit", type=int, default=None, help="Stop after N locations")
    ap.add_argument(
        "--validate-urls",
        action="store_true",
        help="Parse every location as a URL and fail on the first malformed entry",
    )
    ap.add_argument(
        "--timeout-s",
        type=float,
        default=None,
        help="HTTP timeout in seconds (default: $CC_WARC_PATHS_TIMEOUT_S or 60)",
    )
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.limit is not None and args.limit < 0:
        _eprint("--limit must be >= 0")
        return 2

    try:
        return _cmd_locations(args)
    except BrokenPipeError:
        _silence_stdout()
        return 0
    except ValueError as e:
        _eprint(f"error: {e}")
        return 2
    except WarcPathsError as e:
        _eprint(f"error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
