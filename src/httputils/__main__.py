"""
=============================================================================
HTTPUTILS CLI ENTRY POINT
=============================================================================

Emit a file as an HTTP response on standard output, the way a CGI script
answers a request.

=============================================================================
USAGE
=============================================================================

    # Whole file, type guessed from the name
    python -m httputils ./public/index.html

    # Partial content (206) for bytes 0..1023
    python -m httputils video.mp4 --range 0-1023

    # Extra headers and cookies
    python -m httputils data.json --header "Cache-Control: no-cache" \\
                                  --cookie "session=abc123"

    # Configuration from the environment
    HTTPUTILS_BUFFER_SIZE=8192 HTTPUTILS_LOG_LEVEL=DEBUG python -m httputils file.bin

Logs go to stderr; stdout only ever carries the response.

=============================================================================
"""

import argparse
import os
import re
import sys
from datetime import datetime, timezone
from typing import BinaryIO, List, Optional, Tuple

from . import __version__
from .config import EmitterConfig, setup_logging
from .emitter import StdoutEmitter, StreamSink
from .http.cookie import Cookie
from .http.response import HTTPResponse, ResponseBuilder


_RANGE_ARG = re.compile(r"^(\d+)-(\d+)$")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httputils",
        description="Emit a file as an HTTP response on stdout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m httputils index.html                    # 200 with the whole file
  python -m httputils video.mp4 --range 0-1023      # 206 Partial Content
  python -m httputils page.html --status 404        # Custom status
  python -m httputils a.txt --header "X-Id: 1"      # Extra header
        """
    )

    parser.add_argument("file", help="File to send as the response body")

    # ─────────────────────────────────────────────────────────────────────
    # RESPONSE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--status", "-s",
        type=int,
        default=200,
        help="Response status code (default: 200)"
    )

    parser.add_argument(
        "--range", "-r",
        dest="byte_range",
        default=None,
        metavar="START-END",
        help="Send only bytes START..END (inclusive) as 206 Partial Content"
    )

    parser.add_argument(
        "--header", "-H",
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Additional header (repeatable)"
    )

    parser.add_argument(
        "--cookie", "-c",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Set-Cookie to send (repeatable)"
    )

    parser.add_argument(
        "--content-type", "-t",
        default=None,
        help="Content-Type (default: guessed from the file name)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # OUTPUT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--buffer-size", "-b",
        type=int,
        default=None,
        help="Body chunk size in bytes (default: HTTPUTILS_BUFFER_SIZE or 65536)"
    )

    parser.add_argument(
        "--buffered",
        action="store_true",
        help="Hold body output back until the end"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: HTTPUTILS_LOG_LEVEL or INFO)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"httputils {__version__}"
    )

    return parser


def parse_range(value: str) -> Tuple[int, int]:
    """
    Parse a "START-END" argument.

    Raises:
        ValueError: If the value is not two non-negative integers.
    """
    match = _RANGE_ARG.match(value.strip())

    if match is None:
        raise ValueError(f"Invalid range: {value!r}. Expected START-END, e.g. 0-1023.")

    return int(match.group(1)), int(match.group(2))


def build_response(args: argparse.Namespace, config: EmitterConfig) -> HTTPResponse:
    """Translate CLI arguments into the response to emit."""
    builder = ResponseBuilder().status(args.status).file(args.file, args.content_type)

    mtime = os.stat(args.file).st_mtime
    builder.last_modified(datetime.fromtimestamp(mtime, tz=timezone.utc))

    for line in args.header:
        name, sep, value = line.partition(":")

        if not sep:
            raise ValueError(f"Invalid header: {line!r}. Expected 'Name: value'.")

        builder.header(name.strip(), value.strip())

    for cookie in args.cookie:
        name, _, value = cookie.partition("=")
        builder.cookie(Cookie(name.strip(), value.strip()))

    if args.byte_range:
        start, end = parse_range(args.byte_range)
        builder.byte_range(start, end)

    return builder.build().with_protocol_version(config.protocol_version)


def main(argv: Optional[List[str]] = None, stdout: Optional[BinaryIO] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit code: 0 on success, 1 on any error.
    """
    args = build_parser().parse_args(argv)

    # =========================================================================
    # CREATE CONFIGURATION
    # =========================================================================
    # Environment first, CLI arguments override

    try:
        config = EmitterConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment configuration: {e}", file=sys.stderr)
        return 1

    if args.buffer_size is not None:
        config.buffer_size = args.buffer_size

    if args.buffered:
        config.buffered_output = True

    if args.log_level:
        config.log_level = args.log_level

    try:
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config)

    # =========================================================================
    # BUILD AND EMIT
    # =========================================================================

    response = None

    try:
        response = build_response(args, config)
        sink = StreamSink(
            stdout if stdout is not None else sys.stdout.buffer,
            buffered=config.buffered_output,
            protocol_version=config.protocol_version,
        )
        StdoutEmitter(response, config.buffer_size, sink).emit()
    except (OSError, RuntimeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        # the emitter only borrows the body, the file is ours to close
        if response is not None:
            response.body.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
