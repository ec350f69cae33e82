"""CLI for reading the state of remote systems at a point in time.

The resolved state is the only thing ever written to stdout, as a single
JSON line. Logs and errors go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from replay.config import settings
from replay.errors import ReplayError
from replay.query import get_state

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)-5.5s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

USAGE_EXAMPLES = """\
examples:
  replay --field ambientTemp --field schedule /tmp/ehub_data 2016-01-01T03:00
  replay --field ambientTemp s3://net.energyhub.assets/public/dev-exercises/audit-data/ 2016-01-01T03:00
  replay --field ambientTemp gs://my-bucket/audit-data 2016-01-01T03:00:00Z

accepted dateTime layouts:
  2016-01-01T03:24:30.001180+00:00   2016-01-01T03:24:30.001180
  2016-01-01T03:24:30+00:00          2016-01-01T03:24:30
  2016-01-01T03:24+00:00             2016-01-01T03:24
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="replay",
        description="a CLI for reading the state of remote systems at a point in time",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "data_source",
        nargs="?",
        metavar="dataSource",
        help="Local directory or s3:// / gs:// / https:// prefix holding the partitions",
    )
    parser.add_argument(
        "date_time",
        nargs="?",
        metavar="dateTime",
        help="Point in time to read the state at (e.g., 2016-01-01T03:00)",
    )
    parser.add_argument(
        "--field",
        dest="fields",
        action="append",
        default=[],
        help="A field to show the state of, can be given multiple times",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show debug logs on stderr",
    )
    return parser


def run_query(fields: list[str], data_source: str, date_time: str) -> int:
    """Resolve and print the state. Returns a process exit code."""
    try:
        result = asyncio.run(get_state(fields, data_source, date_time))
    except ReplayError as e:
        logger.error(f"error getting state: {e}")
        return 1

    # this is the only thing allowed to write to stdout
    print(json.dumps(result.to_dict(), sort_keys=True, separators=(",", ":")))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug or settings.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.fields or not args.data_source or not args.date_time:
        parser.print_help(sys.stderr)
        if not args.fields:
            logger.error("at least one --field is required")
        elif not args.data_source:
            logger.error("the 1st argument specifying a `dataSource` is required")
        else:
            logger.error("the 2nd argument specifying a `dateTime` is required")
        return 1

    return run_query(args.fields, args.data_source, args.date_time)


if __name__ == "__main__":
    sys.exit(main())
