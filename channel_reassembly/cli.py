"""Command-line interface for channel reassembly.

WHY: Operators debugging a stalled or misbehaving batcher need to see,
channel by channel, which frames derivation would drop. The CLI wires
together the full pipeline — load the transaction cache, order, group,
reassemble, and write per-channel reports — behind a single command.

HOW: Uses argparse to accept the batch inbox address, the input and
output directories, the report formats, and strictness. Runs
reassemble_channels() and prints a summary. Status messages go to
stderr; logging is configured here and nowhere else.

RULES:
- Defaults come from config (environment / .env)
- --formats: comma-separated formatter keys (default: channel_json)
- --strict aborts on the first unreadable transaction file
- Status output goes to stderr (not stdout)
- Exit code 1 on configuration, load, or write errors
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from channel_reassembly.config import (
    DEFAULT_BATCH_INBOX,
    DEFAULT_FORMATS,
    DEFAULT_IN_DIRECTORY,
    DEFAULT_OUT_DIRECTORY,
)
from channel_reassembly.formatters import describe_formats
from channel_reassembly.ingest.loader import TransactionLoadError
from channel_reassembly.runner import (
    ReassembleConfig,
    ReassembleResult,
    parse_format_keys,
    reassemble_channels,
)


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _report_summary(result: ReassembleResult, out_directory: Path) -> None:
    _status("")
    _status("Done! Reassembled {} channel(s) into {}".format(len(result.reports), out_directory))
    _status("  Ready: {}".format(result.ready_count))
    _status("  With invalid frames: {}".format(result.invalid_count))
    _status("  Files written: {}".format(len(result.written)))
    if result.load_failures:
        _status("  Skipped {} unreadable transaction file(s):".format(len(result.load_failures)))
        for failure in result.load_failures:
            _status("    {}: {}".format(failure.path.name, failure.reason))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable — tests can inspect the parser without running the pipeline.
    """
    parser = argparse.ArgumentParser(
        prog="channel_reassembly",
        description="Reassemble batcher channels from a directory of fetched "
                    "transactions and write one report per channel.",
    )

    parser.add_argument(
        "--inbox",
        default=DEFAULT_BATCH_INBOX,
        help="Batch inbox address to keep transactions for (default: %(default)s).",
    )

    parser.add_argument(
        "--in",
        dest="in_directory",
        default=DEFAULT_IN_DIRECTORY,
        help="Directory of fetched transaction files (default: %(default)s).",
    )

    parser.add_argument(
        "--out",
        dest="out_directory",
        default=DEFAULT_OUT_DIRECTORY,
        help="Directory to write channel reports to (default: %(default)s).",
    )

    parser.add_argument(
        "--formats",
        default=DEFAULT_FORMATS,
        help="Comma-separated list of report formats. "
             "Available: {}. Default: %(default)s.".format(describe_formats()),
    )

    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Abort on the first unreadable transaction file (default: %(default)s).",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every skipped frame and the reason for it.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        config = ReassembleConfig(
            batch_inbox=args.inbox,
            in_directory=Path(args.in_directory),
            out_directory=Path(args.out_directory),
            formats=parse_format_keys(args.formats),
            strict=args.strict,
        )
        _status("Reassembling channels from {}...".format(config.in_directory))
        result = reassemble_channels(config)
    except (ValueError, TransactionLoadError, OSError) as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    _report_summary(result, config.out_directory)


if __name__ == "__main__":
    main()
