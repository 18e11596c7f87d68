"""Load, filter, order, and flatten fetched transaction records.

WHY: The fetch step leaves one JSON file per batch transaction in a
cache directory. Reassembly must see only transactions sent to the batch
inbox by a valid sender, in the exact order derivation processes them,
so that the reassembler's accept/skip decisions match derivation's.

HOW: load_transactions() reads every file in the directory, parses each
via TransactionWithMeta.from_dict(), and keeps matching records.
sort_transactions() orders them by (block number, tx index) and
transactions_to_frames() flattens them into FrameWithMetadata objects.

RULES:
- Files are read in sorted name order so failures are reported stably
- Inbox comparison is case-insensitive (normalized addresses)
- Non-strict loading logs and records a bad file, then moves on, so one
  malformed record never blocks unrelated channels
- Strict loading raises on the first bad file
- Sorting is stable: frames within one transaction keep their order
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from channel_reassembly.config import normalize_address
from channel_reassembly.core.ir import FrameWithMetadata
from channel_reassembly.ingest.models import RecordFormatError, TransactionWithMeta

logger = logging.getLogger(__name__)


class TransactionLoadError(Exception):
    """A transaction file or directory could not be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__("Failed to load {}: {}".format(path, reason))
        self.path = path
        self.reason = reason


@dataclass
class LoadResult:
    """Transactions kept by the loader plus files that failed to load.

    RULES:
    - transactions: records matching the inbox with a valid sender,
      in file-name order (not yet sorted by inclusion position)
    - failures: one TransactionLoadError per unreadable file
    - filtered: number of well-formed records dropped by the filter
    """

    transactions: List[TransactionWithMeta] = field(default_factory=list)
    failures: List[TransactionLoadError] = field(default_factory=list)
    filtered: int = 0


def load_transaction_file(path: str | Path) -> TransactionWithMeta:
    """Read and parse one transaction record file.

    Raises:
        TransactionLoadError: If the file cannot be read, is not JSON,
            or does not match the record shape.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise TransactionLoadError(path, str(e)) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TransactionLoadError(path, "invalid JSON: {}".format(e)) from e

    try:
        return TransactionWithMeta.from_dict(data)
    except RecordFormatError as e:
        raise TransactionLoadError(path, str(e)) from e


def load_transactions(
    directory: str | Path,
    inbox: str,
    strict: bool = False,
) -> LoadResult:
    """Load every transaction in a directory sent to the given inbox.

    Args:
        directory: The fetch step's transaction cache directory.
        inbox: Batch inbox address to keep transactions for.
        strict: Raise on the first unreadable file instead of skipping it.

    Returns:
        A LoadResult with kept transactions and per-file failures.

    Raises:
        TransactionLoadError: If the directory does not exist, or on the
            first bad file when strict is True.
        ValueError: If inbox is not a valid address.
    """
    directory = Path(directory)
    target = normalize_address(inbox)

    if not directory.is_dir():
        raise TransactionLoadError(directory, "not a directory")

    result = LoadResult()
    for path in sorted(directory.iterdir()):
        if not path.is_file():
            continue
        try:
            txm = load_transaction_file(path)
        except TransactionLoadError as e:
            if strict:
                raise
            logger.warning("Skipping %s: %s", path.name, e.reason)
            result.failures.append(e)
            continue

        if _matches_inbox(txm, target) and txm.valid_sender:
            result.transactions.append(txm)
        else:
            result.filtered += 1

    logger.info(
        "Loaded %d transactions from %s (%d filtered, %d failed)",
        len(result.transactions), directory, result.filtered, len(result.failures),
    )
    return result


def _matches_inbox(txm: TransactionWithMeta, target: str) -> bool:
    try:
        return normalize_address(txm.inbox_address) == target
    except ValueError:
        logger.debug("Transaction %s has a malformed inbox address", txm.tx_hash)
        return False


def sort_transactions(txns: Iterable[TransactionWithMeta]) -> List[TransactionWithMeta]:
    """Order transactions by block number, then by index inside the block.

    This matches the order derivation processes them in.
    """
    return sorted(txns, key=lambda t: (t.block_number, t.tx_index))


def transactions_to_frames(txns: Iterable[TransactionWithMeta]) -> List[FrameWithMetadata]:
    """Flatten ordered transactions into frames carrying their provenance."""
    out: List[FrameWithMetadata] = []
    for txm in txns:
        out.extend(txm.frames_with_metadata())
    return out
