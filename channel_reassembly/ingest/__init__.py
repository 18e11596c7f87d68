"""Ingest package — typed loading of fetched batch transactions.

WHY: Reassembly consumes frames, but the fetch step persists whole
transactions. This package turns the transaction cache into the ordered
frame sequence the core expects.

HOW: models.py parses individual records into typed dataclasses;
loader.py reads the directory, filters by inbox and sender, orders by
inclusion position, and flattens into frames.

RULES:
- All file reading goes through loader.py (the core never touches disk)
- Record shape errors are RecordFormatError; per-file failures are
  TransactionLoadError
"""

from channel_reassembly.ingest.loader import (
    LoadResult,
    TransactionLoadError,
    load_transaction_file,
    load_transactions,
    sort_transactions,
    transactions_to_frames,
)
from channel_reassembly.ingest.models import RecordFormatError, TransactionWithMeta

__all__ = [
    "LoadResult",
    "RecordFormatError",
    "TransactionLoadError",
    "TransactionWithMeta",
    "load_transaction_file",
    "load_transactions",
    "sort_transactions",
    "transactions_to_frames",
]
