"""Configuration constants, address normalization, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. The batch inbox address and the cache directories
differ per network and per machine, so none of them are buried in logic.

HOW: python-dotenv loads the .env file on import. Defaults are
module-level strings that environment variables override. The
normalize_address() function gives a clear error for malformed addresses.

RULES:
- All defaults can be overridden via environment variables
- Addresses are compared in normalized form (lowercase, 0x-prefixed)
- Channel IDs are 16 bytes; frame numbers are unsigned 16-bit integers
"""

from __future__ import annotations

import os
import re

from dotenv import load_dotenv

# Load .env from the project root (where the tool is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Wire-level constants
# ---------------------------------------------------------------------------

CHANNEL_ID_LENGTH = 16
"""Size of a channel identifier in bytes."""

MAX_FRAME_NUMBER = 0xFFFF
"""Frame numbers are unsigned 16-bit integers."""

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")

# ---------------------------------------------------------------------------
# Tool defaults
# ---------------------------------------------------------------------------

DEFAULT_BATCH_INBOX = os.getenv(
    "REASSEMBLE_BATCH_INBOX", "0xff00000000000000000000000000000000000420"
)
DEFAULT_IN_DIRECTORY = os.getenv(
    "REASSEMBLE_IN_DIRECTORY", "/tmp/batch_decoder/transactions_cache"
)
DEFAULT_OUT_DIRECTORY = os.getenv(
    "REASSEMBLE_OUT_DIRECTORY", "/tmp/batch_decoder/channel_cache"
)
DEFAULT_FORMATS = os.getenv("REASSEMBLE_FORMATS", "channel_json")


def normalize_address(value: str) -> str:
    """Normalize a hex address for comparison.

    WHY: Fetched records and user input may differ in case (checksummed
    vs. plain hex) or omit the 0x prefix. Inbox filtering must not depend
    on how the address happened to be spelled.

    HOW: Strip whitespace, lowercase, add the 0x prefix if missing, then
    check the shape.

    RULES:
    - Result is always "0x" followed by 40 lowercase hex digits
    - Raises ValueError for anything else (wrong length, non-hex digits)
    """
    text = value.strip().lower()
    if not text.startswith("0x"):
        text = "0x" + text
    if not _ADDRESS_RE.match(text):
        raise ValueError("Invalid address: {!r}".format(value))
    return text
