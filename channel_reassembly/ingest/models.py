"""Typed transaction records as written by the fetch step.

WHY: The fetch step writes one JSON document per batch transaction. The
loader needs typed access to the inclusion position, the inbox/sender
verdicts, and the parsed frames, and it needs malformed records to fail
loudly with the offending field named instead of surfacing later as a
KeyError deep inside reassembly.

HOW: TransactionWithMeta.from_dict() parses one record; frame_from_dict()
parses one frame object. Both raise RecordFormatError on schema
violations. Optional fields the tool never reads are kept for audit.

RULES:
- Frame "id" is 32 hex characters, with or without a 0x prefix
- Frame "data" is base64, as the fetch step's JSON encoder writes bytes
- frame_number must fit in an unsigned 16-bit integer
- block_number and tx_index are unsigned; negative values are malformed
- A null "frames" list is an empty list (transactions whose calldata
  did not parse still carry a record)
- The transaction hash comes from tx.hash
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any

from channel_reassembly.config import CHANNEL_ID_LENGTH, MAX_FRAME_NUMBER
from channel_reassembly.core.ir import Frame, FrameWithMetadata


class RecordFormatError(ValueError):
    """A transaction record does not match the expected shape."""


def _require(data: dict, key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise RecordFormatError("missing field '{}'".format(key)) from None


def _require_int(data: dict, key: str) -> int:
    value = _require(data, key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise RecordFormatError("field '{}' must be an integer, got {!r}".format(key, value))
    return value


def _require_uint(data: dict, key: str) -> int:
    value = _require_int(data, key)
    if value < 0:
        raise RecordFormatError("field '{}' must not be negative, got {}".format(key, value))
    return value


def _require_bool(data: dict, key: str) -> bool:
    value = _require(data, key)
    if not isinstance(value, bool):
        raise RecordFormatError("field '{}' must be a boolean, got {!r}".format(key, value))
    return value


def parse_channel_id(text: str) -> bytes:
    """Parse a hex channel id into its 16 raw bytes."""
    if not isinstance(text, str):
        raise RecordFormatError("channel id must be a hex string, got {!r}".format(text))
    hex_text = text[2:] if text.lower().startswith("0x") else text
    try:
        raw = bytes.fromhex(hex_text)
    except ValueError:
        raise RecordFormatError("channel id is not valid hex: {!r}".format(text)) from None
    if len(raw) != CHANNEL_ID_LENGTH:
        raise RecordFormatError(
            "channel id must be {} bytes, got {}".format(CHANNEL_ID_LENGTH, len(raw))
        )
    return raw


def frame_from_dict(data: dict) -> Frame:
    """Parse a single frame object from a transaction record.

    RULES:
    - id, frame_number, and is_last are required
    - data may be missing or null (empty payload)
    """
    if not isinstance(data, dict):
        raise RecordFormatError("frame must be an object, got {!r}".format(data))

    frame_number = _require_int(data, "frame_number")
    if not 0 <= frame_number <= MAX_FRAME_NUMBER:
        raise RecordFormatError("frame_number out of range: {}".format(frame_number))

    encoded = data.get("data") or ""
    try:
        payload = base64.b64decode(encoded, validate=True)
    except (ValueError, TypeError):
        raise RecordFormatError("frame data is not valid base64") from None

    return Frame(
        channel_id=parse_channel_id(_require(data, "id")),
        frame_number=frame_number,
        data=payload,
        is_last=_require_bool(data, "is_last"),
    )


@dataclass
class TransactionWithMeta:
    """One fetched batch transaction with its inclusion metadata.

    WHY: Reassembly needs each frame's inclusion position for global
    ordering, and the loader needs the inbox and sender verdict for
    filtering.

    RULES:
    - tx_index / block_number: inclusion position, used for ordering
    - inbox_address: the transaction's "to" address, as written
    - valid_sender: upstream verdict that the batcher sent it
    - frames: already-parsed frames carried in the calldata
    """

    tx_index: int
    inbox_address: str
    block_number: int
    valid_sender: bool
    tx_hash: str
    frames: list[Frame] = field(default_factory=list)
    block_hash: str | None = None
    block_time: int | None = None
    chain_id: int | None = None
    sender: str | None = None
    frame_parse_error: str | None = None
    valid_data: bool | None = None

    @classmethod
    def from_dict(cls, data: dict) -> TransactionWithMeta:
        """Parse a TransactionWithMeta from a raw record dict.

        HOW: Extracts the required fields with type checks, then parses
        every frame via frame_from_dict().

        RULES:
        - tx_index, inbox_address, block_number, valid_sender and
          tx.hash are required
        - Optional metadata defaults to None
        """
        if not isinstance(data, dict):
            raise RecordFormatError("record must be a JSON object")

        tx = _require(data, "tx")
        if not isinstance(tx, dict):
            raise RecordFormatError("field 'tx' must be an object")
        tx_hash = _require(tx, "hash")
        if not isinstance(tx_hash, str):
            raise RecordFormatError("field 'tx.hash' must be a string")

        inbox = _require(data, "inbox_address")
        if not isinstance(inbox, str):
            raise RecordFormatError("field 'inbox_address' must be a string")

        raw_frames = data.get("frames") or []
        if not isinstance(raw_frames, list):
            raise RecordFormatError("field 'frames' must be a list")

        return cls(
            tx_index=_require_uint(data, "tx_index"),
            inbox_address=inbox,
            block_number=_require_uint(data, "block_number"),
            valid_sender=_require_bool(data, "valid_sender"),
            tx_hash=tx_hash,
            frames=[frame_from_dict(f) for f in raw_frames],
            block_hash=data.get("block_hash"),
            block_time=data.get("block_time"),
            chain_id=data.get("chain_id"),
            sender=data.get("sender"),
            frame_parse_error=data.get("frame_parse_error"),
            valid_data=data.get("valid_data"),
        )

    def frames_with_metadata(self) -> list[FrameWithMetadata]:
        """Attach this transaction's provenance to each of its frames."""
        return [
            FrameWithMetadata(
                frame=frame,
                tx_hash=self.tx_hash,
                inclusion_block=self.block_number,
                tx_index=self.tx_index,
            )
            for frame in self.frames
        ]
