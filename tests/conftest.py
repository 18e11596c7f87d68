"""Shared test fixtures for the channel_reassembly test suite.

WHY: Reassembler, grouper, formatter, loader, and CLI tests all need
frames and transaction records in the same shape. Centralizing the
builders here keeps the scenarios short and the record layout in one
place.

HOW: Pytest fixtures return small factory functions: make_frame builds a
FrameWithMetadata, tx_record builds a raw transaction record dict, and
write_tx writes one record into a transaction cache directory.

RULES:
- Channel ids are fixed 16-byte values (CHANNEL_A, CHANNEL_B)
- The default inbox matches INBOX; records are valid-sender by default
- Payloads default to b"frame-<n>" so frames are distinguishable
"""

import base64
import json
from typing import Any, Dict, List, Optional

import pytest

from channel_reassembly.core.ir import Frame, FrameWithMetadata

CHANNEL_A = bytes.fromhex("a0" * 16)
CHANNEL_B = bytes.fromhex("b1" * 16)
INBOX = "0xff00000000000000000000000000000000000420"
OTHER_INBOX = "0x1111111111111111111111111111111111111111"


@pytest.fixture
def make_frame():
    """Factory for FrameWithMetadata with sensible defaults."""

    def _make(
        number: int,
        is_last: bool = False,
        channel_id: bytes = CHANNEL_A,
        data: Optional[bytes] = None,
        tx_hash: str = "0xabc",
        block: int = 1,
        tx_index: int = 0,
    ) -> FrameWithMetadata:
        payload = data if data is not None else "frame-{}".format(number).encode()
        return FrameWithMetadata(
            frame=Frame(channel_id=channel_id, frame_number=number, data=payload, is_last=is_last),
            tx_hash=tx_hash,
            inclusion_block=block,
            tx_index=tx_index,
        )

    return _make


def _frame_dict(
    number: int,
    is_last: bool = False,
    channel_id: bytes = CHANNEL_A,
    data: Optional[bytes] = None,
) -> Dict[str, Any]:
    payload = data if data is not None else "frame-{}".format(number).encode()
    return {
        "id": channel_id.hex(),
        "frame_number": number,
        "data": base64.b64encode(payload).decode("ascii"),
        "is_last": is_last,
    }


@pytest.fixture
def frame_dict():
    """Factory for a raw frame object as the fetch step writes it."""
    return _frame_dict


@pytest.fixture
def tx_record():
    """Factory for a raw transaction record dict."""

    def _make(
        frames: List[Dict[str, Any]],
        block: int = 1,
        tx_index: int = 0,
        inbox: str = INBOX,
        valid_sender: bool = True,
        tx_hash: Optional[str] = None,
    ) -> Dict[str, Any]:
        return {
            "tx_index": tx_index,
            "inbox_address": inbox,
            "block_number": block,
            "block_hash": "0x" + "00" * 32,
            "block_time": 1700000000 + block,
            "chain_id": 10,
            "sender": "0x6887246668a3b87f54deb3b94ba47a6f63f32985",
            "valid_sender": valid_sender,
            "frames": frames,
            "frame_parse_error": "",
            "valid_data": True,
            "tx": {"hash": tx_hash or "0x{:064x}".format(block * 1000 + tx_index)},
        }

    return _make


@pytest.fixture
def write_tx(tmp_path):
    """Write a record into tmp_path/transactions and return the file path."""
    directory = tmp_path / "transactions"
    directory.mkdir()

    def _write(name: str, record: Any) -> Any:
        path = directory / name
        if isinstance(record, str):
            path.write_text(record, encoding="utf-8")
        else:
            path.write_text(json.dumps(record), encoding="utf-8")
        return path

    _write.directory = directory
    return _write
