"""Per-channel JSON report formatter.

WHY: The channel cache is consumed by the batch decoding step and by
people auditing why a channel failed. Both need one self-describing
document per channel with the full frame list, the skipped frames, and
the verdicts.

HOW: Builds a dict with the fields id, is_ready, invalid_frames, frames
and skipped_frames, validates it against channel_report_schema.json
with jsonschema, and serializes it.

RULES:
- Channel ids are rendered as 32 lowercase hex characters (no 0x)
- Frame payloads are base64-encoded
- Every frame entry carries transaction_hash, inclusion_block, tx_index
- Validate output against the schema before returning; raise on failure
- Output suffix: ".json"
"""

from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any

import jsonschema

from channel_reassembly.core.ir import ChannelReport, FrameWithMetadata, channel_id_hex
from channel_reassembly.formatters.base import BaseFormatter, FormatterOutput

_SCHEMA_PATH = Path(__file__).resolve().parent / "channel_report_schema.json"


def _load_schema() -> dict[str, Any]:
    """Load the channel report JSON schema from disk.

    Cached at module level after first call to avoid repeated I/O.
    """
    with open(_SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


_CACHED_SCHEMA: dict[str, Any] | None = None


def _get_schema() -> dict[str, Any]:
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        _CACHED_SCHEMA = _load_schema()
    return _CACHED_SCHEMA


def frame_to_dict(frame: FrameWithMetadata) -> dict[str, Any]:
    """Render one frame with its provenance as a JSON-ready dict."""
    return {
        "transaction_hash": frame.tx_hash,
        "inclusion_block": frame.inclusion_block,
        "tx_index": frame.tx_index,
        "frame": {
            "id": channel_id_hex(frame.frame.channel_id),
            "frame_number": frame.frame.frame_number,
            "data": base64.b64encode(frame.frame.data).decode("ascii"),
            "is_last": frame.frame.is_last,
        },
    }


def report_to_dict(report: ChannelReport) -> dict[str, Any]:
    """Render a channel report as a JSON-ready dict (not validated)."""
    return {
        "id": report.id_hex,
        "is_ready": report.is_ready,
        "invalid_frames": report.invalid_frames,
        "frames": [frame_to_dict(f) for f in report.frames],
        "skipped_frames": [frame_to_dict(f) for f in report.skipped_frames],
    }


class ChannelJSONFormatter(BaseFormatter):
    """Formatter that produces the per-channel JSON report.

    RULES:
    - One document per channel, named "<channel id>.json" by the caller
    - Schema validation is mandatory — raises on invalid output
    """

    @property
    def name(self) -> str:
        return "Channel JSON"

    def format(self, report: ChannelReport) -> list[FormatterOutput]:
        """Render the report as a validated JSON document.

        Raises:
            jsonschema.ValidationError: If the generated document does
                not conform to the channel report schema.
        """
        output = report_to_dict(report)
        jsonschema.validate(instance=output, schema=_get_schema())

        content = json.dumps(output, indent=2)

        return [
            FormatterOutput(
                suffix=".json",
                content=content + "\n",
            )
        ]
