"""Intermediate representation dataclasses for frames and channel reports.

WHY: Fetched transaction records carry frames in a loose JSON shape.
The grouper, the reassembler, and every formatter need the same typed
view of a frame and of a channel's outcome. The IR provides that single
form, decoupling ingest from reassembly and reassembly from output.

HOW: Three dataclasses form a hierarchy:
  Frame             — one channel fragment as carried on the wire
  FrameWithMetadata — a Frame plus the transaction it arrived in
  ChannelReport     — the reassembly outcome for one channel id

RULES:
- All three are frozen; reassembly never mutates its input
- channel_id is raw bytes (16 long); channel_id_hex() renders it
- Provenance (tx_hash, inclusion_block, tx_index) is carried through
  untouched and only matters for ordering upstream
- ChannelReport.frames is the full input bucket, including frames that
  were later skipped
"""

from __future__ import annotations

from dataclasses import dataclass, field


def channel_id_hex(channel_id: bytes) -> str:
    """Render a channel id the way report filenames and documents use it."""
    return channel_id.hex()


@dataclass(frozen=True)
class Frame:
    """A single channel fragment.

    RULES:
    - channel_id: opaque 16-byte identifier
    - frame_number: unsigned 16-bit sequence number within the channel
    - data: opaque payload bytes, never interpreted here
    - is_last: True on the frame that closes the channel
    """

    channel_id: bytes
    frame_number: int
    data: bytes = b""
    is_last: bool = False


@dataclass(frozen=True)
class FrameWithMetadata:
    """A frame together with the transaction that carried it.

    WHY: Reports are audited against the chain, so every frame keeps the
    hash and inclusion position of its transaction.
    """

    frame: Frame
    tx_hash: str
    inclusion_block: int
    tx_index: int = 0

    @property
    def channel_id(self) -> bytes:
        return self.frame.channel_id

    @property
    def frame_number(self) -> int:
        return self.frame.frame_number

    @property
    def is_last(self) -> bool:
        return self.frame.is_last


@dataclass(frozen=True)
class ChannelReport:
    """The reassembly outcome for one channel.

    WHY: Formatters and callers need to know whether a channel can be
    reconstructed and, if frames were dropped, exactly which ones.

    HOW: Built once by the reassembler at the end of a channel's scan.

    RULES:
    - frames: the channel's input bucket, order preserved
    - skipped_frames: rejected and pruned frames, in rejection order
    - is_ready: closed, contiguous from 0 to the end frame number
    - invalid_frames: True iff skipped_frames is non-empty
    """

    channel_id: bytes
    frames: tuple[FrameWithMetadata, ...] = field(default_factory=tuple)
    skipped_frames: tuple[FrameWithMetadata, ...] = field(default_factory=tuple)
    is_ready: bool = False

    @property
    def invalid_frames(self) -> bool:
        return len(self.skipped_frames) != 0

    @property
    def id_hex(self) -> str:
        return channel_id_hex(self.channel_id)
