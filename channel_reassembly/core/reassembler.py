"""Channel reassembly state machine and readiness check.

WHY: Derivation drops frames that duplicate a frame number, try to close
a channel twice, or fall past the channel's end. A channel is only
usable once it is closed and every frame from 0 to its end is present.
This module replays those rules over one channel's frames so the report
shows exactly which frames were dropped and whether the channel is ready.

HOW: process_frames() folds a channel's bucket, in order, through a
ChannelState. For each frame the first matching rule applies:
  1. terminal frame on an already closed channel → skip
  2. frame number already accepted               → skip
  3. closed and frame number >= end              → skip
  4. otherwise accept; a terminal frame closes the channel
After a terminal frame is accepted below the highest frame number seen
so far, the accepted frames at or above the new end are pruned into the
skipped list. channel_ready() then checks the accepted frames.

RULES:
- Each frame ends up either accepted or skipped, never both
- The terminal frame that triggers pruning is never pruned itself
- Rejected frames never advance the highest frame number
- Pruned frames are skipped in ascending frame-number order
- No exceptions for any finite input; an empty bucket is simply not ready
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence

from channel_reassembly.core.ir import ChannelReport, FrameWithMetadata, channel_id_hex

logger = logging.getLogger(__name__)


@dataclass
class ChannelState:
    """Mutable reconstruction state for one channel's scan.

    RULES:
    - accepted: frame number → frame, insert-if-absent, never overwritten
    - closed: set once a terminal frame is accepted, never reset
    - end_frame_number: number of the accepted terminal frame
    - highest_frame_number: maximum accepted frame number so far
    - skipped: rejected and pruned frames, append-only
    """

    accepted: Dict[int, FrameWithMetadata] = field(default_factory=dict)
    closed: bool = False
    end_frame_number: int = 0
    highest_frame_number: int = 0
    skipped: List[FrameWithMetadata] = field(default_factory=list)


def channel_ready(
    accepted: Mapping[int, FrameWithMetadata],
    closed: bool,
    end_frame_number: int,
) -> bool:
    """Return True if the accepted frames form a complete channel.

    RULES:
    - The channel must be closed
    - Exactly end_frame_number + 1 frames must be accepted
    - Every frame number from 0 to end_frame_number must be present
    """
    if not closed:
        return False
    if len(accepted) != end_frame_number + 1:
        return False
    # Check for contiguous frames
    for number in range(end_frame_number + 1):
        if number not in accepted:
            return False
    return True


def _prune(state: ChannelState, label: str) -> None:
    """Move accepted frames past the new end into the skipped list."""
    end = state.end_frame_number
    for number in sorted(state.accepted):
        # The end slot holds the terminal frame that was just accepted.
        if number <= end:
            continue
        pruned = state.accepted.pop(number)
        state.skipped.append(pruned)
        logger.debug(
            "Channel %s: pruned frame %d past the new end %d",
            label, number, end,
        )


def apply_frame(state: ChannelState, frame: FrameWithMetadata, label: str = "") -> bool:
    """Apply one frame to the channel state.

    WHY: Exposed separately from process_frames() so each accept/skip
    rule can be exercised in isolation.

    Returns:
        True if the frame was accepted, False if it was skipped.
    """
    number = frame.frame_number

    if frame.is_last and state.closed:
        logger.debug("Channel %s: trying to close channel twice (frame %d)", label, number)
        state.skipped.append(frame)
        return False

    if number in state.accepted:
        logger.debug("Channel %s: duplicate frame %d", label, number)
        state.skipped.append(frame)
        return False

    if state.closed and number >= state.end_frame_number:
        logger.debug(
            "Channel %s: frame %d past the end of the channel (%d)",
            label, number, state.end_frame_number,
        )
        state.skipped.append(frame)
        return False

    state.accepted[number] = frame
    if frame.is_last:
        state.closed = True
        state.end_frame_number = number
        if number < state.highest_frame_number:
            _prune(state, label)

    if number > state.highest_frame_number:
        state.highest_frame_number = number
    return True


def process_frames(
    channel_id: bytes,
    frames: Sequence[FrameWithMetadata],
) -> ChannelReport:
    """Reassemble one channel from its ordered frames.

    WHY: This is the heart of the tool. It decides, frame by frame, what
    derivation would keep, and reports the rest.

    HOW: Creates a fresh ChannelState, applies every frame in order with
    apply_frame(), then evaluates readiness on what was accepted.

    Args:
        channel_id: The channel's 16-byte identifier.
        frames: The channel's bucket, in global (block, tx index) order.

    Returns:
        A ChannelReport holding the untouched input, the skipped frames,
        and the readiness verdict.
    """
    label = channel_id_hex(channel_id)
    state = ChannelState()
    for frame in frames:
        apply_frame(state, frame, label)

    ready = channel_ready(state.accepted, state.closed, state.end_frame_number)
    if not ready:
        logger.info("Found channel that is not ready: %s", label)

    return ChannelReport(
        channel_id=channel_id,
        frames=tuple(frames),
        skipped_frames=tuple(state.skipped),
        is_ready=ready,
    )
