"""Bucket globally ordered frames by channel id."""

from __future__ import annotations

from typing import Dict, Iterable, List

from channel_reassembly.core.ir import FrameWithMetadata


def group_frames_by_channel(
    frames: Iterable[FrameWithMetadata],
) -> Dict[bytes, List[FrameWithMetadata]]:
    """Partition frames into per-channel buckets.

    WHY: Each channel is reassembled independently, but the reassembler's
    decisions depend on the order frames are seen in. Grouping must
    therefore keep the global order inside every bucket.

    HOW: One pass, appending each frame to its channel's list.

    RULES:
    - Frames must already be in global order (block number, tx index)
    - Order within a bucket is the input order; nothing is dropped
    - Buckets appear in order of each channel's first frame
    """
    buckets: Dict[bytes, List[FrameWithMetadata]] = {}
    for frame in frames:
        buckets.setdefault(frame.channel_id, []).append(frame)
    return buckets
