"""Unit tests for the channel reassembler and readiness check.

WHY: The reassembler decides which frames derivation keeps. A wrong
accept/skip decision produces a report that blames the wrong frames or
declares a broken channel ready.

HOW: Tests cover each rule in order of precedence:
  - Duplicate close
  - Duplicate frame number
  - Frame past the end of a closed channel
  - Retroactive pruning when the end lands below an earlier frame
  - Readiness (closed, right size, no gaps)
  - Determinism and report shape

RULES:
- Frames are built with the make_frame fixture (channel CHANNEL_A)
- Skipped frames are compared by identity of (frame_number, payload)
"""

import pytest

from channel_reassembly.core.reassembler import (
    ChannelState,
    apply_frame,
    channel_ready,
    process_frames,
)

CHANNEL = bytes.fromhex("a0" * 16)


def _numbers(frames):
    return [f.frame_number for f in frames]


class TestCompleteChannel:
    """Contiguous frames closed at the highest number are ready."""

    def test_two_frames_ready(self, make_frame):
        report = process_frames(CHANNEL, [make_frame(0), make_frame(1, is_last=True)])
        assert report.is_ready is True
        assert report.skipped_frames == ()
        assert report.invalid_frames is False

    def test_out_of_order_arrival_still_ready(self, make_frame):
        frames = [make_frame(2), make_frame(0), make_frame(3, is_last=True), make_frame(1)]
        report = process_frames(CHANNEL, frames)
        assert report.is_ready is True
        assert report.skipped_frames == ()

    def test_single_terminal_frame_zero(self, make_frame):
        report = process_frames(CHANNEL, [make_frame(0, is_last=True)])
        assert report.is_ready is True
        assert report.invalid_frames is False

    def test_report_keeps_full_input(self, make_frame):
        frames = [make_frame(0), make_frame(1, is_last=True)]
        report = process_frames(CHANNEL, frames)
        assert report.channel_id == CHANNEL
        assert list(report.frames) == frames


class TestDuplicateClose:
    """A second terminal frame is always skipped."""

    def test_second_terminal_skipped(self, make_frame):
        first = make_frame(1, is_last=True)
        second = make_frame(2, is_last=True)
        report = process_frames(CHANNEL, [make_frame(0), first, second])
        assert report.skipped_frames == (second,)
        assert report.is_ready is True
        assert report.invalid_frames is True

    def test_first_terminal_fixes_end(self, make_frame):
        state = ChannelState()
        apply_frame(state, make_frame(3, is_last=True))
        apply_frame(state, make_frame(1, is_last=True))
        assert state.end_frame_number == 3
        assert state.closed is True

    def test_terminal_with_lower_number_after_close_skipped(self, make_frame):
        late = make_frame(0, is_last=True)
        report = process_frames(CHANNEL, [make_frame(1, is_last=True), late])
        assert report.skipped_frames == (late,)
        assert report.is_ready is False


class TestDuplicateFrame:
    """A frame number already accepted is skipped regardless of content."""

    def test_second_arrival_skipped(self, make_frame):
        original = make_frame(0, data=b"first")
        duplicate = make_frame(0, data=b"second")
        report = process_frames(CHANNEL, [original, duplicate, make_frame(1, is_last=True)])
        assert report.skipped_frames == (duplicate,)
        assert report.is_ready is True

    def test_duplicate_never_overwrites(self, make_frame):
        state = ChannelState()
        original = make_frame(4, data=b"first")
        apply_frame(state, original)
        assert apply_frame(state, make_frame(4, data=b"second")) is False
        assert state.accepted[4] is original

    def test_duplicate_terminal_number_before_close(self, make_frame):
        # Rule order: an unclosed channel reaches the duplicate check.
        dup = make_frame(1, is_last=True)
        report = process_frames(CHANNEL, [make_frame(0), make_frame(1), dup])
        assert report.skipped_frames == (dup,)
        assert report.is_ready is False


class TestPastTheEnd:
    """After close, frames at or beyond the end are skipped."""

    def test_frame_above_end_skipped(self, make_frame):
        late = make_frame(5)
        report = process_frames(CHANNEL, [make_frame(0), make_frame(1, is_last=True), late])
        assert report.skipped_frames == (late,)
        assert report.is_ready is True

    def test_frame_below_end_accepted_after_close(self, make_frame):
        report = process_frames(CHANNEL, [make_frame(2, is_last=True), make_frame(0), make_frame(1)])
        assert report.skipped_frames == ()
        assert report.is_ready is True

    def test_rejected_frames_do_not_advance_highest(self, make_frame):
        state = ChannelState()
        apply_frame(state, make_frame(1, is_last=True))
        apply_frame(state, make_frame(9))
        assert state.highest_frame_number == 1


class TestRetroactivePruning:
    """Closing below an earlier frame prunes frames past the new end."""

    def test_canonical_pruning_scenario(self, make_frame):
        frames = [make_frame(0), make_frame(1), make_frame(2, is_last=True), make_frame(5)]
        # 5 arrives after the close here and is rejected as past the end.
        report = process_frames(CHANNEL, frames)
        assert _numbers(report.skipped_frames) == [5]
        assert report.is_ready is True

    def test_prunes_frames_accepted_before_close(self, make_frame):
        five = make_frame(5)
        terminal = make_frame(2, is_last=True)
        frames = [make_frame(0), make_frame(1), five, terminal]
        report = process_frames(CHANNEL, frames)
        assert report.skipped_frames == (five,)
        assert report.is_ready is True
        assert report.invalid_frames is True

    def test_terminal_frame_is_not_pruned(self, make_frame):
        state = ChannelState()
        for frame in [make_frame(0), make_frame(3), make_frame(4)]:
            apply_frame(state, frame)
        terminal = make_frame(1, is_last=True)
        assert apply_frame(state, terminal) is True
        assert state.accepted[1] is terminal
        assert sorted(state.accepted) == [0, 1]
        assert _numbers(state.skipped) == [3, 4]

    def test_pruned_in_ascending_order(self, make_frame):
        frames = [make_frame(7), make_frame(3), make_frame(5), make_frame(0, is_last=True)]
        report = process_frames(CHANNEL, frames)
        assert _numbers(report.skipped_frames) == [3, 5, 7]
        assert report.is_ready is True

    def test_pruned_frame_not_readded_later(self, make_frame):
        frames = [make_frame(0), make_frame(3), make_frame(1, is_last=True), make_frame(3)]
        report = process_frames(CHANNEL, frames)
        assert _numbers(report.skipped_frames) == [3, 3]
        assert report.is_ready is True

    def test_pruning_leaves_gap(self, make_frame):
        frames = [make_frame(0), make_frame(4), make_frame(2, is_last=True)]
        report = process_frames(CHANNEL, frames)
        assert _numbers(report.skipped_frames) == [4]
        assert report.is_ready is False

    def test_no_pruning_when_end_is_highest(self, make_frame):
        state = ChannelState()
        apply_frame(state, make_frame(0))
        apply_frame(state, make_frame(1, is_last=True))
        assert state.skipped == []
        assert state.highest_frame_number == 1


class TestNotReady:
    """Channels that are open or have gaps are not ready."""

    def test_gap_is_not_ready_and_not_invalid(self, make_frame):
        report = process_frames(CHANNEL, [make_frame(0), make_frame(2, is_last=True)])
        assert report.is_ready is False
        assert report.skipped_frames == ()
        assert report.invalid_frames is False

    def test_never_closed(self, make_frame):
        report = process_frames(CHANNEL, [make_frame(0), make_frame(1), make_frame(2)])
        assert report.is_ready is False
        assert report.skipped_frames == ()

    def test_empty_bucket(self):
        report = process_frames(CHANNEL, [])
        assert report.is_ready is False
        assert report.invalid_frames is False
        assert report.frames == ()
        assert report.skipped_frames == ()


class TestChannelReady:
    """channel_ready is a pure predicate over the accepted map."""

    def test_open_channel(self):
        assert channel_ready({0: object()}, closed=False, end_frame_number=0) is False

    def test_contiguous(self):
        accepted = {0: object(), 1: object(), 2: object()}
        assert channel_ready(accepted, closed=True, end_frame_number=2) is True

    def test_size_mismatch(self):
        accepted = {0: object(), 1: object(), 2: object()}
        assert channel_ready(accepted, closed=True, end_frame_number=1) is False

    def test_gap_with_matching_size(self):
        accepted = {0: object(), 2: object(), 3: object()}
        assert channel_ready(accepted, closed=True, end_frame_number=2) is False

    def test_empty_closed(self):
        assert channel_ready({}, closed=True, end_frame_number=0) is False


class TestDeterminism:
    """Re-running the reassembler on the same bucket yields the same report."""

    @pytest.mark.parametrize("numbers,last", [
        ([0, 1, 2, 5], 2),
        ([3, 0, 3, 1], 1),
        ([0, 2], 2),
    ])
    def test_idempotent(self, make_frame, numbers, last):
        frames = [make_frame(n, is_last=(n == last)) for n in numbers]
        assert process_frames(CHANNEL, frames) == process_frames(CHANNEL, frames)

    def test_frame_in_exactly_one_set(self, make_frame):
        frames = [make_frame(0), make_frame(6), make_frame(0), make_frame(3, is_last=True),
                  make_frame(4, is_last=True), make_frame(2), make_frame(1)]
        state = ChannelState()
        for frame in frames:
            apply_frame(state, frame)
        accepted_ids = {id(f) for f in state.accepted.values()}
        skipped_ids = {id(f) for f in state.skipped}
        assert accepted_ids.isdisjoint(skipped_ids)
        assert accepted_ids | skipped_ids == {id(f) for f in frames}
