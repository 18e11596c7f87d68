"""Core data model, grouping, and reassembly modules.

WHY: The core package contains the stable heart of the tool — the frame
and report dataclasses and the channel reassembly state machine. These
are consumed by the runner and all formatters and must remain
backward-compatible.

HOW: ir.py defines the data structures, grouper.py buckets frames by
channel, reassembler.py folds each bucket into a ChannelReport.

RULES:
- IR dataclasses are the contract — change with care
- No I/O in this package; everything here is a pure function of its input
"""
