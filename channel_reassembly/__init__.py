"""Channel Reassembly — rebuild batcher channels from fetched frame data.

WHY: Batch transactions carry channel frames that may arrive duplicated,
out of order, or past the channel's end. Before channel payloads can be
decoded, each channel has to be reassembled the way derivation would do
it, with every frame that derivation would drop reported explicitly.

HOW: Three-stage pipeline — ingest (load and order fetched transaction
records), reassemble (core grouper, state machine, and readiness check),
format (pluggable report renderers). Each stage is independently testable.

RULES:
- The core is pure: no I/O, no exceptions for any finite frame sequence
- "Invalid" is a data classification on the report, never an error
- Adding a new report format = one new formatter module, no core changes
"""

__version__ = "0.1.0"
