"""One-line plain text status per channel."""

from typing import List

from channel_reassembly.core.ir import ChannelReport
from channel_reassembly.formatters.base import BaseFormatter, FormatterOutput


def summary_line(report: ChannelReport) -> str:
    """Render the channel's verdicts as a single grep-friendly line."""
    return "{id} ready={ready} invalid={invalid} frames={frames} skipped={skipped}".format(
        id=report.id_hex,
        ready=str(report.is_ready).lower(),
        invalid=str(report.invalid_frames).lower(),
        frames=len(report.frames),
        skipped=len(report.skipped_frames),
    )


class SummaryFormatter(BaseFormatter):
    """Formatter that produces a short status file per channel.

    WHY: Scanning hundreds of JSON reports for the few broken channels is
    slow. A one-line summary can be concatenated and grepped.

    RULES:
    - Exactly one line, newline-terminated
    - Booleans rendered lowercase ("true"/"false")
    - Output suffix: ".txt"
    """

    @property
    def name(self) -> str:
        return "Summary"

    def format(self, report: ChannelReport) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix=".txt",
                content=summary_line(report) + "\n",
            )
        ]
