"""Report formatter interface.

WHY: A channel report is written to the cache in more than one shape
(the JSON document the decoding step reads, a grep-friendly summary).
The runner writes whatever a formatter returns without knowing which
one it is.

HOW: A formatter turns one ChannelReport into a list of FormatterOutput
objects; each output names the filename suffix for its content.

RULES:
- ``name`` is shown in CLI help and run logs
- ``suffix`` includes the extension; the runner prepends the channel id
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from channel_reassembly.core.ir import ChannelReport


@dataclass
class FormatterOutput:
    """One report file: ``<channel id><suffix>`` holding ``content``."""

    suffix: str
    content: str | bytes


class BaseFormatter(ABC):
    """Renders a channel report into files for the channel cache."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short label for help text and logs, e.g. 'Channel JSON'."""

    @abstractmethod
    def format(self, report: ChannelReport) -> list[FormatterOutput]:
        """Render one channel report into its output files."""
