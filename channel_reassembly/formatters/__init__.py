"""Report formatters, keyed by the names used in ``--formats``.

FORMATTERS maps each key to a formatter class; callers instantiate it
(``FORMATTERS["channel_json"]()``) once per run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from channel_reassembly.formatters.channel_json import ChannelJSONFormatter
from channel_reassembly.formatters.summary import SummaryFormatter

if TYPE_CHECKING:
    from channel_reassembly.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "channel_json": ChannelJSONFormatter,
    "summary": SummaryFormatter,
}


def describe_formats() -> str:
    """Render the registered formats as "key (Name), ..." for help text."""
    return ", ".join(
        "{} ({})".format(key, FORMATTERS[key]().name) for key in sorted(FORMATTERS)
    )
