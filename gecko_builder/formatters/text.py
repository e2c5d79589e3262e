"""Plain text code list formatter.

WHY: Dolphin's GeckoCodes .ini sections, Riivolution setups, and forum
posts all take the human-readable form of a code list: headers,
descriptions, and "XXXXXXXX YYYYYYYY" lines with their comments.

HOW: Joins every line of the OutputSequence with "\\n".

RULES:
- No trailing newline is added (the sequence already ends in a blank line)
- Media type: "text/plain"; the CLI writes it as UTF-8
"""

from __future__ import annotations

from gecko_builder.core.ir import OutputSequence
from gecko_builder.formatters.base import BaseFormatter, FormatterOutput


class TextFormatter(BaseFormatter):
    """Formatter that renders the code list verbatim."""

    @property
    def name(self) -> str:
        return "Text"

    def format(self, sequence: OutputSequence) -> FormatterOutput:
        return FormatterOutput(
            content="\n".join(sequence.lines),
            media_type="text/plain",
        )
