"""Output formatter registry.

WHY: codes.json lists output files by name only; the file extension
decides the format. A central dict keeps that mapping in one place and
makes adding a format a one-line change.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
formatter_for_path() picks one from an output file name.

RULES:
- ".gct" (exact, case-sensitive) -> GCT; anything else -> text
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from gecko_builder.config import GCT_EXTENSION
from gecko_builder.formatters.gct import GctFormatter
from gecko_builder.formatters.text import TextFormatter

if TYPE_CHECKING:
    from gecko_builder.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "text": TextFormatter,
    "gct": GctFormatter,
}


def formatter_for_path(path: str) -> BaseFormatter:
    """Instantiate the formatter for an output file name."""
    if os.path.splitext(path)[1] == GCT_EXTENSION:
        return FORMATTERS["gct"]()
    return FORMATTERS["text"]()
