"""Assembly of the complete code list from all code descriptions.

WHY: A Gecko code list is a sequence of named codes, each introduced by
a ``$Name [Authors]`` header and optional ``*`` description lines. The
formatters need that whole sequence, in codes.json order, as one value.

HOW: header_lines() renders a code's header; build_output() walks every
PatchDescription, appends its header, the encoder's lines for each of its
entries, and a blank separator, and freezes the result.

RULES:
- Header: "$<name> [<author>, <author>]" (authors joined by ", ")
- One "*<line>" per description line, in order
- Entries encoded in declaration order; multi-line codes stay contiguous
- Exactly one blank line after every code, including the last
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List

from gecko_builder.core.encoder import encode_entry
from gecko_builder.core.ir import OutputSequence, PatchDescription

if TYPE_CHECKING:
    from gecko_builder.toolchain.resolver import SourceResolver

logger = logging.getLogger(__name__)


def header_lines(description: PatchDescription) -> List[str]:
    lines = ["${} [{}]".format(description.name, ", ".join(description.authors))]
    lines.extend("*{}".format(line) for line in description.description)
    return lines


def build_output(
    codes: Iterable[PatchDescription],
    resolver: SourceResolver,
) -> OutputSequence:
    """Build the full OutputSequence for a list of code descriptions.

    Args:
        codes: Code descriptions in codes.json order.
        resolver: Source resolver used for file-backed entries.

    Returns:
        The frozen OutputSequence shared by every output target.

    Raises:
        GeckoError: Any encoding, compile, or source error aborts the build.
    """
    lines: List[str] = []
    for description in codes:
        logger.info("Building code %s", description.name)
        lines.extend(header_lines(description))
        for entry in description.build:
            lines.extend(encode_entry(entry, resolver))
        lines.append("")

    return OutputSequence(lines=tuple(lines))
