"""GCT (binary Gecko code table) formatter.

WHY: Code loaders on the console (Nintendont, USB Loader GX, Gecko OS)
read codes from a .gct file: the 00D0C0DE magic, the raw code words, and
an F0000000 terminator. The file must be byte-exact or the loader stops
at the first bad record.

HOW: Re-derives the binary from the text form. Every line whose first
17 characters have the "XXXXXXXX YYYYYYYY" shape contributes its two
words; headers, descriptions, and blank lines fail the check and are
skipped without a separate classification pass.

RULES:
- Header: 00D0C0DE 00D0C0DE; footer: F0000000 00000000
- A line is code iff len >= 17 and line[0:8] + line[9:17] is valid hex
- Annotations after column 17 are ignored
- Media type: "application/octet-stream"
"""

from __future__ import annotations

import binascii
from typing import Optional

from gecko_builder.config import GCT_FOOTER, GCT_HEADER
from gecko_builder.core.ir import OutputSequence
from gecko_builder.formatters.base import BaseFormatter, FormatterOutput

_CODE_LINE_LENGTH = 17


def decode_code_line(line: str) -> Optional[bytes]:
    """Return the 8 bytes of a code line, or None for any other line."""
    if len(line) < _CODE_LINE_LENGTH:
        return None
    # unhexlify, unlike bytes.fromhex, rejects embedded whitespace
    try:
        return binascii.unhexlify(line[0:8] + line[9:17])
    except ValueError:
        return None


class GctFormatter(BaseFormatter):
    """Formatter that produces the binary .gct container."""

    @property
    def name(self) -> str:
        return "GCT"

    def format(self, sequence: OutputSequence) -> FormatterOutput:
        body = bytearray(GCT_HEADER)
        for line in sequence.lines:
            record = decode_code_line(line)
            if record is not None:
                body.extend(record)
        body.extend(GCT_FOOTER)

        return FormatterOutput(
            content=bytes(body),
            media_type="application/octet-stream",
        )
