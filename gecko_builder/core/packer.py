"""Padding of assembled instruction streams into whole Gecko records.

WHY: Every Gecko code line carries exactly two 32-bit words, so injected
and block-replaced code must occupy a whole number of 8-byte records.
C2 (injection) codes additionally need their last word to be zero: the
loader writes the branch back to the hook site there.

HOW: pack() extends the byte stream according to the mode; iter_records()
renders each 8-byte record as the two uppercase hex words of a code line.

RULES:
- INJECT: length % 8 == 0 -> append 60000000 00000000 (nop + return slot)
          otherwise        -> append 00000000 (return slot)
- BLOCK:  length % 8 != 0  -> append 60000000 (nop); never a terminator
- Inputs that end mid-word are zero-filled to a 4-byte boundary first
- The 4-byte injection shortcut (04 code) is the encoder's concern
- Output length is always a multiple of 8
"""

from __future__ import annotations

import enum
from typing import Iterator

from gecko_builder.config import NOP_WORD, RECORD_SIZE, ZERO_WORD


class PackMode(enum.Enum):
    INJECT = "inject"
    BLOCK = "block"


def pack(data: bytes, mode: PackMode) -> bytes:
    """Pad an instruction stream to a whole number of 8-byte records.

    Args:
        data: Raw big-endian machine code (or an opaque binary blob).
        mode: PackMode.INJECT for C2 codes, PackMode.BLOCK for 06 codes.

    Returns:
        The padded bytes; the input is never modified.
    """
    # Binary blobs may end mid-word; zero-fill to the word boundary first.
    data = bytes(data) + bytes(-len(data) % len(ZERO_WORD))
    aligned = len(data) % RECORD_SIZE == 0

    if mode is PackMode.INJECT:
        if aligned:
            return data + NOP_WORD + ZERO_WORD
        return data + ZERO_WORD

    if aligned:
        return data
    return data + NOP_WORD


def iter_records(data: bytes) -> Iterator[str]:
    """Yield one ``"XXXXXXXX YYYYYYYY"`` line per 8-byte record."""
    for offset in range(0, len(data), RECORD_SIZE):
        left = data[offset:offset + 4].hex().upper()
        right = data[offset + 4:offset + RECORD_SIZE].hex().upper()
        yield "{} {}".format(left, right)
