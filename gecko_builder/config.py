"""Configuration constants, toolchain names, and .env loading.

WHY: Centralizes the magic numbers of the Gecko/GCT formats and the names
of the external PowerPC tools so they are easy to find and override.
devkitPPC installs differ between machines; environment overrides let a
user point the builder at their toolchain without editing code.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level values. Tool names and the backend choice read the
environment with a default.

RULES:
- GCT_HEADER / GCT_FOOTER are bit-exact; never change them
- Tool names can be overridden via GECKO_AS, GECKO_OBJCOPY, GECKO_GEKKO_AS
- GECKO_ASSEMBLER forces a backend ("gekko" or "eabi"); empty = by platform
- GECKO_CONFIG overrides the default config path (codes.json)
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the builder is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Code list formats
# ---------------------------------------------------------------------------

GCT_HEADER = bytes((0x00, 0xD0, 0xC0, 0xDE, 0x00, 0xD0, 0xC0, 0xDE))
"""Two repetitions of the 00D0C0DE magic word."""

GCT_FOOTER = bytes((0xF0, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00))

GCT_EXTENSION = ".gct"
"""Output files with this extension get the binary container."""

NOP_WORD = bytes((0x60, 0x00, 0x00, 0x00))
"""PowerPC ``nop`` (ori r0, r0, 0)."""

ZERO_WORD = bytes(4)

RECORD_SIZE = 8

# ---------------------------------------------------------------------------
# Source conventions
# ---------------------------------------------------------------------------

ASM_EXTENSION = ".asm"
"""Files picked up by injectFolder entries."""

DEFAULT_CONFIG_FILE = os.getenv("GECKO_CONFIG", "codes.json")

# ---------------------------------------------------------------------------
# External toolchain
# ---------------------------------------------------------------------------

ASSEMBLER_FLAGS = ("-a32", "-mbig", "-mregnames")
"""32-bit, big-endian, register names (r3 rather than 3)."""

GEKKO_FLAG = "-mgekko"

GEKKO_AS = os.getenv("GECKO_GEKKO_AS", "powerpc-gekko-as.exe")
EABI_AS = os.getenv("GECKO_AS", "powerpc-eabi-as")
EABI_OBJCOPY = os.getenv("GECKO_OBJCOPY", "powerpc-eabi-objcopy")
ASSEMBLER_BACKEND = os.getenv("GECKO_ASSEMBLER", "").strip().lower()

# Raw ELF produced by powerpc-gekko-as: .text starts right after the
# 52-byte ELF32 header and ends where the section name table begins.
GEKKO_TEXT_OFFSET = 52
GEKKO_TEXT_END_MARKER = b"\x00.symtab"
