"""Gecko code line generation for every patch kind.

WHY: Each codes.json entry becomes one or more Gecko code lines whose
exact shape the code handler on the console depends on. Branch
displacements, record counts, and the 04/06/C2 code types all have to be
computed correctly or the game crashes at the patched address.

HOW: One function per code shape (replace_line, branch_line, inject_lines,
block_lines) does the arithmetic and formatting. encode_entry() dispatches
a PatchEntry to the right one, pulling code or binary data through the
SourceResolver for file-backed kinds, and annotates the first line.

RULES:
- Address fields are 8 hex digits; the first byte (80/81) is dropped
  and replaced by the code type: 04 (write word), 06 (write block),
  C2 (insert ASM)
- Branch prefix is 48 for forward/zero displacement, 4B for backward;
  branchAndLink adds 1 (the LK bit) after the direction test
- Injected code of exactly one instruction becomes a 04 code
- Only the first line of an entry carries the " #annotation"
- injectFolder annotates each file's first line with the file's path
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Callable, Dict, List

from gecko_builder.core.ir import PatchEntry, PatchKind
from gecko_builder.core.packer import PackMode, iter_records, pack
from gecko_builder.errors import CompileError, FormatError

if TYPE_CHECKING:
    from gecko_builder.toolchain.resolver import SourceResolver

_HEX_WORD_RE = re.compile(r"^[0-9A-Fa-f]{8}$")

# A 04 branch line keeps 24 bits of displacement below the 48/4B prefix.
_MIN_DISPLACEMENT = -0x1000000
_MAX_DISPLACEMENT = 0xFFFFFF


def _hex_word(text: str, field: str) -> str:
    if not _HEX_WORD_RE.match(text):
        raise FormatError(
            "{} must be 8 hex digits, got {!r}".format(field, text)
        )
    return text.upper()


def _code_address(address: str, field: str = "address") -> str:
    """Return the 6 significant hex digits of a 4-byte address."""
    return _hex_word(address, field)[2:]


def annotate(line: str, annotation: str) -> str:
    if not annotation:
        return line
    return "{} #{}".format(line, annotation)


def replace_line(address: str, value: str) -> str:
    """Build a 04 (32-bit write) code line."""
    return "04{} {}".format(_code_address(address), _hex_word(value, "value"))


def branch_line(address: str, target_address: str, link: bool = False) -> str:
    """Build a 04 code line that writes a ``b``/``bl`` instruction.

    WHY: Redirecting a call is the most common Gecko patch, and the
    instruction word depends on the distance between the two addresses.

    HOW: Both addresses are truncated to their low 3 bytes and subtracted
    as signed integers. The sign selects the prefix byte, and the low 24
    bits of the displacement (plus the link bit) fill the rest of the word.

    RULES:
    - displacement >= 0 -> 48xxxxxx; displacement < 0 -> 4Bxxxxxx
    - link=True adds 1 after the sign test
    - displacements outside the 24-bit field raise FormatError
    """
    base = int(_code_address(address), 16)
    target = int(_code_address(target_address, "targetAddress"), 16)
    displacement = target - base

    if displacement < _MIN_DISPLACEMENT or displacement + int(link) > _MAX_DISPLACEMENT:
        raise FormatError(
            "Branch from {} to {} does not fit in a 24-bit displacement".format(
                address, target_address
            )
        )

    prefix = "4B" if displacement < 0 else "48"
    if link:
        displacement += 1

    return "04{} {}{:06X}".format(
        _code_address(address), prefix, displacement & 0xFFFFFF
    )


def inject_lines(address: str, code: bytes, source: str = "") -> List[str]:
    """Build a C2 (insert ASM) code, or a 04 code for a single instruction.

    Args:
        address: Hook address, 8 hex digits.
        code: Assembled machine code.
        source: Source file name, used in the error message only.

    Raises:
        CompileError: If the assembler produced no code at all.
    """
    if not code:
        raise CompileError("Did not find any code in file: {}".format(source), source=source)

    if len(code) == 4:
        return [replace_line(address, code.hex())]

    packed = pack(code, PackMode.INJECT)
    lines = ["C2{} {:08X}".format(_code_address(address), len(packed) // 8)]
    lines.extend(iter_records(packed))
    return lines


def block_lines(address: str, data: bytes) -> List[str]:
    """Build a 06 (write block) code; the header carries the byte length."""
    packed = pack(data, PackMode.BLOCK)
    lines = ["06{} {:08X}".format(_code_address(address), len(packed))]
    lines.extend(iter_records(packed))
    return lines


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def _encode_replace(entry: PatchEntry, resolver: SourceResolver) -> List[str]:
    return [replace_line(entry.address, entry.value)]


def _encode_branch(entry: PatchEntry, resolver: SourceResolver) -> List[str]:
    link = entry.kind is PatchKind.BRANCH_AND_LINK
    return [branch_line(entry.address, entry.target_address, link)]


def _encode_inject(entry: PatchEntry, resolver: SourceResolver) -> List[str]:
    code = resolver.compile(entry.source_file)
    return inject_lines(entry.address, code, entry.source_file)


def _encode_code_block(entry: PatchEntry, resolver: SourceResolver) -> List[str]:
    return block_lines(entry.address, resolver.compile(entry.source_file))


def _encode_binary(entry: PatchEntry, resolver: SourceResolver) -> List[str]:
    return block_lines(entry.address, resolver.read_binary(entry.source_file))


def _encode_folder(entry: PatchEntry, resolver: SourceResolver) -> List[str]:
    lines: List[str] = []
    for source in resolver.folder_sources(entry.source_folder, entry.is_recursive):
        file_lines = inject_lines(source.address, resolver.compile(source.path), source.path)
        file_lines[0] = annotate(file_lines[0], source.path)
        lines.extend(file_lines)
    return lines


_ENCODERS: Dict[PatchKind, Callable[[PatchEntry, "SourceResolver"], List[str]]] = {
    PatchKind.REPLACE: _encode_replace,
    PatchKind.BRANCH: _encode_branch,
    PatchKind.BRANCH_AND_LINK: _encode_branch,
    PatchKind.INJECT: _encode_inject,
    PatchKind.REPLACE_CODE_BLOCK: _encode_code_block,
    PatchKind.REPLACE_BINARY: _encode_binary,
    PatchKind.INJECT_FOLDER: _encode_folder,
}


def encode_entry(entry: PatchEntry, resolver: SourceResolver) -> List[str]:
    """Encode one patch entry into its Gecko code lines.

    The entry's annotation goes on the first line; injectFolder entries
    carry per-file annotations instead.
    """
    lines = _ENCODERS[entry.kind](entry, resolver)
    if lines and entry.kind is not PatchKind.INJECT_FOLDER:
        lines[0] = annotate(lines[0], entry.annotation)
    return lines
