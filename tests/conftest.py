"""Shared test fixtures for the gecko_builder test suite.

WHY: Most tests need an assembler, but devkitPPC is not installed on CI.
A fake backend that "assembles" ``.long 0xXXXXXXXX`` directives lets the
encoder, resolver, and CLI run end to end through the real temporary-file
handling of AssemblerBackend.compile().

HOW: FakeBackend subclasses AssemblerBackend and parses the copied source
in its temporary directory. Fixtures provide a resolver rooted at
tmp_path and a helper for writing .asm files.

RULES:
- Only ``.long`` directives produce code; everything else is ignored
- FakeBackend records every compiled source text and working directory
"""

import re
from pathlib import Path
from typing import List, Optional

import pytest

from gecko_builder.toolchain.assembler import AssemblerBackend
from gecko_builder.toolchain.resolver import SourceResolver

_LONG_RE = re.compile(r"^\s*\.long\s+0x([0-9A-Fa-f]{8})\s*$")


class FakeBackend(AssemblerBackend):
    """Assembler stand-in that understands only ``.long`` directives."""

    def __init__(self) -> None:
        self.sources: List[bytes] = []
        self.cwds: List[Optional[Path]] = []

    @property
    def name(self) -> str:
        return "fake"

    def _assemble(self, workdir: Path, source: str, cwd: Optional[Path]) -> bytes:
        text = (workdir / "asm-to-compile.asm").read_bytes()
        self.sources.append(text)
        self.cwds.append(cwd)
        code = bytearray()
        for line in text.decode("utf-8").splitlines():
            match = _LONG_RE.match(line)
            if match:
                code.extend(bytes.fromhex(match.group(1)))
        return bytes(code)


def asm_source(*words: str, header: str = "") -> str:
    """Build a fake .asm file body from instruction words."""
    lines = [header] if header else []
    lines.extend(".long 0x{}".format(word) for word in words)
    return "\n".join(lines)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def resolver(fake_backend, tmp_path):
    """SourceResolver rooted at tmp_path using the fake backend."""
    return SourceResolver(fake_backend, tmp_path)


@pytest.fixture
def write_asm(tmp_path):
    """Write an .asm file below tmp_path and return its relative path."""

    def _write(relative: str, *words: str, header: str = "") -> str:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(asm_source(*words, header=header), encoding="utf-8")
        return relative

    return _write
