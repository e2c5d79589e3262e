"""Assembler backends wrapping the external PowerPC toolchain.

WHY: Windows devkitPPC ships ``powerpc-gekko-as.exe`` while Linux and
macOS installs provide ``powerpc-eabi-as`` and ``powerpc-eabi-objcopy``.
The two need different invocations and different ways of extracting the
raw code. Callers should only ever see ``compile(path) -> bytes``.

HOW: AssemblerBackend.compile() copies the source into a scoped temporary
directory, appending a line terminator, then hands off to the subclass's
_assemble(). The tools run from the caller's directory (the codes.json
directory when called through SourceResolver) and are given absolute
paths into the temporary directory. GekkoAsBackend slices .text out of
the raw ELF output; EabiBackend runs objcopy to get a flat binary.
select_backend() picks a strategy from GECKO_ASSEMBLER or the host
platform.

RULES:
- The copied source always ends with "\\r\\n"; gas silently drops a last
  instruction that has no line terminator
- Temporary files live in a TemporaryDirectory and are removed on every
  exit path, success or failure
- The working directory is never the temporary one: relative ``.include``
  paths and relative tool paths resolve against the project
- Non-zero exit -> CompileError with the combined stdout/stderr
- Tool missing from PATH -> CompileError naming the tool
- No timeouts: a hung assembler hangs the build
"""

from __future__ import annotations

import logging
import subprocess
import sys
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Type

from gecko_builder.config import (
    ASSEMBLER_BACKEND,
    ASSEMBLER_FLAGS,
    EABI_AS,
    EABI_OBJCOPY,
    GEKKO_AS,
    GEKKO_FLAG,
    GEKKO_TEXT_END_MARKER,
    GEKKO_TEXT_OFFSET,
)
from gecko_builder.errors import CompileError, ConfigError, FileAccessError

logger = logging.getLogger(__name__)

_SOURCE_NAME = "asm-to-compile.asm"
_OBJECT_NAME = "a.out"


def _run_tool(
    cmd: List[str],
    cwd: Optional[Path],
    source: str,
    failure: str = "Failed to compile file",
) -> str:
    """Run one toolchain command and return its combined output.

    cwd=None runs the tool in the current working directory.
    """
    logger.debug("Running %s (cwd: %s)", " ".join(cmd), cwd or ".")
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except FileNotFoundError as exc:
        raise CompileError(
            "Could not run {}; make sure it is on your PATH".format(cmd[0]),
            source=source,
        ) from exc

    output = result.stdout.decode("utf-8", errors="replace") if result.stdout else ""
    if result.returncode != 0:
        raise CompileError(
            "{}: {}".format(failure, source),
            source=source,
            output=output,
        )
    return output


def _read_object(path: Path, source: str) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise CompileError(
            "Failed to read compiled file {}: {}".format(source, exc),
            source=source,
        ) from exc


class AssemblerBackend(ABC):
    """Abstract base for toolchain strategies.

    WHY: The encoder needs machine code for a source file and must not
    care which binutils flavour produced it.

    To add a toolchain:
    1. Subclass AssemblerBackend
    2. Implement name and _assemble()
    3. Register it in BACKENDS
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short backend key, e.g. 'eabi'."""

    @abstractmethod
    def _assemble(self, workdir: Path, source: str, cwd: Optional[Path]) -> bytes:
        """Assemble ``workdir/asm-to-compile.asm`` from ``cwd`` and return raw code."""

    def compile(
        self,
        source_path: Path,
        display_name: Optional[str] = None,
        cwd: Optional[Path] = None,
    ) -> bytes:
        """Assemble a source file into big-endian PowerPC machine code.

        Args:
            source_path: The .asm file to assemble.
            display_name: Name used in messages (defaults to source_path).
            cwd: Directory the tools run in; relative ``.include`` paths
                resolve against it. None means the current directory.

        Returns:
            The assembled instructions, without any object file framing.

        Raises:
            FileAccessError: If the source file cannot be read.
            CompileError: If the toolchain fails or its output is unusable.
        """
        source = display_name or str(source_path)
        try:
            contents = Path(source_path).read_bytes()
        except OSError as exc:
            raise FileAccessError(
                "Failed to read asm file {}: {}".format(source, exc), path=source
            ) from exc

        with tempfile.TemporaryDirectory(prefix="gecko_asm_") as tmp:
            workdir = Path(tmp).resolve()
            (workdir / _SOURCE_NAME).write_bytes(contents + b"\r\n")
            return self._assemble(workdir, source, cwd)


class GekkoAsBackend(AssemblerBackend):
    """devkitPPC for Windows: ``powerpc-gekko-as.exe`` only, no objcopy.

    The raw ELF output is sliced from the end of the ELF header up to the
    ``\\0.symtab`` entry of the section name table.
    """

    def __init__(self, assembler: str = GEKKO_AS) -> None:
        self.assembler = assembler

    @property
    def name(self) -> str:
        return "gekko"

    def _assemble(self, workdir: Path, source: str, cwd: Optional[Path]) -> bytes:
        obj = workdir / _OBJECT_NAME
        _run_tool(
            [
                self.assembler, *ASSEMBLER_FLAGS, GEKKO_FLAG,
                "-o", str(obj), str(workdir / _SOURCE_NAME),
            ],
            cwd,
            source,
        )
        contents = _read_object(obj, source)

        end = contents.find(GEKKO_TEXT_END_MARKER)
        if end < GEKKO_TEXT_OFFSET:
            raise CompileError(
                "Could not locate the code section in the output for {}".format(source),
                source=source,
            )
        return contents[GEKKO_TEXT_OFFSET:end]


class EabiBackend(AssemblerBackend):
    """``powerpc-eabi-as`` followed by ``objcopy -O binary``."""

    def __init__(self, assembler: str = EABI_AS, objcopy: str = EABI_OBJCOPY) -> None:
        self.assembler = assembler
        self.objcopy = objcopy

    @property
    def name(self) -> str:
        return "eabi"

    def _assemble(self, workdir: Path, source: str, cwd: Optional[Path]) -> bytes:
        obj = workdir / _OBJECT_NAME
        _run_tool(
            [self.assembler, *ASSEMBLER_FLAGS, "-o", str(obj), str(workdir / _SOURCE_NAME)],
            cwd,
            source,
        )
        _run_tool(
            [self.objcopy, "-O", "binary", str(obj), str(obj)],
            cwd,
            source,
            failure="Failed to pull out .text section",
        )
        return _read_object(obj, source)


BACKENDS: Dict[str, Type[AssemblerBackend]] = {
    "gekko": GekkoAsBackend,
    "eabi": EabiBackend,
}


def select_backend(name: Optional[str] = None, platform: Optional[str] = None) -> AssemblerBackend:
    """Pick the assembler backend for this machine.

    RULES:
    - An explicit name (or GECKO_ASSEMBLER) wins over the platform
    - win32 -> gekko; linux* and darwin -> eabi
    - Anything else raises ConfigError
    """
    key = name if name is not None else ASSEMBLER_BACKEND
    if key:
        if key not in BACKENDS:
            raise ConfigError(
                "Unknown assembler backend '{}'. Available: {}".format(
                    key, ", ".join(sorted(BACKENDS))
                )
            )
        return BACKENDS[key]()

    platform = platform or sys.platform
    if platform == "win32":
        return GekkoAsBackend()
    if platform.startswith("linux") or platform == "darwin":
        return EabiBackend()
    raise ConfigError("Platform unsupported: {}".format(platform))
