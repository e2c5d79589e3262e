"""Resolution of codes.json source references into bytes.

WHY: Inject, replaceCodeBlock, replaceBinary, and injectFolder entries
all point at files on disk, written relative to codes.json. The encoder
needs the code (or blob) behind them, and for injectFolder it also needs
each file's injection address, which is declared inside the file.

HOW: SourceResolver binds an AssemblerBackend to the config's base
directory. compile() and read_binary() resolve a path and return bytes.
folder_sources() walks a folder and yields one FolderSource per .asm file,
reading its address from the end of its first line.

RULES:
- Relative paths resolve against base_dir; absolute paths are kept
- The assembler runs with base_dir as its working directory
- Paths reported back (annotations, errors) are as written in codes.json
- injectFolder: regular .asm files in name order, then subdirectories
  (depth-first) when recursive
- First line must end in 8 hex digits, e.g. "# Inject @ 80001234",
  otherwise ConfigError naming the file
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

from gecko_builder.config import ASM_EXTENSION
from gecko_builder.errors import ConfigError, FileAccessError
from gecko_builder.toolchain.assembler import AssemblerBackend, select_backend

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^[0-9A-Fa-f]{8}$")


@dataclass(frozen=True)
class FolderSource:
    """One .asm file found by an injectFolder walk."""

    address: str
    path: str


def injection_address(path: Union[str, Path], display_name: str = "") -> str:
    """Read the injection address from the last 8 characters of line one.

    Raises:
        FileAccessError: If the file cannot be read.
        ConfigError: If the first line does not end in 8 hex digits.
    """
    name = display_name or str(path)
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            first_line = f.readline().rstrip("\r\n")
    except OSError as exc:
        raise FileAccessError("Failed to read file at {}: {}".format(name, exc), path=name) from exc

    address = first_line[-8:]
    if len(first_line) < 8 or not _ADDRESS_RE.match(address):
        raise ConfigError(
            "File at {} needs to specify the 4 byte injection address "
            "at the end of the first line of the file".format(name)
        )
    return address


class SourceResolver:
    """Turns codes.json file references into machine code and blobs.

    The assembler backend is chosen on first compile when none is given,
    so code lists without assembly never need a toolchain.
    """

    def __init__(
        self,
        backend: Optional[AssemblerBackend] = None,
        base_dir: Union[str, Path] = ".",
        backend_name: Optional[str] = None,
    ) -> None:
        self._backend = backend
        self.backend_name = backend_name
        self.base_dir = Path(base_dir)

    @property
    def backend(self) -> AssemblerBackend:
        if self._backend is None:
            self._backend = select_backend(self.backend_name)
            logger.debug("Selected %s assembler backend", self._backend.name)
        return self._backend

    def _resolve(self, path: str) -> Path:
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.base_dir / candidate

    def compile(self, source: str) -> bytes:
        """Assemble a source file referenced from codes.json.

        The toolchain runs from base_dir, so ``.include`` paths in the
        source are relative to codes.json.
        """
        backend = self.backend
        logger.info("Compiling %s with %s backend", source, backend.name)
        code = backend.compile(self._resolve(source), source, cwd=self.base_dir)
        logger.debug("%s: %d bytes of code", source, len(code))
        return code

    def read_binary(self, source: str) -> bytes:
        """Read a replaceBinary blob as-is."""
        try:
            return self._resolve(source).read_bytes()
        except OSError as exc:
            raise FileAccessError(
                "Failed to read binary file {}: {}".format(source, exc), path=source
            ) from exc

    def folder_sources(self, folder: str, recursive: bool = False) -> Iterator[FolderSource]:
        """Yield every injectable .asm file of a folder.

        WHY: Large mods keep one injection per file; listing each one in
        codes.json would be tedious and error-prone.

        HOW: Lists the folder once, yields its .asm files (with their
        first-line addresses), then recurses into each subdirectory if
        recursive is set.

        RULES:
        - Only regular files with the .asm extension are yielded
        - Files before subdirectories; both in name order
        - Symlinked directories are not followed
        - FolderSource.path is the folder as written joined with the name
        """
        directory = self._resolve(folder)
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as exc:
            raise FileAccessError(
                "Failed to read directory {}: {}".format(folder, exc), path=folder
            ) from exc

        for entry in entries:
            if not entry.is_file() or os.path.splitext(entry.name)[1] != ASM_EXTENSION:
                continue
            display = os.path.join(folder, entry.name)
            yield FolderSource(address=injection_address(entry.path, display), path=display)

        if recursive:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    yield from self.folder_sources(os.path.join(folder, entry.name), recursive)
