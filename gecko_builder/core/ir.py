"""Intermediate representation dataclasses for a Gecko build.

WHY: codes.json is loosely typed JSON. The encoder, sequencer, and
formatters need a single well-typed form of it, and a single typed form
of the resulting code list, so that each stage can be tested on its own.

HOW: Five types form the model:
  PatchKind       : the kinds of patch a codes.json entry can request
  PatchEntry      : one entry of a code's "build" list
  PatchDescription: one named code (header + entries)
  BuildConfig     : the whole codes.json plus where it was loaded from
  OutputSequence  : the finished, ordered list of code list lines

RULES:
- Every dataclass is frozen; sequences are tuples
- PatchEntry carries every field; only those its kind needs are meaningful
- Addresses stay in their textual 8-hex-digit form until encoding
- OutputSequence is shared read-only by every output target
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


class PatchKind(str, enum.Enum):
    """The ``type`` values accepted in a codes.json build entry."""

    REPLACE = "replace"
    INJECT = "inject"
    REPLACE_CODE_BLOCK = "replaceCodeBlock"
    BRANCH = "branch"
    BRANCH_AND_LINK = "branchAndLink"
    INJECT_FOLDER = "injectFolder"
    REPLACE_BINARY = "replaceBinary"


@dataclass(frozen=True)
class PatchEntry:
    """A single patch to apply at a memory address.

    WHY: codes.json mixes seven kinds of patch in one list. Keeping a
    single flat record (rather than one class per kind) mirrors the JSON
    and keeps the encoder's dispatch table simple.

    RULES:
    - address: 8 hex digits, first byte not significant (e.g. "80001234")
    - target_address: branch destination, same form as address
    - value: replacement word for "replace" entries, 8 hex digits
    - annotation: appended as " #<annotation>" to the first emitted line
    - source_file / source_folder: paths as written in codes.json
    - is_recursive: injectFolder descends into subdirectories
    """

    kind: PatchKind
    address: str = ""
    target_address: str = ""
    value: str = ""
    annotation: str = ""
    source_file: str = ""
    source_folder: str = ""
    is_recursive: bool = False


@dataclass(frozen=True)
class PatchDescription:
    """One named code: header metadata plus the patches that make it up."""

    name: str
    authors: Tuple[str, ...] = ()
    description: Tuple[str, ...] = ()
    build: Tuple[PatchEntry, ...] = ()


@dataclass(frozen=True)
class BuildConfig:
    """The parsed contents of codes.json.

    RULES:
    - output_files: in declaration order, at least one
    - codes: in declaration order; output preserves it
    - base_dir: relative source paths resolve against it (the
      directory of codes.json)
    """

    output_files: Tuple[str, ...]
    codes: Tuple[PatchDescription, ...]
    base_dir: Path = field(default_factory=Path)


@dataclass(frozen=True)
class OutputSequence:
    """The complete, ordered code list that every formatter renders.

    Lines are either code lines (``"XXXXXXXX YYYYYYYY"`` with an optional
    ``" #annotation"``), header lines (``$``), description lines (``*``),
    or blank separators.
    """

    lines: Tuple[str, ...] = ()

    def __iter__(self):
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)
