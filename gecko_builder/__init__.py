"""Gecko code builder: codes.json to text and GCT code lists.

WHY: Writing Gecko codes by hand means computing branch displacements,
padding injected assembly to whole 8-byte records, and keeping the text
and binary (GCT) code lists in sync. This package derives all of that
from a declarative codes.json and the assembly sources it references.

HOW: Four-stage pipeline: load (codes.json into frozen dataclasses),
resolve (assemble sources through an external PowerPC toolchain), encode
and sequence (one ordered list of code lines), format (pluggable text and
GCT formatters). Each stage is independently testable.

RULES:
- All formatters consume the same OutputSequence
- Library code raises GeckoError subclasses; only the CLI exits
- Nothing is written to disk until every output has been rendered
"""

__version__ = "0.1.0"
