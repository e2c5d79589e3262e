"""Exception hierarchy for the Gecko code builder.

WHY: Every failure is fatal to a build, but only the CLI should decide
how to report it and which exit code to use. Typed exceptions let a host
that embeds the builder (a GUI, an editor plugin) catch and display
errors without the process terminating.

HOW: GeckoError is the common base. Each subclass maps to one failure
family: bad configuration, assembler failure, unreadable files, and
malformed hex fields.

RULES:
- Library code raises these; it never calls sys.exit()
- Messages name the offending file, address, or field where known
- CompileError carries the assembler's combined stdout/stderr verbatim
"""

from __future__ import annotations


class GeckoError(Exception):
    """Base class for every error raised while building a code list."""


class ConfigError(GeckoError):
    """Raised when codes.json or a source-folder convention is invalid.

    Covers unreadable or malformed config files, schema violations,
    unsupported platforms, and .asm files that do not declare their
    injection address on the first line.
    """


class CompileError(GeckoError):
    """Raised when the external assembler fails or produces no usable code.

    WHY: The assembler's diagnostics are the only useful information when
    a source file does not compile, so they travel with the exception.

    RULES:
    - source is the file that failed (as written in codes.json)
    - output is the tool's combined stdout/stderr, possibly empty
    """

    def __init__(self, message: str, source: str = "", output: str = "") -> None:
        self.source = source
        self.output = output
        super().__init__(message)


class FileAccessError(GeckoError):
    """Raised when a source file, folder, or output file cannot be accessed."""

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class FormatError(GeckoError):
    """Raised when an address, value, or displacement cannot be encoded."""
