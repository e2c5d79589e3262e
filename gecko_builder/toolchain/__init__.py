"""External PowerPC toolchain access and source file resolution.

WHY: The builder does not assemble code itself; devkitPPC's binutils do.
Everything that touches a subprocess or reads a source file lives here so
the core stays pure and testable with a fake backend.

HOW: assembler.py defines the AssemblerBackend strategies (one per
toolchain flavour) and select_backend(). resolver.py wraps a backend
with path resolution, binary reads, and injectFolder directory walking.
"""

from gecko_builder.toolchain.assembler import (
    AssemblerBackend,
    EabiBackend,
    GekkoAsBackend,
    select_backend,
)
from gecko_builder.toolchain.resolver import FolderSource, SourceResolver, injection_address

__all__ = [
    "AssemblerBackend",
    "EabiBackend",
    "GekkoAsBackend",
    "select_backend",
    "FolderSource",
    "SourceResolver",
    "injection_address",
]
