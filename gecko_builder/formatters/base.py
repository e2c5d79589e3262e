"""Abstract base formatter and output container.

WHY: Every output target consumes the same OutputSequence but produces
different file content. This base class enforces a consistent interface
so the CLI (or any embedding host) can render outputs generically.

HOW: BaseFormatter is an ABC with two requirements: a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles the rendered content with its MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` is pure: it never touches the filesystem
- The caller decides where the content is written
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from gecko_builder.core.ir import OutputSequence


@dataclass
class FormatterOutput:
    """One rendered code list.

    Attributes:
        content: Text (str) for code list .txt files, bytes for GCT.
        media_type: MIME type for the content, e.g. ``"text/plain"``.
    """

    content: str | bytes
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'GCT'."""

    @abstractmethod
    def format(self, sequence: OutputSequence) -> FormatterOutput:
        """Render the complete code list.

        Args:
            sequence: The built code list, in codes.json order.

        Returns:
            The rendered content and its MIME type.
        """
