"""Command-line interface for the Gecko code builder.

WHY: Mod authors rebuild their code lists every time an .asm file
changes. The CLI wires together the full pipeline (config loading,
assembler backend selection, code list building, and output rendering)
behind a single ``gecko build`` command.

HOW: Uses argparse with a ``build`` subcommand. The whole OutputSequence
is built and every output file is rendered in memory, then staged next
to its target. Targets are only replaced once every staged file is
written, so a failing source or write never leaves a half-updated set
of code lists behind. Status messages go to stderr.

RULES:
- ``gecko build`` reads codes.json from the current directory by default
  (--config or GECKO_CONFIG override it)
- outputFiles entries are relative to codes.json; --output paths are
  relative to the current directory and replace outputFiles
- ".gct" outputs get the binary GCT container, everything else text
- GeckoError -> "Error: ..." on stderr, exit 1; Ctrl-C -> exit 130
- The assembler backend is only selected when a source needs compiling
- -v enables INFO logging, -vv DEBUG (toolchain commands)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from gecko_builder import __version__
from gecko_builder.config import DEFAULT_CONFIG_FILE
from gecko_builder.core.codes import load_config
from gecko_builder.core.sequencer import build_output
from gecko_builder.errors import CompileError, FileAccessError, GeckoError
from gecko_builder.formatters import formatter_for_path
from gecko_builder.formatters.base import FormatterOutput
from gecko_builder.toolchain.assembler import BACKENDS
from gecko_builder.toolchain.resolver import SourceResolver

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _staging_path(path: Path) -> Path:
    return path.with_name(".{}.tmp".format(path.name))


def _stage_output(output: FormatterOutput, path: Path) -> Path:
    """Write one rendered code list to a hidden sibling of its target.

    Text is encoded as UTF-8 and written as bytes so that line endings
    are "\\n" on every platform.
    """
    content = output.content
    if isinstance(content, str):
        content = content.encode("utf-8")
    staged = _staging_path(path)
    try:
        staged.write_bytes(content)
    except OSError as exc:
        staged.unlink(missing_ok=True)
        raise FileAccessError(
            "Failed to write {}: {}".format(path, exc), path=str(path)
        ) from exc
    return staged


def _commit_output(staged: Path, path: Path) -> None:
    try:
        os.replace(staged, path)
    except OSError as exc:
        raise FileAccessError(
            "Failed to write {}: {}".format(path, exc), path=str(path)
        ) from exc


def _save_outputs(rendered: List[Tuple[Path, FormatterOutput]]) -> List[Path]:
    """Write every rendered output, or none of them.

    Each output is staged next to its target first. Targets are only
    replaced once every staged file has been written; a failed write
    removes the staged files and leaves existing outputs untouched.
    """
    staged: List[Tuple[Path, Path]] = []
    try:
        for target, output in rendered:
            _status("Writing to {}...".format(target))
            staged.append((_stage_output(output, target), target))
    except FileAccessError:
        for staged_path, _ in staged:
            staged_path.unlink(missing_ok=True)
        raise

    written: List[Path] = []
    for staged_path, target in staged:
        _commit_output(staged_path, target)
        _status("Successfully wrote codes to {}".format(target))
        written.append(target)
    return written


def run_build(
    config_path: str,
    output_files: Optional[List[str]] = None,
    backend_name: Optional[str] = None,
) -> List[Path]:
    """Build every configured code list.

    WHY: Separating the pipeline from argument parsing lets tests and
    embedding hosts run a build and get exceptions instead of exit codes.

    HOW: Loads codes.json, builds the OutputSequence (selecting the
    assembler backend on the first compile), renders every output, then
    writes them.

    RULES:
    - Nothing is written until every output has been rendered
    - A failed write leaves every target as it was before the build
    - Config outputFiles resolve against the config's directory
    - Explicit output_files replace the config's list

    Args:
        config_path: Path to codes.json.
        output_files: Optional replacement for the config's outputFiles.
        backend_name: Optional assembler backend key ("gekko", "eabi").

    Returns:
        The paths written, in order.

    Raises:
        GeckoError: On any configuration, compile, encoding, or I/O failure.
    """
    config = load_config(config_path)

    if output_files:
        targets = [Path(f) for f in output_files]
    else:
        targets = [config.base_dir / f for f in config.output_files]

    resolver = SourceResolver(base_dir=config.base_dir, backend_name=backend_name)

    _status("Building {} code(s) from {}...".format(len(config.codes), config_path))
    sequence = build_output(config.codes, resolver)

    rendered: List[Tuple[Path, FormatterOutput]] = []
    for target in targets:
        formatter = formatter_for_path(str(target))
        logger.info("Rendering %s as %s", target, formatter.name)
        rendered.append((target, formatter.format(sequence)))

    return _save_outputs(rendered)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without running a build.
    """
    parser = argparse.ArgumentParser(
        prog="gecko",
        description="Build Gecko code lists (text and GCT) from codes.json.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s {}".format(__version__),
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True

    build = subparsers.add_parser(
        "build",
        help="Assemble sources and write every configured output file.",
    )
    build.add_argument(
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help="Path to the codes config file (default: %(default)s).",
    )
    build.add_argument(
        "--output",
        action="append",
        default=None,
        help="Output file (.gct for binary, anything else for text). "
             "Can be specified multiple times; replaces outputFiles.",
    )
    build.add_argument(
        "--backend",
        choices=sorted(BACKENDS),
        default=None,
        help="Assembler backend (default: chosen by platform or GECKO_ASSEMBLER).",
    )
    build.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v info, -vv debug).",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``gecko`` console script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        run_build(args.config, args.output, args.backend)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except CompileError as e:
        print("Error: {}".format(e), file=sys.stderr)
        if e.output:
            print(e.output, end="" if e.output.endswith("\n") else "\n", file=sys.stderr)
        sys.exit(1)
    except GeckoError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
